from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    DATABASE_URL: str
    BASE_URL: str = "http://localhost:3000"
    PORT: int = 3000
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Reference zone for last_clicked timestamps
    CLICK_TIMEZONE: str = "UTC"
    STORE_TIMEOUT_SECONDS: float = Field(5.0, gt=0)
    # 1 = surface a generated-code collision immediately
    MAX_GENERATION_ATTEMPTS: int = Field(1, ge=1)
    AUTO_CREATE_TABLES: bool = True
    CORS_ORIGINS: List[str] = ["*"]

    class Config:
        env_file = ".env"

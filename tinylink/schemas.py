from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Optional
from datetime import datetime

class LinkCreate(BaseModel):
    # Loosely typed: the service validators decide, so bad input maps to 400
    url: Any = None
    code: Any = None

class LinkOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    code: str
    url: str
    clicks: int
    last_clicked: Optional[datetime]
    created_at: datetime

class LinkCreated(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ok: bool = True
    link: LinkOut
    short_url: str = Field(alias="shortUrl")

class LinkDeleted(BaseModel):
    ok: bool = True
    deleted: str

class Health(BaseModel):
    ok: bool
    version: str
    uptime: float

from datetime import datetime, timezone
from typing import Optional
from sqlalchemy import String, Text, Integer, DateTime, CheckConstraint, Index, text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func
from .database import Base

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)

class Link(Base):
    __tablename__ = "links"

    code: Mapped[str] = mapped_column(String(8), primary_key=True)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    clicks: Mapped[int] = mapped_column(Integer, default=0, server_default=text("0"), nullable=False)
    last_clicked: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    # Set client-side so rows inserted within the same second still order correctly
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False
    )

    __table_args__ = (
        CheckConstraint("clicks >= 0", name="ck_links_clicks_non_negative"),
        Index("idx_links_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Link {self.code} -> {self.url}>"

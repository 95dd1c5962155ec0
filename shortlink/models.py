from datetime import datetime, timezone
from typing import Optional
from sqlalchemy import String, Text, Integer, DateTime, BigInteger, CheckConstraint, Index, text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func
from .database import Base

ACTIVE = text("deleted_at IS NULL")

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

class Link(Base):
    __tablename__ = "links"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(8), nullable=False)
    target_url: Mapped[str] = mapped_column(Text, nullable=False)
    total_clicks: Mapped[int] = mapped_column(BigInteger, default=0, server_default="0", nullable=False)
    last_clicked_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint("total_clicks >= 0", name="ck_links_total_clicks_non_negative"),
        # Only live rows compete for a code; soft-deleted rows keep theirs for history.
        Index(
            "uq_links_active_code", "code",
            unique=True,
            postgresql_where=ACTIVE,
            sqlite_where=ACTIVE,
        ),
        Index("idx_links_created_at", "created_at"),
    )


# backend/recordlock/locks/models.py
from __future__ import annotations
from datetime import datetime, timezone
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, DateTime
from ..shared.db import Base


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything we store is UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class LockRecord(Base):
    __tablename__ = "locks"
    # one row per resource: a new acquire overwrites, never appends
    resource_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    holder_name: Mapped[str] = mapped_column(String(255), nullable=False)
    holder_group: Mapped[str] = mapped_column(String(255), nullable=False)
    acquired_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)

    def is_live(self, now: datetime) -> bool:
        return now < as_utc(self.expires_at)

    def __repr__(self) -> str:
        return (
            f"LockRecord(resource_id={self.resource_id!r}, holder_name={self.holder_name!r}, "
            f"expires_at={self.expires_at!r})"
        )

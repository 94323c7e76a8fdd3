"""Blob entry model for SQLModel."""
from sqlmodel import SQLModel, Field
from sqlalchemy import Column, DateTime, LargeBinary
from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class BlobEntry(SQLModel, table=True):
    """Key-value entry holding one serialized collection."""

    key: str = Field(primary_key=True, max_length=200)
    value: bytes = Field(sa_column=Column(LargeBinary, nullable=False))
    updated_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime(timezone=True), nullable=False, default=utc_now),
    )

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from pydantic import Field, field_validator
from reviewdesk.schemas.user import CamelModel


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes (SQLite hands these back) as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class EventCreate(CamelModel):
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    date: datetime
    review_deadline: Optional[datetime] = None
    banner_url: Optional[str] = None

    @field_validator("date", "review_deadline")
    @classmethod
    def normalize_timezone(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)


class EventSummary(CamelModel):
    id: UUID
    title: str
    date: datetime
    review_deadline: Optional[datetime] = None

    @field_validator("date", "review_deadline")
    @classmethod
    def normalize_timezone(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)


class Event(EventSummary):
    description: str
    banner_url: Optional[str] = None
    created_by: UUID
    created_at: Optional[datetime] = None

"""
Event-related Pydantic schemas
"""

from datetime import date as date_type
from typing import Annotated, Optional
from pydantic import AfterValidator, BaseModel, Field

PLACEHOLDER_ORGANIZER_ID = "temp-organizer-id"


def _check_date(value: str) -> str:
    date_type.fromisoformat(value)
    return value


def _pad_time(value: str) -> str:
    hours, minutes = value.split(":")
    return f"{int(hours):02d}:{minutes}"


EventDate = Annotated[str, Field(pattern=r"^\d{4}-\d{2}-\d{2}$"), AfterValidator(_check_date)]
EventTime = Annotated[str, Field(pattern=r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$"), AfterValidator(_pad_time)]


class EventCreate(BaseModel):
    """Schema for creating an event"""
    title: str = Field(min_length=1, max_length=100)
    description: str = Field(min_length=1, max_length=1000)
    date: EventDate
    time: EventTime
    location: str = Field(min_length=1, max_length=200)
    capacity: int = Field(ge=1, le=10000)
    organizer_id: str = Field(default=PLACEHOLDER_ORGANIZER_ID, min_length=1)


class EventUpdate(BaseModel):
    """Schema for updating an event; only set fields are written"""
    title: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, min_length=1, max_length=1000)
    date: Optional[EventDate] = None
    time: Optional[EventTime] = None
    location: Optional[str] = Field(default=None, min_length=1, max_length=200)
    capacity: Optional[int] = Field(default=None, ge=1, le=10000)

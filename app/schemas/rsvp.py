"""
RSVP-related Pydantic schemas
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from app.models.rsvp import RSVPStatus

NAME_PATTERN = r"^[a-zA-Z\s'-]+$"
EMAIL_PATTERN = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"

class RSVPCreate(BaseModel):
    """Schema for creating an RSVP"""
    model_config = ConfigDict(str_strip_whitespace=True)

    event_id: str = Field(min_length=1)
    attendee_name: str = Field(min_length=1, max_length=100, pattern=NAME_PATTERN)
    attendee_email: str = Field(min_length=1, max_length=254, pattern=EMAIL_PATTERN)

class RSVPUpdate(BaseModel):
    """Schema for updating an RSVP"""
    status: Optional[RSVPStatus] = None

class RSVPLookup(BaseModel):
    """Find an attendee's RSVP for an event"""
    event_id: str
    attendee_email: str

"""
RSVP model
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel

class RSVPStatus(str, Enum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class RSVP(BaseModel):
    id: str
    event_id: str
    attendee_name: str
    attendee_email: str
    status: RSVPStatus = RSVPStatus.CONFIRMED
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

"""
Event model
"""

from typing import Optional
from pydantic import BaseModel

class Event(BaseModel):
    id: str
    title: str
    description: str = ""
    date: str  # YYYY-MM-DD
    time: str = "10:00"  # HH:MM
    location: str = ""
    capacity: int
    organizer_id: str = ""
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    share_link: str = ""


class EventAvailability(BaseModel):
    """Seat counts derived from confirmed RSVPs"""
    event_id: str
    capacity: int
    confirmed: int
    available: int

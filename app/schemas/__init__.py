"""
Pydantic schemas package
"""

from .common import *
from .event import *
from .organizer import *
from .rsvp import *

__all__ = [
    "StandardResponse",
    "ErrorDetails",
    "ErrorResponse",
    "EventCreate",
    "EventUpdate",
    "RSVPCreate",
    "RSVPUpdate",
    "RSVPLookup",
    "OrganizerCreate",
]

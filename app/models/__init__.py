"""
Domain models package
"""

from .event import Event, EventAvailability
from .rsvp import RSVP, RSVPStatus
from .organizer import Organizer

__all__ = ["Event", "EventAvailability", "RSVP", "RSVPStatus", "Organizer"]

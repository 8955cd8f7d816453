"""
Organizer-related Pydantic schemas
"""

from pydantic import BaseModel, EmailStr, Field

from app.schemas.rsvp import NAME_PATTERN

class OrganizerCreate(BaseModel):
    """Schema for creating (or resolving) an organizer"""
    name: str = Field(min_length=1, max_length=100, pattern=NAME_PATTERN)
    email: EmailStr

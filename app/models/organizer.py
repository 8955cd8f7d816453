"""
Organizer model
"""

from typing import Optional
from pydantic import BaseModel

class Organizer(BaseModel):
    id: str
    name: str
    email: str
    created_at: Optional[str] = None

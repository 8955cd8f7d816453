"""
Locally persisted organizer identity
"""

from __future__ import annotations

import json
import logging
import os
from typing import Optional

from pydantic import ValidationError

from app.models import Organizer

logger = logging.getLogger(__name__)


class OrganizerIdentityStore:
    """Keeps the current organizer (name, email, store ID) in a JSON file.

    Nothing here is verified: whoever holds the file acts as that organizer.
    """

    def __init__(self, path: str):
        self.path = path

    def load(self) -> Optional[Organizer]:
        if not os.path.exists(self.path):
            return None
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                return Organizer(**json.load(f))
        except (ValueError, TypeError, ValidationError) as e:
            logger.warning(f"Ignoring unreadable organizer identity in {self.path}: {e}")
            return None

    def save(self, organizer: Organizer) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(organizer.model_dump(), f)

    def clear(self) -> None:
        if os.path.exists(self.path):
            os.remove(self.path)

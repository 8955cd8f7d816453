"""
Conversion between Airtable record fields and application models.

The store keeps flat per-table fields (``title``, ``organizer_id``,
``attendee_email`` ...). Two quirks of the Events table are handled here:

* ``date`` is written as ``M/D/YYYY`` and may come back as ``YYYY-MM-DD``,
  ``M/D/YYYY`` or a full ISO timestamp; reads always normalize to
  ``YYYY-MM-DD``.
* The table has no time-of-day column, so the time is embedded at the end of
  the description as ``Event Time: HH:MM`` and stripped back out on read.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional

from app.models import Event, Organizer, RSVP, RSVPStatus

DEFAULT_EVENT_TIME = "10:00"
TIME_MARKER = "Event Time:"

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_US_DATE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
_TIME_IN_DESCRIPTION = re.compile(r"Event Time:\s*(\d{2}:\d{2})")
_TIME_SUFFIX = re.compile(r"\s*Event Time:\s*\d{2}:\d{2}")


def normalize_email(email: str) -> str:
    return email.strip().lower()


def normalize_date(value: str) -> str:
    """Return ``value`` as ``YYYY-MM-DD``; unparseable input is returned unchanged."""
    value = value.strip()
    if _ISO_DATE.match(value):
        return value

    match = _US_DATE.match(value)
    if match:
        month, day, year = (int(part) for part in match.groups())
        try:
            return date(year, month, day).isoformat()
        except ValueError:
            return value

    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    return parsed.date().isoformat()


def to_store_date(iso_date: str) -> str:
    """``2025-03-07`` -> ``3/7/2025``"""
    year, month, day = iso_date.split("-")
    return f"{int(month)}/{int(day)}/{year}"


def embed_time(description: str, time: str) -> str:
    return f"{strip_time(description)}\n\n{TIME_MARKER} {time}"


def extract_time(description: Optional[str]) -> str:
    if description:
        match = _TIME_IN_DESCRIPTION.search(description)
        if match:
            return match.group(1)
    return DEFAULT_EVENT_TIME


def strip_time(description: Optional[str]) -> str:
    if not description:
        return ""
    return _TIME_SUFFIX.sub("", description).strip()


def share_link(base_url: str, event_id: str) -> str:
    return f"{base_url.rstrip('/')}/events/{event_id}"


# -------- Events --------

def event_to_fields(
    title: str,
    description: str,
    date: str,
    time: str,
    location: str,
    capacity: int,
    organizer_id: str,
) -> Dict[str, Any]:
    return {
        "title": title,
        "description": embed_time(description, time),
        "date": to_store_date(date),
        "location": location,
        "capacity": capacity,
        "organizer_id": organizer_id,
    }


def event_from_record(record: Dict[str, Any], base_url: str = "") -> Event:
    fields = record.get("fields", {})
    created_time = record.get("createdTime")
    raw_date = fields.get("date")

    return Event(
        id=record["id"],
        title=fields.get("title", ""),
        description=strip_time(fields.get("description")),
        date=normalize_date(raw_date) if raw_date else "",
        time=extract_time(fields.get("description")),
        location=fields.get("location", ""),
        capacity=fields.get("capacity", 0),
        organizer_id=fields.get("organizer_id", ""),
        created_at=fields.get("created_at") or created_time,
        updated_at=fields.get("updated_at") or created_time,
        share_link=share_link(base_url, record["id"]),
    )


# -------- RSVPs --------

def rsvp_to_fields(event_id: str, attendee_name: str, attendee_email: str,
                   status: RSVPStatus = RSVPStatus.CONFIRMED) -> Dict[str, Any]:
    return {
        "event_id": event_id,
        "attendee_name": attendee_name.strip(),
        "attendee_email": normalize_email(attendee_email),
        "status": status.value,
    }


def rsvp_from_record(record: Dict[str, Any]) -> RSVP:
    fields = record.get("fields", {})
    created_time = record.get("createdTime")
    return RSVP(
        id=record["id"],
        event_id=fields.get("event_id", ""),
        attendee_name=fields.get("attendee_name", ""),
        attendee_email=fields.get("attendee_email", ""),
        status=fields.get("status", RSVPStatus.CONFIRMED.value),
        created_at=fields.get("created_at") or created_time,
        updated_at=fields.get("updated_at") or created_time,
    )


# -------- Organizers --------

def organizer_to_fields(name: str, email: str) -> Dict[str, Any]:
    return {"name": name.strip(), "email": normalize_email(email)}


def organizer_from_record(record: Dict[str, Any]) -> Organizer:
    fields = record.get("fields", {})
    return Organizer(
        id=record["id"],
        name=fields.get("name", ""),
        email=fields.get("email", ""),
        created_at=fields.get("created_at") or record.get("createdTime"),
    )

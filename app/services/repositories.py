"""
Repository layer over the Airtable tables.

Each repository call is a single record store request run through the
resilience wrapper, with records converted to application models.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from app.models import Event, Organizer, RSVP, RSVPStatus
from app.services import field_mapper
from app.services.airtable_client import (
    EVENTS_TABLE,
    ORGANIZERS_TABLE,
    RSVPS_TABLE,
    AirtableClient,
    escape_formula_value,
)
from app.services.resilience import ResilientCaller


class _Repo:
    def __init__(self, client: AirtableClient, caller: ResilientCaller):
        self.client = client
        self.caller = caller


# -------- Event repository --------

class EventRepo(_Repo):
    def __init__(self, client: AirtableClient, caller: ResilientCaller, base_url: str = ""):
        super().__init__(client, caller)
        self.base_url = base_url

    def _to_event(self, record: Dict[str, Any]) -> Event:
        return field_mapper.event_from_record(record, self.base_url)

    async def get(self, event_id: str) -> Event:
        record = await self.caller.call(
            lambda: self.client.get_record(EVENTS_TABLE, event_id), f"get event {event_id}"
        )
        return self._to_event(record)

    async def list_by_organizer(self, organizer_id: str) -> List[Event]:
        formula = f"{{organizer_id}} = '{escape_formula_value(organizer_id)}'"
        records = await self.caller.call(
            lambda: self.client.list_records(EVENTS_TABLE, formula, sort=[("created_at", "desc")]),
            f"list events for organizer {organizer_id}",
        )
        return [self._to_event(r) for r in records]

    async def create(self, fields: Dict[str, Any]) -> Event:
        record = await self.caller.call(
            lambda: self.client.create_record(EVENTS_TABLE, fields), "create event"
        )
        return self._to_event(record)

    async def update(self, event_id: str, fields: Dict[str, Any]) -> Event:
        record = await self.caller.call(
            lambda: self.client.update_record(EVENTS_TABLE, event_id, fields), f"update event {event_id}"
        )
        return self._to_event(record)


# -------- RSVP repository --------

class RSVPRepo(_Repo):
    async def list_by_event(self, event_id: str) -> List[RSVP]:
        formula = f"{{event_id}} = '{escape_formula_value(event_id)}'"
        records = await self.caller.call(
            lambda: self.client.list_records(RSVPS_TABLE, formula, sort=[("created_at", "asc")]),
            f"list RSVPs for event {event_id}",
        )
        return [field_mapper.rsvp_from_record(r) for r in records]

    async def find_by_email(self, event_id: str, email: str) -> Optional[RSVP]:
        formula = (
            f"AND({{attendee_email}} = '{escape_formula_value(field_mapper.normalize_email(email))}', "
            f"{{event_id}} = '{escape_formula_value(event_id)}')"
        )
        records = await self.caller.call(
            lambda: self.client.list_records(RSVPS_TABLE, formula), f"find RSVP for event {event_id}"
        )
        return field_mapper.rsvp_from_record(records[0]) if records else None

    async def count_confirmed(self, event_id: str) -> int:
        formula = (
            f"AND({{event_id}} = '{escape_formula_value(event_id)}', "
            f"{{status}} = '{RSVPStatus.CONFIRMED.value}')"
        )
        records = await self.caller.call(
            lambda: self.client.list_records(RSVPS_TABLE, formula, fields=["event_id"]),
            f"count RSVPs for event {event_id}",
        )
        return len(records)

    async def create(self, fields: Dict[str, Any]) -> RSVP:
        record = await self.caller.call(
            lambda: self.client.create_record(RSVPS_TABLE, fields), "create RSVP"
        )
        return field_mapper.rsvp_from_record(record)

    async def update(self, rsvp_id: str, fields: Dict[str, Any]) -> RSVP:
        record = await self.caller.call(
            lambda: self.client.update_record(RSVPS_TABLE, rsvp_id, fields), f"update RSVP {rsvp_id}"
        )
        return field_mapper.rsvp_from_record(record)

    async def delete(self, rsvp_id: str) -> None:
        await self.caller.call(
            lambda: self.client.delete_record(RSVPS_TABLE, rsvp_id), f"delete RSVP {rsvp_id}"
        )


# -------- Organizer repository --------

class OrganizerRepo(_Repo):
    async def get(self, organizer_id: str) -> Organizer:
        record = await self.caller.call(
            lambda: self.client.get_record(ORGANIZERS_TABLE, organizer_id), f"get organizer {organizer_id}"
        )
        return field_mapper.organizer_from_record(record)

    async def list_by_email(self, email: str) -> List[Organizer]:
        formula = f"{{email}} = '{escape_formula_value(field_mapper.normalize_email(email))}'"
        records = await self.caller.call(
            lambda: self.client.list_records(ORGANIZERS_TABLE, formula), "find organizer by email"
        )
        return [field_mapper.organizer_from_record(r) for r in records]

    async def create(self, fields: Dict[str, Any]) -> Organizer:
        record = await self.caller.call(
            lambda: self.client.create_record(ORGANIZERS_TABLE, fields), "create organizer"
        )
        return field_mapper.organizer_from_record(record)

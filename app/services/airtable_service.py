"""
Event, RSVP and organizer operations on top of the Airtable repositories.

Every failure leaving this module is an :class:`AppError` carrying one of the
five taxonomy members. Reads go through a per-instance TTL cache which writes
invalidate; the circuit breaker is likewise owned by the instance.

RSVP creation checks capacity twice (once against the cached list, once
against a fresh read right before the insert). This narrows the window in
which two clients can both take the last seat but does not close it: the
store offers no transactions, so concurrent RSVPs can oversell an event.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from app.core.config import settings
from app.core.errors import AppError, ErrorType
from app.models import Event, EventAvailability, Organizer, RSVP, RSVPStatus
from app.schemas.event import PLACEHOLDER_ORGANIZER_ID, EventCreate, EventUpdate
from app.schemas.organizer import OrganizerCreate
from app.schemas.rsvp import RSVPCreate, RSVPUpdate
from app.services import field_mapper
from app.services.airtable_client import AirtableClient
from app.services.cache import TTLCache, event_key, event_rsvps_key, organizer_events_key
from app.services.identity_store import OrganizerIdentityStore
from app.services.repositories import EventRepo, OrganizerRepo, RSVPRepo
from app.services.resilience import CircuitBreaker, ResilientCaller
from app.utils.timing import log_duration

logger = logging.getLogger(__name__)

EVENT_ID_PATTERN = re.compile(r"^rec[a-zA-Z0-9]{14}$")

DEFAULT_ORGANIZER = {"name": "Event Organizer", "email": "organizer@example.com"}

FIELD_MESSAGES = {
    "attendee_email": "Please provide a valid email address",
    "attendee_name": "Please provide your name using letters, spaces, hyphens and apostrophes",
    "email": "Please provide a valid email address",
    "name": "Please provide a name using letters, spaces, hyphens and apostrophes",
    "date": "Event date must be in YYYY-MM-DD format",
    "time": "Time must be in HH:MM format",
    "capacity": "Capacity must be between 1 and 10,000",
    "title": "Event title must be between 1 and 100 characters",
    "description": "Event description must be between 1 and 1000 characters",
    "location": "Event location must be between 1 and 200 characters",
}

SchemaT = TypeVar("SchemaT", bound=BaseModel)


def validation_message(errors: Sequence[Dict[str, Any]]) -> str:
    """Human-readable message for the first of a list of pydantic errors."""
    if not errors:
        return "Invalid request data. Please check your input and try again."
    first = errors[0]
    location = [str(part) for part in first.get("loc", ()) if part != "body"]
    field = location[0] if location else ""
    if first.get("type") == "missing":
        return f"Missing required information: {field}"
    return FIELD_MESSAGES.get(field, f"Invalid value for {field}")


def validate_request(schema: Type[SchemaT], data: Union[SchemaT, Dict[str, Any]]) -> SchemaT:
    """Validate ``data`` against ``schema``, raising ``VALIDATION_ERROR`` on failure."""
    if isinstance(data, schema):
        return data
    try:
        return schema.model_validate(data)
    except ValidationError as e:
        raise AppError(ErrorType.VALIDATION_ERROR, validation_message(e.errors())) from e


class AirtableService:
    """Data access for events, RSVPs and organizers."""

    def __init__(
        self,
        client: AirtableClient,
        caller: Optional[ResilientCaller] = None,
        cache: Optional[TTLCache] = None,
        identity_store: Optional[OrganizerIdentityStore] = None,
        base_url: str = "",
        now: Callable[[], datetime] = datetime.now,
    ):
        self.client = client
        self.caller = caller if caller is not None else ResilientCaller()
        self.cache = cache if cache is not None else TTLCache()
        self.identity_store = identity_store
        self.now = now

        self.events = EventRepo(client, self.caller, base_url)
        self.rsvps = RSVPRepo(client, self.caller)
        self.organizers = OrganizerRepo(client, self.caller)

    @classmethod
    def from_settings(cls, **client_kwargs) -> "AirtableService":
        """Build the service from application settings.

        Raises ``ConfigurationError`` when the Airtable secrets are missing.
        """
        client = AirtableClient.from_settings(**client_kwargs)
        caller = ResilientCaller(
            CircuitBreaker(settings.CIRCUIT_FAILURE_THRESHOLD, settings.CIRCUIT_RECOVERY_SECONDS),
            max_attempts=settings.MAX_ATTEMPTS,
            base_delay=settings.RETRY_BASE_DELAY_SECONDS,
        )
        return cls(
            client,
            caller=caller,
            cache=TTLCache(settings.CACHE_TTL_SECONDS),
            identity_store=OrganizerIdentityStore(settings.ORGANIZER_IDENTITY_FILE),
            base_url=settings.BASE_URL,
        )

    async def close(self):
        await self.client.close()

    # -------- Events --------

    def _check_event_id(self, event_id: str) -> None:
        if not event_id or not event_id.strip():
            raise AppError(ErrorType.VALIDATION_ERROR, "Invalid event ID provided")
        if not EVENT_ID_PATTERN.match(event_id):
            raise AppError(ErrorType.NOT_FOUND_ERROR, "Invalid event link. Please check the URL and try again.")

    def _event_start(self, event_date: str, event_time: str) -> datetime:
        try:
            return datetime.fromisoformat(f"{event_date}T{event_time}")
        except ValueError as e:
            raise AppError(ErrorType.VALIDATION_ERROR, "Event data is incomplete or corrupted") from e

    def _check_not_past(self, event_date: str, event_time: str) -> None:
        if self._event_start(event_date, event_time) < self.now():
            raise AppError(ErrorType.VALIDATION_ERROR, "Event date and time must be in the future")

    async def _resolve_organizer_id(self, organizer_id: str) -> str:
        if organizer_id != PLACEHOLDER_ORGANIZER_ID:
            return organizer_id

        if self.identity_store is not None:
            identity = self.identity_store.load()
            if identity is not None:
                return identity.id

        logger.warning("No organizer identity available, creating default organizer")
        try:
            organizer = await self.create_organizer(DEFAULT_ORGANIZER)
        except AppError as e:
            logger.warning(f"Failed to create default organizer, keeping placeholder ID: {e!r}")
            return organizer_id
        return organizer.id

    @log_duration("create_event")
    async def create_event(self, request: Union[EventCreate, Dict[str, Any]]) -> Event:
        data = validate_request(EventCreate, request)
        self._check_not_past(data.date, data.time)

        organizer_id = await self._resolve_organizer_id(data.organizer_id)
        event = await self.events.create(
            field_mapper.event_to_fields(
                title=data.title,
                description=data.description,
                date=data.date,
                time=data.time,
                location=data.location,
                capacity=data.capacity,
                organizer_id=organizer_id,
            )
        )

        self.cache.delete(organizer_events_key(event.organizer_id))
        logger.info(f"Created event {event.id} for organizer {event.organizer_id}")
        return event

    async def get_event(self, event_id: str) -> Event:
        self._check_event_id(event_id)

        cached = self.cache.get(event_key(event_id))
        if cached is not None:
            return cached

        try:
            event = await self.events.get(event_id)
        except AppError as e:
            if e.status_code == 404:
                raise AppError(
                    ErrorType.NOT_FOUND_ERROR,
                    "Event not found. It may have been deleted or the link is incorrect.",
                    404,
                ) from e
            raise

        if not event.title or not event.date or not event.time:
            raise AppError(ErrorType.VALIDATION_ERROR, "Event data is incomplete or corrupted")

        self.cache.set(event_key(event_id), event)
        return event

    async def update_event(self, event_id: str, updates: Union[EventUpdate, Dict[str, Any]]) -> Event:
        data = validate_request(EventUpdate, updates)
        self._check_event_id(event_id)
        changes = data.model_dump(exclude_none=True)

        fields: Dict[str, Any] = {
            key: changes[key] for key in ("title", "location", "capacity") if key in changes
        }

        # date and time share storage with the description, so rebuild from the current event
        if {"date", "time", "description"} & changes.keys():
            current = await self.get_event(event_id)
            if "date" in changes or "time" in changes:
                self._check_not_past(changes.get("date", current.date), changes.get("time", current.time))
            if "date" in changes:
                fields["date"] = field_mapper.to_store_date(changes["date"])
            fields["description"] = field_mapper.embed_time(
                changes.get("description", current.description),
                changes.get("time", current.time),
            )

        if not fields:
            return await self.get_event(event_id)

        event = await self.events.update(event_id, fields)
        self.cache.set(event_key(event_id), event)
        self.cache.delete(organizer_events_key(event.organizer_id))
        return event

    async def get_events_by_organizer(self, organizer_id: str) -> List[Event]:
        key = organizer_events_key(organizer_id)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        events = await self.events.list_by_organizer(organizer_id)
        self.cache.set(key, events)
        return events

    async def get_event_availability(self, event_id: str) -> EventAvailability:
        event = await self.get_event(event_id)
        rsvps = await self.get_rsvps_by_event(event_id)
        confirmed = sum(1 for r in rsvps if r.status is RSVPStatus.CONFIRMED)
        return EventAvailability(
            event_id=event.id,
            capacity=event.capacity,
            confirmed=confirmed,
            available=max(event.capacity - confirmed, 0),
        )

    # -------- RSVPs --------

    @log_duration("create_rsvp")
    async def create_rsvp(self, request: Union[RSVPCreate, Dict[str, Any]]) -> RSVP:
        data = validate_request(RSVPCreate, request)

        try:
            event = await self.get_event(data.event_id)
        except AppError as e:
            if e.error_type is ErrorType.NOT_FOUND_ERROR:
                raise AppError(
                    ErrorType.NOT_FOUND_ERROR,
                    "This event no longer exists or the link is invalid",
                    e.status_code,
                ) from e
            raise

        if self._event_start(event.date, event.time) < self.now():
            raise AppError(ErrorType.VALIDATION_ERROR, "Cannot RSVP to past events")

        try:
            existing = await self.get_rsvps_by_event(event.id)
        except AppError as e:
            logger.warning(f"Failed to fetch existing RSVPs for {event.id}, proceeding with caution: {e!r}")
            existing = []

        confirmed = [r for r in existing if r.status is RSVPStatus.CONFIRMED]
        if len(confirmed) >= event.capacity:
            raise AppError(
                ErrorType.CAPACITY_EXCEEDED,
                "This event is now at full capacity. No more RSVPs can be accepted.",
            )

        email = field_mapper.normalize_email(data.attendee_email)
        previous = next(
            (r for r in existing if field_mapper.normalize_email(r.attendee_email) == email), None
        )
        if previous is not None:
            if previous.status is RSVPStatus.CONFIRMED:
                raise AppError(ErrorType.VALIDATION_ERROR, "You have already RSVP'd to this event")
            logger.info(f"Reactivating cancelled RSVP {previous.id} for event {event.id}")
            return await self.update_rsvp(previous.id, RSVPUpdate(status=RSVPStatus.CONFIRMED))

        latest = await self.get_rsvps_by_event(event.id, fresh=True)
        if sum(1 for r in latest if r.status is RSVPStatus.CONFIRMED) >= event.capacity:
            raise AppError(
                ErrorType.CAPACITY_EXCEEDED,
                "This event just reached full capacity. Please try another event.",
            )

        rsvp = await self.rsvps.create(
            field_mapper.rsvp_to_fields(event.id, data.attendee_name, email)
        )
        self.cache.delete(event_rsvps_key(event.id))
        logger.info(f"Created RSVP {rsvp.id} for event {event.id}")
        return rsvp

    async def get_rsvps_by_event(self, event_id: str, fresh: bool = False) -> List[RSVP]:
        key = event_rsvps_key(event_id)
        if not fresh:
            cached = self.cache.get(key)
            if cached is not None:
                return cached

        rsvps = await self.rsvps.list_by_event(event_id)
        self.cache.set(key, rsvps)
        return rsvps

    async def get_rsvp_by_email_and_event(self, email: str, event_id: str) -> Optional[RSVP]:
        return await self.rsvps.find_by_email(event_id, email)

    async def get_confirmed_rsvp_count(self, event_id: str) -> int:
        return await self.rsvps.count_confirmed(event_id)

    async def update_rsvp(self, rsvp_id: str, updates: Union[RSVPUpdate, Dict[str, Any]]) -> RSVP:
        data = validate_request(RSVPUpdate, updates)
        fields: Dict[str, Any] = {}
        if data.status is not None:
            fields["status"] = data.status.value

        rsvp = await self.rsvps.update(rsvp_id, fields)
        self.cache.delete(event_rsvps_key(rsvp.event_id))
        return rsvp

    async def cancel_rsvp(self, rsvp_id: str) -> RSVP:
        return await self.update_rsvp(rsvp_id, RSVPUpdate(status=RSVPStatus.CANCELLED))

    async def delete_rsvp(self, rsvp_id: str) -> None:
        await self.rsvps.delete(rsvp_id)
        # the deleted row's event is unknown here
        self.cache.delete_prefix(event_rsvps_key(""))

    # -------- Organizers --------

    async def create_organizer(self, request: Union[OrganizerCreate, Dict[str, Any]]) -> Organizer:
        """Return the organizer with this email, creating it only if none exists."""
        data = validate_request(OrganizerCreate, request)

        existing = await self.organizers.list_by_email(data.email)
        if existing:
            return existing[0]

        organizer = await self.organizers.create(field_mapper.organizer_to_fields(data.name, data.email))
        logger.info(f"Created organizer {organizer.id}")
        return organizer

    async def get_organizer(self, organizer_id: str) -> Organizer:
        return await self.organizers.get(organizer_id)

    async def get_organizer_by_email(self, email: str) -> List[Organizer]:
        return await self.organizers.list_by_email(email)

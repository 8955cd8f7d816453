"""
Event API routes
"""

from fastapi import APIRouter, Depends

from app.core.dependencies import get_airtable_service
from app.models import RSVPStatus
from app.schemas.event import EventCreate, EventUpdate
from app.services.airtable_service import AirtableService
from app.utils.responses import success_response

router = APIRouter()

@router.post("")
async def create_event(
    event_data: EventCreate,
    service: AirtableService = Depends(get_airtable_service)
):
    """Create a new event"""
    event = await service.create_event(event_data)
    return success_response(
        message="Event created successfully",
        data=event,
        status_code=201
    )

@router.get("/{event_id}")
async def get_event(
    event_id: str,
    service: AirtableService = Depends(get_airtable_service)
):
    """Get event details"""
    event = await service.get_event(event_id)
    return success_response(message="Event retrieved", data=event)

@router.patch("/{event_id}")
async def update_event(
    event_id: str,
    event_update: EventUpdate,
    service: AirtableService = Depends(get_airtable_service)
):
    """Update event fields; omitted fields are left unchanged"""
    event = await service.update_event(event_id, event_update)
    return success_response(message="Event updated successfully", data=event)

@router.get("/{event_id}/availability")
async def get_event_availability(
    event_id: str,
    service: AirtableService = Depends(get_airtable_service)
):
    """Get remaining seats for an event"""
    availability = await service.get_event_availability(event_id)
    return success_response(message="Availability retrieved", data=availability)

@router.get("/{event_id}/rsvps")
async def list_event_rsvps(
    event_id: str,
    service: AirtableService = Depends(get_airtable_service)
):
    """List RSVPs for an event"""
    # validates the ID and confirms the event exists
    event = await service.get_event(event_id)
    rsvps = await service.get_rsvps_by_event(event.id)
    confirmed = [r for r in rsvps if r.status is RSVPStatus.CONFIRMED]
    return success_response(
        message="RSVPs retrieved successfully",
        data={
            "rsvps": rsvps,
            "confirmed_count": len(confirmed),
            "available": max(event.capacity - len(confirmed), 0)
        }
    )

"""
Attendee-facing RSVP routes
"""

from fastapi import APIRouter, Depends

from app.core.dependencies import get_airtable_service, get_offline_queue
from app.schemas.rsvp import RSVPCreate, RSVPLookup, RSVPUpdate
from app.services.airtable_service import AirtableService
from app.services.offline_queue import OfflineQueue
from app.utils.responses import success_response, error_response

router = APIRouter()

@router.post("")
async def create_rsvp(
    rsvp_data: RSVPCreate,
    service: AirtableService = Depends(get_airtable_service)
):
    """RSVP to an event; a previously cancelled RSVP for the same email is reactivated"""
    rsvp = await service.create_rsvp(rsvp_data)
    return success_response(
        message="You're on the list!",
        data=rsvp,
        status_code=201
    )

@router.post("/lookup")
async def lookup_rsvp(
    lookup_data: RSVPLookup,
    service: AirtableService = Depends(get_airtable_service)
):
    """Find an attendee's RSVP for an event"""
    rsvp = await service.get_rsvp_by_email_and_event(lookup_data.attendee_email, lookup_data.event_id)
    if rsvp is None:
        return error_response(
            message="No RSVP found for this email address.",
            error_code="NOT_FOUND_ERROR",
            status_code=404
        )
    return success_response(message="RSVP found", data=rsvp)

@router.patch("/{rsvp_id}")
async def update_rsvp(
    rsvp_id: str,
    rsvp_update: RSVPUpdate,
    service: AirtableService = Depends(get_airtable_service),
    offline_queue: OfflineQueue = Depends(get_offline_queue)
):
    """Update an RSVP's status"""
    rsvp = await offline_queue.with_offline_support(
        lambda: service.update_rsvp(rsvp_id, rsvp_update)
    )
    return success_response(message="RSVP updated successfully", data=rsvp)

@router.post("/{rsvp_id}/cancel")
async def cancel_rsvp(
    rsvp_id: str,
    service: AirtableService = Depends(get_airtable_service),
    offline_queue: OfflineQueue = Depends(get_offline_queue)
):
    """Soft-cancel an RSVP so it can be reactivated later"""
    rsvp = await offline_queue.with_offline_support(lambda: service.cancel_rsvp(rsvp_id))
    return success_response(message="Your RSVP has been cancelled", data=rsvp)

@router.delete("/{rsvp_id}")
async def delete_rsvp(
    rsvp_id: str,
    service: AirtableService = Depends(get_airtable_service)
):
    """Permanently delete an RSVP"""
    await service.delete_rsvp(rsvp_id)
    return success_response(message="RSVP deleted")

"""
Organizer routes

The "current organizer" is whatever identity was last saved locally; it is
not authenticated.
"""

from fastapi import APIRouter, Depends

from app.core.dependencies import get_airtable_service, get_identity_store
from app.schemas.organizer import OrganizerCreate
from app.services.airtable_service import AirtableService
from app.services.identity_store import OrganizerIdentityStore
from app.utils.responses import success_response, error_response

router = APIRouter()

@router.post("")
async def create_organizer(
    organizer_data: OrganizerCreate,
    service: AirtableService = Depends(get_airtable_service),
    identity_store: OrganizerIdentityStore = Depends(get_identity_store)
):
    """Create or resolve an organizer by email and remember it as the current organizer"""
    organizer = await service.create_organizer(organizer_data)
    identity_store.save(organizer)
    return success_response(message="Organizer ready", data=organizer)

@router.get("/me")
async def get_current_organizer(
    identity_store: OrganizerIdentityStore = Depends(get_identity_store)
):
    """Return the locally remembered organizer"""
    organizer = identity_store.load()
    if organizer is None:
        return error_response(
            message="No organizer profile found. Create one to start managing events.",
            error_code="NOT_FOUND_ERROR",
            status_code=404
        )
    return success_response(message="Current organizer", data=organizer)

@router.delete("/me")
async def forget_current_organizer(
    identity_store: OrganizerIdentityStore = Depends(get_identity_store)
):
    """Forget the locally remembered organizer"""
    identity_store.clear()
    return success_response(message="Organizer profile cleared")

@router.get("/{organizer_id}")
async def get_organizer(
    organizer_id: str,
    service: AirtableService = Depends(get_airtable_service)
):
    organizer = await service.get_organizer(organizer_id)
    return success_response(message="Organizer retrieved", data=organizer)

@router.get("/{organizer_id}/events")
async def list_organizer_events(
    organizer_id: str,
    service: AirtableService = Depends(get_airtable_service)
):
    """List an organizer's events, newest first"""
    events = await service.get_events_by_organizer(organizer_id)
    return success_response(
        message="Events retrieved successfully",
        data={"events": events, "total": len(events)}
    )

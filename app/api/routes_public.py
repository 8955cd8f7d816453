"""
Public API routes
"""

from fastapi import APIRouter, Depends

from app.core.dependencies import get_airtable_service, get_offline_queue
from app.services.airtable_service import AirtableService
from app.services.offline_queue import OfflineQueue

router = APIRouter()

@router.get("/health")
async def health_check(
    service: AirtableService = Depends(get_airtable_service),
    offline_queue: OfflineQueue = Depends(get_offline_queue)
):
    """Health check endpoint"""
    breaker = service.caller.breaker
    return {
        "status": "ok",
        "circuit": {
            "state": breaker.state.value,
            "failure_count": breaker.failure_count
        },
        "online": offline_queue.is_online,
        "offline_queue": offline_queue.status()
    }

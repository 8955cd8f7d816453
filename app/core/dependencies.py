"""
Request dependencies resolving the per-application data layer
"""

from fastapi import Request

from app.services.airtable_service import AirtableService
from app.services.identity_store import OrganizerIdentityStore
from app.services.offline_queue import OfflineQueue

def get_airtable_service(request: Request) -> AirtableService:
    return request.app.state.airtable_service

def get_offline_queue(request: Request) -> OfflineQueue:
    return request.app.state.offline_queue

def get_identity_store(request: Request) -> OrganizerIdentityStore:
    return request.app.state.identity_store

"""
Event RSVP Platform - FastAPI Backend
Main application entry point
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from app.core.config import settings
from app.core.errors import AppError, ErrorType
from app.api import routes_events, routes_organizers, routes_public, routes_rsvp
from app.services.airtable_service import AirtableService, validation_message
from app.services.offline_queue import OfflineQueue
from app.utils.responses import app_error_response

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logging.getLogger("httpx").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management"""
    # Missing Airtable secrets raise ConfigurationError here and abort startup
    offline_queue = OfflineQueue()
    service = AirtableService.from_settings(connectivity_listener=offline_queue.set_online)
    app.state.offline_queue = offline_queue
    app.state.airtable_service = service
    app.state.identity_store = service.identity_store
    logger.info(f"Airtable data layer ready for base {service.client.base_id}")
    yield
    await service.close()
    logger.info("Application shutdown")

# Create FastAPI application
app = FastAPI(
    title="Event RSVP Platform",
    description="Events, RSVPs and organizers backed by Airtable",
    version="1.0.0",
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return app_error_response(exc)

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return app_error_response(AppError(ErrorType.VALIDATION_ERROR, validation_message(exc.errors())))

# Include routers
app.include_router(routes_public.router, tags=["public"])
app.include_router(routes_events.router, prefix="/events", tags=["events"])
app.include_router(routes_rsvp.router, prefix="/rsvps", tags=["rsvps"])
app.include_router(routes_organizers.router, prefix="/organizers", tags=["organizers"])

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="127.0.0.1",
        port=8000,
        reload=True
    )

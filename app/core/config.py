"""
Configuration settings for the application
"""

import os
from typing import List, Optional
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    """Application settings"""

    # Airtable
    AIRTABLE_API_URL: str = os.getenv("AIRTABLE_API_URL", "https://api.airtable.com/v0")
    AIRTABLE_API_KEY: Optional[str] = os.getenv("AIRTABLE_API_KEY")
    AIRTABLE_BASE_ID: Optional[str] = os.getenv("AIRTABLE_BASE_ID")
    REQUEST_TIMEOUT_SECONDS: float = 10.0

    # Resilience
    MAX_ATTEMPTS: int = 3
    RETRY_BASE_DELAY_SECONDS: float = 1.0
    CIRCUIT_FAILURE_THRESHOLD: int = 5
    CIRCUIT_RECOVERY_SECONDS: float = 60.0

    # Cache
    CACHE_TTL_SECONDS: float = 5 * 60

    # Application
    BASE_URL: str = os.getenv("BASE_URL", "http://localhost:8000")
    ORGANIZER_IDENTITY_FILE: str = os.getenv("ORGANIZER_IDENTITY_FILE", ".organizer.json")

    # CORS
    ALLOW_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://localhost:8000",
    ]

    class Config:
        env_file = ".env"

settings = Settings()

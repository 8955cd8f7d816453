"""
Application error taxonomy
"""

from enum import Enum
from typing import Optional


class ErrorType(str, Enum):
    NETWORK_ERROR = "NETWORK_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    RATE_LIMIT_ERROR = "RATE_LIMIT_ERROR"
    NOT_FOUND_ERROR = "NOT_FOUND_ERROR"
    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"


class AppError(Exception):
    """Classified failure surfaced to callers of the data layer.

    ``message`` is meant for end users; ``status_code`` is the HTTP status
    returned by the record store, if there was one.
    """

    def __init__(self, error_type: ErrorType, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.error_type = error_type
        self.message = message
        self.status_code = status_code

    def __repr__(self) -> str:
        return f"AppError({self.error_type.value}, {self.message!r}, status_code={self.status_code})"


class CircuitOpenError(AppError):
    """Raised without touching the network while the circuit is open."""

    def __init__(self, message: str = "Service temporarily unavailable due to repeated failures. Please try again later."):
        super().__init__(ErrorType.NETWORK_ERROR, message)


class ConfigurationError(RuntimeError):
    """Required configuration is missing; the data layer cannot be built."""

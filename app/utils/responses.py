"""
Standardized response utilities
"""

from typing import Any, Dict, Optional
from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from app.core.errors import AppError, ErrorType
from app.schemas.common import ErrorDetails, ErrorResponse, StandardResponse

# title, severity, actionable, suggestions, HTTP status
ERROR_PRESENTATION: Dict[ErrorType, Dict[str, Any]] = {
    ErrorType.NETWORK_ERROR: {
        "title": "Connection Problem",
        "severity": "error",
        "actionable": True,
        "suggestions": [
            "Check your internet connection",
            "Try refreshing the page",
            "Wait a moment and try again",
        ],
        "status_code": status.HTTP_503_SERVICE_UNAVAILABLE,
    },
    ErrorType.NOT_FOUND_ERROR: {
        "title": "Not Found",
        "severity": "warning",
        "actionable": False,
        "suggestions": [
            "Check if the link is correct",
            "The item may have been deleted",
            "Try going back and selecting again",
        ],
        "status_code": status.HTTP_404_NOT_FOUND,
    },
    ErrorType.VALIDATION_ERROR: {
        "title": "Invalid Data",
        "severity": "warning",
        "actionable": True,
        "suggestions": [
            "Please check your input",
            "Make sure all required fields are filled",
            "Verify the format is correct",
        ],
        "status_code": status.HTTP_422_UNPROCESSABLE_ENTITY,
    },
    ErrorType.RATE_LIMIT_ERROR: {
        "title": "Too Many Requests",
        "severity": "warning",
        "actionable": True,
        "suggestions": [
            "Please wait a moment before trying again",
            "Avoid rapid repeated requests",
            "Try again in a few minutes",
        ],
        "status_code": status.HTTP_429_TOO_MANY_REQUESTS,
    },
    ErrorType.CAPACITY_EXCEEDED: {
        "title": "Event Full",
        "severity": "info",
        "actionable": False,
        "suggestions": [
            "This event has reached maximum capacity",
            "Check if there are similar events available",
            "Contact the organizer for more information",
        ],
        "status_code": status.HTTP_409_CONFLICT,
    },
}

def success_response(
    message: str,
    data: Any = None,
    status_code: int = 200
) -> JSONResponse:
    """Create standardized success response"""
    response = StandardResponse(
        success=True,
        message=message,
        data=data
    )
    return JSONResponse(
        content=jsonable_encoder(response),
        status_code=status_code
    )

def error_response(
    message: str,
    error_code: Optional[str] = None,
    details: Optional[ErrorDetails] = None,
    status_code: int = 400
) -> JSONResponse:
    """Create standardized error response"""
    response = ErrorResponse(
        message=message,
        error_code=error_code,
        details=details
    )
    return JSONResponse(
        content=jsonable_encoder(response),
        status_code=status_code
    )

def describe_error(error: AppError) -> ErrorDetails:
    """User-facing description of an application error"""
    presentation = ERROR_PRESENTATION[error.error_type]
    return ErrorDetails(
        title=presentation["title"],
        severity=presentation["severity"],
        actionable=presentation["actionable"],
        suggestions=list(presentation["suggestions"]),
    )

def app_error_response(error: AppError) -> JSONResponse:
    """Convert an application error into the standard error envelope"""
    return error_response(
        message=error.message,
        error_code=error.error_type.value,
        details=describe_error(error),
        status_code=ERROR_PRESENTATION[error.error_type]["status_code"]
    )

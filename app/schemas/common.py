"""
Response envelope schemas shared by all routers
"""

from typing import Any, List, Literal, Optional
from pydantic import BaseModel

class StandardResponse(BaseModel):
    """Success envelope; ``data`` holds the serialized model(s)"""
    success: bool = True
    message: str
    data: Optional[Any] = None

class ErrorDetails(BaseModel):
    """How a client should present an application error"""
    title: str
    severity: Literal["error", "warning", "info"]
    actionable: bool
    suggestions: List[str] = []

class ErrorResponse(BaseModel):
    """Error envelope; ``error_code`` is the error taxonomy member"""
    success: bool = False
    message: str
    error_code: Optional[str] = None
    details: Optional[ErrorDetails] = None

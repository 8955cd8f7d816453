"""
Airtable REST client and error classification
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

import httpx

from app.core.config import settings
from app.core.errors import AppError, ConfigurationError, ErrorType

logger = logging.getLogger(__name__)

EVENTS_TABLE = "Events"
RSVPS_TABLE = "RSVPs"
ORGANIZERS_TABLE = "Organizers"


def escape_formula_value(value: str) -> str:
    """Escape a value for use inside a single-quoted formula string literal."""
    return str(value).replace("\\", "\\\\").replace("'", "\\'")


def classify_status(status: int, store_message: Optional[str] = None) -> AppError:
    """Map an HTTP status from the record store to an application error."""
    if status == 400:
        return AppError(ErrorType.VALIDATION_ERROR, "Invalid request data. Please check your input and try again.", status)
    if status == 401:
        return AppError(ErrorType.NETWORK_ERROR, "Authentication failed. Please check your API credentials.", status)
    if status == 403:
        return AppError(ErrorType.NETWORK_ERROR, "Access denied. You don't have permission to perform this action.", status)
    if status == 404:
        return AppError(ErrorType.NOT_FOUND_ERROR, "The requested resource was not found. It may have been deleted or moved.", status)
    if status == 413:
        return AppError(ErrorType.VALIDATION_ERROR, "Request too large. Please reduce the amount of data and try again.", status)
    if status == 422:
        return AppError(ErrorType.VALIDATION_ERROR, store_message or "Invalid data provided. Please check your input.", status)
    if status == 429:
        return AppError(ErrorType.RATE_LIMIT_ERROR, "Too many requests. Please wait a moment before trying again.", status)
    if status == 500:
        return AppError(ErrorType.NETWORK_ERROR, "Server error occurred. Please try again in a few minutes.", status)
    if status in (502, 503, 504):
        return AppError(ErrorType.NETWORK_ERROR, "Service temporarily unavailable. Please try again later.", status)
    return AppError(ErrorType.NETWORK_ERROR, f"Unexpected error occurred ({status}). Please try again.", status)


def classify_transport_error(exc: httpx.RequestError) -> AppError:
    """Map a transport-level failure (no HTTP response) to an application error."""
    if isinstance(exc, httpx.TimeoutException):
        return AppError(ErrorType.NETWORK_ERROR, "Request timed out. Please check your connection and try again.")
    if isinstance(exc, httpx.ConnectError):
        return AppError(ErrorType.NETWORK_ERROR, "Unable to connect to the server. Please check your internet connection.")
    return AppError(ErrorType.NETWORK_ERROR, "Network error occurred. Please check your connection and try again.")


def _store_error_message(response: httpx.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return None
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        return error.get("message")
    return None


class AirtableClient:
    """Thin async wrapper over one Airtable base.

    Every method either returns decoded JSON or raises a classified
    :class:`AppError`; raw ``httpx`` exceptions never escape.
    """

    def __init__(
        self,
        api_key: str,
        base_id: str,
        api_url: str = "https://api.airtable.com/v0",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        connectivity_listener: Optional[Callable[[bool], None]] = None,
    ):
        if not api_key or not base_id:
            raise ConfigurationError("Airtable API key and base ID must be configured in environment variables")

        self.base_id = base_id
        self.base_url = f"{api_url.rstrip('/')}/{base_id}"
        self.connectivity_listener = connectivity_listener
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, **kwargs) -> "AirtableClient":
        return cls(
            api_key=settings.AIRTABLE_API_KEY,
            base_id=settings.AIRTABLE_BASE_ID,
            api_url=settings.AIRTABLE_API_URL,
            timeout=settings.REQUEST_TIMEOUT_SECONDS,
            **kwargs,
        )

    async def close(self):
        await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def _notify(self, online: bool) -> None:
        if self.connectivity_listener is not None:
            self.connectivity_listener(online)

    async def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        try:
            response = await self.client.request(method, path, **kwargs)
        except httpx.RequestError as e:
            logger.error(f"Airtable request failed: {method} {path}: {e!r}")
            if isinstance(e, httpx.ConnectError):
                self._notify(False)
            raise classify_transport_error(e) from e

        self._notify(True)

        if response.is_error:
            store_message = _store_error_message(response)
            logger.error(
                f"Airtable API error: {response.status_code} {method} {path}"
                + (f" - {store_message}" if store_message else "")
            )
            raise classify_status(response.status_code, store_message)

        if not response.content:
            return {}
        return response.json()

    async def list_records(
        self,
        table: str,
        filter_formula: Optional[str] = None,
        sort: Iterable[Tuple[str, str]] = (),
        fields: Iterable[str] = (),
    ) -> List[Dict[str, Any]]:
        """Return every record of a table matching the formula, following pagination."""
        params: List[Tuple[str, str]] = []
        if filter_formula:
            params.append(("filterByFormula", filter_formula))
        for index, (field, direction) in enumerate(sort):
            params.append((f"sort[{index}][field]", field))
            params.append((f"sort[{index}][direction]", direction))
        for field in fields:
            params.append(("fields[]", field))

        records: List[Dict[str, Any]] = []
        offset = None
        while True:
            page_params = list(params)
            if offset:
                page_params.append(("offset", offset))
            data = await self._request("GET", f"/{table}", params=page_params)
            records.extend(data.get("records", []))
            offset = data.get("offset")
            if not offset:
                return records

    async def get_record(self, table: str, record_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/{table}/{record_id}")

    async def create_record(self, table: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        data = await self._request("POST", f"/{table}", json={"records": [{"fields": fields}]})
        records = data.get("records") or []
        if not records:
            raise AppError(ErrorType.NETWORK_ERROR, f"Failed to create {table} record")
        return records[0]

    async def update_record(self, table: str, record_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        data = await self._request(
            "PATCH", f"/{table}", json={"records": [{"id": record_id, "fields": fields}]}
        )
        records = data.get("records") or []
        if not records:
            raise AppError(ErrorType.NETWORK_ERROR, f"Failed to update {table} record")
        return records[0]

    async def delete_record(self, table: str, record_id: str) -> None:
        await self._request("DELETE", f"/{table}/{record_id}")

"""
Shared fixtures: an in-memory Airtable served through httpx.MockTransport
"""

import json
import random
import re
from datetime import datetime, timedelta

import httpx
import pytest

from app.services.airtable_client import AirtableClient
from app.services.airtable_service import AirtableService
from app.services.cache import TTLCache
from app.services.identity_store import OrganizerIdentityStore
from app.services.resilience import CircuitBreaker, ResilientCaller

NOW = datetime(2025, 6, 1, 12, 0)
FUTURE_DATE = "2025-07-15"

_CONDITION = re.compile(r"\{(\w+)\} = '((?:[^'\\]|\\.)*)'")


def _unescape(value):
    return re.sub(r"\\(.)", r"\1", value)


class FakeAirtable:
    """Minimal Airtable REST API over in-memory tables.

    ``failures`` is consumed one entry per request before normal handling:
    an int returns that HTTP status, ``"connect"`` / ``"timeout"`` raise the
    matching transport error.
    """

    def __init__(self, page_size=100):
        self.tables = {"Events": {}, "RSVPs": {}, "Organizers": {}}
        self.requests = []
        self.failures = []
        self.page_size = page_size
        self._counter = 0
        self._created = datetime(2025, 1, 1)

    def add_record(self, table, fields):
        self._counter += 1
        record_id = f"rec{self._counter:014d}"
        self.tables[table][record_id] = {
            "id": record_id,
            "createdTime": (self._created + timedelta(seconds=self._counter)).isoformat() + "Z",
            "fields": dict(fields),
        }
        return record_id

    def requests_to(self, method, table=None):
        return [
            r for r in self.requests
            if r.method == method and (table is None or r.url.path.split("/")[3] == table)
        ]

    def _matches(self, record, formula):
        if not formula:
            return True
        for field, value in _CONDITION.findall(formula):
            if str(record["fields"].get(field, "")) != _unescape(value):
                return False
        return True

    def _list(self, table, params):
        formula = params.get("filterByFormula")
        records = [r for r in self.tables[table].values() if self._matches(r, formula)]

        sort_field = params.get("sort[0][field]")
        if sort_field:
            records.sort(
                key=lambda r: r["fields"].get(sort_field) or r["createdTime"],
                reverse=params.get("sort[0][direction]") == "desc",
            )

        start = int(params.get("offset") or 0)
        page = records[start:start + self.page_size]
        body = {"records": page}
        if start + self.page_size < len(records):
            body["offset"] = str(start + self.page_size)
        return httpx.Response(200, json=body)

    def handler(self, request):
        self.requests.append(request)

        if self.failures:
            failure = self.failures.pop(0)
            if failure == "connect":
                raise httpx.ConnectError("connection refused", request=request)
            if failure == "timeout":
                raise httpx.ReadTimeout("timed out", request=request)
            return httpx.Response(failure, json={"error": {"type": "INJECTED", "message": "injected failure"}})

        parts = request.url.path.strip("/").split("/")
        table = parts[2]
        record_id = parts[3] if len(parts) > 3 else None
        rows = self.tables[table]
        not_found = httpx.Response(404, json={"error": {"type": "NOT_FOUND", "message": "Could not find record"}})

        if request.method == "GET" and record_id:
            return httpx.Response(200, json=rows[record_id]) if record_id in rows else not_found
        if request.method == "GET":
            return self._list(table, request.url.params)
        if request.method == "POST":
            payload = json.loads(request.content)
            created = [rows[self.add_record(table, item["fields"])] for item in payload["records"]]
            return httpx.Response(200, json={"records": created})
        if request.method == "PATCH":
            payload = json.loads(request.content)
            updated = []
            for item in payload["records"]:
                if item["id"] not in rows:
                    return not_found
                rows[item["id"]]["fields"].update(item["fields"])
                updated.append(rows[item["id"]])
            return httpx.Response(200, json={"records": updated})
        if request.method == "DELETE":
            if record_id not in rows:
                return not_found
            del rows[record_id]
            return httpx.Response(200, json={"id": record_id, "deleted": True})
        return httpx.Response(405)


class FakeClock:
    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def fake_airtable():
    return FakeAirtable()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def airtable_client(fake_airtable):
    return AirtableClient(
        api_key="key_test",
        base_id="appTEST",
        transport=httpx.MockTransport(fake_airtable.handler),
    )


@pytest.fixture
def service(airtable_client, clock, sleeps, tmp_path):
    async def fake_sleep(seconds):
        sleeps.append(seconds)

    caller = ResilientCaller(CircuitBreaker(clock=clock), sleep=fake_sleep, rng=random.Random(0))
    return AirtableService(
        airtable_client,
        caller=caller,
        cache=TTLCache(clock=clock),
        identity_store=OrganizerIdentityStore(str(tmp_path / "organizer.json")),
        base_url="http://testserver",
        now=lambda: NOW,
    )


def event_payload(**overrides):
    payload = {
        "title": "Community Picnic",
        "description": "Bring a dish to share.",
        "date": FUTURE_DATE,
        "time": "14:30",
        "location": "Riverside Park",
        "capacity": 20,
        "organizer_id": "recORGANIZER000001",
    }
    payload.update(overrides)
    return payload

"""Shared test fixtures for the geoadmin test suite."""

from __future__ import annotations

import asyncio
import copy
import json
import re
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
import pytest_asyncio

# Sample IDs used across tests
COUNTRY_FR_ID = "c_fr"
COUNTRY_DE_ID = "c_de"
STATE_IDF_ID = "s_idf"
STATE_BY_ID = "s_by"
CITY_PARIS_ID = "ci_paris"
CITY_MUNICH_ID = "ci_munich"
LOCATION_ID = "loc_paris_center"
PRODUCT_ID = "p_widget"
SEO_ID = "seo_1"
INQUIRY_ID = "inq_1"
ADMIN_EMAIL = "admin@example.com"
BASE_URL = "http://test"


# ============================================================================
# Mock Response Data
# ============================================================================

MOCK_COUNTRIES = [
    {"_id": COUNTRY_FR_ID, "name": "France", "code": "FR"},
    {"_id": COUNTRY_DE_ID, "name": "Germany", "code": "DE"},
]

# States come back with a bare country id.
MOCK_STATES = [
    {"_id": STATE_IDF_ID, "name": "Ile-de-France", "code": "IDF", "country": COUNTRY_FR_ID},
    {"_id": STATE_BY_ID, "name": "Bavaria", "code": "BY", "country": COUNTRY_DE_ID},
]

# Cities come back with populated references.
MOCK_CITIES = [
    {
        "_id": CITY_PARIS_ID,
        "name": "Paris",
        "country": {"_id": COUNTRY_FR_ID, "name": "France"},
        "state": {"_id": STATE_IDF_ID, "name": "Ile-de-France"},
    },
    {
        "_id": CITY_MUNICH_ID,
        "name": "Munich",
        "country": {"_id": COUNTRY_DE_ID, "name": "Germany"},
        "state": {"_id": STATE_BY_ID, "name": "Bavaria"},
    },
]

MOCK_LOCATIONS = [
    {
        "_id": LOCATION_ID,
        "name": "Paris Center",
        "slug": "paris-center",
        "country": {"_id": COUNTRY_FR_ID, "name": "France"},
        "state": None,
        "city": {"_id": CITY_PARIS_ID, "name": "Paris"},
    },
]

MOCK_PRODUCTS = [
    {"_id": PRODUCT_ID, "name": "Widget", "description": "A small widget", "slug": "widget"},
    {"_id": "p_gadget", "name": "Gadget", "description": "Bigger", "slug": "gadget"},
]

MOCK_SEOS = [
    {
        "_id": SEO_ID,
        "sku": "WID-PAR",
        "slug": "widget-paris",
        "locationId": LOCATION_ID,
        "productId": {"_id": PRODUCT_ID, "name": "Widget"},
        "title": "Widgets in Paris",
        "publishedAt": "2024-03-01T09:30:00.000Z",
        "custom": {"season": "spring"},
    },
]

MOCK_CUSTOM_FIELDS = [
    {"_id": "cf_season", "name": "season", "type": "text"},
    {"_id": "cf_rank", "name": "rank", "type": "number"},
    {"_id": "cf_product", "name": "related", "type": "dropdown", "dropdownSource": "products"},
]

MOCK_INQUIRIES = [
    {
        "_id": INQUIRY_ID,
        "name": "Jane Doe",
        "email": "jane@example.com",
        "phone": "+33123456789",
        "message": "Do you ship widgets to Lyon?",
        "createdAt": "2024-02-10T12:00:00Z",
    },
]

MOCK_EMPLOYEES = [
    {"_id": "e_1", "name": "Alice Martin"},
    {"_id": "e_2", "name": "Bob Keller"},
]

MOCK_USER = {"email": ADMIN_EMAIL, "name": "Admin", "isVerified": True}


# ============================================================================
# Fake backend
# ============================================================================

_ITEM = re.compile(r"^/api/(?P<resource>[a-z-]+)(?:/(?P<rest>.+))?$")


class FakeBackend:
    """In-memory REST backend served through ``httpx.MockTransport``.

    ``fail(method, path, status, body)`` makes one route answer with an error;
    ``hold(path)`` makes GETs of ``path`` wait until ``release(path)``.
    """

    def __init__(self):
        self.data: dict[str, list[dict[str, Any]]] = {
            "countries": copy.deepcopy(MOCK_COUNTRIES),
            "states": copy.deepcopy(MOCK_STATES),
            "cities": copy.deepcopy(MOCK_CITIES),
            "locations": copy.deepcopy(MOCK_LOCATIONS),
            "products": copy.deepcopy(MOCK_PRODUCTS),
            "seos": copy.deepcopy(MOCK_SEOS),
            "inquiries": copy.deepcopy(MOCK_INQUIRIES),
            "employees": copy.deepcopy(MOCK_EMPLOYEES),
            "seo-custom-fields": copy.deepcopy(MOCK_CUSTOM_FIELDS),
        }
        self.requests: list[httpx.Request] = []
        self.valid_emails = {ADMIN_EMAIL}
        self._failures: dict[tuple[str, str], tuple[int, Any]] = {}
        self._gates: dict[str, asyncio.Event] = {}
        self._next_id = 1

    def fail(self, method: str, path: str, status: int = 500, body: Any = None) -> None:
        self._failures[(method.upper(), path)] = (status, body)

    def hold(self, path: str) -> None:
        self._gates[path] = asyncio.Event()

    def release(self, path: str) -> None:
        self._gates[path].set()

    def calls(self, method: str, path: str | None = None) -> list[httpx.Request]:
        return [
            r for r in self.requests
            if r.method == method.upper() and (path is None or r.url.path == path)
        ]

    @property
    def mutations(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.method in ("POST", "PUT", "DELETE")]

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        gate = self._gates.get(path)
        if gate is not None and request.method == "GET":
            await gate.wait()
        failure = self._failures.get((request.method, path))
        if failure is not None:
            status, body = failure
            if body is None:
                return httpx.Response(status)
            return httpx.Response(status, json=body)
        return self._route(request)

    def _route(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path == "/api/auth/check-session":
            email = request.url.params.get("email")
            if email in self.valid_emails:
                return httpx.Response(200, json={"valid": True, "user": {**MOCK_USER, "email": email}})
            return httpx.Response(200, json={"valid": False})
        if path == "/api/auth/logout":
            return httpx.Response(200, json={"message": "Logged out"})

        match = _ITEM.match(path)
        if not match or match.group("resource") not in self.data:
            return httpx.Response(404, json={"message": "Not found"})
        resource, rest = match.group("resource"), match.group("rest")
        records = self.data[resource]

        if resource == "states" and rest and rest.startswith("country/"):
            country_id = rest.split("/", 1)[1]
            return httpx.Response(200, json=[s for s in records if s.get("country") == country_id])

        if rest is None:
            if request.method == "GET":
                return httpx.Response(200, json=records)
            if request.method == "POST":
                record = {"_id": f"new_{self._next_id}", **json.loads(request.content)}
                self._next_id += 1
                records.append(record)
                return httpx.Response(201, json=record)
            return httpx.Response(405)

        index = next((i for i, r in enumerate(records) if r["_id"] == rest), None)
        if index is None:
            return httpx.Response(404, json={"message": "Record not found"})
        if request.method == "GET":
            return httpx.Response(200, json=records[index])
        if request.method == "PUT":
            records[index] = {**records[index], **json.loads(request.content), "_id": rest}
            return httpx.Response(200, json=records[index])
        if request.method == "DELETE":
            records.pop(index)
            return httpx.Response(200, json={"message": "Deleted"})
        return httpx.Response(405)


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def backend():
    """A fresh in-memory backend seeded with the sample data."""
    return FakeBackend()


@pytest_asyncio.fixture
async def api(backend):
    """AdminClient wired to the fake backend."""
    from geoadmin.api import AdminClient

    client = AdminClient(
        base_url=BASE_URL,
        employees_url="/api/employees",
        transport=httpx.MockTransport(backend.handler),
    )
    async with client:
        yield client


@pytest.fixture
def cache():
    from geoadmin.cache import MemoryCacheStore

    return MemoryCacheStore()


@pytest.fixture
def session(cache):
    """Logged-in session context."""
    from geoadmin.session import SessionContext

    context = SessionContext(cache)
    context.login(MOCK_USER)
    return context


@pytest.fixture
def mock_http_client():
    """Create a mock httpx.AsyncClient."""
    client = AsyncMock()

    # Default successful response
    response = MagicMock()
    response.status_code = 200
    response.content = b"{}"
    response.json.return_value = {}
    response.raise_for_status = MagicMock()

    client.get = AsyncMock(return_value=response)
    client.post = AsyncMock(return_value=response)
    client.put = AsyncMock(return_value=response)
    client.delete = AsyncMock(return_value=response)

    return client


@pytest.fixture
def mock_admin_client(mock_http_client):
    """AdminClient with initialized APIs and a mocked transport client."""
    from geoadmin.api import (
        AdminClient,
        AuthAPI,
        CitiesAPI,
        CountriesAPI,
        EmployeesAPI,
        InquiriesAPI,
        LocationsAPI,
        ProductsAPI,
        SEOCustomFieldsAPI,
        SEOsAPI,
        StatesAPI,
    )

    client = AdminClient(base_url=BASE_URL, employees_url="https://hr.example.com/api/staff")
    client._client = mock_http_client
    client._countries = CountriesAPI(client)
    client._states = StatesAPI(client)
    client._cities = CitiesAPI(client)
    client._locations = LocationsAPI(client)
    client._products = ProductsAPI(client)
    client._seos = SEOsAPI(client)
    client._inquiries = InquiriesAPI(client)
    client._employees = EmployeesAPI(client, path=client.employees_url)
    client._seo_custom_fields = SEOCustomFieldsAPI(client)
    client._auth = AuthAPI(client)

    return client


@pytest.fixture
def mock_response():
    """Factory fixture to create mock HTTP responses."""
    def _create_response(data: Any, status_code: int = 200):
        response = MagicMock()
        response.status_code = status_code
        response.content = json.dumps(data).encode() if data is not None else b""
        response.json.return_value = data
        response.raise_for_status = MagicMock()
        if status_code >= 400:
            response.raise_for_status.side_effect = httpx.HTTPStatusError(
                f"HTTP {status_code}", request=MagicMock(), response=response
            )
        return response
    return _create_response


# ============================================================================
# CLI Testing Fixtures
# ============================================================================


@pytest.fixture
def cli_runner():
    """Create a Typer CLI test runner."""
    from typer.testing import CliRunner
    return CliRunner()


@pytest.fixture
def cli_env(backend, tmp_path, monkeypatch):
    """Point the CLI at the fake backend and a temporary cache directory."""
    from geoadmin import cli
    from geoadmin.api import AdminClient
    from geoadmin.cache import CacheStore

    store = CacheStore(tmp_path)
    monkeypatch.setattr(
        cli,
        "_make_client",
        lambda: AdminClient(
            base_url=BASE_URL,
            employees_url="/api/employees",
            transport=httpx.MockTransport(backend.handler),
        ),
    )
    monkeypatch.setattr(cli, "_make_cache", lambda: store)
    return store

"""Admin API client - async wrapper for the catalog REST backend."""

from __future__ import annotations

from typing import Any, TYPE_CHECKING

import httpx

from ..config import settings

if TYPE_CHECKING:
    from .resources import (
        CountriesAPI,
        StatesAPI,
        CitiesAPI,
        LocationsAPI,
        ProductsAPI,
        SEOsAPI,
        InquiriesAPI,
        EmployeesAPI,
        ResourceAPI,
    )
    from .custom_fields import SEOCustomFieldsAPI
    from .auth import AuthAPI


class AdminClient:
    """Catalog backend client with one sub-API per resource.

    Usage:
        async with AdminClient() as api:
            countries = await api.countries.list()
            await api.states.create({"name": "Bavaria", "code": "BY", "country": "c1"})
            states = await api.states.list_by_country("c1")
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        employees_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the client.

        Args:
            base_url: Backend root (default: settings.api_base_url)
            timeout: Request timeout in seconds
            employees_url: Employee directory endpoint (absolute or backend-relative)
            transport: Optional httpx transport (used by tests for an in-process backend)
        """
        self.base_url = base_url or settings.api_base_url
        self.timeout = timeout if timeout is not None else settings.request_timeout_seconds
        self.employees_url = employees_url or settings.employees_endpoint
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

        # Domain APIs (initialized on enter)
        self._countries: CountriesAPI | None = None
        self._states: StatesAPI | None = None
        self._cities: CitiesAPI | None = None
        self._locations: LocationsAPI | None = None
        self._products: ProductsAPI | None = None
        self._seos: SEOsAPI | None = None
        self._inquiries: InquiriesAPI | None = None
        self._employees: EmployeesAPI | None = None
        self._seo_custom_fields: SEOCustomFieldsAPI | None = None
        self._auth: AuthAPI | None = None

    async def __aenter__(self) -> "AdminClient":
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
            headers={
                "Content-Type": "application/json",
                "Accept": "application/json, text/plain, */*",
            },
        )

        from .resources import (
            CountriesAPI,
            StatesAPI,
            CitiesAPI,
            LocationsAPI,
            ProductsAPI,
            SEOsAPI,
            InquiriesAPI,
            EmployeesAPI,
        )
        from .custom_fields import SEOCustomFieldsAPI
        from .auth import AuthAPI

        self._countries = CountriesAPI(self)
        self._states = StatesAPI(self)
        self._cities = CitiesAPI(self)
        self._locations = LocationsAPI(self)
        self._products = ProductsAPI(self)
        self._seos = SEOsAPI(self)
        self._inquiries = InquiriesAPI(self)
        self._employees = EmployeesAPI(self, path=self.employees_url)
        self._seo_custom_fields = SEOCustomFieldsAPI(self)
        self._auth = AuthAPI(self)
        return self

    async def __aexit__(self, *args):
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def _require(self, api: Any) -> Any:
        if api is None:
            raise RuntimeError("Client not initialized. Use 'async with' context.")
        return api

    # Domain API properties
    @property
    def countries(self) -> "CountriesAPI":
        """Countries API."""
        return self._require(self._countries)

    @property
    def states(self) -> "StatesAPI":
        """States API (includes lookup by country)."""
        return self._require(self._states)

    @property
    def cities(self) -> "CitiesAPI":
        """Cities API."""
        return self._require(self._cities)

    @property
    def locations(self) -> "LocationsAPI":
        """Locations API."""
        return self._require(self._locations)

    @property
    def products(self) -> "ProductsAPI":
        """Products API."""
        return self._require(self._products)

    @property
    def seos(self) -> "SEOsAPI":
        """SEO entries API."""
        return self._require(self._seos)

    @property
    def inquiries(self) -> "InquiriesAPI":
        """Business inquiries API (no create)."""
        return self._require(self._inquiries)

    @property
    def employees(self) -> "EmployeesAPI":
        """Employee directory (read-only)."""
        return self._require(self._employees)

    @property
    def seo_custom_fields(self) -> "SEOCustomFieldsAPI":
        """SEO custom field registry."""
        return self._require(self._seo_custom_fields)

    @property
    def auth(self) -> "AuthAPI":
        """Session check and logout."""
        return self._require(self._auth)

    def resource(self, name: str) -> "ResourceAPI":
        """Look up a sub-API by resource path segment (``"cities"``, ``"seos"``...)."""
        apis = {
            "countries": self.countries,
            "states": self.states,
            "cities": self.cities,
            "locations": self.locations,
            "products": self.products,
            "seos": self.seos,
            "inquiries": self.inquiries,
            "employees": self.employees,
            "seo-custom-fields": self.seo_custom_fields,
        }
        if name not in apis:
            raise KeyError(f"Unknown resource: {name}")
        return apis[name]

    # HTTP methods
    async def _get(self, endpoint: str, **params) -> Any:
        """Make GET request."""
        resp = await self._client.get(endpoint, params=params or None)
        resp.raise_for_status()
        return resp.json() if resp.content else None

    async def _post(self, endpoint: str, data: dict | None = None) -> Any:
        """Make POST request."""
        resp = await self._client.post(endpoint, json=data)
        resp.raise_for_status()
        return resp.json() if resp.content else {}

    async def _put(self, endpoint: str, data: dict | None = None) -> Any:
        """Make PUT request."""
        resp = await self._client.put(endpoint, json=data)
        resp.raise_for_status()
        return resp.json() if resp.content else {}

    async def _delete(self, endpoint: str) -> Any:
        """Make DELETE request."""
        resp = await self._client.delete(endpoint)
        resp.raise_for_status()
        return resp.json() if resp.content else {}

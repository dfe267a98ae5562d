"""Resource APIs - one sub-API per catalog collection.

Every collection follows the same REST shape:

    GET    /api/{resource}          -> [record, ...]
    POST   /api/{resource}          -> record
    PUT    /api/{resource}/{id}     -> record
    DELETE /api/{resource}/{id}
"""

from __future__ import annotations

from typing import Any, TYPE_CHECKING

from ..errors import UnsupportedOperation

if TYPE_CHECKING:
    from .client import AdminClient


class ResourceAPI:
    """CRUD operations for one resource.

    Usage:
        async with AdminClient() as api:
            cities = await api.cities.list()
            await api.cities.create({"name": "Lyon", "country": "c1", "state": ""})
            await api.cities.update("city_id", {"name": "Lyon"})
            await api.cities.delete("city_id")
    """

    resource = ""
    label = "record"
    can_create = True
    can_update = True
    can_delete = True

    def __init__(self, client: "AdminClient", path: str | None = None):
        self._client = client
        self.path = path or f"/api/{self.resource}"

    def _item(self, record_id: str) -> str:
        return f"{self.path.rstrip('/')}/{record_id}"

    async def list(self) -> list[dict[str, Any]]:
        """List every record of the collection."""
        return await self._client._get(self.path)

    async def get(self, record_id: str) -> dict[str, Any]:
        """Get one record."""
        return await self._client._get(self._item(record_id))

    async def create(self, data: dict[str, Any]) -> dict[str, Any]:
        """Create a record from a form payload."""
        if not self.can_create:
            raise UnsupportedOperation(f"Creating {self.label} records is not supported")
        return await self._client._post(self.path, data)

    async def update(self, record_id: str, data: dict[str, Any]) -> dict[str, Any]:
        """Replace a record's editable fields."""
        if not self.can_update:
            raise UnsupportedOperation(f"Updating {self.label} records is not supported")
        return await self._client._put(self._item(record_id), data)

    async def delete(self, record_id: str) -> dict[str, Any]:
        """Delete a record."""
        if not self.can_delete:
            raise UnsupportedOperation(f"Deleting {self.label} records is not supported")
        return await self._client._delete(self._item(record_id))


class CountriesAPI(ResourceAPI):
    resource = "countries"
    label = "country"


class StatesAPI(ResourceAPI):
    resource = "states"
    label = "state"

    async def list_by_country(self, country_id: str) -> list[dict[str, Any]]:
        """States scoped to one country."""
        return await self._client._get(f"{self.path}/country/{country_id}")


class CitiesAPI(ResourceAPI):
    resource = "cities"
    label = "city"


class LocationsAPI(ResourceAPI):
    resource = "locations"
    label = "location"


class ProductsAPI(ResourceAPI):
    resource = "products"
    label = "product"


class SEOsAPI(ResourceAPI):
    resource = "seos"
    label = "SEO entry"


class InquiriesAPI(ResourceAPI):
    """Inquiries are submitted by the public site; admins only edit and delete."""

    resource = "inquiries"
    label = "inquiry"
    can_create = False


class EmployeesAPI(ResourceAPI):
    """Employee directory, served by a separate service."""

    resource = "employees"
    label = "employee"
    can_create = False
    can_update = False
    can_delete = False

"""SEO Custom Fields API - runtime registry of extra SEO attributes."""

from __future__ import annotations

from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from .client import AdminClient


class SEOCustomFieldsAPI:
    """Custom field registry for SEO entries.

    Usage:
        async with AdminClient() as api:
            # List definitions
            fields = await api.seo_custom_fields.list()

            # Register a field
            await api.seo_custom_fields.create(name="season", field_type="dropdown",
                                               dropdown_source="products")

            # Remove a field
            await api.seo_custom_fields.delete("field_id")
    """

    resource = "seo-custom-fields"
    label = "custom field"
    path = "/api/seo-custom-fields"

    def __init__(self, client: "AdminClient"):
        self._client = client

    async def list(self) -> list[dict[str, Any]]:
        """List all custom field definitions.

        Returns:
            [{"_id": ..., "name": ..., "type": "text|number|dropdown", "dropdownSource": ...}, ...]
        """
        return await self._client._get(self.path)

    async def create(
        self,
        name: str,
        field_type: str = "text",
        dropdown_source: str | None = None,
    ) -> dict[str, Any]:
        """Register a new custom field.

        Args:
            name: Key used in the SEO entry's ``custom`` mapping
            field_type: text, number or dropdown
            dropdown_source: Collection providing dropdown options (dropdown only)
        """
        data: dict[str, Any] = {"name": name, "type": field_type}
        if dropdown_source:
            data["dropdownSource"] = dropdown_source
        return await self._client._post(self.path, data)

    async def delete(self, field_id: str) -> dict[str, Any]:
        """Remove a custom field definition."""
        return await self._client._delete(f"{self.path}/{field_id}")

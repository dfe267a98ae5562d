"""Dependent-field cascade: a child select whose options depend on a parent select."""

from __future__ import annotations

from typing import Any

from .entities import CascadeSpec
from .errors import FetchError
from .fetcher import CollectionFetcher


class DependentFieldCascade:
    """Keeps the ``child_field`` options in step with the ``parent_field`` value.

    The child value is reset on every parent change, before the new options
    arrive, so a stale selection never survives.
    """

    def __init__(
        self,
        parent_field: str,
        child_field: str,
        child_entity: str,
        fetcher: CollectionFetcher,
    ):
        self.parent_field = parent_field
        self.child_field = child_field
        self.child_entity = child_entity
        self._fetcher = fetcher
        self.options: list[dict[str, Any]] = []
        self.error: FetchError | None = None
        self._request = 0

    @classmethod
    def from_spec(cls, spec: CascadeSpec, fetcher: CollectionFetcher) -> "DependentFieldCascade":
        return cls(spec.parent, spec.child, spec.child_entity, fetcher)

    async def load_options(self, parent_id: str | None) -> FetchError | None:
        """Replace the options for ``parent_id`` without touching any form.

        A response that arrives after a newer call has started is dropped.
        """
        self._request += 1
        request = self._request
        self.error = None
        if not parent_id:
            self.options = []
            return None
        result = await self._fetcher.fetch_dependents(self.child_entity, parent_id)
        if request != self._request:
            return None
        if result.ok:
            self.options = result.records
        else:
            self.options = []
            self.error = result.error
        return self.error

    async def on_parent_change(self, form: dict[str, Any], parent_id: str | None) -> FetchError | None:
        form[self.child_field] = ""
        form[self.parent_field] = parent_id or ""
        return await self.load_options(parent_id)

    def reset(self) -> None:
        self._request += 1
        self.options = []
        self.error = None

"""Collection fetcher - loads collections and normalizes their records.

Nothing raises past this module: every failure becomes a ``FetchResult``
carrying a ``FetchError`` with a message ready to show in place of the grid.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Iterable, TYPE_CHECKING

from .cache import CacheStore, collection_key
from .entities import plural_label, ref_fields_for
from .errors import FetchError
from .refs import record_id, to_ref

if TYPE_CHECKING:
    from .api.client import AdminClient

logger = logging.getLogger(__name__)

# entity -> sub-API method returning the collection scoped to a parent id
DEPENDENT_LOOKUPS = {"states": "list_by_country"}


@dataclass
class FetchResult:
    """Outcome of one collection load."""

    records: list[dict[str, Any]] | None = None
    error: FetchError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def normalize_record(entity: str, raw: dict[str, Any]) -> dict[str, Any]:
    record = dict(raw)
    rid = record_id(record)
    if rid is not None:
        record["id"] = rid
    for name in ref_fields_for(entity):
        record[name] = to_ref(record.get(name))
    return record


def normalize_records(entity: str, raw: Any) -> list[dict[str, Any]]:
    """Normalize a list payload. Raises ValueError if it is not a list of records."""
    if not isinstance(raw, list):
        raise ValueError(f"Expected a list of {entity}, got {type(raw).__name__}")
    records = []
    for item in raw:
        if not isinstance(item, dict):
            raise ValueError(f"Malformed {entity} record: {item!r}")
        records.append(normalize_record(entity, item))
    return records


def fetch_error_message(entity: str) -> str:
    return f"Failed to fetch {plural_label(entity)}."


class CollectionFetcher:
    """Loads entity collections through the API client.

    Usage:
        fetcher = CollectionFetcher(api, cache)
        result = await fetcher.fetch_collection("cities", store=True)
        if result.ok:
            rows = result.records
    """

    def __init__(self, client: "AdminClient", cache: CacheStore | None = None):
        self._client = client
        self._cache = cache

    def cached(self, entity: str) -> list[dict[str, Any]] | None:
        """Last stored snapshot, or None when absent or malformed."""
        if self._cache is None:
            return None
        raw = self._cache.get(collection_key(entity))
        if raw is None:
            return None
        try:
            return normalize_records(entity, raw)
        except ValueError as e:
            logger.warning("Ignoring malformed cached %s: %s", entity, e)
            return None

    async def _load(self, entity: str, loader, store: bool) -> FetchResult:
        try:
            raw = await loader()
            records = normalize_records(entity, raw)
        except Exception as e:
            logger.warning("Fetching %s failed: %s", entity, e, exc_info=True)
            return FetchResult(error=FetchError(fetch_error_message(entity)))
        if store and self._cache is not None:
            self._cache.set(collection_key(entity), raw)
        return FetchResult(records=records)

    async def fetch_collection(self, entity: str, store: bool = False) -> FetchResult:
        """Fetch a whole collection; ``store`` mirrors the raw payload into the cache."""

        async def _loader():
            return await self._client.resource(entity).list()

        return await self._load(entity, _loader, store)

    async def fetch_dependents(self, entity: str, parent_id: str) -> FetchResult:
        """Fetch the part of a collection that belongs to ``parent_id``."""
        method = DEPENDENT_LOOKUPS.get(entity)
        if method is None:
            return FetchResult(error=FetchError(f"{entity} cannot be looked up by parent"))

        async def _loader():
            return await getattr(self._client.resource(entity), method)(parent_id)

        return await self._load(entity, _loader, store=False)

    async def fetch_many(self, entities: Iterable[str]) -> dict[str, FetchResult]:
        """Fetch several collections concurrently; each result settles independently."""
        names = list(dict.fromkeys(entities))
        results = await asyncio.gather(*(self.fetch_collection(name) for name in names))
        return dict(zip(names, results))

"""Read-through cache for entity collections and the session payload.

Stores one JSON file per key in ~/.geoadmin/cache/. Entries are disposable:
a missing or corrupt entry only means the grid paints after the network
answers instead of immediately.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

USER_KEY = "user"

_KEY_PATTERN = re.compile(r"[^A-Za-z0-9_.-]")


def collection_key(resource: str) -> str:
    """Cache key for an entity collection (``cities`` -> ``cities_cache``)."""
    return f"{resource.replace('-', '_')}_cache"


class CacheStore:
    """File-backed key/value cache.

    Usage:
        cache = CacheStore(settings.cache_path)
        cache.set("cities_cache", [{"_id": "1", "name": "Paris"}])
        cities = cache.get("cities_cache")  # None if missing or corrupt
    """

    def __init__(self, cache_dir: Path | str):
        self.cache_dir = Path(cache_dir) / "cache"

    def _path(self, key: str) -> Path:
        return self.cache_dir / f"{_KEY_PATTERN.sub('_', key)}.json"

    def _read(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def _write(self, key: str, content: str) -> None:
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self._path(key).write_text(content, encoding="utf-8")

    def _remove(self, key: str) -> None:
        path = self._path(key)
        if path.exists():
            path.unlink()

    def get(self, key: str) -> Any:
        """Return the cached value, or None for missing and corrupt entries."""
        try:
            content = self._read(key)
            if content is None:
                return None
            return json.loads(content)
        except (OSError, UnicodeDecodeError, ValueError) as e:
            logger.warning("Ignoring unreadable cache entry %s: %s", key, e)
            return None

    def set(self, key: str, value: Any) -> None:
        """Replace the entry. Failures are logged and ignored."""
        try:
            content = json.dumps(value)
            self._write(key, content)
        except (OSError, TypeError, ValueError) as e:
            logger.warning("Could not write cache entry %s: %s", key, e)

    def delete(self, key: str) -> None:
        try:
            self._remove(key)
        except OSError as e:
            logger.warning("Could not delete cache entry %s: %s", key, e)

    def clear(self) -> None:
        if not self.cache_dir.exists():
            return
        for path in self.cache_dir.glob("*.json"):
            try:
                path.unlink()
            except OSError as e:
                logger.warning("Could not delete cache file %s: %s", path, e)


class MemoryCacheStore(CacheStore):
    """In-process cache with the same semantics (values kept as JSON text)."""

    def __init__(self):
        self._entries: dict[str, str] = {}

    def _read(self, key: str) -> str | None:
        return self._entries.get(key)

    def _write(self, key: str, content: str) -> None:
        self._entries[key] = content

    def _remove(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def put_raw(self, key: str, content: str) -> None:
        """Store text verbatim, bypassing serialization."""
        self._entries[key] = content

"""Dashboard statistics - record counts for the main collections."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from .errors import FetchError

if TYPE_CHECKING:
    from .api.client import AdminClient

logger = logging.getLogger(__name__)

STAT_RESOURCES = ("countries", "states", "cities", "locations", "products", "inquiries")
STATS_ERROR_MESSAGE = "Failed to load dashboard statistics. Please try again later."


async def fetch_stats(client: "AdminClient") -> dict[str, int]:
    """Count every collection concurrently. Any failure fails the whole load."""
    try:
        results = await asyncio.gather(*(client.resource(name).list() for name in STAT_RESOURCES))
    except Exception as e:
        logger.warning("Loading dashboard statistics failed: %s", e)
        raise FetchError(STATS_ERROR_MESSAGE) from e
    return {name: len(records or []) for name, records in zip(STAT_RESOURCES, results)}

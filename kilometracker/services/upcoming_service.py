"""Upcoming maintenance/expense counts, fetched through the edge as a browser would.

Both lists are requested concurrently and awaited together. Each count
degrades to zero on its own failure without affecting the other.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    import httpx

logger = logging.getLogger(__name__)

MAINTENANCE_UPCOMING_PATH = "/api/maintenance/upcoming"
EXPENSES_UPCOMING_PATH = "/api/expenses/upcoming"
REFRESH_INTERVAL_SECONDS = 5 * 60


@dataclass(frozen=True)
class UpcomingCounts:
    maintenance_count: int
    expenses_count: int
    errors: tuple[str, ...] = ()


def count_items(body: Any) -> int:
    """Length of the ``data`` list in a list response; anything else counts as 0."""
    if not isinstance(body, dict):
        return 0
    items = body.get("data") or []
    return len(items) if isinstance(items, list) else 0


async def _fetch_count(client: httpx.AsyncClient, path: str) -> tuple[int, str | None]:
    try:
        response = await client.get(path)
        if not response.is_success:
            logger.warning("Failed to fetch %s: status %d", path, response.status_code)
            return 0, f"{path}: HTTP {response.status_code}"
        return count_items(response.json()), None
    except Exception as exc:
        logger.warning("Failed to fetch %s: %s", path, exc)
        return 0, f"{path}: {exc}"


async def fetch_upcoming_counts(client: httpx.AsyncClient) -> UpcomingCounts:
    """One refresh: both fetches in flight at once, failures isolated."""
    (maintenance, maintenance_error), (expenses, expenses_error) = await asyncio.gather(
        _fetch_count(client, MAINTENANCE_UPCOMING_PATH),
        _fetch_count(client, EXPENSES_UPCOMING_PATH),
    )
    errors = tuple(error for error in (maintenance_error, expenses_error) if error)
    return UpcomingCounts(
        maintenance_count=maintenance,
        expenses_count=expenses,
        errors=errors,
    )

"""Shared query helpers: id indexes for related-entity joins and bounded fan-out."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Iterable, Sequence, TypeVar

from AcademicPortalApp.core.config import portal_settings
from AcademicPortalApp.core.exceptions import StoreUnavailable
from AcademicPortalApp.core.store import RecordStore, Row

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


async def gather_bounded(
    items: Sequence[T],
    func: Callable[[T], Awaitable[R]],
    limit: int | None = None,
) -> list[R]:
    """Run ``func`` over ``items`` concurrently, at most ``limit`` in flight.

    Results come back in input order regardless of completion order.
    """
    semaphore = asyncio.Semaphore(limit or portal_settings().enrichment_concurrency)

    async def _run(item: T) -> R:
        async with semaphore:
            return await func(item)

    return list(await asyncio.gather(*(_run(item) for item in items)))


def distinct_values(rows: Iterable[Row], key: str) -> list[Any]:
    """Non-null values of ``key`` across rows, deduplicated, first-seen order."""
    return list(dict.fromkeys(row[key] for row in rows if row.get(key) is not None))


async def index_by_id(
    store: RecordStore,
    collection: str,
    ids: Iterable[Any],
    fields: Sequence[str],
) -> dict[Any, Row]:
    """Fetch rows by id in one query and index them.

    A store failure here is absorbed: the caller renders placeholders instead
    of failing the whole listing.
    """
    ids = list(ids)
    if not ids:
        return {}
    try:
        rows = await store.query(collection, {"id__in": ids}, fields=fields)
    except StoreUnavailable:
        logger.warning("Lookup of %d %s rows failed; related fields left empty", len(ids), collection)
        return {}
    return {row["id"]: row for row in rows}


def related_value(index: dict[Any, Row], key: Any, field: str, default: Any = None) -> Any:
    row = index.get(key)
    return (row or {}).get(field) or default

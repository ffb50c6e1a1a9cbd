import asyncio
from unittest.mock import AsyncMock

import pytest

from AcademicPortalApp.core.store import RecordStore
from AcademicPortalApp.domain.services.aggregation_service import list_course_materials
from AcademicPortalApp.domain.services.query_helpers import gather_bounded
from AcademicPortalApp.domain.services.sequencing import LatestRequestGate, StaleResponse


async def _later(value, delay, error=None):
    await asyncio.sleep(delay)
    if error is not None:
        raise error
    return value


def test_older_result_is_discarded():
    async def scenario():
        gate = LatestRequestGate()
        first = asyncio.ensure_future(gate.run("assignments", _later("old", 0.05)))
        await asyncio.sleep(0)
        second = await gate.run("assignments", _later("new", 0.01))
        with pytest.raises(StaleResponse):
            await first
        return second

    assert asyncio.run(scenario()) == "new"


def test_stale_error_is_suppressed_too():
    async def scenario():
        gate = LatestRequestGate()
        first = asyncio.ensure_future(gate.run("k", _later(None, 0.05, RuntimeError("boom"))))
        await asyncio.sleep(0)
        await gate.run("k", _later("ok", 0))
        with pytest.raises(StaleResponse):
            await first

    asyncio.run(scenario())


def test_current_error_propagates():
    async def scenario():
        await LatestRequestGate().run("k", _later(None, 0, ValueError("bad")))

    with pytest.raises(ValueError):
        asyncio.run(scenario())


def test_keys_are_independent():
    async def scenario():
        gate = LatestRequestGate()
        return await asyncio.gather(gate.run("a", _later(1, 0.01)), gate.run("b", _later(2, 0)))

    assert asyncio.run(scenario()) == [1, 2]


def test_gather_bounded_limits_concurrency_and_keeps_order():
    in_flight = 0
    peak = 0

    async def work(n):
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.01 * (5 - n))
        in_flight -= 1
        return n * 10

    results = asyncio.run(gather_bounded(list(range(5)), work, limit=2))
    assert results == [0, 10, 20, 30, 40]
    assert peak <= 2


def test_gate_keeps_latest_listing_result():
    store = AsyncMock(spec=RecordStore)
    delays = iter([0.05, 0])

    async def query(collection, filters=None, order_by=(), fields=()):
        await asyncio.sleep(next(delays))
        return [{"id": filters.get("material_type") or "all"}]

    store.query.side_effect = query

    async def scenario():
        gate = LatestRequestGate()
        key = ("materials", 1)
        first = asyncio.ensure_future(gate.run(key, list_course_materials(1, store=store)))
        await asyncio.sleep(0)
        latest = await gate.run(key, list_course_materials(1, "video", store=store))
        with pytest.raises(StaleResponse):
            await first
        return latest

    assert asyncio.run(scenario()) == [{"id": "video"}]

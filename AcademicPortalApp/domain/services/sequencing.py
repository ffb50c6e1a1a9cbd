"""Stale-response suppression for overlapping listing calls.

For async callers of the listing services (API clients, dashboards) that may
fire a new request for a listing before the previous one returned. The REST
views answer each request independently and do not need it.

Usage::

    gate = LatestRequestGate()
    rows = await gate.run(("assignments", user_id), list_assignments(role, user_id))
"""

import itertools
from typing import Awaitable, Hashable, TypeVar

T = TypeVar("T")


class StaleResponse(Exception):
    """The result belongs to a call superseded by a newer one on the same key."""

    def __init__(self, key: Hashable):
        super().__init__(f"Superseded result for {key!r}")
        self.key = key


class LatestRequestGate:
    """Only the most recently started call per key may deliver its result.

    The superseded call is not cancelled; its outcome (result or error) is
    replaced by ``StaleResponse`` when it eventually resolves.
    """

    def __init__(self) -> None:
        self._latest: dict[Hashable, int] = {}
        self._tickets = itertools.count(1)

    def _is_current(self, key: Hashable, ticket: int) -> bool:
        return self._latest.get(key) == ticket

    async def run(self, key: Hashable, awaitable: Awaitable[T]) -> T:
        ticket = next(self._tickets)
        self._latest[key] = ticket
        try:
            result = await awaitable
        except Exception as exc:
            if not self._is_current(key, ticket):
                raise StaleResponse(key) from exc
            raise
        if not self._is_current(key, ticket):
            raise StaleResponse(key)
        return result

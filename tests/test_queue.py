"""Bounded work queue: slot limits, failure isolation, deadlines."""

from __future__ import annotations

import asyncio

import pytest

from docweaver.errors import ConfigurationError
from docweaver.queue import run_bounded

pytestmark = pytest.mark.unit


class _Tracker:
    def __init__(self) -> None:
        self.active = 0
        self.peak = 0
        self.started: list[int] = []

    def unit(self, index: int, *, fail: bool = False):
        async def run() -> int:
            self.started.append(index)
            self.active += 1
            self.peak = max(self.peak, self.active)
            try:
                await asyncio.sleep(0.01)
                if fail:
                    raise RuntimeError(f"page {index} failed")
                return index * 10
            finally:
                self.active -= 1

        return run


@pytest.mark.asyncio
@pytest.mark.parametrize(("slots", "peak"), [(1, 1), (2, 2), (5, 5), (None, 6)])
async def test_slots_bound_concurrency(slots, peak) -> None:
    tracker = _Tracker()

    outcomes = await run_bounded([tracker.unit(i) for i in range(6)], slots=slots)

    assert tracker.peak == peak
    assert [o.value for o in outcomes] == [0, 10, 20, 30, 40, 50]


@pytest.mark.asyncio
async def test_single_slot_runs_in_order() -> None:
    tracker = _Tracker()

    await run_bounded([tracker.unit(i) for i in range(4)], slots=1)

    assert tracker.started == [0, 1, 2, 3]


@pytest.mark.asyncio
async def test_failures_do_not_stop_siblings() -> None:
    tracker = _Tracker()
    units = [tracker.unit(0), tracker.unit(1, fail=True), tracker.unit(2)]

    outcomes = await run_bounded(units, slots=2)

    assert [o.ok for o in outcomes] == [True, False, True]
    assert str(outcomes[1].error) == "page 1 failed"
    assert outcomes[2].value == 20


@pytest.mark.asyncio
async def test_deadline_cancels_slow_units() -> None:
    async def slow() -> str:
        await asyncio.sleep(5)
        return "late"

    async def fast() -> str:
        return "on time"

    outcomes = await run_bounded([slow, fast], slots=2, deadline_s=0.05)

    assert isinstance(outcomes[0].error, asyncio.TimeoutError)
    assert outcomes[1].value == "on time"


@pytest.mark.asyncio
async def test_empty_queue_returns_no_outcomes() -> None:
    assert await run_bounded([], slots=3) == []


@pytest.mark.asyncio
@pytest.mark.parametrize("kwargs", [{"slots": 0}, {"deadline_s": 0}])
async def test_invalid_limits_raise(kwargs) -> None:
    with pytest.raises(ConfigurationError):
        await run_bounded([], **kwargs)

"""Bounded work queue for generating independent pages concurrently."""

from __future__ import annotations

import asyncio
from collections import deque
from dataclasses import dataclass
import logging
from typing import TYPE_CHECKING, Any

from docweaver.errors import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence

    Unit = Callable[[], Awaitable[Any]]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UnitOutcome:
    """Result of one unit: its value or the exception it raised."""

    index: int
    value: Any = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        """True when the unit completed without raising."""
        return self.error is None


async def run_bounded(
    units: Sequence[Unit],
    *,
    slots: int | None = 1,
    deadline_s: float | None = None,
) -> list[UnitOutcome]:
    """Run zero-argument coroutine factories with at most *slots* in flight.

    Each slot pulls the next pending unit and runs it to completion before
    pulling again. A failing unit is logged and recorded without stopping its
    siblings. ``slots=None`` runs every unit at once. With *deadline_s*, each
    unit is cancelled if it runs longer than that many seconds.

    Returns:
        One ``UnitOutcome`` per unit, ordered by unit index.
    """
    if slots is not None and slots < 1:
        raise ConfigurationError(
            f"slots must be >= 1, got {slots}",
            hint="Use slots=None for unbounded concurrency.",
        )
    if deadline_s is not None and deadline_s <= 0:
        raise ConfigurationError(
            "deadline_s must be positive",
            hint="Omit deadline_s to let units run without a deadline.",
        )

    pending: deque[tuple[int, Unit]] = deque(enumerate(units))
    outcomes: list[UnitOutcome] = []
    workers = len(pending) if slots is None else min(slots, len(pending))

    async def worker() -> None:
        while pending:
            index, unit = pending.popleft()
            try:
                if deadline_s is None:
                    value = await unit()
                else:
                    value = await asyncio.wait_for(unit(), timeout=deadline_s)
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                logger.warning("Work unit %d failed: %s", index, exc)
                outcomes.append(UnitOutcome(index=index, error=exc))
            else:
                outcomes.append(UnitOutcome(index=index, value=value))

    await asyncio.gather(*(worker() for _ in range(workers)))
    return sorted(outcomes, key=lambda o: o.index)

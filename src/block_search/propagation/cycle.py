"""
Propagation Cycle State

A propagation cycle spans one publishing save: from the moment the save is
issued until the host reports that it returned. The aggregation hook runs at
most once per cycle; any document-publishing event raised again inside the
same cycle comes from the propagator's own work and is ignored.

State is carried by the cycle object itself rather than by the propagator,
so overlapping cycles never share a guard.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from enum import Enum
from typing import Iterator, Optional
from uuid import uuid4

logger = logging.getLogger("blocksearch.cycle")


class CycleState(str, Enum):
    IDLE = "idle"
    AGGREGATION_IN_FLIGHT = "aggregation_in_flight"


class PropagationCycle:
    """Per-save reentrancy guard: `IDLE -> AGGREGATION_IN_FLIGHT -> IDLE`."""

    def __init__(self, cycle_id: Optional[str] = None) -> None:
        self.cycle_id = cycle_id or uuid4().hex[:12]
        self._state = CycleState.IDLE

    @property
    def state(self) -> CycleState:
        return self._state

    @property
    def in_flight(self) -> bool:
        return self._state is CycleState.AGGREGATION_IN_FLIGHT

    def begin_aggregation(self) -> None:
        self._state = CycleState.AGGREGATION_IN_FLIGHT

    def complete(self) -> None:
        if self.in_flight:
            logger.debug("[Blocksearch] Cycle %s settled.", self.cycle_id)
        self._state = CycleState.IDLE

    def __repr__(self) -> str:
        return f"PropagationCycle({self.cycle_id!r}, {self._state.value})"


@contextmanager
def propagation_cycle(cycle: Optional[PropagationCycle] = None) -> Iterator[PropagationCycle]:
    """
    Scope a save to a cycle.

    The cycle returns to `IDLE` when the block exits, whether the save
    succeeded or raised.
    """
    cycle = cycle or PropagationCycle()
    try:
        yield cycle
    finally:
        cycle.complete()

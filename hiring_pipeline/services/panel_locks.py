"""
In-process mutual exclusion per panel.

Every write to a panel's availability (and the booking step of an interview
setup) runs while holding that panel's lock, so check-then-book sequences in
this process never interleave. The conditional UPDATE in
PanelRepository.mark_slot_booked still guards against other processes.
"""

import asyncio
from typing import Dict
from uuid import UUID


class PanelLockRegistry:
    """Hands out one asyncio.Lock per panel id."""

    def __init__(self):
        self._locks: Dict[UUID, asyncio.Lock] = {}

    def lock_for(self, panel_id: UUID) -> asyncio.Lock:
        lock = self._locks.get(panel_id)
        if lock is None:
            lock = self._locks.setdefault(panel_id, asyncio.Lock())
        return lock

    def discard(self, panel_id: UUID) -> None:
        """Forget a deleted panel's lock."""
        self._locks.pop(panel_id, None)

    def __contains__(self, panel_id: UUID) -> bool:
        return panel_id in self._locks


panel_locks = PanelLockRegistry()

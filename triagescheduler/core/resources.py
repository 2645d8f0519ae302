"""Bed and ventilator capacity with non-blocking allocate/release.

``ResourcePool`` tracks a total and a used count for each resource kind.
Allocation never waits: it either hands back a ``ResourceHandle`` or
``None``. Handles name a slot number that is unique among the handles of the
same kind currently held.

Shrinking a total with ``set_totals`` clamps the used count down to the new
total without touching the patients holding those slots, so after a shrink
``used`` can undercount the real holders. Their later releases are floored
at zero.

Example::

    pool = ResourcePool(beds=2, ventilators=1)
    bed = pool.allocate_bed()          # ResourceHandle(kind=BED, slot=1)
    vent = pool.allocate_ventilator()  # ResourceHandle(kind=VENTILATOR, slot=1)
    pool.release_bed(bed)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


class ResourceKind(Enum):
    BED = "bed"
    VENTILATOR = "ventilator"


@dataclass(frozen=True)
class ResourceHandle:
    """A held slot of one resource kind."""

    kind: ResourceKind
    slot: int

    def __str__(self) -> str:
        return f"{self.kind.value}#{self.slot}"


@dataclass(frozen=True)
class ResourceTotals:
    """Configured capacity, as persisted between runs."""

    beds: int = 0
    ventilators: int = 0


@dataclass(frozen=True)
class ResourcePoolStats:
    """Frozen snapshot of resource pool statistics.

    Attributes:
        total_beds: Configured bed capacity.
        used_beds: Beds currently counted as used.
        total_ventilators: Configured ventilator capacity.
        used_ventilators: Ventilators currently counted as used.
        allocations: Successful allocations of either kind.
        releases: Releases that returned a held slot.
        failed_allocations: Allocation attempts that found no capacity.
    """

    total_beds: int
    used_beds: int
    total_ventilators: int
    used_ventilators: int
    allocations: int
    releases: int
    failed_allocations: int


class _Slots:
    """Counter plus the set of slot numbers handed out for one kind."""

    __slots__ = ("kind", "total", "used", "held")

    def __init__(self, kind: ResourceKind, total: int) -> None:
        self.kind = kind
        self.total = total
        self.used = 0
        self.held: set[int] = set()

    def take(self) -> ResourceHandle | None:
        if self.used >= self.total:
            return None
        slot = 1
        while slot in self.held:
            slot += 1
        self.held.add(slot)
        self.used += 1
        return ResourceHandle(self.kind, slot)

    def give_back(self, handle: ResourceHandle) -> bool:
        if handle.slot not in self.held:
            return False
        self.held.discard(handle.slot)
        self.used = max(0, self.used - 1)
        return True

    def resize(self, total: int) -> None:
        self.total = total
        if self.used > total:
            self.used = total


def _check_total(name: str, value: int) -> int:
    if value < 0:
        raise ValueError(f"{name} must be >= 0, got {value}")
    return int(value)


class ResourcePool:
    """Bed and ventilator counters shared by every admitted patient.

    Not thread-safe on its own; the scheduler calls it under its lock.

    Args:
        beds: Initial bed capacity.
        ventilators: Initial ventilator capacity.

    Raises:
        ValueError: If either capacity is negative.
    """

    def __init__(self, beds: int = 0, ventilators: int = 0) -> None:
        self._beds = _Slots(ResourceKind.BED, _check_total("beds", beds))
        self._ventilators = _Slots(
            ResourceKind.VENTILATOR, _check_total("ventilators", ventilators)
        )

        self._allocations = 0
        self._releases = 0
        self._failed_allocations = 0

    @property
    def total_beds(self) -> int:
        return self._beds.total

    @property
    def used_beds(self) -> int:
        return self._beds.used

    @property
    def total_ventilators(self) -> int:
        return self._ventilators.total

    @property
    def used_ventilators(self) -> int:
        return self._ventilators.used

    @property
    def stats(self) -> ResourcePoolStats:
        """Frozen snapshot of current pool statistics."""
        return ResourcePoolStats(
            total_beds=self._beds.total,
            used_beds=self._beds.used,
            total_ventilators=self._ventilators.total,
            used_ventilators=self._ventilators.used,
            allocations=self._allocations,
            releases=self._releases,
            failed_allocations=self._failed_allocations,
        )

    def totals(self) -> ResourceTotals:
        return ResourceTotals(beds=self._beds.total, ventilators=self._ventilators.total)

    def available_beds(self) -> int:
        return self._beds.total - self._beds.used

    def available_ventilators(self) -> int:
        return self._ventilators.total - self._ventilators.used

    def allocate_bed(self) -> ResourceHandle | None:
        """Take a bed if one is free, otherwise return None."""
        return self._allocate(self._beds)

    def allocate_ventilator(self) -> ResourceHandle | None:
        """Take a ventilator if one is free, otherwise return None."""
        return self._allocate(self._ventilators)

    def release_bed(self, handle: ResourceHandle | None) -> bool:
        """Return a bed. Releasing a handle that is not held is a no-op."""
        return self._release(self._beds, handle)

    def release_ventilator(self, handle: ResourceHandle | None) -> bool:
        """Return a ventilator. Releasing a handle that is not held is a no-op."""
        return self._release(self._ventilators, handle)

    def release(self, handle: ResourceHandle | None) -> bool:
        """Return a handle of either kind."""
        if handle is None:
            return False
        if handle.kind is ResourceKind.BED:
            return self.release_bed(handle)
        return self.release_ventilator(handle)

    def set_totals(self, beds: int, ventilators: int) -> None:
        """Replace both capacities, clamping used counts to the new totals.

        Holders of slots above a reduced total are neither evicted nor told.

        Raises:
            ValueError: If either capacity is negative.
        """
        beds = _check_total("beds", beds)
        ventilators = _check_total("ventilators", ventilators)
        self._beds.resize(beds)
        self._ventilators.resize(ventilators)
        logger.info(
            "[pool] Capacity set: beds=%d (used %d), ventilators=%d (used %d)",
            beds, self._beds.used, ventilators, self._ventilators.used,
        )

    def is_held(self, handle: ResourceHandle) -> bool:
        return handle.slot in self._slots_for(handle).held

    def restore_holding(self, handle: ResourceHandle) -> bool:
        """Re-register a handle loaded from persisted state.

        The used count grows only while it is below the total, so a restored
        pool never reports more use than capacity.

        Returns:
            False, with nothing changed, if the handle is already held.
        """
        slots = self._slots_for(handle)
        if handle.slot in slots.held:
            return False
        slots.held.add(handle.slot)
        if slots.used < slots.total:
            slots.used += 1
        return True

    def _slots_for(self, handle: ResourceHandle) -> _Slots:
        return self._beds if handle.kind is ResourceKind.BED else self._ventilators

    def _allocate(self, slots: _Slots) -> ResourceHandle | None:
        handle = slots.take()
        if handle is None:
            self._failed_allocations += 1
            logger.debug("[pool] No %s available (%d/%d used)", slots.kind.value, slots.used, slots.total)
            return None
        self._allocations += 1
        logger.debug("[pool] Allocated %s (%d/%d used)", handle, slots.used, slots.total)
        return handle

    def _release(self, slots: _Slots, handle: ResourceHandle | None) -> bool:
        if handle is None or handle.kind is not slots.kind:
            return False
        if not slots.give_back(handle):
            return False
        self._releases += 1
        logger.debug("[pool] Released %s (%d/%d used)", handle, slots.used, slots.total)
        return True

    def __repr__(self) -> str:
        return (
            f"ResourcePool(beds={self._beds.used}/{self._beds.total}, "
            f"ventilators={self._ventilators.used}/{self._ventilators.total})"
        )

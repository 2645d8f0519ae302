"""Unit tests for ResourcePool, ResourceHandle, and ResourcePoolStats."""

import pytest

from triagescheduler.core.resources import (
    ResourceHandle,
    ResourceKind,
    ResourcePool,
    ResourceTotals,
)


class TestResourcePoolCreation:
    """Tests for construction and validation."""

    def test_defaults_to_no_capacity(self):
        pool = ResourcePool()
        assert pool.total_beds == 0
        assert pool.total_ventilators == 0
        assert pool.allocate_bed() is None

    def test_initial_availability(self):
        pool = ResourcePool(beds=3, ventilators=1)
        assert pool.available_beds() == 3
        assert pool.available_ventilators() == 1

    def test_negative_capacity_raises(self):
        with pytest.raises(ValueError, match="beds must be >= 0"):
            ResourcePool(beds=-1)
        with pytest.raises(ValueError, match="ventilators must be >= 0"):
            ResourcePool(ventilators=-2)

    def test_repr(self):
        pool = ResourcePool(beds=2, ventilators=1)
        assert "beds=0/2" in repr(pool)


class TestAllocate:
    """Tests for non-blocking allocation."""

    def test_bed_allocation_increments_used(self):
        pool = ResourcePool(beds=2)
        handle = pool.allocate_bed()
        assert handle == ResourceHandle(ResourceKind.BED, 1)
        assert pool.used_beds == 1
        assert pool.available_beds() == 1

    def test_allocation_fails_when_exhausted(self):
        pool = ResourcePool(beds=1)
        assert pool.allocate_bed() is not None
        assert pool.allocate_bed() is None
        assert pool.used_beds == 1

    def test_ventilator_allocation(self):
        pool = ResourcePool(beds=0, ventilators=1)
        handle = pool.allocate_ventilator()
        assert handle.kind is ResourceKind.VENTILATOR
        assert pool.allocate_ventilator() is None

    def test_held_handles_are_unique(self):
        pool = ResourcePool(beds=3)
        first = pool.allocate_bed()
        second = pool.allocate_bed()
        pool.release_bed(first)
        third = pool.allocate_bed()
        fourth = pool.allocate_bed()
        held = {second, third, fourth}
        assert len(held) == 3

    def test_released_slot_is_reused(self):
        pool = ResourcePool(beds=2)
        first = pool.allocate_bed()
        pool.allocate_bed()
        pool.release_bed(first)
        assert pool.allocate_bed() == first


class TestRelease:
    """Tests for release and its flooring."""

    def test_release_returns_capacity(self):
        pool = ResourcePool(beds=1)
        handle = pool.allocate_bed()
        assert pool.release_bed(handle)
        assert pool.used_beds == 0

    def test_release_is_idempotent(self):
        pool = ResourcePool(beds=2)
        handle = pool.allocate_bed()
        pool.allocate_bed()
        pool.release_bed(handle)
        assert not pool.release_bed(handle)
        assert pool.used_beds == 1

    def test_release_none_is_noop(self):
        pool = ResourcePool(beds=1)
        assert not pool.release_bed(None)
        assert not pool.release_ventilator(None)
        assert pool.used_beds == 0

    def test_release_wrong_kind_is_noop(self):
        pool = ResourcePool(beds=1, ventilators=1)
        bed = pool.allocate_bed()
        assert not pool.release_ventilator(bed)
        assert pool.used_beds == 1

    def test_generic_release_dispatches_on_kind(self):
        pool = ResourcePool(beds=1, ventilators=1)
        vent = pool.allocate_ventilator()
        assert pool.release(vent)
        assert pool.used_ventilators == 0


class TestSetTotals:
    """Tests for runtime reconfiguration."""

    def test_grow(self):
        pool = ResourcePool(beds=1)
        pool.allocate_bed()
        pool.set_totals(beds=3, ventilators=2)
        assert pool.available_beds() == 2
        assert pool.available_ventilators() == 2

    def test_shrink_clamps_used(self):
        pool = ResourcePool(beds=3)
        handles = [pool.allocate_bed() for _ in range(3)]
        pool.set_totals(beds=1, ventilators=0)
        assert pool.used_beds == 1
        assert pool.available_beds() == 0
        # Holders keep their handles; releases floor at zero.
        for handle in handles:
            pool.release_bed(handle)
        assert pool.used_beds == 0

    def test_shrink_then_allocate_keeps_handles_unique(self):
        pool = ResourcePool(beds=2)
        a = pool.allocate_bed()
        b = pool.allocate_bed()
        pool.set_totals(beds=1, ventilators=0)
        pool.release_bed(a)
        c = pool.allocate_bed()
        assert c != b

    def test_negative_totals_raise(self):
        pool = ResourcePool(beds=1)
        with pytest.raises(ValueError):
            pool.set_totals(beds=-1, ventilators=0)

    def test_totals(self):
        pool = ResourcePool(beds=4, ventilators=2)
        assert pool.totals() == ResourceTotals(beds=4, ventilators=2)


class TestRestoreHolding:
    """Tests for rebuilding counters from persisted handles."""

    def test_counts_persisted_handles(self):
        pool = ResourcePool(beds=3, ventilators=1)
        pool.restore_holding(ResourceHandle(ResourceKind.BED, 2))
        pool.restore_holding(ResourceHandle(ResourceKind.VENTILATOR, 1))
        assert pool.used_beds == 1
        assert pool.used_ventilators == 1
        assert pool.allocate_bed() == ResourceHandle(ResourceKind.BED, 1)
        assert pool.allocate_bed() == ResourceHandle(ResourceKind.BED, 3)

    def test_clamped_to_total(self):
        pool = ResourcePool(beds=1)
        pool.restore_holding(ResourceHandle(ResourceKind.BED, 1))
        pool.restore_holding(ResourceHandle(ResourceKind.BED, 2))
        assert pool.used_beds == 1

    def test_duplicate_handle_rejected(self):
        pool = ResourcePool(beds=3)
        assert pool.restore_holding(ResourceHandle(ResourceKind.BED, 1)) is True
        assert pool.restore_holding(ResourceHandle(ResourceKind.BED, 1)) is False
        assert pool.used_beds == 1

    def test_is_held(self):
        pool = ResourcePool(beds=2, ventilators=1)
        handle = pool.allocate_bed()
        assert pool.is_held(handle)
        assert not pool.is_held(ResourceHandle(ResourceKind.BED, 2))
        assert not pool.is_held(ResourceHandle(ResourceKind.VENTILATOR, 1))
        pool.release_bed(handle)
        assert not pool.is_held(handle)


class TestStats:
    def test_counters(self):
        pool = ResourcePool(beds=1)
        handle = pool.allocate_bed()
        pool.allocate_bed()
        pool.release_bed(handle)
        stats = pool.stats
        assert stats.allocations == 1
        assert stats.failed_allocations == 1
        assert stats.releases == 1
        assert stats.used_beds == 0

"""Scheduling core: patients, capacity, queues, and the allocation pass."""

from triagescheduler.core.resources import (
    ResourceHandle,
    ResourceKind,
    ResourcePool,
    ResourcePoolStats,
    ResourceTotals,
)
from triagescheduler.core.patient import (
    BASE_REGIMENS,
    VENTILATOR_SUFFIX,
    Patient,
    PatientStatus,
    Severity,
    prescription_for,
)
from triagescheduler.core.registry import PatientRegistry
from triagescheduler.core.admission_queue import PriorityAdmissionQueue
from triagescheduler.core.ready_queue import ReadyQueue
from triagescheduler.core.allocation import AllocationEngine, AllocationStats

__all__ = [
    "AllocationEngine",
    "AllocationStats",
    "BASE_REGIMENS",
    "Patient",
    "PatientRegistry",
    "PatientStatus",
    "PriorityAdmissionQueue",
    "ReadyQueue",
    "ResourceHandle",
    "ResourceKind",
    "ResourcePool",
    "ResourcePoolStats",
    "ResourceTotals",
    "Severity",
    "VENTILATOR_SUFFIX",
    "prescription_for",
]

"""Triage admission scheduler with a concurrent treatment worker pool."""

import logging

from triagescheduler.config import SchedulerConfig
from triagescheduler.controller import (
    QueuePosition,
    SchedulerController,
    Snapshot,
    StartOutcome,
    StatusCounts,
)
from triagescheduler.core import (
    AllocationEngine,
    AllocationStats,
    Patient,
    PatientRegistry,
    PatientStatus,
    PriorityAdmissionQueue,
    ReadyQueue,
    ResourceHandle,
    ResourceKind,
    ResourcePool,
    ResourceTotals,
    Severity,
    prescription_for,
)
from triagescheduler.logging_config import (
    configure_from_env,
    disable_logging,
    enable_console_logging,
    enable_file_logging,
    enable_json_logging,
    set_level,
    set_module_level,
)
from triagescheduler.persistence import (
    CsvPatientStore,
    InMemoryPatientStore,
    NullPatientStore,
    PatientStore,
    StoredState,
)
from triagescheduler.triage import KeywordTriageSuggester, TriageSuggester, TriageSuggestion
from triagescheduler.utils.clock import Clock, ManualClock, SystemClock
from triagescheduler.workers import TreatmentWorkerPool, WorkerPoolStats

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # Scheduler
    "SchedulerController",
    "SchedulerConfig",
    "Snapshot",
    "StatusCounts",
    "QueuePosition",
    "StartOutcome",
    # Core
    "AllocationEngine",
    "AllocationStats",
    "Patient",
    "PatientRegistry",
    "PatientStatus",
    "PriorityAdmissionQueue",
    "ReadyQueue",
    "ResourceHandle",
    "ResourceKind",
    "ResourcePool",
    "ResourceTotals",
    "Severity",
    "prescription_for",
    "TreatmentWorkerPool",
    "WorkerPoolStats",
    # Collaborators
    "Clock",
    "ManualClock",
    "SystemClock",
    "CsvPatientStore",
    "InMemoryPatientStore",
    "NullPatientStore",
    "PatientStore",
    "StoredState",
    "KeywordTriageSuggester",
    "TriageSuggester",
    "TriageSuggestion",
    # Logging
    "configure_from_env",
    "disable_logging",
    "enable_console_logging",
    "enable_file_logging",
    "enable_json_logging",
    "set_level",
    "set_module_level",
]

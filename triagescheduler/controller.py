"""Scheduler facade: registration, discharge, capacity, and workers.

``SchedulerController`` owns every piece of scheduling state (registry,
resource pool, both queues, worker pool) behind a single re-entrant lock.
Each public operation is one critical section; after it changes state the
controller hands the full patient list and capacity to the injected store.

Collaborators are injected so independent instances never share state:

- ``store``: persistence (``PatientStore``), loaded once at construction.
- ``clock``: registration timestamps.
- ``suggester``: advisory triage from complaint text.

Example::

    with SchedulerController(SchedulerConfig(critical_treatment_ms=2000)) as er:
        er.configure_resources(beds=2, ventilators=1, doctor_count=2)
        patient = er.register_patient(
            name="Ada", age=36, complaint="chest pain", severity="critical",
        )
        er.start_workers()
        print(er.snapshot())
"""

from __future__ import annotations

import logging
import threading
from dataclasses import asdict, dataclass
from enum import Enum

import pandas as pd

from triagescheduler.config import SchedulerConfig
from triagescheduler.core.admission_queue import PriorityAdmissionQueue
from triagescheduler.core.allocation import AllocationEngine, AllocationStats
from triagescheduler.core.patient import Patient, PatientStatus, Severity
from triagescheduler.core.ready_queue import ReadyQueue
from triagescheduler.core.registry import PatientRegistry
from triagescheduler.core.resources import ResourcePool, ResourcePoolStats
from triagescheduler.persistence import NullPatientStore, PatientStore, patients_to_frame
from triagescheduler.triage import KeywordTriageSuggester, TriageSuggester, TriageSuggestion
from triagescheduler.utils.clock import Clock, SystemClock
from triagescheduler.workers import TreatmentWorkerPool, WorkerPoolStats

logger = logging.getLogger(__name__)


class StartOutcome(Enum):
    """Result of ``start_workers``."""

    STARTED = "started"
    ALREADY_RUNNING = "already_running"
    NO_RESOURCES = "no_resources"
    NO_WORKERS = "no_workers"


@dataclass(frozen=True)
class QueuePosition:
    """Where a patient stands in the admission queue.

    ``position`` is zero-based and None when the patient is not waiting.
    """

    in_queue: bool
    position: int | None = None


@dataclass(frozen=True)
class StatusCounts:
    waiting: int = 0
    allocated: int = 0
    in_treatment: int = 0
    discharged: int = 0
    total: int = 0


@dataclass(frozen=True)
class Snapshot:
    """Frozen view of capacity, queues, and patient statuses."""

    total_beds: int
    available_beds: int
    total_ventilators: int
    available_ventilators: int
    waiting_queue_size: int
    ready_queue_size: int
    status_counts: StatusCounts
    workers_running: bool
    worker_count: int

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


class SchedulerController:
    """Admission scheduler for beds and ventilators with a treatment worker pool.

    Args:
        config: Treatment durations and worker settings.
        store: Persistence collaborator. State is loaded from it on construction.
        clock: Source of registration timestamps.
        suggester: Triage suggester used by ``suggest_triage``.
    """

    def __init__(
        self,
        config: SchedulerConfig | None = None,
        *,
        store: PatientStore | None = None,
        clock: Clock | None = None,
        suggester: TriageSuggester | None = None,
    ):
        self._config = config or SchedulerConfig()
        self._store = store if store is not None else NullPatientStore()
        self._clock = clock or SystemClock()
        self._suggester = suggester or KeywordTriageSuggester()

        self._lock = threading.RLock()
        self._registry = PatientRegistry()
        self._pool = ResourcePool()
        self._admission = PriorityAdmissionQueue()
        self._ready = ReadyQueue(self._lock)
        self._engine = AllocationEngine(self._pool, self._admission, self._ready)
        self._workers = TreatmentWorkerPool(
            self._lock,
            self._registry,
            self._pool,
            self._ready,
            self._engine,
            persist=self._persist,
            poll_interval_s=self._config.poll_interval_s,
            join_timeout_s=self._config.worker_join_timeout_s,
        )
        self._worker_count = self._config.default_workers
        self._next_sequence = 0

        self._restore()

    @property
    def config(self) -> SchedulerConfig:
        return self._config

    @property
    def resource_stats(self) -> ResourcePoolStats:
        with self._lock:
            return self._pool.stats

    @property
    def allocation_stats(self) -> AllocationStats:
        with self._lock:
            return self._engine.stats

    @property
    def worker_stats(self) -> WorkerPoolStats:
        return self._workers.stats

    def register_patient(
        self,
        name: str,
        age: int,
        complaint: str,
        severity: Severity | int | str,
        requires_ventilator: bool = False,
    ) -> Patient:
        """Register a patient, queue it by priority, and try to admit.

        Input validation belongs to the caller; ``severity`` is coerced with
        ``Severity.coerce``.

        Returns:
            A copy of the new patient record after the allocation pass.
        """
        tier = Severity.coerce(severity)
        with self._lock:
            patient = Patient(
                id=self._registry.next_id(),
                name=str(name),
                age=int(age),
                complaint=str(complaint),
                severity=tier,
                requires_ventilator=bool(requires_ventilator),
                arrival_sequence=self._next_sequence,
                registration_time=self._clock.now(),
                treatment_duration_ms=self._config.treatment_ms(tier),
            )
            self._next_sequence += 1
            self._registry.put(patient)
            self._admission.insert(patient)
            logger.info(
                "[controller] Registered patient %d (%s, %s%s)",
                patient.id, patient.name, tier.name,
                ", ventilator" if patient.requires_ventilator else "",
            )
            self._engine.try_allocate()
            self._persist()
            return patient.copy()

    def discharge_patient(self, patient_id: int) -> bool:
        """Administratively discharge a patient from any status.

        Releases whatever the patient holds, drops it from both queues,
        cancels an in-progress treatment, and cascades the freed capacity.

        Returns:
            False if no such patient exists, True otherwise.
        """
        with self._lock:
            patient = self._registry.get(patient_id)
            if patient is None:
                logger.info("[controller] Discharge of unknown patient %s", patient_id)
                return False
            if patient.status is PatientStatus.DISCHARGED:
                return True

            previous = patient.status
            self._workers.cancel_treatment(patient_id)
            self._pool.release_bed(patient.assigned_bed)
            self._pool.release_ventilator(patient.assigned_ventilator)
            patient.assigned_bed = None
            patient.assigned_ventilator = None
            self._admission.remove_by_id(patient_id)
            self._ready.remove(patient_id)
            patient.status = PatientStatus.DISCHARGED
            self._persist()
            logger.info(
                "[controller] Discharged patient %d from %s", patient_id, previous.value
            )

            if self._engine.try_allocate():
                self._persist()
            return True

    def configure_resources(
        self, beds: int, ventilators: int, doctor_count: int | None = None
    ) -> None:
        """Set capacity and, optionally, the worker count for the next start.

        Shrinking below current use clamps the used counters; holders keep
        their slots. New capacity is offered to waiting patients at once.

        Raises:
            ValueError: If any count is negative.
        """
        if doctor_count is not None and doctor_count < 0:
            raise ValueError(f"doctor_count must be >= 0, got {doctor_count}")
        with self._lock:
            self._pool.set_totals(beds, ventilators)
            if doctor_count is not None:
                self._worker_count = doctor_count
            self._engine.try_allocate()
            self._persist()

    def start_workers(self, count: int | None = None) -> StartOutcome:
        """Start the treatment workers.

        Args:
            count: Number of workers. Defaults to the configured doctor count.
        """
        with self._lock:
            workers = self._worker_count if count is None else count
            if self._pool.total_beds == 0:
                logger.warning("[controller] Cannot start workers: no beds configured")
                return StartOutcome.NO_RESOURCES
            if workers < 1:
                logger.warning("[controller] Cannot start workers: worker count is %d", workers)
                return StartOutcome.NO_WORKERS
            if self._workers.is_running:
                return StartOutcome.ALREADY_RUNNING
            self._workers.start(workers)
            return StartOutcome.STARTED

    def stop_workers(self) -> None:
        """Stop all workers at once, abandoning treatments in progress."""
        self._workers.stop()

    def snapshot(self) -> Snapshot:
        with self._lock:
            counts = {status: 0 for status in PatientStatus}
            for patient in self._registry.all():
                counts[patient.status] += 1
            return Snapshot(
                total_beds=self._pool.total_beds,
                available_beds=self._pool.available_beds(),
                total_ventilators=self._pool.total_ventilators,
                available_ventilators=self._pool.available_ventilators(),
                waiting_queue_size=len(self._admission),
                ready_queue_size=len(self._ready),
                status_counts=StatusCounts(
                    waiting=counts[PatientStatus.WAITING],
                    allocated=counts[PatientStatus.ALLOCATED],
                    in_treatment=counts[PatientStatus.IN_TREATMENT],
                    discharged=counts[PatientStatus.DISCHARGED],
                    total=len(self._registry),
                ),
                workers_running=self._workers.is_running,
                worker_count=self._workers.worker_count,
            )

    def queue_position(self, patient_id: int) -> QueuePosition:
        with self._lock:
            position = self._admission.position_of(patient_id)
        if position is None:
            return QueuePosition(in_queue=False)
        return QueuePosition(in_queue=True, position=position)

    def waiting_ids(self) -> list[int]:
        """Waiting patient ids in admission order."""
        with self._lock:
            return self._admission.ids()

    def get_patient(self, patient_id: int) -> Patient | None:
        with self._lock:
            patient = self._registry.get(patient_id)
            return patient.copy() if patient else None

    def patients(self) -> list[Patient]:
        with self._lock:
            return [p.copy() for p in self._registry.all()]

    def patients_frame(self) -> pd.DataFrame:
        """Every patient record as a DataFrame, one row per patient."""
        return patients_to_frame(self.patients())

    def suggest_triage(self, complaint: str) -> TriageSuggestion:
        """Advisory severity for a complaint. Never affects allocation."""
        return self._suggester.suggest(complaint)

    def close(self) -> None:
        self.stop_workers()

    def __enter__(self) -> SchedulerController:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _persist(self) -> None:
        try:
            self._store.save(self._registry.all(), self._pool.totals())
        except OSError:
            logger.exception("[controller] Failed to persist scheduler state")

    def _restore(self) -> None:
        """Rebuild state from the store.

        Waiting patients rejoin the admission queue in priority order,
        allocated patients rejoin the ready queue, and used counters are
        recounted from persisted handles (clamped to capacity). Records
        whose handles contradict their status, or collide with a handle
        already restored, are skipped with a warning. No allocation pass
        runs until the next state change.
        """
        state = self._store.load()
        if state is None:
            return
        with self._lock:
            self._pool.set_totals(state.totals.beds, state.totals.ventilators)
            max_id = 0
            max_sequence = -1
            for patient in sorted(state.patients, key=lambda p: p.id):
                problem = self._restore_problem(patient)
                if problem:
                    logger.warning("[controller] Skipping persisted patient %d: %s", patient.id, problem)
                    continue
                self._registry.put(patient)
                for handle in patient.held_handles():
                    self._pool.restore_holding(handle)
                if patient.status is PatientStatus.WAITING:
                    self._admission.insert(patient)
                elif patient.status is PatientStatus.ALLOCATED:
                    self._ready.push(patient.id)
                max_id = max(max_id, patient.id)
                max_sequence = max(max_sequence, patient.arrival_sequence)
            self._registry.reset_next_id(max_id + 1)
            self._next_sequence = max_sequence + 1
            logger.info(
                "[controller] Restored %d patients (%d waiting, %d ready)",
                len(self._registry), len(self._admission), len(self._ready),
            )

    def _restore_problem(self, patient: Patient) -> str | None:
        """Why a persisted record cannot be restored, or None if it can."""
        if patient.id in self._registry:
            return "duplicate id"
        holds = patient.status.holds_resources
        if holds and patient.assigned_bed is None:
            return f"{patient.status.value} without a bed"
        if not holds and patient.held_handles():
            return f"{patient.status.value} but holds {', '.join(map(str, patient.held_handles()))}"
        if holds and patient.requires_ventilator and patient.assigned_ventilator is None:
            return f"{patient.status.value} without its ventilator"
        if patient.assigned_ventilator is not None and not patient.requires_ventilator:
            return "ventilator held without being required"
        for handle in patient.held_handles():
            if self._pool.is_held(handle):
                return f"{handle} already held by another patient"
        return None

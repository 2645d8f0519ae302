"""Concurrent treatment workers.

Each worker is a daemon thread that takes allocated patients from the
``ReadyQueue``, holds them for their treatment duration, then discharges
them, releases their bed and ventilator, and runs the allocation pass again
so the freed capacity goes to the next waiting patient.

Every state change happens under the scheduler lock. The treatment wait
itself runs without the lock, on a per-treatment cancel event, so other
workers and the controller keep going while a patient is being treated.

Stopping is abrupt: outstanding treatments are abandoned, and their
patients stay IN_TREATMENT holding their resources until an administrative
discharge. Restarting does not requeue them.

Example::

    workers = TreatmentWorkerPool(
        lock, registry, pool, ready, engine, persist=save_state,
    )
    workers.start(3)
    ...
    workers.stop()
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass

from triagescheduler.core.allocation import AllocationEngine
from triagescheduler.core.patient import Patient, PatientStatus, prescription_for
from triagescheduler.core.ready_queue import ReadyQueue
from triagescheduler.core.registry import PatientRegistry
from triagescheduler.core.resources import ResourcePool

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkerPoolStats:
    """Frozen snapshot of worker pool statistics.

    Attributes:
        workers: Threads started by the most recent ``start``.
        running: Whether the pool is accepting work.
        active_treatments: Treatments currently in progress.
        treatments_started: Patients moved to IN_TREATMENT.
        treatments_completed: Patients discharged by a worker.
        treatments_abandoned: Treatments cancelled by stop or administrative discharge.
    """

    workers: int = 0
    running: bool = False
    active_treatments: int = 0
    treatments_started: int = 0
    treatments_completed: int = 0
    treatments_abandoned: int = 0


class TreatmentWorkerPool:
    """N worker threads draining the ready queue.

    Args:
        lock: The scheduler lock; the ready queue's condition is built on it.
        registry: Patient records.
        pool: Bed and ventilator capacity.
        ready: Allocated patients awaiting a worker.
        engine: Allocation pass run after each discharge.
        persist: Called under the lock after every state change.
        poll_interval_s: Longest idle wait before rechecking for shutdown.
        join_timeout_s: How long ``stop`` waits for each thread to exit.
    """

    def __init__(
        self,
        lock: threading.RLock,
        registry: PatientRegistry,
        pool: ResourcePool,
        ready: ReadyQueue,
        engine: AllocationEngine,
        persist: Callable[[], None],
        poll_interval_s: float = 0.5,
        join_timeout_s: float = 5.0,
    ):
        self._lock = lock
        self._registry = registry
        self._pool = pool
        self._ready = ready
        self._engine = engine
        self._persist = persist
        self._poll_interval_s = poll_interval_s
        self._join_timeout_s = join_timeout_s

        self._threads: list[threading.Thread] = []
        self._stopping: threading.Event | None = None
        self._treatments: dict[int, threading.Event] = {}

        # Statistics (private counters → frozen snapshot via @property)
        self._started = 0
        self._completed = 0
        self._abandoned = 0

    @property
    def is_running(self) -> bool:
        return self._stopping is not None and not self._stopping.is_set()

    @property
    def worker_count(self) -> int:
        return len(self._threads) if self.is_running else 0

    @property
    def stats(self) -> WorkerPoolStats:
        with self._lock:
            return WorkerPoolStats(
                workers=self.worker_count,
                running=self.is_running,
                active_treatments=len(self._treatments),
                treatments_started=self._started,
                treatments_completed=self._completed,
                treatments_abandoned=self._abandoned,
            )

    def start(self, count: int) -> bool:
        """Spawn ``count`` workers. Returns False if already running.

        Raises:
            ValueError: If count is not positive.
        """
        if count < 1:
            raise ValueError(f"worker count must be >= 1, got {count}")
        with self._lock:
            if self.is_running:
                logger.info("[workers] Already running %d workers", len(self._threads))
                return False
            stopping = threading.Event()
            self._stopping = stopping
            self._threads = [
                threading.Thread(
                    target=self._run,
                    args=(index, stopping),
                    name=f"treatment-worker-{index}",
                    daemon=True,
                )
                for index in range(1, count + 1)
            ]
            for thread in self._threads:
                thread.start()
        logger.info("[workers] Started %d treatment workers", count)
        return True

    def stop(self) -> None:
        """Stop all workers without draining.

        In-progress treatments are abandoned; their patients keep status
        IN_TREATMENT and keep their resources.
        """
        with self._lock:
            if not self.is_running:
                return
            self._stopping.set()
            for patient_id, cancel in self._treatments.items():
                cancel.set()
                logger.info("[workers] Abandoned treatment of patient %d", patient_id)
            self._ready.notify_all()
            threads, self._threads = self._threads, []

        for thread in threads:
            thread.join(self._join_timeout_s)
            if thread.is_alive():
                logger.warning("[workers] %s did not exit within %.1fs", thread.name, self._join_timeout_s)
        logger.info("[workers] All treatment workers stopped")

    def cancel_treatment(self, patient_id: int) -> bool:
        """Interrupt a patient's treatment wait. Caller holds the lock."""
        cancel = self._treatments.get(patient_id)
        if cancel is None:
            return False
        cancel.set()
        return True

    def _run(self, index: int, stopping: threading.Event) -> None:
        logger.debug("[worker %d] Ready", index)
        while not stopping.is_set():
            with self._lock:
                if stopping.is_set():
                    break
                patient_id = self._ready.pop_or_none()
                if patient_id is None:
                    self._ready.wait(self._poll_interval_s)
                    continue
                patient = self._begin_treatment(index, patient_id)
                if patient is None:
                    continue
                cancel = threading.Event()
                self._treatments[patient_id] = cancel
                duration_s = patient.treatment_duration_ms / 1000.0

            interrupted = cancel.wait(duration_s)

            with self._lock:
                self._treatments.pop(patient_id, None)
                if interrupted or stopping.is_set():
                    self._abandoned += 1
                    continue
                self._complete_treatment(index, patient_id)
        logger.debug("[worker %d] Terminated", index)

    def _begin_treatment(self, index: int, patient_id: int) -> Patient | None:
        patient = self._registry.get(patient_id)
        if patient is None or patient.status is not PatientStatus.ALLOCATED:
            logger.debug("[worker %d] Skipping patient %d, no longer allocated", index, patient_id)
            return None
        patient.status = PatientStatus.IN_TREATMENT
        self._started += 1
        self._persist()
        logger.info(
            "[worker %d] Treating patient %d (%s, %s) for %dms",
            index, patient.id, patient.name, patient.severity.name, patient.treatment_duration_ms,
        )
        return patient

    def _complete_treatment(self, index: int, patient_id: int) -> None:
        patient = self._registry.get(patient_id)
        if patient is None or patient.status is not PatientStatus.IN_TREATMENT:
            return
        patient.prescription = prescription_for(patient)
        patient.status = PatientStatus.DISCHARGED
        self._pool.release_bed(patient.assigned_bed)
        self._pool.release_ventilator(patient.assigned_ventilator)
        patient.assigned_bed = None
        patient.assigned_ventilator = None
        self._completed += 1
        self._persist()
        logger.info("[worker %d] Discharged patient %d (%s)", index, patient.id, patient.name)

        if self._engine.try_allocate():
            self._persist()

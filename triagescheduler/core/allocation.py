"""All-or-nothing admission of waiting patients.

``AllocationEngine.try_allocate`` drains the admission queue from the head.
A patient is admitted only once it holds every resource it needs; a
ventilated patient whose ventilator cannot be taken gives its bed back and
returns to the head of the queue.

The pass is strictly head-of-line: as soon as the head cannot be admitted
the pass stops, even if a patient further back could have been. A bed-only
patient never overtakes a higher-priority patient waiting on a ventilator.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from triagescheduler.core.admission_queue import PriorityAdmissionQueue
from triagescheduler.core.patient import Patient, PatientStatus
from triagescheduler.core.ready_queue import ReadyQueue
from triagescheduler.core.resources import ResourcePool

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AllocationStats:
    """Frozen snapshot of allocation pass statistics.

    Attributes:
        passes: Times the pass has run.
        admitted: Patients moved from WAITING to ALLOCATED.
        rollbacks: Beds given back because a ventilator was unavailable.
    """

    passes: int = 0
    admitted: int = 0
    rollbacks: int = 0


class AllocationEngine:
    """Moves patients from the admission queue into the ready queue.

    Must be called with the scheduler lock held; the whole pass is one
    critical section.

    Args:
        pool: Bed and ventilator capacity.
        admission: Waiting patients in priority order.
        ready: Destination for admitted patient ids.
    """

    def __init__(
        self,
        pool: ResourcePool,
        admission: PriorityAdmissionQueue,
        ready: ReadyQueue,
    ) -> None:
        self._pool = pool
        self._admission = admission
        self._ready = ready

        self._passes = 0
        self._admitted = 0
        self._rollbacks = 0

    @property
    def stats(self) -> AllocationStats:
        return AllocationStats(
            passes=self._passes,
            admitted=self._admitted,
            rollbacks=self._rollbacks,
        )

    def try_allocate(self) -> list[Patient]:
        """Admit waiting patients until the head of the queue is blocked.

        Returns:
            The patients admitted during this pass, in admission order. The
            caller persists state when the list is non-empty.
        """
        self._passes += 1
        admitted: list[Patient] = []

        while self._admission:
            patient = self._admission.peek_front()

            bed = self._pool.allocate_bed()
            if bed is None:
                logger.debug("[allocation] No bed for head patient %d, stopping", patient.id)
                break

            self._admission.pop_front()

            ventilator = None
            if patient.requires_ventilator:
                ventilator = self._pool.allocate_ventilator()
                if ventilator is None:
                    self._pool.release_bed(bed)
                    self._admission.push_front(patient)
                    self._rollbacks += 1
                    logger.debug(
                        "[allocation] No ventilator for head patient %d, bed rolled back",
                        patient.id,
                    )
                    break

            patient.assigned_bed = bed
            patient.assigned_ventilator = ventilator
            patient.status = PatientStatus.ALLOCATED
            self._ready.push(patient.id)
            admitted.append(patient)
            self._admitted += 1

            logger.info(
                "[allocation] Patient %d (%s) allocated %s%s",
                patient.id,
                patient.severity.name,
                bed,
                f" + {ventilator}" if ventilator else "",
            )

        return admitted

"""Priority queue of patients waiting for a bed.

Order is severity descending, then arrival sequence ascending, so patients
of the same tier are admitted strictly first-come first-served.

Example::

    queue = PriorityAdmissionQueue()
    queue.insert(normal_patient)
    queue.insert(critical_patient)
    queue.peek_front()           # critical_patient
    queue.position_of(normal_patient.id)  # 1
"""

from __future__ import annotations

import bisect
import logging
from collections.abc import Iterator

from triagescheduler.core.patient import Patient

logger = logging.getLogger(__name__)


def _key(patient: Patient) -> tuple[int, int]:
    return patient.priority_key


class PriorityAdmissionQueue:
    """Waiting patients kept sorted by ``(severity desc, arrival_sequence asc)``."""

    def __init__(self) -> None:
        self._items: list[Patient] = []

    def insert(self, patient: Patient) -> None:
        """Place a patient at its priority position."""
        bisect.insort_right(self._items, patient, key=_key)
        logger.debug(
            "[admission] Queued patient %d (%s) at position %d of %d",
            patient.id, patient.severity.name, self.position_of(patient.id), len(self._items),
        )

    def peek_front(self) -> Patient | None:
        return self._items[0] if self._items else None

    def pop_front(self) -> Patient | None:
        if not self._items:
            return None
        return self._items.pop(0)

    def push_front(self, patient: Patient) -> None:
        """Put a patient back at the head after a rolled-back allocation."""
        self._items.insert(0, patient)

    def remove_by_id(self, patient_id: int) -> bool:
        for index, patient in enumerate(self._items):
            if patient.id == patient_id:
                del self._items[index]
                return True
        return False

    def position_of(self, patient_id: int) -> int | None:
        """Zero-based queue position, or None if the patient is not waiting."""
        for index, patient in enumerate(self._items):
            if patient.id == patient_id:
                return index
        return None

    def ids(self) -> list[int]:
        return [p.id for p in self._items]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Patient]:
        return iter(list(self._items))

    def __bool__(self) -> bool:
        return bool(self._items)

"""Authoritative store of patient records, keyed by id."""

from __future__ import annotations

from collections.abc import Iterator

from triagescheduler.core.patient import Patient


class PatientRegistry:
    """Maps patient id to the live ``Patient`` record.

    Pure storage: no validation and no ordering rules beyond listing records
    by id. Records are never removed; discharged patients stay as an audit
    trail. Every other component works on the records held here.
    """

    def __init__(self) -> None:
        self._patients: dict[int, Patient] = {}
        self._next_id = 1

    def next_id(self) -> int:
        """Hand out a fresh id. Ids are never reused."""
        value = self._next_id
        self._next_id += 1
        return value

    def reset_next_id(self, value: int) -> None:
        """Continue numbering from ``value`` (state restore only)."""
        self._next_id = max(self._next_id, value)

    def put(self, patient: Patient) -> None:
        """Store a record under its id. Numbering is left to ``next_id``."""
        self._patients[patient.id] = patient

    def get(self, patient_id: int) -> Patient | None:
        return self._patients.get(patient_id)

    def all(self) -> list[Patient]:
        return [self._patients[pid] for pid in sorted(self._patients)]

    def __len__(self) -> int:
        return len(self._patients)

    def __contains__(self, patient_id: object) -> bool:
        return patient_id in self._patients

    def __iter__(self) -> Iterator[Patient]:
        return iter(self.all())

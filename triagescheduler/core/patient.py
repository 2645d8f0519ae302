"""Patient record, severity tiers, and the patient state machine.

A ``Patient`` is created ``WAITING`` at registration and moves strictly
forward through ``ALLOCATED`` and ``IN_TREATMENT`` to ``DISCHARGED``.
Administrative discharge may jump to ``DISCHARGED`` from any non-terminal
status.

Example::

    patient = Patient(
        id=1, name="Ada", age=36, complaint="chest pain",
        severity=Severity.CRITICAL, requires_ventilator=False,
        arrival_sequence=0, registration_time=datetime.now(),
        treatment_duration_ms=45_000,
    )
    patient.prescription = prescription_for(patient)
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum

from triagescheduler.core.resources import ResourceHandle


class Severity(IntEnum):
    """Clinical priority tier. Higher values are admitted first."""

    NORMAL = 1
    SERIOUS = 2
    CRITICAL = 3

    @classmethod
    def coerce(cls, value: Severity | int | str) -> Severity:
        """Map a loose severity value onto a tier.

        Integers at or above 3 are CRITICAL, 2 is SERIOUS, and anything else
        is NORMAL. Strings may be a tier name ("critical") or a digit.
        """
        if isinstance(value, Severity):
            return value
        if isinstance(value, str):
            text = value.strip()
            if text.upper() in cls.__members__:
                return cls[text.upper()]
            value = int(text)
        level = int(value)
        if level >= cls.CRITICAL:
            return cls.CRITICAL
        if level == cls.SERIOUS:
            return cls.SERIOUS
        return cls.NORMAL


class PatientStatus(Enum):
    """Where a patient is in the admission lifecycle."""

    WAITING = "Waiting"
    ALLOCATED = "Allocated"
    IN_TREATMENT = "In-Treatment"
    DISCHARGED = "Discharged"

    @property
    def is_terminal(self) -> bool:
        return self is PatientStatus.DISCHARGED

    @property
    def holds_resources(self) -> bool:
        return self in (PatientStatus.ALLOCATED, PatientStatus.IN_TREATMENT)


BASE_REGIMENS: dict[Severity, str] = {
    Severity.CRITICAL: "ICU Medications + Broad-Spectrum Antibiotics",
    Severity.SERIOUS: "Analgesics + Continuous Monitoring",
    Severity.NORMAL: "Rest + Paracetamol 500mg",
}

VENTILATOR_SUFFIX = " | Ventilator Support Required"


def prescription_for(patient: Patient) -> str:
    """Deterministic discharge prescription for a patient's tier."""
    regimen = BASE_REGIMENS[patient.severity]
    if patient.requires_ventilator:
        regimen += VENTILATOR_SUFFIX
    return regimen


@dataclass
class Patient:
    """A registered patient and its current scheduling state.

    Attributes:
        id: Unique identifier, never reused.
        name: Patient name as given at registration.
        age: Age in years.
        complaint: Free-text presenting complaint.
        severity: Priority tier.
        requires_ventilator: Whether admission needs a ventilator as well as a bed.
        arrival_sequence: Registration order, the tie-break within a tier.
        registration_time: When the patient was registered.
        treatment_duration_ms: Treatment length, fixed at registration.
        status: Current lifecycle status.
        assigned_bed: Bed handle while ALLOCATED or IN_TREATMENT.
        assigned_ventilator: Ventilator handle, only for ventilated patients.
        prescription: Set when a worker completes treatment.
    """

    id: int
    name: str
    age: int
    complaint: str
    severity: Severity
    requires_ventilator: bool
    arrival_sequence: int
    registration_time: datetime
    treatment_duration_ms: int
    status: PatientStatus = PatientStatus.WAITING
    assigned_bed: ResourceHandle | None = None
    assigned_ventilator: ResourceHandle | None = None
    prescription: str = field(default="")

    @property
    def priority_key(self) -> tuple[int, int]:
        """Sort key: higher severity first, then earlier arrival."""
        return (-int(self.severity), self.arrival_sequence)

    def held_handles(self) -> list[ResourceHandle]:
        return [h for h in (self.assigned_bed, self.assigned_ventilator) if h is not None]

    def copy(self) -> Patient:
        """Detached copy for handing to callers outside the scheduler lock."""
        return copy.copy(self)

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "age": self.age,
            "complaint": self.complaint,
            "severity": self.severity.name,
            "requires_ventilator": self.requires_ventilator,
            "arrival_sequence": self.arrival_sequence,
            "registration_time": self.registration_time.isoformat(sep=" ", timespec="seconds"),
            "treatment_duration_ms": self.treatment_duration_ms,
            "status": self.status.value,
            "assigned_bed": self.assigned_bed.slot if self.assigned_bed else None,
            "assigned_ventilator": (
                self.assigned_ventilator.slot if self.assigned_ventilator else None
            ),
            "prescription": self.prescription,
        }

    def __repr__(self) -> str:
        return (
            f"Patient(id={self.id}, name={self.name!r}, severity={self.severity.name}, "
            f"status={self.status.value})"
        )

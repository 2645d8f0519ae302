"""Best-effort export and reload of scheduler state.

The scheduler calls ``save(patients, totals)`` after every state change and
``load()`` once at construction. Stores are collaborators, not part of the
scheduling guarantees: a failed save is logged and scheduling carries on.

``CsvPatientStore`` keeps two files in a data directory:

- ``patients.csv``: one row per patient, ``-1`` where no handle is held.
- ``resources.txt``: ``beds,ventilators`` on a single line.

Rows that cannot be parsed are skipped one at a time with a warning.

Example::

    store = CsvPatientStore("data")
    controller = SchedulerController(store=store)
    ...
    state = store.load()   # StoredState(patients=[...], totals=ResourceTotals(...))
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Protocol, runtime_checkable

import pandas as pd

from triagescheduler.core.patient import Patient, PatientStatus, Severity
from triagescheduler.core.resources import ResourceHandle, ResourceKind, ResourceTotals

logger = logging.getLogger(__name__)

PATIENT_COLUMNS = [
    "id",
    "name",
    "age",
    "complaint",
    "severity",
    "status",
    "assigned_bed",
    "needs_vent",
    "assigned_vent",
    "enqueue_seq",
    "registered_time",
    "treatment_ms",
    "prescription",
]

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
NO_HANDLE = -1


@dataclass(frozen=True)
class StoredState:
    patients: list[Patient]
    totals: ResourceTotals


@runtime_checkable
class PatientStore(Protocol):
    def save(self, patients: list[Patient], totals: ResourceTotals) -> None: ...

    def load(self) -> StoredState | None: ...


class NullPatientStore:
    """Discards everything. The default when no store is configured."""

    def save(self, patients: list[Patient], totals: ResourceTotals) -> None:
        pass

    def load(self) -> StoredState | None:
        return None


class InMemoryPatientStore:
    """Keeps detached copies of the last saved state."""

    def __init__(self, state: StoredState | None = None):
        self._state = state
        self.saves = 0

    def save(self, patients: list[Patient], totals: ResourceTotals) -> None:
        self._state = StoredState(patients=[p.copy() for p in patients], totals=totals)
        self.saves += 1

    def load(self) -> StoredState | None:
        if self._state is None:
            return None
        return StoredState(patients=[p.copy() for p in self._state.patients], totals=self._state.totals)


def patient_to_row(patient: Patient) -> dict[str, object]:
    return {
        "id": patient.id,
        "name": patient.name,
        "age": patient.age,
        "complaint": patient.complaint,
        "severity": int(patient.severity),
        "status": patient.status.value,
        "assigned_bed": patient.assigned_bed.slot if patient.assigned_bed else NO_HANDLE,
        "needs_vent": 1 if patient.requires_ventilator else 0,
        "assigned_vent": (
            patient.assigned_ventilator.slot if patient.assigned_ventilator else NO_HANDLE
        ),
        "enqueue_seq": patient.arrival_sequence,
        "registered_time": patient.registration_time.strftime(TIMESTAMP_FORMAT),
        "treatment_ms": patient.treatment_duration_ms,
        "prescription": patient.prescription,
    }


def _handle(kind: ResourceKind, raw: str) -> ResourceHandle | None:
    slot = int(raw)
    if slot == NO_HANDLE:
        return None
    if slot <= 0:
        raise ValueError(f"invalid {kind.value} slot {slot}")
    return ResourceHandle(kind, slot)


def _timestamp(raw: str) -> datetime:
    try:
        return datetime.strptime(raw, TIMESTAMP_FORMAT)
    except ValueError:
        return datetime.fromisoformat(raw)


def patient_from_row(row: dict[str, str]) -> Patient:
    """Parse one persisted row.

    Raises:
        ValueError: If any field is malformed.
        KeyError: If a column is missing.
    """
    return Patient(
        id=int(row["id"]),
        name=row["name"],
        age=int(row["age"]),
        complaint=row["complaint"],
        severity=Severity.coerce(int(row["severity"])),
        requires_ventilator=int(row["needs_vent"]) != 0,
        arrival_sequence=int(row["enqueue_seq"]),
        registration_time=_timestamp(row["registered_time"]),
        treatment_duration_ms=int(row["treatment_ms"]),
        status=PatientStatus(row["status"]),
        assigned_bed=_handle(ResourceKind.BED, row["assigned_bed"]),
        assigned_ventilator=_handle(ResourceKind.VENTILATOR, row["assigned_vent"]),
        prescription=row["prescription"],
    )


def patients_to_frame(patients: list[Patient]) -> pd.DataFrame:
    """All patients as a DataFrame with the persisted column layout."""
    return pd.DataFrame([patient_to_row(p) for p in patients], columns=PATIENT_COLUMNS)


def _skip_bad_line(fields: list[str]) -> None:
    logger.warning("[store] Skipping malformed patient line: %s", fields[:2])
    return None


class CsvPatientStore:
    """Patients and capacity as CSV files in a data directory.

    Args:
        data_dir: Directory holding ``patients.csv`` and ``resources.txt``.
            Created on first save.
    """

    PATIENTS_FILE = "patients.csv"
    RESOURCES_FILE = "resources.txt"

    def __init__(self, data_dir: str | Path):
        self._dir = Path(data_dir)

    @property
    def patients_path(self) -> Path:
        return self._dir / self.PATIENTS_FILE

    @property
    def resources_path(self) -> Path:
        return self._dir / self.RESOURCES_FILE

    def save(self, patients: list[Patient], totals: ResourceTotals) -> None:
        self._dir.mkdir(parents=True, exist_ok=True)
        frame = patients_to_frame(sorted(patients, key=lambda p: p.id))
        self._replace(self.patients_path, frame.to_csv(index=False))
        self._replace(self.resources_path, f"{totals.beds},{totals.ventilators}\n")
        logger.debug("[store] Saved %d patients to %s", len(patients), self._dir)

    def load(self) -> StoredState | None:
        totals = self._load_totals()
        patients = self._load_patients()
        if patients is None and totals is None:
            return None
        return StoredState(patients=patients or [], totals=totals or ResourceTotals())

    def _load_totals(self) -> ResourceTotals | None:
        try:
            text = self.resources_path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        if not text:
            return None
        beds, _, ventilators = text.partition(",")
        try:
            return ResourceTotals(beds=max(0, int(beds)), ventilators=max(0, int(ventilators or 0)))
        except ValueError:
            logger.warning("[store] Ignoring malformed resource totals %r", text)
            return None

    def _load_patients(self) -> list[Patient] | None:
        if not self.patients_path.exists():
            return None
        try:
            frame = pd.read_csv(
                self.patients_path,
                dtype=str,
                keep_default_na=False,
                engine="python",
                on_bad_lines=_skip_bad_line,
            )
        except pd.errors.EmptyDataError:
            return []

        missing = [c for c in PATIENT_COLUMNS if c not in frame.columns]
        if missing:
            logger.warning("[store] %s lacks columns %s, nothing loaded", self.patients_path, missing)
            return []

        patients = []
        for index, row in enumerate(frame.to_dict(orient="records"), start=1):
            if any(pd.isna(row[c]) for c in PATIENT_COLUMNS):
                logger.warning("[store] Skipping incomplete patient row %d", index)
                continue
            try:
                patients.append(patient_from_row(row))
            except (KeyError, ValueError) as e:
                logger.warning("[store] Skipping malformed patient row %d: %s", index, e)
        logger.info("[store] Loaded %d patients from %s", len(patients), self.patients_path)
        return patients

    @staticmethod
    def _replace(path: Path, text: str) -> None:
        tmp = path.with_suffix(path.suffix + ".tmp")
        tmp.write_text(text, encoding="utf-8")
        os.replace(tmp, path)

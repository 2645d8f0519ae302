"""Unit tests for the AllocationEngine pass: all-or-nothing and head-of-line blocking."""

import threading
from datetime import datetime

from triagescheduler.core.admission_queue import PriorityAdmissionQueue
from triagescheduler.core.allocation import AllocationEngine
from triagescheduler.core.patient import Patient, PatientStatus, Severity
from triagescheduler.core.ready_queue import ReadyQueue
from triagescheduler.core.resources import ResourcePool


class Harness:
    """Engine wired to fresh queues; allocate() runs the pass under the lock."""

    def __init__(self, beds: int, ventilators: int):
        self.lock = threading.RLock()
        self.pool = ResourcePool(beds=beds, ventilators=ventilators)
        self.admission = PriorityAdmissionQueue()
        self.ready = ReadyQueue(self.lock)
        self.engine = AllocationEngine(self.pool, self.admission, self.ready)
        self._seq = 0

    def wait(self, pid: int, severity: Severity, vent: bool = False) -> Patient:
        patient = Patient(
            id=pid,
            name=f"p{pid}",
            age=50,
            complaint="",
            severity=severity,
            requires_ventilator=vent,
            arrival_sequence=self._seq,
            registration_time=datetime(2026, 3, 1),
            treatment_duration_ms=10,
        )
        self._seq += 1
        self.admission.insert(patient)
        return patient

    def allocate(self) -> list[Patient]:
        with self.lock:
            return self.engine.try_allocate()


class TestAdmission:
    def test_empty_queue_is_noop(self):
        h = Harness(beds=1, ventilators=0)
        assert h.allocate() == []
        assert h.engine.stats.passes == 1

    def test_allocates_in_priority_order(self):
        h = Harness(beds=2, ventilators=0)
        normal = h.wait(1, Severity.NORMAL)
        critical = h.wait(2, Severity.CRITICAL)
        serious = h.wait(3, Severity.SERIOUS)

        admitted = h.allocate()

        assert [p.id for p in admitted] == [2, 3]
        assert h.engine.stats.admitted == 2
        assert critical.status is PatientStatus.ALLOCATED
        assert serious.status is PatientStatus.ALLOCATED
        assert normal.status is PatientStatus.WAITING
        assert h.ready.ids() == [2, 3]
        assert h.admission.ids() == [1]

    def test_ventilated_patient_gets_both(self):
        h = Harness(beds=1, ventilators=1)
        patient = h.wait(1, Severity.CRITICAL, vent=True)
        h.allocate()
        assert patient.assigned_bed is not None
        assert patient.assigned_ventilator is not None
        assert h.pool.used_beds == 1
        assert h.pool.used_ventilators == 1

    def test_bed_only_patient_never_takes_ventilator(self):
        h = Harness(beds=1, ventilators=1)
        patient = h.wait(1, Severity.CRITICAL)
        h.allocate()
        assert patient.assigned_ventilator is None
        assert h.pool.used_ventilators == 0


class TestRollback:
    def test_missing_ventilator_rolls_back_bed(self):
        h = Harness(beds=2, ventilators=0)
        patient = h.wait(1, Severity.CRITICAL, vent=True)

        assert h.allocate() == []

        assert patient.status is PatientStatus.WAITING
        assert patient.assigned_bed is None
        assert h.pool.used_beds == 0
        assert h.admission.ids() == [1]
        assert h.engine.stats.rollbacks == 1
        assert len(h.ready) == 0


class TestHeadOfLineBlocking:
    def test_blocked_head_stops_lower_priority(self):
        h = Harness(beds=2, ventilators=0)
        h.wait(1, Severity.CRITICAL, vent=True)
        bed_only = h.wait(2, Severity.NORMAL)

        h.allocate()

        assert bed_only.status is PatientStatus.WAITING
        assert h.admission.ids() == [1, 2]
        assert h.pool.available_beds() == 2

    def test_no_bed_stops_pass(self):
        h = Harness(beds=1, ventilators=1)
        h.wait(1, Severity.SERIOUS)
        second = h.wait(2, Severity.NORMAL)
        h.allocate()
        assert second.status is PatientStatus.WAITING
        assert h.admission.position_of(2) == 0

    def test_freed_capacity_admits_head(self):
        h = Harness(beds=1, ventilators=0)
        first = h.wait(1, Severity.CRITICAL)
        second = h.wait(2, Severity.CRITICAL)
        h.allocate()
        h.pool.release_bed(first.assigned_bed)
        admitted = h.allocate()
        assert [p.id for p in admitted] == [2]
        assert second.assigned_bed == first.assigned_bed

"""Unit tests for PriorityAdmissionQueue ordering and lookups."""

from datetime import datetime

from triagescheduler.core.admission_queue import PriorityAdmissionQueue
from triagescheduler.core.patient import Patient, Severity


def make_patient(pid, severity, seq) -> Patient:
    return Patient(
        id=pid,
        name=f"p{pid}",
        age=30,
        complaint="",
        severity=severity,
        requires_ventilator=False,
        arrival_sequence=seq,
        registration_time=datetime(2026, 3, 1),
        treatment_duration_ms=10,
    )


def is_ordered(queue: PriorityAdmissionQueue) -> bool:
    keys = [p.priority_key for p in queue]
    return keys == sorted(keys)


class TestOrdering:
    def test_higher_severity_first(self):
        queue = PriorityAdmissionQueue()
        queue.insert(make_patient(1, Severity.NORMAL, 0))
        queue.insert(make_patient(2, Severity.SERIOUS, 1))
        queue.insert(make_patient(3, Severity.CRITICAL, 2))
        assert queue.ids() == [3, 2, 1]

    def test_fifo_within_tier(self):
        queue = PriorityAdmissionQueue()
        for pid in range(1, 5):
            queue.insert(make_patient(pid, Severity.SERIOUS, pid))
        assert queue.ids() == [1, 2, 3, 4]

    def test_mixed_arrivals_stay_ordered(self):
        queue = PriorityAdmissionQueue()
        tiers = [Severity.NORMAL, Severity.CRITICAL, Severity.SERIOUS, Severity.CRITICAL,
                 Severity.NORMAL, Severity.SERIOUS]
        for seq, tier in enumerate(tiers):
            queue.insert(make_patient(seq + 1, tier, seq))
            assert is_ordered(queue)
        assert queue.ids() == [2, 4, 3, 6, 1, 5]


class TestHeadOperations:
    def test_empty_queue(self):
        queue = PriorityAdmissionQueue()
        assert queue.peek_front() is None
        assert queue.pop_front() is None
        assert len(queue) == 0
        assert not queue

    def test_peek_does_not_remove(self):
        queue = PriorityAdmissionQueue()
        queue.insert(make_patient(1, Severity.NORMAL, 0))
        assert queue.peek_front().id == 1
        assert len(queue) == 1

    def test_pop_then_push_front_restores_head(self):
        queue = PriorityAdmissionQueue()
        queue.insert(make_patient(1, Severity.CRITICAL, 0))
        queue.insert(make_patient(2, Severity.NORMAL, 1))
        head = queue.pop_front()
        queue.push_front(head)
        assert queue.ids() == [1, 2]
        assert is_ordered(queue)


class TestLookups:
    def test_position_of(self):
        queue = PriorityAdmissionQueue()
        queue.insert(make_patient(1, Severity.NORMAL, 0))
        queue.insert(make_patient(2, Severity.CRITICAL, 1))
        assert queue.position_of(2) == 0
        assert queue.position_of(1) == 1
        assert queue.position_of(42) is None

    def test_remove_by_id(self):
        queue = PriorityAdmissionQueue()
        for pid in (1, 2, 3):
            queue.insert(make_patient(pid, Severity.NORMAL, pid))
        assert queue.remove_by_id(2)
        assert not queue.remove_by_id(2)
        assert queue.ids() == [1, 3]

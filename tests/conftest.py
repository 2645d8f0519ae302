"""
Shared pytest fixtures for triagescheduler tests.
"""

import logging
import time
from datetime import datetime

import pytest

from triagescheduler import ManualClock, SchedulerConfig, SchedulerController


@pytest.fixture
def manual_clock() -> ManualClock:
    return ManualClock(datetime(2026, 3, 1, 8, 0, 0))


@pytest.fixture
def fast_config() -> SchedulerConfig:
    """Treatment times short enough for threaded tests."""
    return SchedulerConfig(
        critical_treatment_ms=300,
        serious_treatment_ms=200,
        normal_treatment_ms=100,
        poll_interval_s=0.02,
        default_workers=1,
        worker_join_timeout_s=2.0,
    )


@pytest.fixture
def controller(fast_config, manual_clock):
    """An isolated scheduler that is always torn down after the test."""
    scheduler = SchedulerController(fast_config, clock=manual_clock)
    yield scheduler
    scheduler.close()


@pytest.fixture
def wait_until():
    """
    Returns a helper that polls a predicate until it holds or a timeout expires.

    Example usage:
        def test_discharge(controller, wait_until):
            ...
            assert wait_until(lambda: controller.get_patient(1).status is PatientStatus.DISCHARGED)
    """

    def _wait(predicate, timeout: float = 5.0, interval: float = 0.01) -> bool:
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if predicate():
                return True
            time.sleep(interval)
        return predicate()

    return _wait


@pytest.fixture(autouse=True)
def reset_triagescheduler_logging():
    """Reset logging state before each test.

    Ensures tests start with a clean logging configuration:
    - Removes all handlers except NullHandler
    - Resets level to NOTSET (inherit from parent)

    This prevents logging configuration from one test affecting another.
    """
    logger = logging.getLogger("triagescheduler")

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        if not isinstance(handler, logging.NullHandler):
            handler.close()
    logger.addHandler(logging.NullHandler())
    logger.setLevel(logging.NOTSET)

    yield

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        if not isinstance(handler, logging.NullHandler):
            handler.close()
    logger.addHandler(logging.NullHandler())
    logger.setLevel(logging.NOTSET)

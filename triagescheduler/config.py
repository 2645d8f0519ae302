"""Scheduler configuration.

Treatment durations are configuration, not protocol: each patient copies the
duration for its tier at registration and keeps it even if the
configuration later changes.

Environment variables read by ``SchedulerConfig.from_env``:
    TS_CRITICAL_TREATMENT_MS: Treatment length for CRITICAL patients.
    TS_SERIOUS_TREATMENT_MS: Treatment length for SERIOUS patients.
    TS_NORMAL_TREATMENT_MS: Treatment length for NORMAL patients.
    TS_POLL_INTERVAL_S: Longest idle wait before a worker rechecks for shutdown.
    TS_WORKERS: Default number of treatment workers.
    TS_DATA_DIR: Directory used by the CSV patient store.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path

from triagescheduler.core.patient import Severity


@dataclass(frozen=True)
class SchedulerConfig:
    critical_treatment_ms: int = 45_000
    serious_treatment_ms: int = 40_000
    normal_treatment_ms: int = 35_000
    poll_interval_s: float = 0.5
    default_workers: int = 1
    worker_join_timeout_s: float = 5.0
    data_dir: Path = field(default_factory=lambda: Path("data"))

    def __post_init__(self) -> None:
        for name in ("critical_treatment_ms", "serious_treatment_ms", "normal_treatment_ms"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0, got {getattr(self, name)}")
        if self.poll_interval_s <= 0:
            raise ValueError(f"poll_interval_s must be > 0, got {self.poll_interval_s}")
        if self.default_workers < 0:
            raise ValueError(f"default_workers must be >= 0, got {self.default_workers}")

    def treatment_ms(self, severity: Severity) -> int:
        """Treatment length for a tier: CRITICAL longest, NORMAL shortest."""
        if severity is Severity.CRITICAL:
            return self.critical_treatment_ms
        if severity is Severity.SERIOUS:
            return self.serious_treatment_ms
        return self.normal_treatment_ms

    def with_overrides(self, **changes) -> SchedulerConfig:
        return replace(self, **changes)

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> SchedulerConfig:
        """Build a config from ``TS_*`` environment variables.

        Unset variables keep their defaults.

        Raises:
            ValueError: If a variable is set but cannot be parsed.
        """
        env = os.environ if environ is None else environ
        parsers = {
            "critical_treatment_ms": ("TS_CRITICAL_TREATMENT_MS", int),
            "serious_treatment_ms": ("TS_SERIOUS_TREATMENT_MS", int),
            "normal_treatment_ms": ("TS_NORMAL_TREATMENT_MS", int),
            "poll_interval_s": ("TS_POLL_INTERVAL_S", float),
            "default_workers": ("TS_WORKERS", int),
            "data_dir": ("TS_DATA_DIR", Path),
        }
        values = {}
        for attr, (var, parse) in parsers.items():
            raw = env.get(var, "").strip()
            if not raw:
                continue
            try:
                values[attr] = parse(raw)
            except ValueError as e:
                raise ValueError(f"{var}={raw!r} is not a valid {parse.__name__}") from e
        return cls(**values)

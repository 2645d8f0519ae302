"""Emergency room admission walk-through.

Registers a batch of patients against a small ward, starts the treatment
workers, and samples the scheduler while it drains the queue.

## Flow

```
    register ──► PriorityAdmissionQueue ──► AllocationEngine ──► ReadyQueue
                 (severity, arrival)        (bed [+ ventilator])      │
                        ▲                                             ▼
                        └──────── cascade on discharge ◄──── treatment workers
```

With the defaults below the ward has 3 beds, 1 ventilator and 2 doctors.
Treatment times are scaled down so the run finishes in a few seconds.

Run:
    python examples/er_admission.py
    python examples/er_admission.py --plot --output output/er_admission
    python examples/er_admission.py --persist --data-dir data
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from pathlib import Path

import triagescheduler
from triagescheduler import (
    CsvPatientStore,
    NullPatientStore,
    SchedulerConfig,
    SchedulerController,
    Snapshot,
)

# (name, age, complaint, needs ventilator). Severity comes from the triage suggester.
ARRIVALS = [
    ("Ada", 36, "chest pain and shortness of breath", False),
    ("Brook", 22, "sprained ankle", False),
    ("Cyril", 58, "cardiac arrest", False),
    ("Dana", 71, "respiratory failure", True),
    ("Eli", 45, "fracture of the wrist", False),
    ("Fern", 19, "mild fever and cough", False),
    ("Gus", 64, "stroke symptoms", False),
    ("Hana", 30, "pneumonia with low oxygen", True),
]


@dataclass
class AdmissionRun:
    """Samples taken while the ward drained."""

    samples: list[tuple[float, Snapshot]] = field(default_factory=list)
    final: Snapshot | None = None
    elapsed_s: float = 0.0


def run_admission(
    *,
    beds: int = 3,
    ventilators: int = 1,
    doctors: int = 2,
    time_scale: float = 0.02,
    sample_interval_s: float = 0.1,
    timeout_s: float = 30.0,
    persist: bool = False,
    data_dir: Path | None = None,
) -> AdmissionRun:
    """Register every arrival and run the workers until all are discharged.

    Args:
        beds: Bed capacity.
        ventilators: Ventilator capacity.
        doctors: Treatment workers.
        time_scale: Multiplier applied to the default treatment durations.
        sample_interval_s: How often to snapshot the scheduler.
        timeout_s: Give up waiting after this long.
        persist: Save state as CSV after every change.
        data_dir: Where to save. Defaults to the configured data directory.

    Returns:
        AdmissionRun with the sampled snapshots.
    """
    defaults = SchedulerConfig.from_env()
    config = defaults.with_overrides(
        critical_treatment_ms=int(defaults.critical_treatment_ms * time_scale),
        serious_treatment_ms=int(defaults.serious_treatment_ms * time_scale),
        normal_treatment_ms=int(defaults.normal_treatment_ms * time_scale),
        poll_interval_s=min(defaults.poll_interval_s, sample_interval_s),
    )
    store = CsvPatientStore(data_dir or config.data_dir) if persist else NullPatientStore()

    run = AdmissionRun()
    with SchedulerController(config, store=store) as er:
        er.configure_resources(beds=beds, ventilators=ventilators, doctor_count=doctors)

        for name, age, complaint, needs_vent in ARRIVALS:
            suggestion = er.suggest_triage(complaint)
            patient = er.register_patient(
                name=name,
                age=age,
                complaint=complaint,
                severity=suggestion.severity,
                requires_ventilator=needs_vent or suggestion.requires_ventilator,
            )
            print(
                f"  #{patient.id:<2} {name:<6} {suggestion.severity.name:<8} "
                f"{patient.status.value:<10} ({suggestion.confidence}% on "
                f"{', '.join(suggestion.matched_keywords)})"
            )

        start = time.monotonic()
        er.start_workers()
        while True:
            elapsed = time.monotonic() - start
            snapshot = er.snapshot()
            run.samples.append((elapsed, snapshot))
            counts = snapshot.status_counts
            if counts.discharged == counts.total or elapsed > timeout_s:
                break
            time.sleep(sample_interval_s)

        run.elapsed_s = time.monotonic() - start
        run.final = er.snapshot()
        print()
        print(er.patients_frame()[["id", "name", "severity", "status", "prescription"]].to_string(index=False))

    return run


def print_summary(run: AdmissionRun) -> None:
    final = run.final
    counts = final.status_counts

    print("\n" + "=" * 60)
    print("ER ADMISSION RESULTS")
    print("=" * 60)
    print(f"  Patients:    {counts.total}")
    print(f"  Discharged:  {counts.discharged}")
    print(f"  Still held:  {counts.allocated + counts.in_treatment}")
    print(f"  Waiting:     {counts.waiting}")
    print(f"  Beds free:   {final.available_beds}/{final.total_beds}")
    print(f"  Vents free:  {final.available_ventilators}/{final.total_ventilators}")
    print(f"  Drain time:  {run.elapsed_s:.2f}s over {len(run.samples)} samples")
    print("=" * 60)


def visualize_results(run: AdmissionRun, output_dir: Path) -> Path:
    """Plot bed occupancy and queue depths over the run."""
    import matplotlib.pyplot as plt

    output_dir.mkdir(parents=True, exist_ok=True)

    times = [t for t, _ in run.samples]
    beds_used = [s.total_beds - s.available_beds for _, s in run.samples]
    vents_used = [s.total_ventilators - s.available_ventilators for _, s in run.samples]
    waiting = [s.waiting_queue_size for _, s in run.samples]
    ready = [s.ready_queue_size for _, s in run.samples]

    fig, axes = plt.subplots(2, 1, figsize=(12, 8), sharex=True)

    ax1 = axes[0]
    ax1.step(times, beds_used, where="post", label="Beds in use")
    ax1.step(times, vents_used, where="post", label="Ventilators in use")
    ax1.set_ylabel("Resources")
    ax1.set_title("Occupancy")
    ax1.legend(loc="upper right")
    ax1.grid(True, alpha=0.3)

    ax2 = axes[1]
    ax2.step(times, waiting, where="post", color="tab:red", label="Waiting")
    ax2.step(times, ready, where="post", color="tab:green", label="Ready for a doctor")
    ax2.set_xlabel("Time (s)")
    ax2.set_ylabel("Patients")
    ax2.set_title("Queues")
    ax2.legend(loc="upper right")
    ax2.grid(True, alpha=0.3)

    plt.tight_layout()
    path = output_dir / "er_admission.png"
    fig.savefig(path, dpi=150)
    plt.close(fig)
    print(f"Saved: {path}")
    return path


# =============================================================================
# Entry Point
# =============================================================================


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="ER admission scheduling demo")
    parser.add_argument("--beds", type=int, default=3, help="Bed capacity")
    parser.add_argument("--ventilators", type=int, default=1, help="Ventilator capacity")
    parser.add_argument("--doctors", type=int, default=2, help="Treatment workers")
    parser.add_argument("--time-scale", type=float, default=0.02, help="Treatment duration multiplier")
    parser.add_argument("--data-dir", type=str, default=None, help="CSV directory (default: TS_DATA_DIR or data)")
    parser.add_argument("--persist", action="store_true", help="Save state as CSV")
    parser.add_argument("--output", type=str, default="output/er_admission", help="Output directory")
    parser.add_argument("--plot", action="store_true", help="Save an occupancy chart")
    parser.add_argument("--verbose", action="store_true", help="Log scheduler activity to stderr")
    args = parser.parse_args()

    if args.verbose:
        triagescheduler.enable_console_logging(level="INFO")
    else:
        triagescheduler.configure_from_env()

    print("Running ER admission demo...")
    print(f"  Ward: {args.beds} beds, {args.ventilators} ventilators, {args.doctors} doctors\n")

    run = run_admission(
        beds=args.beds,
        ventilators=args.ventilators,
        doctors=args.doctors,
        time_scale=args.time_scale,
        persist=args.persist,
        data_dir=Path(args.data_dir) if args.data_dir else None,
    )
    print_summary(run)

    if args.plot:
        visualize_results(run, Path(args.output))

#!/usr/bin/env python3
"""
Simulation script for resumable polling.

Drives a polling job through several executions on an in-memory queue with
a simulated clock, so rescheduling and resumption can be observed without
waiting in real time.
"""

import argparse
import os
import sys

# Add the src directory to the path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from resumable_polling.config import ExecutionLimits, PollingConfig, Settings
from resumable_polling.job import PollingJob
from resumable_polling.logging_setup import setup_logging
from resumable_polling.polling import (
    InMemoryWorkQueue,
    PollOutcome,
    PollRunner,
    Rescheduler,
)
from resumable_polling.state import InMemoryKeyValueStore, PollState


class SimulatedClock:
    """Clock that only moves when slept on."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.now += seconds


class SimulatedExportJob(PollingJob):
    """Job whose external operation finishes after a fixed number of checks."""

    checks_made = 0

    def __init__(self, export_id: str, checks_needed: int, config: PollingConfig):
        self.export_id = export_id
        self.checks_needed = checks_needed
        self.polling_config = config

    def get_polling_id(self) -> str:
        return self.export_id

    def has_poll_resolved(self) -> bool:
        return SimulatedExportJob.checks_made >= self.checks_needed

    def resolve_poll(self) -> bool:
        SimulatedExportJob.checks_made += 1
        return self.has_poll_resolved()

    def resolve_polling_job(self) -> "SimulatedExportJob":
        return SimulatedExportJob(
            self.export_id, self.checks_needed, self.polling_config
        )


def simulate(args: argparse.Namespace) -> int:
    """Run executions until the poll stops rescheduling itself."""
    clock = SimulatedClock()
    store = InMemoryKeyValueStore(clock=clock)
    queue = InMemoryWorkQueue(clock=clock)
    config = PollingConfig(
        max_attempts=args.max_attempts,
        lifetime_seconds=args.lifetime,
        interval_seconds=args.interval,
        supports_inline_release=not args.no_release,
    )
    limits = ExecutionLimits(max_execution_seconds=args.execution_budget)

    queue.submit(SimulatedExportJob("export-1", args.checks_needed, config), 0)

    executions = 0
    outcome = None
    while len(queue):
        clock.now = max(clock.now, queue.next_available_at())
        for job in queue.pop_due():
            executions += 1
            runner = PollRunner(
                job,
                PollState(store, job.poll_type, job.get_polling_id(), clock=clock),
                Rescheduler(
                    config.supports_inline_release, container=queue, dispatcher=queue
                ),
                config=config,
                limits=limits,
                clock=clock,
                sleep=clock.sleep,
            )
            outcome = runner.run()
            print(
                f"   execution {executions}: {outcome.value} "
                f"(attempts={runner.state.get_attempts()})"
            )

    print("=" * 50)
    print(f"📈 Final outcome: {outcome.value} after {executions} executions")
    return 0 if outcome is PollOutcome.RESOLVED else 1


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--checks-needed", type=int, default=12)
    parser.add_argument("--max-attempts", type=int, default=200)
    parser.add_argument("--lifetime", type=int, default=600)
    parser.add_argument("--interval", type=int, default=3)
    parser.add_argument("--execution-budget", type=float, default=20)
    parser.add_argument("--no-release", action="store_true")
    args = parser.parse_args()

    setup_logging(Settings(log_format="console", log_level="INFO"))

    print("🚀 Simulating resumable poll")
    print("=" * 50)
    return simulate(args)


if __name__ == "__main__":
    sys.exit(main())

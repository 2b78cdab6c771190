from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict, dataclass, field
from typing import Callable, Dict, List, Optional, Set

from ..config import WorkerPolicy
from ..errors import UnknownFailureCategory
from ..ledger.ledger import WORKER_EXITED, Ledger
from ..schemas import FleetReport
from .trial import Trial

logger = logging.getLogger(__name__)

TrialFactory = Callable[[], Trial]
ReportSink = Callable[[FleetReport], None]


class ThroughputCounter:
    # Only touched from the event loop thread, so a plain int is enough.
    def __init__(self) -> None:
        self._pending = 0
        self.total = 0

    def increment(self) -> None:
        self._pending += 1
        self.total += 1

    def drain(self) -> int:
        count = self._pending
        self._pending = 0
        return count


@dataclass
class WorkerExit:
    worker_id: int
    trial_id: str
    error: str
    unclassified: bool


@dataclass
class FleetSummary:
    total_trials: int
    active_workers: int
    exits: List[WorkerExit] = field(default_factory=list)


def log_report(report: FleetReport) -> None:
    logger.info("Builds this interval: %d", report.interval_builds)
    logger.info("Total builds: %d", report.total_builds)


class FleetScheduler:
    def __init__(
        self,
        trial_factory: TrialFactory,
        *,
        workers: int = 64,
        report_interval_s: float = 1.0,
        policy: WorkerPolicy = "hold",
        on_report: Optional[ReportSink] = None,
        ledger: Optional[Ledger] = None,
    ) -> None:
        if workers < 1:
            raise ValueError("a fleet needs at least one worker")
        self.trial_factory = trial_factory
        self.workers = workers
        self.report_interval_s = report_interval_s
        self.policy = policy
        self.on_report = on_report or log_report
        self.ledger = ledger
        self.counter = ThroughputCounter()
        self.exits: List[WorkerExit] = []
        self._tasks: Dict[int, asyncio.Task[None]] = {}
        self._lost: Set[int] = set()
        self._next_worker_id = 0
        self._exit_queue: asyncio.Queue[WorkerExit] = asyncio.Queue()
        self._stop = asyncio.Event()
        self._max_trials: Optional[int] = None
        self._reported_total = 0

    @property
    def active_workers(self) -> int:
        # Workers that leave their loop because the fleet is stopping still count.
        return sum(1 for worker_id in self._tasks if worker_id not in self._lost)

    def _spawn(self) -> None:
        worker_id = self._next_worker_id
        self._next_worker_id += 1
        self._tasks[worker_id] = asyncio.create_task(
            self._worker(worker_id), name=f"bundlegrind-worker-{worker_id}"
        )

    async def _worker(self, worker_id: int) -> None:
        while not self._stop.is_set():
            trial = self.trial_factory()
            try:
                await trial.run()
            except UnknownFailureCategory as exc:
                self._lost.add(worker_id)
                logger.error("worker %d stopped on unclassified failure: %s", worker_id, exc)
                await self._exit_queue.put(WorkerExit(worker_id, trial.id, str(exc), True))
                return
            except Exception as exc:  # noqa: BLE001
                self._lost.add(worker_id)
                logger.exception("worker %d crashed in trial %s", worker_id, trial.id)
                await self._exit_queue.put(WorkerExit(worker_id, trial.id, repr(exc), False))
                return
            self.counter.increment()
            if self._max_trials is not None and self.counter.total >= self._max_trials:
                self._stop.set()

    async def _coordinate(self) -> None:
        while True:
            exit_record = await self._exit_queue.get()
            self.exits.append(exit_record)
            if self.ledger is not None:
                self.ledger.append(WORKER_EXITED, asdict(exit_record))
            remaining = self.active_workers
            if self.policy == "respawn" and not self._stop.is_set():
                logger.warning("worker %d exited; respawning", exit_record.worker_id)
                self._spawn()
            elif self.policy == "shutdown":
                logger.warning("worker %d exited; shutting the fleet down", exit_record.worker_id)
                self._stop.set()
            else:
                logger.warning(
                    "worker %d exited; %d workers remain", exit_record.worker_id, remaining
                )
                if remaining <= 0:
                    self._stop.set()

    def report(self) -> FleetReport:
        interval = self.counter.drain()
        self._reported_total += interval
        report = FleetReport(
            interval_builds=interval,
            total_builds=self._reported_total,
            active_workers=self.active_workers,
        )
        self.on_report(report)
        return report

    async def _report_loop(self) -> None:
        while True:
            await asyncio.sleep(self.report_interval_s)
            self.report()

    async def run(
        self, max_trials: Optional[int] = None, duration_s: Optional[float] = None
    ) -> FleetSummary:
        self._max_trials = max_trials
        for _ in range(self.workers):
            self._spawn()
        helpers = [
            asyncio.create_task(self._coordinate(), name="bundlegrind-coordinator"),
            asyncio.create_task(self._report_loop(), name="bundlegrind-reporter"),
        ]
        try:
            if duration_s is None:
                await self._stop.wait()
            else:
                try:
                    await asyncio.wait_for(self._stop.wait(), timeout=duration_s)
                except asyncio.TimeoutError:
                    pass
            # Let pending exit notices reach the coordinator before teardown.
            await asyncio.sleep(0)
            while not self._exit_queue.empty():
                await asyncio.sleep(0)
        finally:
            self._stop.set()
            active = self.active_workers
            pending = list(self._tasks.values()) + helpers
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
        self.report()
        return FleetSummary(
            total_trials=self.counter.total, active_workers=active, exits=list(self.exits)
        )

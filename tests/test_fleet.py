from __future__ import annotations

import asyncio
import itertools
from pathlib import Path
from typing import Callable, List, Sequence

from bundlegrind.config import Settings
from bundlegrind.errors import BuildError
from bundlegrind.ledger.ledger import WORKER_EXITED
from bundlegrind.orchestrator.archive import ReproductionArchive
from bundlegrind.orchestrator.fleet import FleetScheduler, ThroughputCounter
from bundlegrind.orchestrator.plan import TrialPlan
from bundlegrind.orchestrator.trial import Trial
from bundlegrind.schemas import FleetReport
from toolchain_fakes import FakeBuilder, GraphRuntime, ScriptedBuilder


def _factory(
    settings: Settings, archive: ReproductionArchive, errors: Sequence[BaseException] = ()
) -> Callable[[], Trial]:
    builder = ScriptedBuilder(errors)
    counter = itertools.count()

    def make_trial() -> Trial:
        idx = next(counter)
        plan = TrialPlan(f"trial-{idx}", seed=idx, shape=settings.shape)
        return Trial(settings, builder, GraphRuntime(plan), archive, plan=plan)

    return make_trial


def test_throughput_counter_drains() -> None:
    counter = ThroughputCounter()
    for _ in range(3):
        counter.increment()
    assert counter.drain() == 3
    assert counter.drain() == 0
    counter.increment()
    assert counter.total == 4


def test_scenario_d_unclassified_failure_kills_one_worker(
    settings: Settings, archive: ReproductionArchive
) -> None:
    fleet = FleetScheduler(
        _factory(settings, archive, [BuildError("Segmentation fault at 0x0")]),
        workers=3,
        report_interval_s=60.0,
        ledger=archive.ledger,
    )
    summary = asyncio.run(fleet.run(max_trials=12))

    assert len(summary.exits) == 1
    assert summary.exits[0].unclassified is True
    assert "Segmentation fault" in summary.exits[0].error
    assert summary.active_workers == 2
    assert summary.total_trials >= 12
    assert archive.entries() == []
    assert len(archive.ledger.events(WORKER_EXITED)) == 1


def _failing_first_trial(settings: Settings, archive: ReproductionArchive) -> Callable[[], Trial]:
    counter = itertools.count()

    def make_trial() -> Trial:
        idx = next(counter)
        plan = TrialPlan(f"trial-{idx}", seed=idx, shape=settings.shape)
        builder = FakeBuilder(BuildError("Segmentation fault") if idx == 0 else None)
        return Trial(settings, builder, GraphRuntime(plan), archive, plan=plan)

    return make_trial


def test_finished_workers_still_count_as_active(
    settings: Settings, archive: ReproductionArchive
) -> None:
    fleet = FleetScheduler(_factory(settings, archive), workers=3, report_interval_s=60.0)
    summary = asyncio.run(fleet.run(max_trials=6))
    assert summary.exits == []
    assert summary.active_workers == 3


def test_one_unclassified_trial_loses_exactly_one_worker(
    settings: Settings, archive: ReproductionArchive
) -> None:
    fleet = FleetScheduler(
        _failing_first_trial(settings, archive), workers=3, report_interval_s=60.0
    )
    summary = asyncio.run(fleet.run(max_trials=9))
    assert [exit_record.trial_id for exit_record in summary.exits] == ["trial-0"]
    assert summary.active_workers == 3 - 1
    assert summary.total_trials >= 9


def test_scripted_errors_reach_concurrent_builds(tmp_path: Path) -> None:
    builder = ScriptedBuilder([BuildError("Segmentation fault")])

    async def scenario() -> list:
        return await asyncio.gather(
            builder.build([tmp_path / "a.ts"], tmp_path),
            builder.build([tmp_path / "b.ts"], tmp_path),
            return_exceptions=True,
        )

    results = asyncio.run(scenario())
    assert [type(result).__name__ for result in results] == ["BuildError", "NoneType"]


def test_hold_policy_stops_when_every_worker_is_gone(
    settings: Settings, archive: ReproductionArchive
) -> None:
    errors = [BuildError("Segmentation fault"), BuildError("Bus error")]
    fleet = FleetScheduler(_factory(settings, archive, errors), workers=2, report_interval_s=60.0)
    summary = asyncio.run(fleet.run())
    assert len(summary.exits) == 2
    assert summary.active_workers == 0
    assert summary.total_trials == 0


def test_respawn_policy_restores_concurrency(
    settings: Settings, archive: ReproductionArchive
) -> None:
    errors = [BuildError("Segmentation fault"), BuildError("Bus error")]
    fleet = FleetScheduler(
        _factory(settings, archive, errors), workers=2, report_interval_s=60.0, policy="respawn"
    )
    summary = asyncio.run(fleet.run(max_trials=10))
    assert len(summary.exits) == 2
    assert summary.active_workers == 2


def test_shutdown_policy_stops_the_fleet(settings: Settings, archive: ReproductionArchive) -> None:
    fleet = FleetScheduler(
        _factory(settings, archive, [BuildError("Illegal instruction")]),
        workers=4,
        report_interval_s=60.0,
        policy="shutdown",
    )
    summary = asyncio.run(fleet.run())
    assert len(summary.exits) == 1


def test_recorded_failures_still_count_as_throughput(
    settings: Settings, archive: ReproductionArchive
) -> None:
    errors = [BuildError("error: Cannot find module './e9'")] * 3
    fleet = FleetScheduler(_factory(settings, archive, errors), workers=2, report_interval_s=60.0)
    summary = asyncio.run(fleet.run(max_trials=6))
    assert summary.exits == []
    assert summary.total_trials >= 6
    assert [record.category for record in archive.entries()] == ["cannot-find-module"]


def test_reports_account_for_every_trial(settings: Settings, archive: ReproductionArchive) -> None:
    reports: List[FleetReport] = []
    fleet = FleetScheduler(
        _factory(settings, archive),
        workers=2,
        report_interval_s=0.01,
        on_report=reports.append,
    )
    summary = asyncio.run(fleet.run(duration_s=0.2))
    assert reports
    assert sum(report.interval_builds for report in reports) == summary.total_trials
    assert reports[-1].total_builds == summary.total_trials

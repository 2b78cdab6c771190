from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Callable, Optional, Tuple

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .config import Settings, load_settings
from .ledger.ledger import Ledger
from .orchestrator.archive import LEDGER_NAME, ReproductionArchive
from .orchestrator.fleet import FleetScheduler
from .orchestrator.plan import TrialPlan
from .orchestrator.trial import Trial
from .schemas import FleetReport
from .toolchain.bundler import BunBuilder
from .toolchain.runtime import BunRuntime
from .utils import write_json, write_text

app = typer.Typer(help="Differential fuzzing harness for a code-splitting bundler")
console = Console()

CONFIG_OPTION = typer.Option(None, "--config", exists=True, dir_okay=False)
REPROS_DIR_OPTION = typer.Option(None, "--repros-dir")
TRIALS_DIR_OPTION = typer.Option(None, "--trials-dir")
SEED_OPTION = typer.Option(None, "--seed")
WORKERS_OPTION = typer.Option(None, "--workers", min=1)
INTERVAL_OPTION = typer.Option(None, "--interval", min=0.01)
TRIALS_OPTION = typer.Option(None, "--trials", min=1)
DURATION_OPTION = typer.Option(None, "--duration", min=0.0)
POLICY_OPTION = typer.Option(
    None,
    "--policy",
    help=(
        "What to do when a worker dies: hold (default, the worker is not replaced "
        "and the fleet stops once no workers remain), respawn, or shutdown."
    ),
)
CLEANUP_OPTION = typer.Option(None, "--cleanup/--keep")
PLAN_SEED_OPTION = typer.Option(..., "--seed")
PLAN_TRIAL_ID_OPTION = typer.Option("plan", "--trial-id")
PLAN_OUT_DIR_OPTION = typer.Option(None, "--out-dir", file_okay=False)
LOG_LEVEL_OPTION = typer.Option("WARNING", "--log-level")
OUTCOME_OUT_OPTION = typer.Option(None, "--out", dir_okay=False)

repros_app = typer.Typer(help="Reproduction archive commands")
ledger_app = typer.Typer(help="Ledger commands")


@app.callback()
def main(log_level: str = LOG_LEVEL_OPTION) -> None:
    logging.basicConfig(
        level=log_level.upper(),
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _settings(
    config: Optional[Path],
    *,
    repros_dir: Optional[Path] = None,
    trials_dir: Optional[Path] = None,
    seed: Optional[int] = None,
    **updates: object,
) -> Settings:
    try:
        settings = load_settings(config)
    except ValidationError as exc:
        raise typer.BadParameter(str(exc), param_hint="--config") from exc
    if repros_dir is not None:
        updates["repros_dir"] = repros_dir
    if trials_dir is not None:
        updates["trials_dir"] = trials_dir
    if seed is not None:
        updates["base_seed"] = seed
    cleaned = {key: value for key, value in updates.items() if value is not None}
    if not cleaned:
        return settings
    try:
        return Settings.model_validate({**settings.model_dump(), **cleaned})
    except ValidationError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _toolchain(settings: Settings) -> Tuple[BunBuilder, BunRuntime]:
    return (
        BunBuilder(settings.bundler_cmd, settings.build_timeout_s),
        BunRuntime(settings.runtime_cmd, settings.execute_timeout_s),
    )


def _trial_factory(settings: Settings, archive: ReproductionArchive) -> Callable[[], Trial]:
    builder, runtime = _toolchain(settings)

    def make_trial() -> Trial:
        return Trial(settings, builder, runtime, archive)

    return make_trial


def _print_report(report: FleetReport) -> None:
    console.print(f"Builds this interval: {report.interval_builds}")
    console.print(f"Total builds: {report.total_builds}")


@app.command("run")
def run_cmd(
    config: Optional[Path] = CONFIG_OPTION,
    repros_dir: Optional[Path] = REPROS_DIR_OPTION,
    trials_dir: Optional[Path] = TRIALS_DIR_OPTION,
    seed: Optional[int] = SEED_OPTION,
    workers: Optional[int] = WORKERS_OPTION,
    interval: Optional[float] = INTERVAL_OPTION,
    trials: Optional[int] = TRIALS_OPTION,
    duration: Optional[float] = DURATION_OPTION,
    policy: Optional[str] = POLICY_OPTION,
    cleanup: Optional[bool] = CLEANUP_OPTION,
) -> None:
    if policy is not None and policy not in {"hold", "respawn", "shutdown"}:
        raise typer.BadParameter(f"unknown worker policy: {policy}")
    settings = _settings(
        config,
        repros_dir=repros_dir,
        trials_dir=trials_dir,
        seed=seed,
        workers=workers,
        report_interval_s=interval,
        worker_policy=policy,
        cleanup_trials=cleanup,
    )
    archive = ReproductionArchive(settings.repros_dir)
    fleet = FleetScheduler(
        _trial_factory(settings, archive),
        workers=settings.workers,
        report_interval_s=settings.report_interval_s,
        policy=settings.worker_policy,
        on_report=_print_report,
        ledger=archive.ledger,
    )
    try:
        summary = asyncio.run(fleet.run(max_trials=trials, duration_s=duration))
    except KeyboardInterrupt:
        raise typer.Exit(code=130) from None
    table = Table(title="Fleet Summary")
    table.add_column("Field")
    table.add_column("Value")
    table.add_row("total_trials", str(summary.total_trials))
    table.add_row("active_workers", str(summary.active_workers))
    table.add_row("worker_exits", str(len(summary.exits)))
    console.print(table)


@app.command("trial")
def trial_cmd(
    config: Optional[Path] = CONFIG_OPTION,
    repros_dir: Optional[Path] = REPROS_DIR_OPTION,
    trials_dir: Optional[Path] = TRIALS_DIR_OPTION,
    seed: Optional[int] = SEED_OPTION,
    cleanup: Optional[bool] = CLEANUP_OPTION,
    out: Optional[Path] = OUTCOME_OUT_OPTION,
) -> None:
    settings = _settings(
        config,
        repros_dir=repros_dir,
        trials_dir=trials_dir,
        cleanup_trials=cleanup,
    )
    builder, runtime = _toolchain(settings)
    trial = Trial(settings, builder, runtime, ReproductionArchive(settings.repros_dir), seed=seed)
    outcome = asyncio.run(trial.run())
    if out is not None:
        write_json(out, outcome.model_dump(mode="json"))
    table = Table(title="Trial Outcome")
    table.add_column("Field")
    table.add_column("Value")
    for key, value in outcome.summary_rows():
        table.add_row(key, value)
    console.print(table)


@app.command("plan")
def plan_cmd(
    seed: int = PLAN_SEED_OPTION,
    trial_id: str = PLAN_TRIAL_ID_OPTION,
    out_dir: Optional[Path] = PLAN_OUT_DIR_OPTION,
    config: Optional[Path] = CONFIG_OPTION,
) -> None:
    settings = _settings(config)
    plan = TrialPlan(trial_id, seed, settings.shape).build()
    for filename, source in plan.render_sources().items():
        if out_dir is not None:
            write_text(out_dir / filename, source)
        console.rule(filename)
        console.print(source, markup=False, highlight=False)
    entrypoints = ", ".join(plan.entrypoint_sources())
    console.print(f"entrypoints: {entrypoints}", markup=False)


@repros_app.command("list")
def repros_list_cmd(
    config: Optional[Path] = CONFIG_OPTION, repros_dir: Optional[Path] = REPROS_DIR_OPTION
) -> None:
    settings = _settings(config, repros_dir=repros_dir)
    archive = ReproductionArchive(settings.repros_dir)
    table = Table(title="Reproductions")
    table.add_column("Category")
    table.add_column("Chars")
    table.add_column("Hash")
    table.add_column("Path")
    for record in archive.entries():
        table.add_row(record.category, str(record.chars), record.content_hash[:16], record.path)
    console.print(table)


@ledger_app.command("verify")
def ledger_verify_cmd(
    config: Optional[Path] = CONFIG_OPTION, repros_dir: Optional[Path] = REPROS_DIR_OPTION
) -> None:
    settings = _settings(config, repros_dir=repros_dir)
    ok, message = Ledger.verify_chain(settings.repros_dir / LEDGER_NAME)
    console.print({"ok": ok, "message": message})
    if not ok:
        raise typer.Exit(code=1)


app.add_typer(repros_app, name="repros")
app.add_typer(ledger_app, name="ledger")


if __name__ == "__main__":
    app()

from pathlib import Path

import pytest
from pydantic import ValidationError

from bundlegrind.config import GraphShape, Settings, load_settings
from bundlegrind.utils import write_json


def test_defaults_match_fleet_expectations() -> None:
    settings = Settings()
    assert settings.workers == 64
    assert settings.report_interval_s == 1.0
    assert settings.worker_policy == "hold"
    assert settings.cleanup_trials is False
    assert settings.build_timeout_s is None
    assert settings.shape == GraphShape()


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BUNDLEGRIND_WORKERS", "8")
    monkeypatch.setenv("BUNDLEGRIND_BUNDLER_CMD", '["/opt/bun/bin/bun"]')
    monkeypatch.setenv("BUNDLEGRIND_WORKER_POLICY", "respawn")
    settings = Settings()
    assert settings.workers == 8
    assert settings.bundler_cmd == ["/opt/bun/bin/bun"]
    assert settings.worker_policy == "respawn"


def test_unknown_policy_is_rejected() -> None:
    with pytest.raises(ValidationError):
        Settings(worker_policy="sometimes")


def test_seed_for_depends_on_base_seed() -> None:
    assert Settings().seed_for("t1") is None
    seeded = Settings(base_seed=3)
    assert seeded.seed_for("t1") == Settings(base_seed=3).seed_for("t1")
    assert seeded.seed_for("t1") != seeded.seed_for("t2")
    assert seeded.seed_for("t1") != Settings(base_seed=4).seed_for("t1")


@pytest.mark.parametrize(
    "bounds",
    [
        {"min_modules": 0},
        {"min_modules": 4, "max_modules": 3},
        {"min_originals": 6},
        {"max_reexports": -1},
        {"max_entrypoints": 0},
    ],
)
def test_shape_bounds_are_validated(bounds: dict) -> None:
    with pytest.raises(ValidationError):
        GraphShape(**bounds)


def test_load_settings_reads_json(tmp_path: Path) -> None:
    config = tmp_path / "config.json"
    write_json(config, {"workers": 2, "shape": {"max_modules": 9}, "base_seed": 11})
    settings = load_settings(config)
    assert settings.workers == 2
    assert settings.shape.max_modules == 9
    assert settings.shape.min_modules == 2
    assert settings.base_seed == 11
    assert load_settings(None) == Settings()


@pytest.mark.parametrize(
    "overrides",
    [
        {"workers": 0},
        {"report_interval_s": 0},
        {"report_interval_s": -1.0},
        {"build_timeout_s": 0},
    ],
)
def test_fleet_bounds_are_validated(overrides: dict) -> None:
    with pytest.raises(ValidationError):
        Settings(**overrides)


def test_zero_workers_from_environment_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BUNDLEGRIND_WORKERS", "0")
    with pytest.raises(ValidationError):
        Settings()

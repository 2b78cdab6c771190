import os
import shutil
from pathlib import Path

import pytest

from bundlegrind.config import Settings
from bundlegrind.orchestrator.archive import ReproductionArchive


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    _ = config
    run_slow = os.getenv("RUN_SLOW_TESTS", "") or os.getenv("BUNDLEGRIND_RUN_SLOW", "")
    if str(run_slow).strip().lower() in {"1", "true", "yes"} and shutil.which("bun"):
        return
    skip_slow = pytest.mark.skip(reason="set RUN_SLOW_TESTS=1 with bun on PATH to run slow tests")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(trials_dir=tmp_path / "trials", repros_dir=tmp_path / "repros", workers=4)


@pytest.fixture
def archive(settings: Settings) -> ReproductionArchive:
    return ReproductionArchive(settings.repros_dir)

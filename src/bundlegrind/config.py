from __future__ import annotations

from pathlib import Path
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .utils import read_json, stable_hash

WorkerPolicy = Literal["hold", "respawn", "shutdown"]


class GraphShape(BaseModel):
    min_modules: int = 2
    max_modules: int = 5
    min_originals: int = 1
    max_originals: int = 5
    max_reexports: int = 5
    max_side_effects: int = 5
    max_entrypoints: int = 3

    @model_validator(mode="after")
    def _check_bounds(self) -> "GraphShape":
        if self.min_modules < 1 or self.min_modules > self.max_modules:
            raise ValueError("module bounds must satisfy 1 <= min_modules <= max_modules")
        if self.min_originals < 1 or self.min_originals > self.max_originals:
            raise ValueError(
                "original export bounds must satisfy 1 <= min_originals <= max_originals"
            )
        if self.max_reexports < 0 or self.max_side_effects < 0:
            raise ValueError("re-export and side-effect bounds must be non-negative")
        if self.max_entrypoints < 1:
            raise ValueError("max_entrypoints must be at least 1")
        return self


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="BUNDLEGRIND_")

    workers: int = Field(default=64, ge=1)
    report_interval_s: float = Field(default=1.0, gt=0)
    trials_dir: Path = Path("trials")
    repros_dir: Path = Path("repros")
    bundler_cmd: List[str] = Field(default_factory=lambda: ["bun"])
    runtime_cmd: List[str] = Field(default_factory=lambda: ["bun"])
    build_timeout_s: Optional[float] = Field(default=None, gt=0)
    execute_timeout_s: Optional[float] = Field(default=None, gt=0)
    cleanup_trials: bool = False
    worker_policy: WorkerPolicy = "hold"
    base_seed: Optional[int] = None
    shape: GraphShape = Field(default_factory=GraphShape)

    def seed_for(self, trial_id: str) -> Optional[int]:
        if self.base_seed is None:
            return None
        digest = stable_hash({"trial_id": trial_id, "seed": self.base_seed})
        return int(digest[:8], 16)


def load_settings(config: Optional[Path]) -> Settings:
    if config is None:
        return Settings()
    data = read_json(config)
    return Settings(**data)

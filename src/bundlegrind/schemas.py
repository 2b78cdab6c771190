from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

from .utils import HASH_ALGORITHM


class ReproRecord(BaseModel):
    category: str
    path: str
    content_hash: str
    bytes: int
    chars: int
    trial_id: str
    retained: bool
    previous_chars: Optional[int] = None
    hash_algorithm: str = HASH_ALGORITHM


class TrialOutcome(BaseModel):
    trial_id: str
    seed: int
    status: Literal["succeeded", "recorded"]
    modules: int
    entrypoints: List[str] = Field(default_factory=list)
    expected_effects: int = 0
    observed_effects: int = 0
    category: Optional[str] = None
    failure: Optional[str] = None
    repro: Optional[ReproRecord] = None

    @model_validator(mode="after")
    def _check_status(self) -> "TrialOutcome":
        if self.status == "recorded" and not self.category:
            raise ValueError("recorded outcomes require a category")
        if self.status == "succeeded" and self.category:
            raise ValueError("succeeded outcomes carry no category")
        return self

    def summary_rows(self) -> List[tuple[str, str]]:
        data: Dict[str, Any] = self.model_dump(exclude={"repro"})
        rows = [(key, str(value)) for key, value in data.items() if value is not None]
        if self.repro is not None:
            rows.append(("repro", f"{self.repro.path} (retained={self.repro.retained})"))
        return rows


class FleetReport(BaseModel):
    interval_builds: int
    total_builds: int
    active_workers: int

from __future__ import annotations

import asyncio
import logging
import secrets
import shutil
import sys
import uuid
from typing import List, Literal, Optional, Sequence, Set

from ..config import Settings
from ..emit.dialect import Dialect
from ..emit.report import reproduction_document
from ..errors import BundleGrindError, MissingSideEffectError
from ..graph.reachability import ReachabilityAnalyzer
from ..schemas import ReproRecord, TrialOutcome
from ..toolchain.bundler import Builder
from ..toolchain.runtime import Runtime
from ..utils import write_text
from .archive import ReproductionArchive
from .classifier import FailureClassifier
from .plan import TrialPlan

logger = logging.getLogger(__name__)

TrialState = Literal[
    "created",
    "planning",
    "emitting",
    "building",
    "executing",
    "verifying",
    "recording",
    "succeeded",
    "done",
]


class Trial:
    def __init__(
        self,
        settings: Settings,
        builder: Builder,
        runtime: Runtime,
        archive: ReproductionArchive,
        classifier: Optional[FailureClassifier] = None,
        dialect: Optional[Dialect] = None,
        trial_id: Optional[str] = None,
        seed: Optional[int] = None,
        plan: Optional[TrialPlan] = None,
    ) -> None:
        self.settings = settings
        self.builder = builder
        self.runtime = runtime
        self.archive = archive
        self.classifier = classifier or FailureClassifier()
        if plan is None:
            trial_id = trial_id or str(uuid.uuid4())
            if seed is None:
                seed = settings.seed_for(trial_id)
            if seed is None:
                seed = secrets.randbits(32)
            plan = TrialPlan(trial_id, seed, settings.shape, dialect)
        self.plan = plan
        self.id = plan.trial_id
        self.path = settings.trials_dir.resolve() / self.id
        self.path_codegen = self.path / "codegen"
        self.path_output = self.path / "output"
        self.observed: List[str] = []
        self.expected: Set[str] = set()
        self.state: TrialState = "created"

    def _enter(self, state: TrialState) -> None:
        logger.debug("trial %s: %s -> %s", self.id, self.state, state)
        self.state = state

    async def emit(self) -> None:
        self._enter("emitting")
        for filename, source in self.plan.render_sources().items():
            await asyncio.to_thread(write_text, self.path_codegen / filename, source)

    async def build(self) -> None:
        self._enter("building")
        paths = [self.path_codegen / name for name in self.plan.entrypoint_sources()]
        await self.builder.build(paths, self.path_output)

    async def execute(self) -> List[str]:
        self._enter("executing")
        artifact = self.path_output / self.plan.emitter.artifact_name(self.plan.primary.id)
        self.observed = await self.runtime.execute(artifact, self.id)
        return self.observed

    def verify(self, observed: Sequence[str]) -> None:
        self._enter("verifying")
        analyzer = ReachabilityAnalyzer(self.plan.graph)
        self.expected = analyzer.expected_effects(self.plan.primary.id)
        fired = set(observed)
        for effect in sorted(self.expected):
            if effect not in fired:
                raise MissingSideEffectError(effect, self.id)

    async def reproduction(self, failure: str) -> str:
        metadata = {
            "Bun version": await self.builder.version(),
            "Platform": sys.platform,
            "Trial": self.id,
            "Seed": str(self.plan.seed),
        }
        return reproduction_document(
            metadata=metadata,
            sources=self.plan.sources or self.plan.render_sources(),
            entrypoints=self.plan.entrypoint_sources(),
            failure=failure,
        )

    async def record(self, failure: str) -> tuple[str, ReproRecord]:
        self._enter("recording")
        # UnknownFailureCategory escapes from here and ends the owning worker.
        category = self.classifier.classify(failure)
        document = await self.reproduction(failure)
        record = await self.archive.retain_if_smaller(category, document, self.id)
        return category, record

    async def run(self) -> TrialOutcome:
        self._enter("planning")
        if not self.plan.graph.modules:
            self.plan.build()
        await self.emit()
        failure: Optional[str] = None
        try:
            await self.build()
            observed = await self.execute()
            self.verify(observed)
        except BundleGrindError as exc:
            failure = str(exc)
        if failure is None:
            self._enter("succeeded")
            outcome = self._outcome("succeeded")
        else:
            category, record = await self.record(failure)
            outcome = self._outcome("recorded", category, failure, record)
        self._enter("done")
        if self.settings.cleanup_trials:
            await self.cleanup()
        return outcome

    def _outcome(
        self,
        status: Literal["succeeded", "recorded"],
        category: Optional[str] = None,
        failure: Optional[str] = None,
        repro: Optional[ReproRecord] = None,
    ) -> TrialOutcome:
        return TrialOutcome(
            trial_id=self.id,
            seed=self.plan.seed,
            status=status,
            modules=len(self.plan.graph),
            entrypoints=[module.id for module in self.plan.entrypoints],
            expected_effects=len(self.expected),
            observed_effects=len(self.observed),
            category=category,
            failure=failure,
            repro=repro,
        )

    async def cleanup(self) -> None:
        if self.path.exists():
            await asyncio.to_thread(shutil.rmtree, self.path)

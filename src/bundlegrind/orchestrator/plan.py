from __future__ import annotations

from typing import Dict, List, Optional

from ..config import GraphShape
from ..emit.dialect import Dialect, EcmaDialect
from ..emit.emitter import SourceEmitter
from ..graph.generator import ModuleGraphGenerator
from ..graph.identifiers import IdentifierAllocator
from ..graph.model import Module, ModuleGraph
from ..graph.random_choice import RandomChoice


class TrialPlan:
    def __init__(
        self,
        trial_id: str,
        seed: int,
        shape: Optional[GraphShape] = None,
        dialect: Optional[Dialect] = None,
    ) -> None:
        self.trial_id = trial_id
        self.seed = seed
        self.shape = shape or GraphShape()
        self.rng = RandomChoice(seed)
        self.generator = ModuleGraphGenerator(self.rng, IdentifierAllocator(), self.shape)
        self.emitter = SourceEmitter(trial_id, dialect or EcmaDialect())
        self.graph = ModuleGraph()
        self.entrypoints: List[Module] = []
        self.sources: Dict[str, str] = {}

    def build(self) -> "TrialPlan":
        self.graph = self.generator.generate()
        self.choose_entrypoints()
        return self

    def choose_entrypoints(self) -> None:
        shuffled = self.rng.shuffled(self.graph.modules)
        upper = min(self.shape.max_entrypoints, len(shuffled))
        self.entrypoints = shuffled[: self.rng.between(1, upper)]

    @property
    def primary(self) -> Module:
        return self.entrypoints[0]

    def entrypoint_sources(self) -> List[str]:
        return [self.emitter.source_name(module.id) for module in self.entrypoints]

    def render_sources(self) -> Dict[str, str]:
        self.sources = self.emitter.render_all(self.graph)
        return self.sources

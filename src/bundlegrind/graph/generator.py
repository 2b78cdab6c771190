from __future__ import annotations

from typing import Callable, Optional

from ..config import GraphShape
from .identifiers import IdentifierAllocator
from .model import ExportRef, Module, ModuleGraph
from .random_choice import RandomChoice
from .resolver import ImportResolver


class ModuleGraphGenerator:
    def __init__(
        self,
        rng: RandomChoice,
        ids: Optional[IdentifierAllocator] = None,
        shape: Optional[GraphShape] = None,
    ) -> None:
        self.rng = rng
        self.ids = ids or IdentifierAllocator()
        self.shape = shape or GraphShape()
        self.resolver = ImportResolver(rng)

    def generate(self) -> ModuleGraph:
        graph = ModuleGraph()
        self.seed_modules(graph)
        self.add_original_exports(graph)
        self.add_reexports(graph)
        self.add_side_effects(graph)
        return graph

    def seed_modules(self, graph: ModuleGraph, count: Optional[int] = None) -> None:
        if count is None:
            count = self.rng.between(self.shape.min_modules, self.shape.max_modules)
        for _ in range(count):
            graph.modules.append(Module(id=self.ids.module_id()))

    def add_original_exports(self, graph: ModuleGraph, per_module: Optional[int] = None) -> None:
        for module in graph:
            count = per_module
            if count is None:
                count = self.rng.between(self.shape.min_originals, self.shape.max_originals)
            for _ in range(count):
                ref = ExportRef(module_id=module.id, name=self.ids.export_name())
                module.originals.append(ref.name)
                module.exports.append(ref)

    def add_reexports(self, graph: ModuleGraph) -> None:
        for module in graph:
            self._import_attempts(
                graph,
                module,
                self.shape.max_reexports,
                lambda name, module=module: module.exports.append(
                    ExportRef(module_id=module.id, name=name)
                ),
            )

    def add_side_effects(self, graph: ModuleGraph) -> None:
        for module in graph:
            self._import_attempts(
                graph, module, self.shape.max_side_effects, module.side_effects.append
            )

    def _import_attempts(
        self,
        graph: ModuleGraph,
        module: Module,
        upper: int,
        record: Callable[[str], None],
    ) -> None:
        for _ in range(self.rng.between(0, upper)):
            # The pool is re-read on every attempt so fresh re-exports are eligible.
            candidate = self.rng.pick(graph.all_exports())
            if candidate.name in module.originals:
                continue
            record(self.resolver.resolve(candidate, module))

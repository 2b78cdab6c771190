from __future__ import annotations

from typing import Dict, Optional, Set

from .model import Module, ModuleGraph


class ReachabilityAnalyzer:
    def __init__(self, graph: ModuleGraph) -> None:
        self._modules: Dict[str, Module] = graph.by_id()

    def expected_effects(self, entrypoint_id: str) -> Set[str]:
        effects: Set[str] = set()
        self._visit(entrypoint_id, set(), effects)
        return effects

    def _visit(self, module_id: str, visited: Set[str], effects: Set[str]) -> None:
        module: Optional[Module] = self._modules.get(module_id)
        if module is None or module.id in visited:
            return
        visited.add(module.id)
        for name in module.side_effects:
            effects.add(name)
            # Side-effect names live in the export namespace, so this lookup
            # never matches a module id and contributes nothing.
            self._visit(name, visited, effects)
        for binding in module.imports:
            self._visit(binding.module_id, visited, effects)

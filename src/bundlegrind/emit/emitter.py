from __future__ import annotations

from typing import Dict, List, Optional

from ..graph.model import Binding, Module, ModuleGraph
from .dialect import Dialect, EcmaDialect


class SourceEmitter:
    def __init__(self, trial_id: str, dialect: Optional[Dialect] = None) -> None:
        self.trial_id = trial_id
        self.dialect: Dialect = dialect or EcmaDialect()

    def source_name(self, module_id: str) -> str:
        return module_id + self.dialect.source_suffix

    def artifact_name(self, module_id: str) -> str:
        return module_id + self.dialect.artifact_suffix

    def render_import(self, binding: Binding) -> str:
        if binding.mode == "static":
            return self.dialect.static_import(binding.name, binding.module_id)
        if binding.mode == "dynamic":
            return self.dialect.dynamic_import(binding.name, binding.module_id)
        raise ValueError(f"unknown binding mode: {binding.mode}")

    def render(self, module: Module) -> str:
        lines: List[str] = []
        for name in module.originals:
            lines.extend(self.dialect.definition(self.trial_id, name))
        for binding in module.imports:
            lines.append(self.render_import(binding))
        for name in module.side_effects:
            lines.append(self.dialect.invocation(name))
        names = module.export_names()
        if names:
            lines.append(self.dialect.export_list(names))
        return "\n".join(lines)

    def render_all(self, graph: ModuleGraph) -> Dict[str, str]:
        return {self.source_name(module.id): self.render(module) for module in graph}

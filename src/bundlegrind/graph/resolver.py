from __future__ import annotations

from .model import BINDING_MODES, Binding, ExportRef, Module
from .random_choice import RandomChoice


class ImportResolver:
    def __init__(self, rng: RandomChoice) -> None:
        self.rng = rng

    def resolve(self, export: ExportRef, target: Module) -> str:
        existing = target.binding_for(export.name)
        if existing is not None:
            return existing.name
        if export.name in target.originals:
            return export.name
        # The mode is chosen once here and never revisited.
        binding = Binding(
            module_id=export.module_id,
            name=export.name,
            mode=self.rng.pick(BINDING_MODES),
        )
        target.imports.append(binding)
        return binding.name

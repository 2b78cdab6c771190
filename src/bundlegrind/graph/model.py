from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Literal, Optional, Tuple

BindingMode = Literal["static", "dynamic"]
BINDING_MODES: Tuple[BindingMode, BindingMode] = ("static", "dynamic")


@dataclass(frozen=True)
class ExportRef:
    module_id: str
    name: str


@dataclass(frozen=True)
class Binding:
    module_id: str
    name: str
    mode: BindingMode


@dataclass
class Module:
    id: str
    originals: List[str] = field(default_factory=list)
    imports: List[Binding] = field(default_factory=list)
    side_effects: List[str] = field(default_factory=list)
    exports: List[ExportRef] = field(default_factory=list)

    def binding_for(self, name: str) -> Optional[Binding]:
        for binding in self.imports:
            if binding.name == name:
                return binding
        return None

    def local_names(self) -> List[str]:
        return self.originals + [binding.name for binding in self.imports]

    def export_names(self) -> List[str]:
        # Re-exporting the same binding twice collapses to one name.
        return list(dict.fromkeys(ref.name for ref in self.exports))


@dataclass
class ModuleGraph:
    modules: List[Module] = field(default_factory=list)

    def __iter__(self) -> Iterator[Module]:
        return iter(self.modules)

    def __len__(self) -> int:
        return len(self.modules)

    def by_id(self) -> Dict[str, Module]:
        return {module.id: module for module in self.modules}

    def all_exports(self) -> List[ExportRef]:
        return [ref for module in self.modules for ref in module.exports]

    def invariant_violations(self) -> List[str]:
        violations: List[str] = []
        seen_originals: Dict[str, str] = {}
        for module in self.modules:
            for name in module.originals:
                owner = seen_originals.setdefault(name, module.id)
                if owner != module.id or module.originals.count(name) > 1:
                    violations.append(f"duplicate_export:{name}")
            import_names = [binding.name for binding in module.imports]
            for name in sorted(set(import_names)):
                if import_names.count(name) > 1:
                    violations.append(f"duplicate_import:{module.id}:{name}")
                if name in module.originals:
                    violations.append(f"self_import:{module.id}:{name}")
            local = set(module.local_names())
            for name in module.side_effects:
                if name not in local:
                    violations.append(f"unbound_side_effect:{module.id}:{name}")
            for ref in module.exports:
                if ref.name not in local:
                    violations.append(f"unbound_export:{module.id}:{ref.name}")
        return violations

from __future__ import annotations

from typing import List, Protocol, Sequence

import orjson


def js_string(value: str) -> str:
    return orjson.dumps(value).decode("utf-8")


class Dialect(Protocol):
    source_suffix: str
    artifact_suffix: str

    def definition(self, trial_id: str, name: str) -> List[str]: ...

    def static_import(self, name: str, module_id: str) -> str: ...

    def dynamic_import(self, name: str, module_id: str) -> str: ...

    def invocation(self, name: str) -> str: ...

    def export_list(self, names: Sequence[str]) -> str: ...


class EcmaDialect:
    source_suffix = ".ts"
    artifact_suffix = ".js"
    trace_root = "globalThis.traces"

    def _specifier(self, module_id: str) -> str:
        return js_string("./" + module_id)

    def definition(self, trial_id: str, name: str) -> List[str]:
        slot = f"{self.trace_root}[{js_string(trial_id)}]"
        return [
            f"function {name}() {{",
            f"\t{slot} ??= []",
            f"\t{slot}.push({js_string(name)})",
            "}",
        ]

    def static_import(self, name: str, module_id: str) -> str:
        return f"import {{ {name} }} from {self._specifier(module_id)};"

    def dynamic_import(self, name: str, module_id: str) -> str:
        return f"const {{ {name} }} = await import({self._specifier(module_id)});"

    def invocation(self, name: str) -> str:
        return f"{name}();"

    def export_list(self, names: Sequence[str]) -> str:
        return f"export {{ {', '.join(names)} }};"

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Protocol, Sequence

import orjson

from ..emit.dialect import js_string
from ..errors import ExecutionError
from ..utils import write_text
from .bundler import ToolVersionMixin
from .process import run_process

HARNESS_NAME = "__bundlegrind_harness__.mjs"
TRACE_MARKER = "__BUNDLEGRIND_TRACE__"


class Runtime(Protocol):
    async def execute(self, artifact: Path, trial_id: str) -> List[str]: ...

    async def version(self) -> str: ...


def harness_source(artifact_name: str, trial_id: str) -> str:
    return "\n".join(
        [
            "globalThis.traces ??= {};",
            f"const trialId = {js_string(trial_id)};",
            "try {",
            f"\tawait import({js_string('./' + artifact_name)});",
            "} finally {",
            "\tconst observed = globalThis.traces[trialId] ?? [];",
            f"\tconsole.log({js_string(TRACE_MARKER)} + JSON.stringify(observed));",
            "}",
            "",
        ]
    )


def parse_trace(stdout: str) -> List[str]:
    for line in reversed(stdout.splitlines()):
        if line.startswith(TRACE_MARKER):
            data = orjson.loads(line[len(TRACE_MARKER) :])
            if not isinstance(data, list):
                raise ExecutionError(f"malformed trace payload: {line}")
            return [str(item) for item in data]
    return []


class BunRuntime(ToolVersionMixin):
    def __init__(
        self, command: Optional[Sequence[str]] = None, timeout_s: Optional[float] = None
    ) -> None:
        self.command = list(command or ["bun"])
        self.timeout_s = timeout_s

    async def execute(self, artifact: Path, trial_id: str) -> List[str]:
        harness = artifact.parent / HARNESS_NAME
        write_text(harness, harness_source(artifact.name, trial_id))
        result = await run_process(
            [*self.command, "run", str(harness)],
            phase="execute",
            cwd=artifact.parent,
            timeout_s=self.timeout_s,
        )
        if not result.ok:
            raise ExecutionError(result.stderr.strip() or result.output())
        return parse_trace(result.stdout)

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import List, Optional, Protocol, Sequence

from ..errors import BuildError
from .process import run_process

logger = logging.getLogger(__name__)


class Builder(Protocol):
    async def build(self, entrypoints: Sequence[Path], outdir: Path) -> None: ...

    async def version(self) -> str: ...


class ToolVersionMixin:
    command: List[str]
    _version: Optional[str] = None
    _version_lock: Optional[asyncio.Lock] = None

    async def version(self) -> str:
        if self._version is not None:
            return self._version
        if self._version_lock is None:
            self._version_lock = asyncio.Lock()
        async with self._version_lock:
            if self._version is None:
                self._version = await self._query_version()
        return self._version

    async def _query_version(self) -> str:
        try:
            result = await run_process(
                [*self.command, "--version"], phase="version", timeout_s=10.0
            )
        except (OSError, RuntimeError) as exc:
            logger.warning("could not query %s version: %s", self.command[0], exc)
            return "unknown"
        return result.stdout.strip() if result.ok else "unknown"


class BunBuilder(ToolVersionMixin):
    def __init__(
        self, command: Optional[Sequence[str]] = None, timeout_s: Optional[float] = None
    ) -> None:
        self.command = list(command or ["bun"])
        self.timeout_s = timeout_s

    def argv(self, entrypoints: Sequence[Path], outdir: Path) -> List[str]:
        return [
            *self.command,
            "build",
            *[str(path) for path in entrypoints],
            "--outdir",
            str(outdir),
            "--splitting",
        ]

    async def build(self, entrypoints: Sequence[Path], outdir: Path) -> None:
        result = await run_process(
            self.argv(entrypoints, outdir), phase="build", timeout_s=self.timeout_s
        )
        if not result.ok:
            raise BuildError(result.output() or f"bundler exited with {result.returncode}")

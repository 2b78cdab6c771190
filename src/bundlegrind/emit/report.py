from __future__ import annotations

from typing import List, Mapping, Sequence


class ReportWriter:
    indent_unit = "    "

    def __init__(self) -> None:
        self._lines: List[str] = []
        self._gap_printed = False
        self._depth = 0

    def line(self, text: str) -> None:
        for part in text.split("\n"):
            self._lines.append(self.indent_unit * self._depth + part)
            self._gap_printed = False

    def gap(self) -> None:
        if not self._gap_printed:
            self._lines.append("")
            self._gap_printed = True

    def indent(self) -> None:
        self._depth += 1

    def dedent(self) -> None:
        self._depth = max(0, self._depth - 1)

    def text(self) -> str:
        return "\n".join(self._lines)


def reproduction_document(
    *,
    metadata: Mapping[str, str],
    sources: Mapping[str, str],
    entrypoints: Sequence[str],
    failure: str,
    language: str = "typescript",
) -> str:
    out = ReportWriter()
    out.line("# Bundler bug reproduction")
    out.line("## Metadata")
    out.gap()
    out.indent()
    for key, value in metadata.items():
        out.line(f"- {key}: {value}")
    out.gap()
    out.dedent()

    out.line("## Files")
    out.gap()
    out.indent()
    for filename, source in sources.items():
        out.gap()
        out.line(f"### {filename}")
        out.line(f"```{language}")
        out.line(source)
        out.line("```")
        out.gap()
    out.dedent()

    out.gap()
    out.line("## Entrypoints")
    out.gap()
    out.indent()
    for filename in entrypoints:
        out.line(f"- {filename}")
    out.dedent()

    out.gap()
    out.line("## Failure")
    out.indent()
    out.gap()
    out.line(failure)
    out.dedent()
    return out.text()

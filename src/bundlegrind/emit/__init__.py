from .dialect import Dialect, EcmaDialect, js_string
from .emitter import SourceEmitter
from .report import ReportWriter, reproduction_document

__all__ = [
    "Dialect",
    "EcmaDialect",
    "js_string",
    "SourceEmitter",
    "ReportWriter",
    "reproduction_document",
]

from .bundler import BunBuilder, Builder
from .process import ProcessResult, run_process
from .runtime import BunRuntime, Runtime, harness_source, parse_trace

__all__ = [
    "BunBuilder",
    "Builder",
    "ProcessResult",
    "run_process",
    "BunRuntime",
    "Runtime",
    "harness_source",
    "parse_trace",
]

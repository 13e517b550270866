from .base import EngineTraceRun, TraceEngine
from .potrace_cli import PotraceCliEngine, build_potrace_args

__all__ = ["EngineTraceRun", "PotraceCliEngine", "TraceEngine", "build_potrace_args"]

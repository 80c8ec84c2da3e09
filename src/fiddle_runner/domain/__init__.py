"""
Fiddle Runner Domain Layer

Payload models, the per-run execution context and the port interfaces
the orchestrator depends on.
"""

from .entities import ExecutionContext
from .value_objects import (
    ChannelState,
    ErrorKind,
    ExecutionError,
    Fiddle,
    FiddleContext,
    FiddleTemplate,
    Result,
    WorkerErrorRecord,
)

__all__ = [
    "ChannelState",
    "ErrorKind",
    "ExecutionContext",
    "ExecutionError",
    "Fiddle",
    "FiddleContext",
    "FiddleTemplate",
    "Result",
    "WorkerErrorRecord",
]

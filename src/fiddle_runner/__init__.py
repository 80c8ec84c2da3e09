"""
Fiddle Runner

Sandboxed execution orchestrator for fiddles: allocates an ephemeral
environment, hands the fiddle to an external worker through a file-backed
shared channel, harvests timing and output, and always tears the
environment down.
"""

__version__ = "0.1.0"

from fiddle_runner.application.commands.run_fiddle import RunFiddleCommand, run_fiddle
from fiddle_runner.domain.entities import ExecutionContext
from fiddle_runner.domain.value_objects import (
    ErrorKind,
    ExecutionError,
    Fiddle,
    FiddleContext,
    FiddleTemplate,
    Result,
)
from fiddle_runner.settings import Settings, get_settings

__all__ = [
    "ErrorKind",
    "ExecutionContext",
    "ExecutionError",
    "Fiddle",
    "FiddleContext",
    "FiddleTemplate",
    "Result",
    "RunFiddleCommand",
    "Settings",
    "get_settings",
    "run_fiddle",
]

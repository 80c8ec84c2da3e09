"""
Application Layer

Use cases orchestrating the domain ports: the run fiddle pipeline and
the result collector it relies on.
"""

from .commands.run_fiddle import RunFiddleCommand, run_fiddle
from .services.result_collector import ResultCollector, elapsed_seconds, format_duration

__all__ = [
    "RunFiddleCommand",
    "ResultCollector",
    "elapsed_seconds",
    "format_duration",
    "run_fiddle",
]

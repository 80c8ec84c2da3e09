"""
Worker-side channel access for programs launched by the runner.
"""

from .session import WorkerSession

__all__ = ["WorkerSession"]

"""
Launcher Port Interface

Defines the contract for running the external worker bound to an environment.
"""

from abc import ABC, abstractmethod


class ILauncherPort(ABC):
    """Port interface for worker process invocation."""

    @abstractmethod
    def run(self, environment_id: str) -> int:
        """
        Run the worker for an environment and block until it exits.

        Args:
            environment_id: Identifier substituted into the worker command

        Returns:
            Worker exit status

        Raises:
            WorkerSpawnError: If the worker could not be started
            WorkerTimeoutError: If a watchdog deadline is configured and expires
        """
        pass

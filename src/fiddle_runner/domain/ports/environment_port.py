"""
Environment Port Interface

Defines the contract for allocating and releasing per-run sandbox directories.
Implemented by the infrastructure layer (EnvironmentAllocator).
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Tuple


class IEnvironmentPort(ABC):
    """Port interface for environment allocation."""

    @abstractmethod
    def allocate(self) -> Tuple[str, Path]:
        """
        Claim a new, uniquely named environment directory.

        Returns:
            (environment_id, directory)

        Raises:
            EnvironmentUnavailableError: If the environment root cannot be used
        """
        pass

    @abstractmethod
    def release(self, directory: Path) -> None:
        """
        Remove an environment directory and everything under it.

        Args:
            directory: Directory returned by allocate()
        """
        pass

    @contextmanager
    def environment(self) -> Iterator[Tuple[str, Path]]:
        """
        Allocate an environment for the duration of a with-block.

        The directory is released exactly once when the block exits,
        whether it returns or raises.
        """
        environment_id, directory = self.allocate()
        try:
            yield environment_id, directory
        finally:
            self.release(directory)

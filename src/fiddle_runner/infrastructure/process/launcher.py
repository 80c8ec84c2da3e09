"""
Worker process launcher.

Runs the configured worker command for one environment and blocks until it
exits. The worker's standard streams are discarded: everything it produces
must flow through the shared channel.
"""

import shlex
import subprocess
from typing import List, Optional

from fiddle_runner.domain.ports import ILauncherPort
from fiddle_runner.errors import WorkerSpawnError, WorkerTimeoutError
from fiddle_runner.infrastructure.logging.logging_config import get_logger
from fiddle_runner.settings import DEFAULT_PLACEHOLDER

logger = get_logger(__name__)


class ProcessLauncher(ILauncherPort):
    """
    Synchronous worker runner.

    Args:
        command: Command template containing the environment id placeholder
        placeholder: Token replaced by the environment id
        timeout: Optional watchdog deadline in seconds; None waits forever
    """

    def __init__(
        self,
        command: str,
        placeholder: str = DEFAULT_PLACEHOLDER,
        timeout: Optional[float] = None,
    ):
        if placeholder not in command:
            raise ValueError(f"Worker command must contain the {placeholder} placeholder")
        if timeout is not None and timeout <= 0:
            raise ValueError("timeout must be positive")
        self.command = command
        self.placeholder = placeholder
        self.timeout = timeout

    def build_command(self, environment_id: str) -> List[str]:
        """
        Substitute the environment id and split into an argument vector.

        Args:
            environment_id: Identifier of the allocated environment

        Returns:
            argv list, shell-style quoting honoured
        """
        return shlex.split(self.command.replace(self.placeholder, environment_id))

    def run(self, environment_id: str) -> int:
        try:
            argv = self.build_command(environment_id)
        except ValueError as e:
            raise WorkerSpawnError(
                "Worker command cannot be parsed",
                detail=str(e),
                environment_id=environment_id,
            ) from e
        if not argv:
            raise WorkerSpawnError("Worker command is empty", environment_id=environment_id)

        logger.debug("Starting worker", environment_id=environment_id, argv=argv)

        try:
            completed = subprocess.run(
                argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                timeout=self.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            # subprocess.run kills and reaps the child before raising
            raise WorkerTimeoutError(
                f"Worker did not finish within {self.timeout}s",
                timeout=self.timeout,
                environment_id=environment_id,
            ) from e
        except OSError as e:
            raise WorkerSpawnError(
                f"Cannot start worker {argv[0]}",
                detail=str(e),
                environment_id=environment_id,
            ) from e

        if completed.returncode != 0:
            logger.warning(
                "Worker exited with non-zero status",
                environment_id=environment_id,
                exit_code=completed.returncode,
            )
        else:
            logger.debug("Worker exited", environment_id=environment_id, exit_code=0)
        return completed.returncode

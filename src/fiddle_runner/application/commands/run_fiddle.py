"""
Run Fiddle Command

Main orchestrator use case: runs one fiddle in a fresh environment and
returns its result.
"""

from pathlib import Path
from typing import Callable, Optional

from fiddle_runner.application.services.result_collector import ResultCollector
from fiddle_runner.domain.entities import ExecutionContext
from fiddle_runner.domain.ports import IChannelPort, IEnvironmentPort, ILauncherPort
from fiddle_runner.domain.value_objects import ErrorKind, ExecutionError, Fiddle, Result
from fiddle_runner.errors import ChannelWriteError, WorkerSpawnError, WorkerTimeoutError
from fiddle_runner.infrastructure.channel.shared_channel import SharedChannel
from fiddle_runner.infrastructure.environment.allocator import EnvironmentAllocator
from fiddle_runner.infrastructure.logging.logging_config import get_logger
from fiddle_runner.infrastructure.process.launcher import ProcessLauncher
from fiddle_runner.settings import Settings, get_settings

logger = get_logger(__name__)

ChannelFactory = Callable[[Path], IChannelPort]


class RunFiddleCommand:
    """
    Command handler for the fiddle execution use case.

    Orchestrates the execution flow:
    1. Allocate a uniquely named environment
    2. Open the shared channel and seed it with the fiddle
    3. Run the worker and block until it exits
    4. Collect duration and output from the channel
    5. Release the environment, whatever happened in 2-4
    """

    def __init__(
        self,
        environment_port: IEnvironmentPort,
        launcher_port: ILauncherPort,
        result_collector: Optional[ResultCollector] = None,
        channel_factory: Optional[ChannelFactory] = None,
    ):
        """
        Initialize the run fiddle command.

        Args:
            environment_port: Port for environment allocation
            launcher_port: Port for worker invocation
            result_collector: Channel reader, a default ResultCollector when omitted
            channel_factory: Opens the channel of an environment directory
        """
        self._environment_port = environment_port
        self._launcher_port = launcher_port
        self._result_collector = result_collector or ResultCollector()
        self._channel_factory = channel_factory or SharedChannel.open

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "RunFiddleCommand":
        """Wire the command with the filesystem and subprocess adapters."""
        settings = settings or get_settings()
        channel_file = settings.channel_file

        def open_channel(directory: Path) -> IChannelPort:
            return SharedChannel.open(directory, channel_file)

        return cls(
            environment_port=EnvironmentAllocator(settings.environment_root),
            launcher_port=ProcessLauncher(
                settings.command,
                placeholder=settings.env_id_placeholder,
                timeout=settings.worker_timeout,
            ),
            channel_factory=open_channel,
        )

    def run(self, fiddle: Fiddle) -> Result:
        """
        Run a fiddle.

        Args:
            fiddle: Payload to hand to the worker

        Returns:
            Result with duration, output and the errors recorded during the run

        Raises:
            EnvironmentUnavailableError: If no environment could be allocated
        """
        with self._environment_port.environment() as (environment_id, directory):
            context = ExecutionContext(
                environment_id=environment_id,
                is_debug=fiddle.debug,
                fiddle=fiddle,
            )
            context.attach_directory(directory)
            logger.info(
                "Running fiddle",
                environment_id=environment_id,
                engine=fiddle.engine,
                version=fiddle.version,
                debug=fiddle.debug,
            )
            try:
                result = self._execute(context)
            finally:
                context.detach_channel()
                context.clear_directory()

        result.errors = list(context.errors)
        if context.is_debug:
            result.context = context

        logger.info(
            "Fiddle run finished",
            environment_id=environment_id,
            duration=result.duration,
            has_output=result.has_output,
            errors=len(result.errors),
        )
        return result

    def _execute(self, context: ExecutionContext) -> Result:
        channel = self._seed_channel(context)
        if channel is None:
            return Result()

        if not self._launch(context):
            return Result()

        return self._result_collector.collect(channel, context)

    def _seed_channel(self, context: ExecutionContext) -> Optional[IChannelPort]:
        try:
            channel = self._channel_factory(context.directory)
            channel.put("fiddle", context.fiddle)
        except (ChannelWriteError, OSError) as e:
            logger.error(
                "Cannot seed shared channel",
                environment_id=context.environment_id,
                error=str(e),
            )
            context.add_error(
                ExecutionError.from_exception(ErrorKind.CHANNEL_WRITE_FAILURE, e)
            )
            return None

        context.attach_channel(channel)
        return channel

    def _launch(self, context: ExecutionContext) -> bool:
        """Run the worker; False when there is nothing to collect afterwards."""
        try:
            self._launcher_port.run(context.environment_id)
        except WorkerSpawnError as e:
            logger.error(
                "Worker could not be started",
                environment_id=context.environment_id,
                error=e.message,
                detail=e.detail,
            )
            context.add_error(
                ExecutionError.from_exception(ErrorKind.WORKER_SPAWN_FAILURE, e)
            )
            return False
        except WorkerTimeoutError as e:
            logger.warning(
                "Worker killed after timeout",
                environment_id=context.environment_id,
                timeout=e.timeout,
            )
            context.add_error(ExecutionError.from_exception(ErrorKind.WORKER_TIMEOUT, e))
        return True


def run_fiddle(fiddle: Fiddle, settings: Optional[Settings] = None) -> Result:
    """Run a fiddle with adapters built from settings."""
    return RunFiddleCommand.from_settings(settings).run(fiddle)


"""
Worker session

Worker-side half of the shared channel protocol. A worker program receives
only the environment id on its command line; it opens the session, reads the
fiddle, stamps its start and end times, and publishes its output:

    with WorkerSession(environment_id, root) as session:
        fiddle = session.load_fiddle()
        session.publish_result(render(fiddle))

Leaving ``result`` unpublished is how a worker reports that it produced
nothing.
"""

import time
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

from fiddle_runner.domain.value_objects import Fiddle, WorkerErrorRecord
from fiddle_runner.errors import (
    ChannelWriteError,
    EnvironmentUnavailableError,
    MalformedChannelPayloadError,
)
from fiddle_runner.infrastructure.channel.shared_channel import SharedChannel
from fiddle_runner.infrastructure.logging.logging_config import get_logger
from fiddle_runner.settings import DEFAULT_CHANNEL_FILE, Settings, get_settings

logger = get_logger(__name__)


class WorkerSession:
    """
    Channel access for a worker bound to one environment.

    Args:
        environment_id: Identifier received on the command line
        root: Environment root shared with the orchestrator
        channel_file: Channel file name inside the environment directory
        clock: Timestamp source for begin_tm/finish_tm
    """

    def __init__(
        self,
        environment_id: str,
        root: Union[str, Path],
        channel_file: str = DEFAULT_CHANNEL_FILE,
        clock: Callable[[], float] = time.time,
    ):
        self.environment_id = environment_id
        self.directory = Path(root) / environment_id
        if not self.directory.is_dir():
            raise EnvironmentUnavailableError(
                f"Environment {environment_id} does not exist.",
                root=str(root),
            )
        self.channel = SharedChannel.open(self.directory, channel_file)
        self._clock = clock

    @classmethod
    def from_settings(
        cls, environment_id: str, settings: Optional[Settings] = None
    ) -> "WorkerSession":
        settings = settings or get_settings()
        return cls(environment_id, settings.environment_root, settings.channel_file)

    def __enter__(self) -> "WorkerSession":
        self.begin()
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> bool:
        if exc_value is None:
            self.finish()
            return False

        # The escaping exception wins over channel failures met while reporting it
        try:
            self.report_error(exc_type.__name__, str(exc_value))
        except (ChannelWriteError, MalformedChannelPayloadError) as e:
            logger.warning(
                "Cannot report worker error",
                environment_id=self.environment_id,
                error_type=exc_type.__name__,
                error=e.message,
            )
        finally:
            try:
                self.finish()
            except (ChannelWriteError, MalformedChannelPayloadError) as e:
                logger.warning(
                    "Cannot stamp finish time",
                    environment_id=self.environment_id,
                    error=e.message,
                )
        return False

    def load_fiddle(self) -> Fiddle:
        """
        Read the fiddle the orchestrator seeded the channel with.

        Raises:
            MalformedChannelPayloadError: If the channel holds no fiddle
        """
        fiddle = self.channel.get("fiddle")
        if fiddle is None:
            raise MalformedChannelPayloadError(
                "Shared channel holds no fiddle",
                environment_id=self.environment_id,
            )
        return fiddle

    def begin(self) -> float:
        begin_tm = self._clock()
        self.channel.put("begin_tm", begin_tm)
        return begin_tm

    def finish(self) -> float:
        finish_tm = self._clock()
        self.channel.put("finish_tm", finish_tm)
        return finish_tm

    def publish_result(self, output: str) -> None:
        self.channel.put("result", output)

    def publish_compiled(self, compiled: Dict[str, str]) -> None:
        self.channel.put("compiled", compiled)

    def publish_context(self, context: Dict[str, Any]) -> None:
        self.channel.put("context", context)

    def report_error(self, error_type: str, message: str) -> None:
        """Append a structured error for the orchestrator to pick up."""
        errors = list(self.channel.get("errors"))
        errors.append(WorkerErrorRecord(type=error_type, message=message))
        self.channel.put("errors", errors)
        logger.debug(
            "Worker error reported",
            environment_id=self.environment_id,
            error_type=error_type,
        )

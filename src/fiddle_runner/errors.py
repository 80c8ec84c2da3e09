"""
Runner exceptions.

Every error carries a short ``message``, an optional ``detail`` (usually the
text of the underlying OS or validation error) and free-form context such as
the environment id, kept in ``extra``.
"""

from typing import Any, Optional


class FiddleRunnerError(Exception):
    """Base error of the fiddle runner."""

    def __init__(self, message: str, detail: Optional[str] = None, **extra: Any):
        super().__init__(message)
        self.message = message
        self.detail = detail
        self.extra = extra


class EnvironmentUnavailableError(FiddleRunnerError):
    """The environment root is missing or cannot be written to."""


class EnvironmentCollisionError(FiddleRunnerError):
    """A generated environment id is already taken under the root."""

    def __init__(self, environment_id: str, **kwargs: Any):
        super().__init__(
            f"Environment {environment_id} already exists",
            environment_id=environment_id,
            **kwargs
        )
        self.environment_id = environment_id


class ChannelWriteError(FiddleRunnerError):
    """The shared channel file could not be written."""


class MalformedChannelPayloadError(FiddleRunnerError):
    """The shared channel file holds data that cannot be interpreted."""


class WorkerSpawnError(FiddleRunnerError):
    """The worker process could not be started."""


class WorkerTimeoutError(FiddleRunnerError):
    """The worker process outlived the configured watchdog deadline."""

    def __init__(self, message: str, timeout: float, **kwargs: Any):
        super().__init__(message, timeout=timeout, **kwargs)
        self.timeout = timeout

"""
Environment allocator.

Claims one uniquely named directory per run under the configured root and
removes it afterwards. Concurrent runs share nothing but the root namespace;
contention is resolved by regenerating the name on collision.
"""

import os
import random
import shutil
import stat
import string
import threading
from pathlib import Path
from typing import Optional, Tuple, Union

from fiddle_runner.domain.ports import IEnvironmentPort
from fiddle_runner.errors import EnvironmentCollisionError, EnvironmentUnavailableError
from fiddle_runner.infrastructure.logging.logging_config import get_logger

logger = get_logger(__name__)

ENV_NAME_LENGTH = 16
ENV_NAME_ALPHABET = string.ascii_letters + string.digits

_local = threading.local()


def thread_random() -> random.Random:
    """
    Random source owned by the calling thread.

    Seeded once from the OS per thread and per process, so forked children
    do not replay their parent's sequence.
    """
    pid = os.getpid()
    rng = getattr(_local, "rng", None)
    if rng is None or getattr(_local, "pid", None) != pid:
        rng = random.Random()
        _local.rng = rng
        _local.pid = pid
    return rng


def generate_environment_id(rng: random.Random, length: int = ENV_NAME_LENGTH) -> str:
    return "".join(rng.choice(ENV_NAME_ALPHABET) for _ in range(length))


class EnvironmentAllocator(IEnvironmentPort):
    """
    Allocates sandbox directories under a root directory.

    Args:
        root: Directory under which environments are created; must exist
        rng: Random source for identifiers; defaults to a per-thread source
    """

    def __init__(self, root: Union[str, Path], rng: Optional[random.Random] = None):
        self.root = Path(root)
        self._rng = rng

    @property
    def rng(self) -> random.Random:
        return self._rng if self._rng is not None else thread_random()

    def allocate(self) -> Tuple[str, Path]:
        self._check_root()

        attempts = 0
        while True:
            attempts += 1
            environment_id = generate_environment_id(self.rng)
            directory = self.root / environment_id
            try:
                self._claim(environment_id, directory)
            except EnvironmentCollisionError:
                logger.debug(
                    "Environment id collision, regenerating",
                    environment_id=environment_id,
                    attempts=attempts,
                )
                continue

            logger.debug(
                "Environment created",
                environment_id=environment_id,
                directory=str(directory),
            )
            return environment_id, directory

    def release(self, directory: Path) -> None:
        directory = Path(directory)
        if not directory.exists():
            logger.debug("Environment already gone", directory=str(directory))
            return

        try:
            shutil.rmtree(directory)
        except OSError as e:
            # The worker may leave read-only entries behind
            logger.warning(
                "Environment removal failed, retrying with write permissions",
                directory=str(directory),
                error=str(e),
            )
            _make_writable(directory)
            shutil.rmtree(directory, ignore_errors=True)

        if directory.exists():
            logger.error("Environment could not be removed", directory=str(directory))
        else:
            logger.debug("Environment removed", directory=str(directory))

    def _check_root(self) -> None:
        if not self.root.is_dir():
            raise EnvironmentUnavailableError(
                f"Environment directory {self.root} does not exist.",
                root=str(self.root),
            )
        if not os.access(self.root, os.W_OK | os.X_OK):
            raise EnvironmentUnavailableError(
                f"Environment directory {self.root} is not writable.",
                root=str(self.root),
            )

    def _claim(self, environment_id: str, directory: Path) -> None:
        if directory.exists():
            raise EnvironmentCollisionError(environment_id)
        try:
            # mkdir without exist_ok is exclusive, so a lost race lands here
            directory.mkdir()
        except FileExistsError as e:
            raise EnvironmentCollisionError(environment_id) from e
        except OSError as e:
            raise EnvironmentUnavailableError(
                f"Cannot create environment directory {directory}",
                detail=str(e),
                root=str(self.root),
            ) from e


def _make_writable(directory: Path) -> None:
    for path, dirnames, filenames in os.walk(directory):
        for name in dirnames + filenames:
            entry = os.path.join(path, name)
            try:
                if not os.path.islink(entry):
                    os.chmod(entry, os.stat(entry).st_mode | stat.S_IWUSR | stat.S_IXUSR)
            except OSError as e:
                logger.debug("Cannot change permissions", path=entry, error=str(e))
    try:
        os.chmod(directory, os.stat(directory).st_mode | stat.S_IWUSR | stat.S_IXUSR)
    except OSError as e:
        logger.debug("Cannot change environment permissions", directory=str(directory), error=str(e))

"""
File-backed shared channel.

A single JSON document inside the environment directory, read and written
by both the orchestrator and the worker. There is no locking: the
orchestrator writes before spawning the worker and reads only after the
worker has exited. Every write replaces the file atomically so a reader
never observes a half-written document.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from pydantic import ValidationError

from fiddle_runner.domain.ports import IChannelPort
from fiddle_runner.domain.value_objects import ChannelState
from fiddle_runner.errors import ChannelWriteError, MalformedChannelPayloadError
from fiddle_runner.infrastructure.logging.logging_config import get_logger
from fiddle_runner.settings import DEFAULT_CHANNEL_FILE

logger = get_logger(__name__)

CHANNEL_FIELDS = frozenset(ChannelState.model_fields)
CHANNEL_FILE_MODE = 0o664


class SharedChannel(IChannelPort):
    """
    Key/value view over one channel file.

    Args:
        path: Channel file path; the file is created on first write
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    @classmethod
    def open(cls, directory: Path, filename: str = DEFAULT_CHANNEL_FILE) -> "SharedChannel":
        """
        Open the channel of an environment directory.

        Raises:
            FileNotFoundError: If the environment directory does not exist
        """
        directory = Path(directory)
        if not directory.is_dir():
            raise FileNotFoundError(f"Environment directory {directory} does not exist")
        return cls(directory / filename)

    def exists(self) -> bool:
        return self.path.is_file()

    def get(self, key: str) -> Optional[Any]:
        self._check_key(key)
        return getattr(self.read(), key)

    def put(self, key: str, value: Any) -> None:
        self.update(**{key: value})

    def update(self, **fields: Any) -> ChannelState:
        """Store several fields with a single write."""
        for key in fields:
            self._check_key(key)

        data = self.read().model_dump()
        data.update(fields)
        try:
            state = ChannelState.model_validate(data)
        except ValidationError as e:
            raise ValueError(f"Invalid channel value for {sorted(fields)}: {e}") from e

        self.write(state)
        logger.debug("Shared channel updated", path=str(self.path), fields=sorted(fields))
        return state

    def read(self) -> ChannelState:
        raw = self._load_raw()
        try:
            return ChannelState.model_validate(raw)
        except ValidationError as e:
            raise self._unexpected_values(e) from e

    def read_partial(self) -> Tuple[ChannelState, Dict[str, str]]:
        raw = self._load_raw()
        try:
            state, rejected = ChannelState.validate_partial(raw)
        except ValidationError as e:
            raise self._unexpected_values(e) from e

        if rejected:
            logger.debug(
                "Shared channel fields rejected",
                path=str(self.path),
                fields=sorted(rejected),
            )
        return state, rejected

    def _unexpected_values(self, error: ValidationError) -> MalformedChannelPayloadError:
        return MalformedChannelPayloadError(
            "Shared channel holds unexpected values",
            detail=str(error),
            path=str(self.path),
        )

    def write(self, state: ChannelState) -> None:
        payload = state.model_dump_json(exclude_none=True)
        try:
            fd, tmp_path = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(payload)
                os.chmod(tmp_path, CHANNEL_FILE_MODE)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            raise ChannelWriteError(
                f"Cannot write shared channel {self.path}",
                detail=str(e),
            ) from e

    def _load_raw(self) -> Dict[str, Any]:
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except (OSError, UnicodeDecodeError) as e:
            raise MalformedChannelPayloadError(
                "Shared channel cannot be read",
                detail=str(e),
                path=str(self.path),
            ) from e

        if not text.strip():
            return {}

        try:
            raw = json.loads(text)
        except json.JSONDecodeError as e:
            raise MalformedChannelPayloadError(
                "Shared channel is not valid JSON",
                detail=str(e),
                path=str(self.path),
            ) from e

        if not isinstance(raw, dict):
            raise MalformedChannelPayloadError(
                "Shared channel must hold a JSON object",
                detail=type(raw).__name__,
                path=str(self.path),
            )
        return raw

    @staticmethod
    def _check_key(key: str) -> None:
        if key not in CHANNEL_FIELDS:
            raise KeyError(f"Unknown channel field: {key}")

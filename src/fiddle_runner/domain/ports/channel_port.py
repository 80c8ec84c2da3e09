"""
Channel Port Interface

Defines the contract for the file-backed key/value handoff shared by the
orchestrator and the worker.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple

from fiddle_runner.domain.value_objects import ChannelState


class IChannelPort(ABC):
    """Port interface for the shared channel."""

    @abstractmethod
    def put(self, key: str, value: Any) -> None:
        """
        Store one named field.

        Raises:
            KeyError: If the field is not part of the channel state
            ChannelWriteError: If the backing file cannot be written
        """
        pass

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """
        Read one named field, None when it was never written.

        Raises:
            MalformedChannelPayloadError: If the backing file cannot be interpreted
        """
        pass

    @abstractmethod
    def read(self) -> ChannelState:
        """
        Read the whole channel state at once.

        Raises:
            MalformedChannelPayloadError: If the backing file cannot be interpreted
        """
        pass

    @abstractmethod
    def read_partial(self) -> Tuple[ChannelState, Dict[str, str]]:
        """
        Read the channel state, dropping auxiliary fields that fail validation.

        Returns:
            (state, rejected) with a problem description per dropped field

        Raises:
            MalformedChannelPayloadError: If the document, fiddle, timestamps
                or result cannot be interpreted
        """
        pass

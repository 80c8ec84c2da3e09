"""
Execution Entities

The per-run aggregate every pipeline step reads from or writes into.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from fiddle_runner.domain.value_objects import ExecutionError, Fiddle

if TYPE_CHECKING:
    from fiddle_runner.domain.ports import IChannelPort


@dataclass
class ExecutionContext:
    """
    Mutable state of one fiddle run.

    Built once the environment is allocated and discarded after the result
    is returned; never persisted.
    """

    environment_id: str
    is_debug: bool = False
    fiddle: Optional[Fiddle] = None
    directory: Optional[Path] = None
    errors: List[ExecutionError] = field(default_factory=list)
    shared_channel: Optional["IChannelPort"] = None
    compiled: Dict[str, str] = field(default_factory=dict)
    context: Dict[str, Any] = field(default_factory=dict)
    result: Optional[str] = None

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "environment_id" and "environment_id" in self.__dict__:
            raise AttributeError("environment_id cannot be reassigned")
        super().__setattr__(name, value)

    def attach_directory(self, directory: Path) -> None:
        """Record the allocated sandbox directory; only once per run."""
        if self.directory is not None:
            raise RuntimeError(
                f"Environment {self.environment_id} already has a directory"
            )
        self.directory = directory

    def clear_directory(self) -> None:
        self.directory = None

    def attach_channel(self, channel: "IChannelPort") -> None:
        self.shared_channel = channel

    def detach_channel(self) -> None:
        self.shared_channel = None

    def add_error(self, error: ExecutionError) -> None:
        self.errors.append(error)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def set_result(self, result: Optional[str]) -> None:
        self.result = result

    def set_compiled(self, compiled: Dict[str, str]) -> None:
        self.compiled = dict(compiled)

    def set_context(self, context: Dict[str, Any]) -> None:
        self.context = dict(context)

    def to_dict(self) -> Dict[str, Any]:
        """Diagnostic snapshot; the channel handle is not serializable and is left out."""
        return {
            "environment_id": self.environment_id,
            "is_debug": self.is_debug,
            "directory": str(self.directory) if self.directory else None,
            "fiddle": self.fiddle.model_dump(mode="json") if self.fiddle else None,
            "errors": [e.to_dict() for e in self.errors],
            "compiled": self.compiled,
            "context": self.context,
            "result": self.result,
        }

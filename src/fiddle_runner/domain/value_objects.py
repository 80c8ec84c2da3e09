"""
Fiddle Value Objects

Payloads that cross the process boundary (the fiddle and the shared channel
state) are pydantic models so both sides validate the same schema.
In-process values (error records, the run result) are dataclasses.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar, Dict, FrozenSet, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

if TYPE_CHECKING:
    from fiddle_runner.domain.entities import ExecutionContext


MAX_TEMPLATES = 15


class FiddleTemplate(BaseModel):
    """
    One named template body of a fiddle.

    Attributes:
        filename: Template name the engine loads it under
        content: Template source
        main: Whether this is the entry point template
    """

    model_config = ConfigDict(frozen=True)

    filename: str = Field(..., min_length=1, max_length=128)
    content: str = ""
    main: bool = False


class FiddleContext(BaseModel):
    """Variables handed to the main template, in one of the supported formats."""

    model_config = ConfigDict(frozen=True)

    format: Literal["yml", "json", "xml", "ini", "array"] = "yml"
    content: str = ""


class Fiddle(BaseModel):
    """
    User-submitted payload executed by the worker.

    Read-only: the runner serializes it into the shared channel and never
    modifies it.

    Attributes:
        engine: Template engine name (e.g. "twig")
        version: Engine version (e.g. "2.x")
        templates: Ordered templates, exactly one of them marked main
        strict_variables: Fail on undefined variables
        debug: Ask the worker for compiled templates and converted context
        context: Variables for the main template
        extension: Optional engine extension selector
        compiled_expanded: Display hint for compiled output, passed through
    """

    model_config = ConfigDict(frozen=True)

    engine: str = Field(..., min_length=1, max_length=32)
    version: str = Field(..., min_length=1, max_length=32)
    templates: List[FiddleTemplate] = Field(..., min_length=1, max_length=MAX_TEMPLATES)
    strict_variables: bool = True
    debug: bool = False
    context: Optional[FiddleContext] = None
    extension: Optional[str] = Field(default=None, max_length=32)
    compiled_expanded: bool = False

    @model_validator(mode="after")
    def _check_templates(self) -> "Fiddle":
        if not self.engine.strip() or not self.version.strip():
            raise ValueError("engine and version cannot be blank")

        mains = [t for t in self.templates if t.main]
        if len(mains) != 1:
            raise ValueError(f"Exactly one main template is required, got {len(mains)}")

        filenames = [t.filename for t in self.templates]
        if len(set(filenames)) != len(filenames):
            raise ValueError("Template filenames must be unique")
        return self

    @property
    def main_template(self) -> FiddleTemplate:
        return next(t for t in self.templates if t.main)


class WorkerErrorRecord(BaseModel):
    """Structured failure reported by the worker through the channel."""

    type: str = Field(..., min_length=1)
    message: str = ""


class ChannelState(BaseModel):
    """
    Typed contents of the shared channel file.

    The orchestrator writes ``fiddle`` before spawning the worker; the worker
    writes the remaining fields. A field the worker never wrote is None,
    which is distinct from an empty string.

    ``compiled``, ``context`` and ``errors`` are auxiliary: a bad value in
    one of them must not cost the run its output and timing, see
    validate_partial().
    """

    model_config = ConfigDict(extra="ignore")

    AUXILIARY_FIELDS: ClassVar[FrozenSet[str]] = frozenset({"compiled", "context", "errors"})

    fiddle: Optional[Fiddle] = None
    begin_tm: Optional[float] = Field(default=None, allow_inf_nan=False)
    finish_tm: Optional[float] = Field(default=None, allow_inf_nan=False)
    result: Optional[str] = None
    compiled: Optional[Dict[str, str]] = None
    context: Optional[Dict[str, Any]] = None
    errors: List[WorkerErrorRecord] = Field(default_factory=list)

    @classmethod
    def validate_partial(cls, raw: Dict[str, Any]) -> Tuple["ChannelState", Dict[str, str]]:
        """
        Validate a channel document, setting invalid auxiliary fields aside.

        Args:
            raw: Decoded channel document

        Returns:
            (state, rejected) where rejected maps each dropped field to
            its first validation problem

        Raises:
            ValidationError: If fiddle, timestamps or result are invalid
        """
        try:
            return cls.model_validate(raw), {}
        except ValidationError as e:
            rejected: Dict[str, str] = {}
            for error in e.errors():
                loc = error["loc"]
                if not loc or loc[0] not in cls.AUXILIARY_FIELDS:
                    raise
                location = ".".join(str(part) for part in loc)
                rejected.setdefault(loc[0], f"{location}: {error['msg']}")

        kept = {key: value for key, value in raw.items() if key not in rejected}
        return cls.model_validate(kept), rejected


class ErrorKind(str, Enum):
    """Kind of failure recorded on an execution context."""

    WORKER_SPAWN_FAILURE = "worker_spawn_failure"
    WORKER_TIMEOUT = "worker_timeout"
    WORKER_PRODUCED_NO_RESULT = "worker_produced_no_result"
    WORKER_REPORTED = "worker_reported"
    MALFORMED_CHANNEL_PAYLOAD = "malformed_channel_payload"
    CHANNEL_WRITE_FAILURE = "channel_write_failure"


@dataclass(frozen=True)
class ExecutionError:
    """
    Structured failure record accumulated during a run.

    Attributes:
        kind: Failure category
        message: Short description
        detail: Optional extra information (exception text, worker error type)
    """

    kind: ErrorKind
    message: str
    detail: Optional[str] = None

    @classmethod
    def from_exception(cls, kind: ErrorKind, error: Exception) -> "ExecutionError":
        message = getattr(error, "message", None) or str(error)
        detail = getattr(error, "detail", None)
        if detail is None and error.__cause__ is not None:
            detail = str(error.__cause__)
        return cls(kind=kind, message=message, detail=detail)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "detail": self.detail,
        }


@dataclass
class Result:
    """
    Outcome of a run handed back to the calling layer.

    Attributes:
        duration: Worker execution time as HH:MM:SS.mmm, None when unknown
        output: Worker output verbatim, None when the worker produced none
        errors: Structured failures recorded during the run
        context: Execution context snapshot, attached for debug runs only
    """

    duration: Optional[str] = None
    output: Optional[str] = None
    errors: List[ExecutionError] = field(default_factory=list)
    context: Optional["ExecutionContext"] = None

    @property
    def has_output(self) -> bool:
        return self.output is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "duration": self.duration,
            "output": self.output,
            "errors": [e.to_dict() for e in self.errors],
            "context": self.context.to_dict() if self.context else None,
        }

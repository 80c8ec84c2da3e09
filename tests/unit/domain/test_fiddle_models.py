"""
Unit tests for the fiddle payload and channel state models.

Tests the invariants enforced at the process boundary:
- Exactly one main template, unique filenames, template count bounds
- Frozen payloads
- Channel state typing (absent vs empty, timestamp validation)
"""

import pytest
from pydantic import ValidationError

from fiddle_runner.domain.value_objects import (
    ChannelState,
    ErrorKind,
    ExecutionError,
    Fiddle,
    FiddleTemplate,
    MAX_TEMPLATES,
    Result,
)
from fiddle_runner.errors import WorkerSpawnError


def _template(name: str, main: bool = False) -> FiddleTemplate:
    return FiddleTemplate(filename=name, content=f"{{# {name} #}}", main=main)


class TestFiddle:
    """Tests for the Fiddle payload."""

    def test_create_valid_fiddle(self):
        fiddle = Fiddle(
            engine="twig",
            version="2.x",
            templates=[_template("main.twig", main=True), _template("layout.twig")],
        )

        assert fiddle.strict_variables is True
        assert fiddle.debug is False
        assert fiddle.main_template.filename == "main.twig"
        assert [t.filename for t in fiddle.templates] == ["main.twig", "layout.twig"]

    def test_main_template_is_required(self):
        with pytest.raises(ValidationError, match="Exactly one main template"):
            Fiddle(engine="twig", version="2.x", templates=[_template("a.twig")])

    def test_only_one_main_template(self):
        with pytest.raises(ValidationError, match="Exactly one main template"):
            Fiddle(
                engine="twig",
                version="2.x",
                templates=[_template("a.twig", main=True), _template("b.twig", main=True)],
            )

    def test_filenames_are_unique(self):
        with pytest.raises(ValidationError, match="unique"):
            Fiddle(
                engine="twig",
                version="2.x",
                templates=[_template("a.twig", main=True), _template("a.twig")],
            )

    def test_template_count_bounds(self):
        with pytest.raises(ValidationError):
            Fiddle(engine="twig", version="2.x", templates=[])

        templates = [_template("main.twig", main=True)]
        templates += [_template(f"t{i}.twig") for i in range(MAX_TEMPLATES)]
        with pytest.raises(ValidationError):
            Fiddle(engine="twig", version="2.x", templates=templates)

    def test_blank_engine_rejected(self):
        with pytest.raises(ValidationError):
            Fiddle(engine="  ", version="2.x", templates=[_template("a.twig", main=True)])

    def test_fiddle_is_immutable(self, sample_fiddle):
        with pytest.raises(ValidationError):
            sample_fiddle.engine = "jinja"


class TestChannelState:
    """Tests for the typed channel contents."""

    def test_absent_fields_are_none(self):
        state = ChannelState.model_validate({})

        assert state.fiddle is None
        assert state.begin_tm is None
        assert state.finish_tm is None
        assert state.result is None
        assert state.errors == []

    def test_empty_result_is_not_absent(self):
        state = ChannelState.model_validate({"result": ""})

        assert state.result == ""
        assert state.result is not None

    def test_integer_timestamps_accepted(self):
        state = ChannelState.model_validate({"begin_tm": 5, "finish_tm": 6.5})

        assert state.begin_tm == 5.0
        assert state.finish_tm == 6.5

    def test_non_finite_timestamp_rejected(self):
        with pytest.raises(ValidationError):
            ChannelState.model_validate({"begin_tm": float("nan")})

    def test_non_text_result_rejected(self):
        with pytest.raises(ValidationError):
            ChannelState.model_validate({"result": ["Hello"]})

    def test_unknown_fields_ignored(self):
        state = ChannelState.model_validate({"result": "ok", "worker_pid": 42})

        assert state.result == "ok"
        assert not hasattr(state, "worker_pid")


class TestExecutionError:
    """Tests for structured error records."""

    def test_from_runner_exception_keeps_detail(self):
        error = WorkerSpawnError("Cannot start worker php", detail="No such file")

        record = ExecutionError.from_exception(ErrorKind.WORKER_SPAWN_FAILURE, error)

        assert record.kind == ErrorKind.WORKER_SPAWN_FAILURE
        assert record.message == "Cannot start worker php"
        assert record.detail == "No such file"

    def test_from_exception_falls_back_to_cause(self):
        try:
            try:
                raise OSError("disk full")
            except OSError as cause:
                raise RuntimeError("write failed") from cause
        except RuntimeError as e:
            record = ExecutionError.from_exception(ErrorKind.CHANNEL_WRITE_FAILURE, e)

        assert record.message == "write failed"
        assert record.detail == "disk full"

    def test_to_dict(self):
        record = ExecutionError(kind=ErrorKind.WORKER_PRODUCED_NO_RESULT, message="nothing")

        assert record.to_dict() == {
            "kind": "worker_produced_no_result",
            "message": "nothing",
            "detail": None,
        }


class TestResult:
    """Tests for the Result value object."""

    def test_defaults(self):
        result = Result()

        assert result.duration is None
        assert result.output is None
        assert result.errors == []
        assert result.has_output is False

    def test_empty_output_counts_as_output(self):
        assert Result(output="").has_output is True

    def test_to_dict_without_context(self):
        result = Result(duration="00:00:00.010", output="Hello World")

        assert result.to_dict() == {
            "duration": "00:00:00.010",
            "output": "Hello World",
            "errors": [],
            "context": None,
        }

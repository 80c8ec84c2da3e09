"""
Unit tests for the ExecutionContext entity.
"""

from pathlib import Path
from unittest.mock import Mock

import pytest

from fiddle_runner.domain.entities import ExecutionContext
from fiddle_runner.domain.value_objects import ErrorKind, ExecutionError


class TestExecutionContext:
    """Tests for the per-run aggregate."""

    def test_create_context(self, sample_fiddle):
        context = ExecutionContext(environment_id="aB3dE5fG7hJ9kL1m", fiddle=sample_fiddle)

        assert context.environment_id == "aB3dE5fG7hJ9kL1m"
        assert context.is_debug is False
        assert context.directory is None
        assert context.errors == []
        assert context.compiled == {}
        assert context.result is None
        assert context.fiddle is sample_fiddle

    def test_environment_id_cannot_be_reassigned(self):
        context = ExecutionContext(environment_id="first")

        with pytest.raises(AttributeError):
            context.environment_id = "second"
        assert context.environment_id == "first"

    def test_directory_is_set_once(self, tmp_path):
        context = ExecutionContext(environment_id="env")
        context.attach_directory(tmp_path)

        with pytest.raises(RuntimeError):
            context.attach_directory(tmp_path / "other")
        assert context.directory == tmp_path

    def test_clear_directory(self, tmp_path):
        context = ExecutionContext(environment_id="env")
        context.attach_directory(tmp_path)
        context.clear_directory()

        assert context.directory is None

    def test_errors_keep_insertion_order(self):
        context = ExecutionContext(environment_id="env")
        first = ExecutionError(kind=ErrorKind.WORKER_TIMEOUT, message="slow")
        second = ExecutionError(kind=ErrorKind.WORKER_PRODUCED_NO_RESULT, message="empty")

        context.add_error(first)
        context.add_error(second)

        assert context.has_errors
        assert context.errors == [first, second]

    def test_channel_attach_detach(self):
        context = ExecutionContext(environment_id="env")
        channel = Mock()

        context.attach_channel(channel)
        assert context.shared_channel is channel

        context.detach_channel()
        assert context.shared_channel is None

    def test_compiled_is_copied(self):
        context = ExecutionContext(environment_id="env", is_debug=True)
        compiled = {"main.twig": "<?php ..."}

        context.set_compiled(compiled)
        compiled["main.twig"] = "changed"

        assert context.compiled == {"main.twig": "<?php ..."}

    def test_to_dict_snapshot(self, sample_fiddle):
        context = ExecutionContext(
            environment_id="env",
            is_debug=True,
            fiddle=sample_fiddle,
            directory=Path("/tmp/env"),
        )
        context.attach_channel(Mock())
        context.set_result("Hello World")

        snapshot = context.to_dict()

        assert snapshot["environment_id"] == "env"
        assert snapshot["directory"] == "/tmp/env"
        assert snapshot["fiddle"]["engine"] == "twig"
        assert snapshot["result"] == "Hello World"
        assert "shared_channel" not in snapshot

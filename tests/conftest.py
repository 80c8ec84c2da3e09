"""Pytest configuration and fixtures."""

import json
import os
import shlex
import sys
from pathlib import Path
from typing import Callable, Optional

import pytest

from fiddle_runner.domain.value_objects import Fiddle, FiddleContext, FiddleTemplate
from fiddle_runner.infrastructure.logging import configure_logging
from fiddle_runner.settings import DEFAULT_CHANNEL_FILE

TESTS_DIR = Path(__file__).resolve().parent
SRC_DIR = TESTS_DIR.parent / "src"
WORKER_SCRIPT = TESTS_DIR / "integration" / "workers" / "scripted_worker.py"


@pytest.fixture(autouse=True, scope="session")
def _logging():
    """Route runner logs through stdlib logging (stderr) for the whole session."""
    configure_logging("DEBUG")


@pytest.fixture
def environment_root(tmp_path) -> Path:
    """Empty environment root directory."""
    root = tmp_path / "environments"
    root.mkdir()
    return root


@pytest.fixture
def make_fiddle() -> Callable[..., Fiddle]:
    """
    Build a twig fiddle whose context optionally carries directives
    for the scripted worker under the "_worker" key.
    """

    def _make(
        content: str = "Hello {{ name }}",
        variables: Optional[dict] = None,
        worker: Optional[dict] = None,
        debug: bool = False,
        **kwargs,
    ) -> Fiddle:
        data = dict(variables if variables is not None else {"name": "World"})
        if worker:
            data["_worker"] = worker
        return Fiddle(
            engine="twig",
            version="2.x",
            templates=[FiddleTemplate(filename="main.twig", content=content, main=True)],
            strict_variables=True,
            debug=debug,
            context=FiddleContext(format="json", content=json.dumps(data)),
            **kwargs,
        )

    return _make


@pytest.fixture
def sample_fiddle(make_fiddle) -> Fiddle:
    return make_fiddle()


@pytest.fixture
def worker_command(monkeypatch) -> Callable[..., str]:
    """
    Command template running the scripted worker against a root.

    The worker subprocess inherits PYTHONPATH so it imports this checkout.
    """
    pythonpath = [str(SRC_DIR)]
    if os.environ.get("PYTHONPATH"):
        pythonpath.append(os.environ["PYTHONPATH"])
    monkeypatch.setenv("PYTHONPATH", os.pathsep.join(pythonpath))

    def _build(root: Path, channel_file: str = DEFAULT_CHANNEL_FILE) -> str:
        return " ".join([
            shlex.quote(sys.executable),
            shlex.quote(str(WORKER_SCRIPT)),
            "--root", shlex.quote(str(root)),
            "--channel-file", shlex.quote(channel_file),
            "<env_id>",
        ])

    return _build

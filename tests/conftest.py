"""Shared fixtures for the supervisor tests."""

from __future__ import annotations

import io
import os
import stat
import sys
from pathlib import Path

import pytest

from macd.local.supervisor import ProcessManager, ProcessSpec

SLEEP_FOREVER = "import time; time.sleep(60)"


@pytest.fixture
def python_spec():
    """Factory for specs that run a Python snippet with the current interpreter."""

    def _make(code: str) -> ProcessSpec:
        return ProcessSpec(path=sys.executable, args=(sys.executable, "-c", code))

    return _make


@pytest.fixture
def shell_script(tmp_path: Path):
    """Factory that writes an executable /bin/sh script and returns its path."""

    def _make(body: str, name: str = "script.sh") -> Path:
        script = tmp_path / name
        script.write_text(f"#!/bin/sh\n{body}\n")
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return script

    return _make


@pytest.fixture
def make_manager():
    """
    Factory for ProcessManagers with a fast tick, a fixed sampler and an
    in-memory output stream. Any child still running at teardown is killed.
    """
    managers = []

    def _make(specs, timelimit: int = 10, **kwargs) -> ProcessManager:
        kwargs.setdefault("tick_interval", 0.05)
        kwargs.setdefault("report_interval", 5)
        kwargs.setdefault("capture_output", False)
        kwargs.setdefault("sampler", lambda pid: (12, 3.5))
        kwargs.setdefault("stream", io.StringIO())
        manager = ProcessManager(specs, timelimit, **kwargs)
        managers.append(manager)
        return manager

    yield _make

    for manager in managers:
        for record in manager.processes.running():
            record.process.kill()
            record.process.wait()


@pytest.fixture
def output_lines():
    def _lines(manager: ProcessManager):
        return manager.stream.getvalue().splitlines()

    return _lines


@pytest.fixture
def missing_path(tmp_path: Path) -> str:
    path = tmp_path / "does-not-exist"
    assert not os.path.exists(path)
    return str(path)

from __future__ import annotations

import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

import pytest


@dataclass
class RecordedRun:
    """Stand-in for `subprocess.run` that records commands instead of running them."""

    calls: list[tuple[list[str], str | None]] = field(default_factory=list)
    fail_when: Callable[[list[str]], bool] | None = None
    on_call: Callable[[list[str]], None] | None = None

    def __call__(self, cmd, *args, cwd=None, check=False, **kwargs):
        cmd = list(cmd)
        self.calls.append((cmd, cwd))
        if self.on_call is not None:
            self.on_call(cmd)
        returncode = 1 if self.fail_when is not None and self.fail_when(cmd) else 0
        if check and returncode:
            raise subprocess.CalledProcessError(returncode, cmd)
        return subprocess.CompletedProcess(cmd, returncode)

    @property
    def commands(self) -> list[list[str]]:
        return [cmd for cmd, _cwd in self.calls]


@pytest.fixture
def fake_run(monkeypatch: pytest.MonkeyPatch) -> RecordedRun:
    recorder = RecordedRun()
    monkeypatch.setattr(subprocess, "run", recorder)
    return recorder


@pytest.fixture
def project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """An empty working directory the test runs in."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("CMPLR_NPX", raising=False)
    return tmp_path


@pytest.fixture(autouse=True)
def _no_logging_setup(monkeypatch: pytest.MonkeyPatch) -> None:
    # Keep structlog on its defaults so `capture_logs` sees every event.
    monkeypatch.setattr("cmplr.cli.configure_logging", lambda *a, **k: None)


def write(path: Path, text: str = "") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path

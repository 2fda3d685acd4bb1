"""Shared fixtures: settings isolation, a recording host callback and a processor workspace."""

from __future__ import annotations

import sys
import threading
from collections.abc import Callable
from pathlib import Path

import pytest

from ocrdspi.foundation.config import clear_settings_cache
from ocrdspi.runtime import BoundArguments, Command, Framework
from ocrdspi.tools import reset_registry

OUTPUT_GROUP = "OCR-D-1-2"


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch: pytest.MonkeyPatch) -> object:
    """Fresh settings per test, with fast process supervision."""
    monkeypatch.setenv("OCRDSPI_PROCESS_POLL_INTERVAL", "0.05")
    monkeypatch.setenv("OCRDSPI_PROCESS_STOP_GRACE", "1")
    clear_settings_cache()
    reset_registry()
    yield
    clear_settings_cache()
    reset_registry()


class Recorder:
    """Host callback keeping everything a job reported."""

    def __init__(self) -> None:
        self.progress: list[float] = []
        self.stdout: list[str] = []
        self.stderr: list[str] = []
        self._lock = threading.Lock()

    def updated_progress(self, progress: float) -> None:
        with self._lock:
            self.progress.append(progress)

    def updated_standard_output(self, message: str) -> None:
        with self._lock:
            self.stdout.append(message)

    def updated_standard_error(self, message: str) -> None:
        with self._lock:
            self.stderr.append(message)


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def framework(tmp_path: Path) -> Framework:
    """Workspace with a METS file; the snapshot sandbox is `snapshots/2`."""
    workspace = tmp_path / "workspace"
    workspace.mkdir()
    (tmp_path / "snapshots").mkdir()
    mets = workspace / "mets.xml"
    mets.write_text(f'<mets><file href="{OUTPUT_GROUP}/page_1.xml"/></mets>\n', encoding="utf-8")
    return Framework(
        processor_workspace=workspace,
        output=tmp_path / "snapshots" / "2",
        mets=mets,
        input_track=(1,),
        output_track=(1, 2),
    )


class ScriptCommand:
    """CommandBuilder running a Python snippet as the processor; records every build."""

    def __init__(self, code: str) -> None:
        self.code = code
        self.bound: list[BoundArguments] = []

    def __call__(self, framework: Framework, bound: BoundArguments) -> Command:
        self.bound.append(bound)
        return Command(sys.executable, ("-c", self.code), framework.processor_workspace)


# Writes the output group with one PAGE file referencing its image, then exits 0
PRODUCE_OUTPUT = f"""
import pathlib
out = pathlib.Path({OUTPUT_GROUP!r})
out.mkdir()
(out / "page_1.xml").write_text('<Page imageFilename="{OUTPUT_GROUP}/page_1.png"/>', encoding="utf-8")
print("processed 1 page")
"""


@pytest.fixture
def script() -> Callable[[str], ScriptCommand]:
    return ScriptCommand


@pytest.fixture
def producing() -> ScriptCommand:
    """Processor that succeeds and leaves its output group in the workspace."""
    return ScriptCommand(PRODUCE_OUTPUT)

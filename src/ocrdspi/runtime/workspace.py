"""Processor workspace context and post-run finalization.

An OCR-D processor runs inside the processor workspace: it reads the METS file
group named after the input track and writes the group named after the output
track into a folder of the same name. Afterwards that folder is moved to the
snapshot sandbox, so every `="<group>/` reference in the produced xml files
and in the METS file is rewritten to the sandbox path relative to the
workspace.
"""

from __future__ import annotations

import logging
import os
import shutil
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel, ConfigDict, computed_field

from ocrdspi.foundation.config import Target
from ocrdspi.io.resources import list_files

logger = logging.getLogger("ocrdspi.workspace")


def group_name(prefix: str, track: Sequence[int]) -> str:
    """METS file group of a snapshot track, e.g. ("OCR-D", (1, 2)) -> "OCR-D-1-2"."""
    return "-".join([prefix, *(str(i) for i in track)]) if track else prefix


@dataclass(slots=True, frozen=True)
class MetsFileGroup:
    input: str
    output: str


class Framework(BaseModel):
    """Per-invocation execution context supplied by the host.

    Attributes:
        processor_workspace: Working directory of the processor (holds the METS file)
        output: Snapshot sandbox the processor output is moved to
        mets: METS file path; None is an inconsistent workspace
        mets_group: METS file group prefix
        input_track: Snapshot track the input group is named after
        output_track: Snapshot track the output group is named after
        uid/gid: Effective system user and group of the host
    """

    model_config = ConfigDict(frozen=True)

    processor_workspace: Path
    output: Path
    mets: Path | None = None
    mets_group: str = "OCR-D"
    input_track: tuple[int, ...] = ()
    output_track: tuple[int, ...] = ()
    uid: int | None = None
    gid: int | None = None
    target: Target | None = None

    @computed_field
    @property
    def output_relative(self) -> str | None:
        """Sandbox path relative to the processor workspace, or None if it cannot be expressed."""
        try:
            return os.path.relpath(self.output, self.processor_workspace)
        except ValueError:
            return None

    @property
    def file_group(self) -> MetsFileGroup:
        return MetsFileGroup(group_name(self.mets_group, self.input_track),
                             group_name(self.mets_group, self.output_track))


def _rewrite(path: Path, group: str, replacement: str) -> None:
    text = path.read_text(encoding="utf-8")
    updated = text.replace(f'="{group}/', f'="{replacement}/')
    if updated != text:
        path.write_text(updated, encoding="utf-8")


# ─────────────────────────────────────────────────────────────────────────────
# Finalization stages
# ─────────────────────────────────────────────────────────────────────────────

def rewrite_xml_files(framework: Framework) -> None:
    """Point file references in the produced xml files to the sandbox. Raises OSError."""
    group = framework.file_group.output
    for file in list_files(framework.processor_workspace / group, extension="xml"):
        _rewrite(file, group, framework.output_relative or group)


def move_output(framework: Framework) -> None:
    """Move the processor output folder to the snapshot sandbox, replacing it. Raises OSError."""
    source = framework.processor_workspace / framework.file_group.output
    if framework.output.is_dir():
        shutil.rmtree(framework.output)
    shutil.move(source, framework.output)
    logger.debug("output moved", extra={"source": str(source), "destination": str(framework.output)})


def rewrite_mets_file(framework: Framework) -> None:
    if framework.mets is None:
        raise FileNotFoundError("missed required mets file path")
    _rewrite(framework.mets, framework.file_group.output, framework.output_relative or framework.file_group.output)


@dataclass(slots=True, frozen=True)
class FinalizationStage:
    """One post-run step: journal message, failure wording and progress weight."""

    message: str
    failure: str
    action: Callable[[Framework], None]
    weight: float = 0.001


FINALIZATION_STAGES: tuple[FinalizationStage, ...] = (
    FinalizationStage("Update paths in xml files.", "updating {processor} xml files", rewrite_xml_files),
    FinalizationStage("Move processor output directory to snapshot sandbox.",
                      "moving {processor} output directory to snapshot sandbox", move_output),
    FinalizationStage("Update paths in mets file.", "updating {processor} mets file", rewrite_mets_file),
)

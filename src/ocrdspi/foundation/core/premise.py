"""Pre-flight checks a host runs before offering or starting a tool.

A premise is advisory: `block` means the tool cannot run in this
environment, `warn` that it can run but probably not usefully. Nothing here
raises; failures are reported as premises.
"""

from __future__ import annotations

import shutil
from enum import StrEnum

from pydantic import BaseModel, ConfigDict

from ocrdspi.foundation.config import CollectionKey, Configuration, Target, resolve
from ocrdspi.io.resources import list_resource_files, list_resource_folders, resolve_opt_resources


class PremiseState(StrEnum):
    OK = "ok"
    WARN = "warn"
    BLOCK = "block"


class Premise(BaseModel):
    """Result of a pre-flight check.

    Example:
        >>> Premise().is_ok
        True
        >>> Premise.block("The required 'docker' command is not available.").state
        <PremiseState.BLOCK: 'block'>
    """

    model_config = ConfigDict(frozen=True)

    state: PremiseState = PremiseState.OK
    message: str | None = None

    @property
    def is_ok(self) -> bool:
        return self.state == PremiseState.OK

    @property
    def is_blocked(self) -> bool:
        return self.state == PremiseState.BLOCK

    @classmethod
    def warn(cls, message: str) -> Premise:
        return cls(state=PremiseState.WARN, message=message)

    @classmethod
    def block(cls, message: str) -> Premise:
        return cls(state=PremiseState.BLOCK, message=message)


def command_premise(configuration: Configuration | None, command: str = "docker") -> Premise:
    """Block unless the host reported command as available."""
    if configuration is not None and configuration.is_command_available(command):
        return Premise()
    return Premise.block(f"The required '{command}' command is not available.")


def executable_premise(configuration: Configuration | None, processor_key: CollectionKey) -> Premise:
    """Block unless the processor executable is on the PATH."""
    program = resolve(configuration, processor_key)
    if program and shutil.which(program) is not None:
        return Premise()
    return Premise.block(f"The required processor '{program}' is not available.")


def resources_premise(configuration: Configuration | None, target: Target | None,
                      processor_key: CollectionKey, extension: str | None = None) -> Premise:
    """Warn when the processor's resource folder offers no models.

    Models are subfolders, or top-level `<model>.<extension>` files when an
    extension is given.
    """
    folder = resolve_opt_resources(configuration, target, processor_key)
    models = list_resource_files(folder, extension) if extension else list_resource_folders(folder)
    if models:
        return Premise()
    return Premise.warn(f"There are no models available in the ocr-d opt directory '{folder}'.")

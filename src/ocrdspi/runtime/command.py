"""External command lines for OCR-D processors.

Natively a processor is called as
`<processor> -I <input group> -O <output group> [-p <json>]` inside the
processor workspace. In container mode the same call runs inside the
configured docker image with the workspace mounted at `/data`:

    docker run --rm --name ocr4all-<uuid> [-u uid[:gid]]
        [-v <opt resources>:<container resources>]
        -v <workspace>:/data -w /data -- <image> <processor> -I ... -O ... [-p ...]

The container is named so that it can be stopped on cancellation with
`docker stop --time=<seconds> <name>`.
"""

from __future__ import annotations

import logging
import shlex
import uuid
from dataclasses import dataclass
from pathlib import Path

from ocrdspi.foundation.config import (
    DOCKER_IMAGE,
    DOCKER_STOP_WAIT_KILL_SECONDS,
    GID,
    JSON,
    UID,
    CollectionKey,
    Configuration,
    resolve,
)
from ocrdspi.io.resources import resolve_container_resources, resolve_opt_resources

from .workspace import Framework

logger = logging.getLogger("ocrdspi.process")

DOCKER = "docker"
CONTAINER_WORKSPACE = "/data"
CONTAINER_PREFIX = "ocr4all-"


@dataclass(slots=True, frozen=True)
class Command:
    """Argument vector of one external call, plus how to stop it.

    `stop` is the argument vector that asks a running call to end gracefully;
    None means the process itself is signalled.
    """

    program: str
    arguments: tuple[str, ...] = ()
    cwd: Path | None = None
    stop: tuple[str, ...] | None = None

    @property
    def argv(self) -> list[str]:
        return [self.program, *self.arguments]

    def __str__(self) -> str:
        return shlex.join(self.argv)


def _processor_arguments(processor: str, framework: Framework, parameters: str | None) -> list[str]:
    group = framework.file_group
    args = [processor, "-I", group.input, "-O", group.output]
    if parameters is not None:
        args += ["-p", parameters]
    return args


def native_command(processor: str, framework: Framework, parameters: str | None = None) -> Command:
    """Processor called directly in the processor workspace."""
    program, *args = _processor_arguments(processor, framework, parameters)
    return Command(program, tuple(args), framework.processor_workspace)


def effective_user(configuration: Configuration | None, framework: Framework) -> str | None:
    """`uid[:gid]` for the container; configuration wins over the host's ids."""
    uid = resolve(configuration, UID)
    if uid is None and framework.uid is not None:
        uid = str(framework.uid)
    if uid is None:
        return None
    gid = resolve(configuration, GID)
    if gid is None and framework.gid is not None:
        gid = str(framework.gid)
    return uid if gid is None else f"{uid}:{gid}"


def stop_command(configuration: Configuration | None, name: str, docker: str = DOCKER) -> tuple[str, ...]:
    return docker, "stop", f"--time={resolve(configuration, DOCKER_STOP_WAIT_KILL_SECONDS)}", name


def stop_grace(configuration: Configuration | None) -> float | None:
    """Configured seconds between stop and kill; None if the value is not a non-negative number."""
    value = resolve(configuration, DOCKER_STOP_WAIT_KILL_SECONDS)
    if value is None:
        return None
    try:
        seconds = float(value)
    except ValueError:
        logger.warning("invalid stop wait", extra={"value": value})
        return None
    return seconds if seconds >= 0 else None


def container_command(
    configuration: Configuration | None,
    framework: Framework,
    processor_key: CollectionKey,
    parameters: str | None = None,
    *,
    uses_resources: bool = False,
    name: str | None = None,
    docker: str = DOCKER,
) -> Command:
    """`docker run` call of the processor named by processor_key.

    The resource folder is mounted only if it exists on the host.
    """
    name = name or f"{CONTAINER_PREFIX}{uuid.uuid4()}"
    args = ["run", "--rm", "--name", name]
    if (user := effective_user(configuration, framework)) is not None:
        args += ["-u", user]
    if uses_resources:
        resources = resolve_opt_resources(configuration, framework.target, processor_key)
        if resources is not None and resources.is_dir():
            args += ["-v", f"{resources}:{resolve_container_resources(configuration, processor_key)}"]
    args += ["-v", f"{framework.processor_workspace}:{CONTAINER_WORKSPACE}", "-w", CONTAINER_WORKSPACE,
             "--", resolve(configuration, DOCKER_IMAGE) or ""]
    args += _processor_arguments(resolve(configuration, processor_key) or "", framework, parameters)
    return Command(docker, tuple(args), framework.processor_workspace, stop_command(configuration, name, docker))


def describe_command(configuration: Configuration | None, processor_key: CollectionKey, *,
                     container: bool = False, docker: str = DOCKER) -> Command:
    """Call that prints the processor's JSON description on standard output."""
    processor = resolve(configuration, processor_key) or ""
    flag = resolve(configuration, JSON) or ""
    if container:
        return Command(docker, ("run", "--rm", resolve(configuration, DOCKER_IMAGE) or "", processor, flag))
    return Command(processor, (flag,))

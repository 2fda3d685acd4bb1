"""Namespaced configuration keys with per-key defaults.

A host hands every tool a `Configuration`: a flat table of
(namespace, key) -> string overrides plus the system commands it found. Tools
never read the table directly; they `resolve()` a `CollectionKey`, which falls
back to the key's default whenever the override is missing or blank.

Example:
    >>> key = CollectionKey("ocr-d", "opt-resources", "resources")
    >>> cfg = Configuration(overrides={("ocr-d", "opt-resources"): " MyRes "})
    >>> resolve(cfg, key)
    'MyRes'
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path

from pydantic import BaseModel, ConfigDict

COLLECTION = "ocr-d"


@dataclass(slots=True, frozen=True)
class CollectionKey:
    """Immutable configuration key record."""
    namespace: str
    key: str
    default: str | None = None


class Target(BaseModel):
    """Execution environment of a tool. `opt` is the root resource paths may never escape."""

    model_config = ConfigDict(frozen=True)

    opt: Path | None = None


@dataclass(slots=True)
class Configuration:
    """Per-target override table consulted by `resolve`."""

    overrides: dict[tuple[str, str], str] = field(default_factory=dict)
    commands: frozenset[str] = frozenset()

    @classmethod
    def from_mapping(cls, namespace: str, values: Mapping[str, str], commands: Iterable[str] = ()) -> Configuration:
        """Build from a single-namespace mapping (e.g. a parsed properties file)."""
        return cls({(namespace, k): v for k, v in values.items()}, frozenset(commands))

    def set(self, key: CollectionKey, value: str) -> None:
        self.overrides[(key.namespace, key.key)] = value

    def get(self, key: CollectionKey) -> str | None:
        """Raw override for key, or None."""
        return self.overrides.get((key.namespace, key.key))

    def value(self, key: CollectionKey) -> str | None:
        return resolve(self, key)

    def is_command_available(self, command: str) -> bool:
        return command in self.commands


def resolve(configuration: Configuration | None, key: CollectionKey) -> str | None:
    """Trimmed override for key, or key.default if the override is missing or blank."""
    if configuration is None:
        return key.default
    value = configuration.get(key)
    if value is None or not (value := value.strip()):
        return key.default
    return value


# ─────────────────────────────────────────────────────────────────────────────
# Framework keys (namespace "ocr-d")
# ─────────────────────────────────────────────────────────────────────────────

UID = CollectionKey(COLLECTION, "uid")
GID = CollectionKey(COLLECTION, "gid")
OPT_FOLDER = CollectionKey(COLLECTION, "opt-folder", "ocr-d")
OPT_RESOURCES = CollectionKey(COLLECTION, "opt-resources", "resources")
DOCKER_IMAGE = CollectionKey(COLLECTION, "docker-image", "ocrd/all:maximum")
DOCKER_RESOURCES = CollectionKey(COLLECTION, "docker-resources", "/usr/local/share/ocrd-resources")
DOCKER_STOP_WAIT_KILL_SECONDS = CollectionKey(COLLECTION, "docker-stop-wait-kill-seconds", "2")
MSA_HOST_ID = CollectionKey(COLLECTION, "msa-host-id", "ocrd")
MSA_HOST_PROTOCOL = CollectionKey(COLLECTION, "msa-host-protocol", "http")
JSON = CollectionKey(COLLECTION, "json", "-J")

FRAMEWORK_KEYS: dict[str, CollectionKey] = {
    k.key: k for k in (
        UID, GID, OPT_FOLDER, OPT_RESOURCES, DOCKER_IMAGE, DOCKER_RESOURCES,
        DOCKER_STOP_WAIT_KILL_SECONDS, MSA_HOST_ID, MSA_HOST_PROTOCOL, JSON,
    )
}


def framework_key(name: str) -> CollectionKey:
    """Look up a framework key by name. Raises KeyError if unknown."""
    return FRAMEWORK_KEYS[name]

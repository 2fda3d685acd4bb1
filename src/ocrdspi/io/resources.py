"""Sandboxed resource paths under the target's opt root.

Every resource path a tool uses is built from configuration values below
`<opt>/<opt-folder>`. Overrides containing `..` can never lead outside that
base: the result is clamped back to it.

Listing comes in two flavours on purpose. `list_directories` is lenient (a
broken or missing folder yields no entries) because it feeds UI choices.
`list_files` is strict and raises, because it feeds file rewriting that must
not silently skip work.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from ocrdspi.foundation.config import (
    DOCKER_RESOURCES,
    OPT_FOLDER,
    OPT_RESOURCES,
    CollectionKey,
    Configuration,
    Target,
    resolve,
)

logger = logging.getLogger("ocrdspi.resources")


def _normalize(path: Path | str) -> Path:
    return Path(os.path.normpath(path))


def _is_within(path: Path, base: Path) -> bool:
    return path == base or base in path.parents


def resolve_opt_folder(configuration: Configuration | None, target: Target | None,
                       *sub_keys: CollectionKey) -> Path | None:
    """Resolve `<opt>/<opt-folder>/<sub_keys...>`, clamped to `<opt>/<opt-folder>`.

    Returns None when there is no configuration, target or opt root.
    """
    if configuration is None or target is None or target.opt is None:
        return None
    base = _normalize(target.opt / (resolve(configuration, OPT_FOLDER) or ""))
    path = base
    for key in sub_keys:
        path = _normalize(path / (resolve(configuration, key) or ""))
    if not _is_within(path, base):
        logger.warning("resource path clamped to opt folder", extra={"requested": str(path), "base": str(base)})
        return base
    return path


def resolve_opt_resources(configuration: Configuration | None, target: Target | None,
                          processor_key: CollectionKey) -> Path | None:
    """Resource folder of a processor: `<opt>/<opt-folder>/<opt-resources>/<processor>`."""
    return resolve_opt_folder(configuration, target, OPT_RESOURCES, processor_key)


def resolve_container_resources(configuration: Configuration | None, processor_key: CollectionKey) -> Path:
    """Resource folder of a processor inside the container image."""
    return _normalize(Path(resolve(configuration, DOCKER_RESOURCES) or "/") / (resolve(configuration, processor_key) or ""))


def list_directories(folder: Path | None) -> list[Path]:
    """First-level subdirectories of folder. Any failure yields []."""
    if folder is None:
        return []
    try:
        return [p for p in folder.iterdir() if p.is_dir()]
    except OSError:
        return []


def list_resource_folders(folder: Path | None) -> list[str]:
    """Names of visible subdirectories, sorted case-insensitively."""
    return sorted((p.name for p in list_directories(folder) if not p.name.startswith(".")), key=str.casefold)


def list_files(folder: Path, max_depth: int | None = None, extension: str | None = None) -> list[Path]:
    """Files below folder up to max_depth levels (1 = top level only), filtered by extension.

    Raises OSError if folder cannot be walked.
    """
    suffix = None
    if extension and extension.strip():
        suffix = "." + extension.strip().lower().lstrip(".")

    def _raise(exc: OSError) -> None:
        raise exc

    if not folder.is_dir():
        raise NotADirectoryError(f"not a directory: {folder}")

    files: list[Path] = []
    root_depth = len(folder.parts)
    for dirpath, dirnames, filenames in os.walk(folder, onerror=_raise):
        depth = len(Path(dirpath).parts) - root_depth + 1
        if max_depth is not None and depth >= max_depth:
            dirnames.clear()
        if max_depth is not None and depth > max_depth:
            continue
        files.extend(Path(dirpath, name) for name in filenames
                     if suffix is None or name.lower().endswith(suffix))
    return files


def list_top_level_files(folder: Path, extension: str | None = None) -> list[Path]:
    return list_files(folder, 1, extension)


def list_resource_files(folder: Path | None, extension: str) -> list[str]:
    """Model names of visible top-level `<name>.<extension>` files, sorted case-insensitively.

    Lenient like `list_directories`: an unreadable folder yields [].
    """
    if folder is None:
        return []
    try:
        files = list_top_level_files(folder, extension)
    except OSError as e:
        logger.debug("resource files not listed", extra={"folder": str(folder), "error": str(e)})
        return []
    suffix = len(extension.strip().lstrip(".")) + 1
    return sorted((f.name[:-suffix] for f in files if not f.name.startswith(".")), key=str.casefold)

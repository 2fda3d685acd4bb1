"""IO: sandboxed resource paths, directory scans and progress reporting."""

from .progress import ProcessorProgress, ProgressKind, ProgressListener, ProgressTracker
from .resources import (
    list_directories,
    list_files,
    list_resource_files,
    list_resource_folders,
    list_top_level_files,
    resolve_container_resources,
    resolve_opt_folder,
    resolve_opt_resources,
)

__all__ = [
    # Resources
    "resolve_opt_folder", "resolve_opt_resources", "resolve_container_resources",
    "list_directories", "list_resource_folders", "list_resource_files", "list_files", "list_top_level_files",
    # Progress
    "ProcessorProgress", "ProgressKind", "ProgressListener", "ProgressTracker",
]

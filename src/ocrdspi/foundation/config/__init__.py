"""Configuration: namespaced override resolution and pydantic-settings environment config."""

from .collection import (
    COLLECTION,
    DOCKER_IMAGE,
    DOCKER_RESOURCES,
    DOCKER_STOP_WAIT_KILL_SECONDS,
    FRAMEWORK_KEYS,
    GID,
    JSON,
    MSA_HOST_ID,
    MSA_HOST_PROTOCOL,
    OPT_FOLDER,
    OPT_RESOURCES,
    UID,
    CollectionKey,
    Configuration,
    Target,
    framework_key,
    resolve,
)
from .settings import (
    EventSettings,
    ExitPolicy,
    LoggingSettings,
    OcrdSettings,
    ProcessSettings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    # Collection keys
    "COLLECTION", "CollectionKey", "Configuration", "Target", "resolve", "framework_key", "FRAMEWORK_KEYS",
    "UID", "GID", "OPT_FOLDER", "OPT_RESOURCES", "DOCKER_IMAGE", "DOCKER_RESOURCES",
    "DOCKER_STOP_WAIT_KILL_SECONDS", "MSA_HOST_ID", "MSA_HOST_PROTOCOL", "JSON",
    # Settings
    "OcrdSettings", "LoggingSettings", "ProcessSettings", "EventSettings", "ExitPolicy",
    "get_settings", "clear_settings_cache",
]

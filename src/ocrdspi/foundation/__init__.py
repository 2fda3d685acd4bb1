"""Foundation: configuration, errors and pre-flight checks."""

from .config import CollectionKey, Configuration, OcrdSettings, Target, get_settings, resolve
from .errors import BindingError, DescriptionError, ErrorCode, ProcessorError, ProviderException

__all__ = [
    "CollectionKey", "Configuration", "Target", "resolve", "OcrdSettings", "get_settings",
    "ErrorCode", "ProcessorError", "ProviderException", "BindingError", "DescriptionError",
]

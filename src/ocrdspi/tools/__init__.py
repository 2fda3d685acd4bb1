"""Tools: descriptors, the built-in OCR-D catalog and the registry."""

from .catalog import (
    BINARIZE_PARAMETERS,
    CALAMARI_PARAMETERS,
    RECOGNIZE_PARAMETERS,
    SEGMENT_LINE_PARAMETERS,
    BinarizeArgument,
    CalamariArgument,
    RecognizeArgument,
    SegmentLineArgument,
    builtin_tools,
)
from .descriptor import Capabilities, ToolDescriptor, ToolMetadata
from .registry import ToolRegistry, default_registry, get_registry, reset_registry, set_registry

__all__ = [
    # Descriptors
    "ToolDescriptor", "ToolMetadata", "Capabilities",
    # Catalog
    "builtin_tools", "SegmentLineArgument", "RecognizeArgument", "CalamariArgument", "BinarizeArgument",
    "SEGMENT_LINE_PARAMETERS", "RECOGNIZE_PARAMETERS", "CALAMARI_PARAMETERS", "BINARIZE_PARAMETERS",
    # Registry
    "ToolRegistry", "default_registry", "get_registry", "set_registry", "reset_registry",
]

"""ocrdspi - Configurable OCR-D processors as pipeline steps.

Each tool describes one external OCR-D processor declaratively: the fields a
host renders, how the caller's arguments are validated and bound, and how the
processor is launched (natively or in a docker container) and supervised.

Quick Start:
    >>> from ocrdspi import Configuration, Framework, ModelArgument, Target, get_registry
    >>>
    >>> configuration = Configuration(commands=frozenset({"docker"}))
    >>> target = Target(opt="/opt")
    >>> tool = get_registry()["tesserocr-segment-line"]
    >>> tool.premise(configuration, target).is_ok
    True
    >>> tool.model(configuration, target).arguments()
    ['dpi', 'overwrite-lines', 'padding', 'shrink-polygons']
    >>>
    >>> job = tool.new_job(configuration)
    >>> job.execute(callback, Framework(processor_workspace=workspace, output=snapshot, mets=mets),
    ...             ModelArgument.of(dpi=300, padding=2))
    <ProcessState.COMPLETED: 'completed'>

JSON-described tools:
    >>> registry = get_registry()
    >>> registry.load_descriptions(configuration)  # runs `<processor> -J` per tool
    {}
    >>> registry["sbb-binarize-json"].model(configuration, target).arguments()

Cancellation:
    >>> token = CancellationToken()
    >>> threading.Timer(5, token.cancel).start()
    >>> job.execute(callback, framework, arguments, cancel=token)
    <ProcessState.CANCELED: 'canceled'>

Configuration:
    Framework settings come from OCRDSPI_* environment variables, see
    `ocrdspi.foundation.config.settings`. Per-tool overrides come from the
    host's `Configuration` table, resolved via `CollectionKey` defaults.
"""

from .foundation.config import (
    CollectionKey,
    Configuration,
    ExitPolicy,
    OcrdSettings,
    Target,
    clear_settings_cache,
    get_settings,
    resolve,
)
from .foundation.core import Premise, PremiseState
from .foundation.errors import BindingError, DescriptionError, ErrorCode, ProcessorError, ProviderException
from .model import Model, ModelArgument, ModelFactory, ParameterSpec, ProcessorArgument, ToolDescription
from .runtime import (
    AsyncProcessorJob,
    CancellationToken,
    EventController,
    Framework,
    JobEvent,
    ProcessorCallback,
    ProcessorJob,
    ProcessState,
)
from .runtime.observability import configure_logging
from .tools import Capabilities, ToolDescriptor, ToolMetadata, ToolRegistry, default_registry, get_registry

__version__ = "0.1.0"

__all__ = [
    # Configuration
    "CollectionKey", "Configuration", "Target", "resolve", "ExitPolicy",
    "OcrdSettings", "get_settings", "clear_settings_cache",
    # Errors
    "ErrorCode", "ProcessorError", "ProviderException", "BindingError", "DescriptionError",
    # Premises
    "Premise", "PremiseState",
    # Model
    "Model", "ModelFactory", "ModelArgument", "ParameterSpec", "ProcessorArgument", "ToolDescription",
    # Execution
    "Framework", "ProcessorJob", "AsyncProcessorJob", "ProcessState", "ProcessorCallback", "CancellationToken",
    "EventController", "JobEvent",
    # Tools
    "ToolDescriptor", "ToolMetadata", "Capabilities", "ToolRegistry", "default_registry", "get_registry",
    # Observability
    "configure_logging",
]

"""Tool descriptors: one configurable description of an OCR-D processor.

A descriptor ties together everything a host needs to offer and run one
processor: metadata for listing, the collection keys naming the executable,
the declared parameters with their ProcessorArgument type, and capability
flags selecting native or container execution, JSON-described parameters,
resource models and asynchronous notifications.

Example:
    >>> descriptor = ToolDescriptor(
    ...     metadata=ToolMetadata(name="tesserocr-segment-line", label="Tesserocr segment line",
    ...                           description="ocr-d tesserocr segment line processor"),
    ...     processor_key=CollectionKey("ocr-d", "tesserocr-segment-line-id", "ocrd-tesserocr-segment-line"),
    ...     parameters=SEGMENT_LINE_PARAMETERS,
    ...     argument_type=SegmentLineArgument,
    ... )
    >>> descriptor.model(configuration, target).arguments()
    ['dpi', 'overwrite-lines', 'padding', 'shrink-polygons']
    >>> job = descriptor.new_job(configuration)
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Callable, Iterable, Sequence

from pydantic import BaseModel, ConfigDict, Field

from ocrdspi.foundation.config import CollectionKey, Configuration, ExitPolicy, Target, resolve
from ocrdspi.foundation.core import Premise, command_premise, executable_premise, resources_premise
from ocrdspi.foundation.errors import DescriptionError
from ocrdspi.model import (
    ArgumentKind,
    BaseField,
    Model,
    ModelFactory,
    ModelFieldCallback,
    ParameterSpec,
    ProcessorArgument,
    ToolDescription,
    default_of,
    opt_resources_file_callback,
    opt_resources_folder_callback,
)
from ocrdspi.runtime.binding import ArgumentBinder, BoundArguments
from ocrdspi.runtime.command import DOCKER, Command, container_command, describe_command, native_command, stop_grace
from ocrdspi.runtime.events import EventController
from ocrdspi.runtime.process import AsyncProcessorJob, ProcessorJob, run
from ocrdspi.runtime.workspace import Framework

logger = logging.getLogger("ocrdspi.tools")


class ToolMetadata(BaseModel):
    """Metadata describing a tool for listing and selection.

    Attributes:
        name: Unique provider name (kebab-case, e.g. "tesserocr-segment-line")
        label: Display name
        description: What the processor does
        category: Pipeline stage ("preprocessing", "olr" or "ocr")
        categories: OCR-D categories
        steps: OCR-D steps
        index: Ordering hint for hosts (lower first)
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., pattern=r"^[a-z][a-z0-9-]*$")
    label: str = Field(..., min_length=1)
    description: str = Field(..., min_length=10)
    category: str = Field(default="general")
    categories: tuple[str, ...] = ()
    steps: tuple[str, ...] = ()
    icon: str | None = None
    index: int = 0


class Capabilities(BaseModel):
    """How a tool is run.

    Attributes:
        container_mode: Run inside the configured docker image
        json_mode: Parameters come from the processor's JSON description
        uses_resources: The processor reads models from its resource folder
        async_mode: Progress and output arrive as JobEvents
    """

    model_config = ConfigDict(frozen=True)

    container_mode: bool = True
    json_mode: bool = False
    uses_resources: bool = False
    async_mode: bool = False


class ToolDescriptor:
    """Declarative description of one OCR-D processor."""

    __slots__ = ("metadata", "processor_key", "description_key", "parameters", "argument_type",
                 "capabilities", "exit_policy", "default_model", "model_argument", "tool_description")

    def __init__(
        self,
        metadata: ToolMetadata,
        processor_key: CollectionKey,
        parameters: Iterable[ParameterSpec] = (),
        argument_type: type[ProcessorArgument] = ProcessorArgument,
        *,
        description_key: CollectionKey | None = None,
        capabilities: Capabilities | None = None,
        exit_policy: ExitPolicy | None = None,
        default_model: str | None = None,
        model_argument: str | None = None,
        tool_description: ToolDescription | None = None,
    ) -> None:
        self.metadata = metadata
        self.processor_key = processor_key
        self.description_key = description_key or CollectionKey(
            processor_key.namespace, f"{metadata.name}-description", metadata.description)
        self.parameters: tuple[ParameterSpec, ...] = tuple(parameters)
        self.argument_type = argument_type
        self.capabilities = capabilities or Capabilities()
        self.exit_policy = exit_policy
        self.default_model = default_model
        self.model_argument = model_argument
        self.tool_description = tool_description

    def __repr__(self) -> str:
        return f"ToolDescriptor({self.metadata.name!r})"

    @property
    def name(self) -> str:
        return self.metadata.name

    # ─────────────────────────────────────────────────────────────────
    # JSON-described tools
    # ─────────────────────────────────────────────────────────────────

    @property
    def is_described(self) -> bool:
        """False for a JSON-mode tool whose description has not been loaded yet."""
        return not self.capabilities.json_mode or self.tool_description is not None

    def with_description(self, description: ToolDescription, model_argument: str | None = None) -> ToolDescriptor:
        """Copy of this descriptor with parameters taken from a parsed JSON description.

        `model_argument` (default: the descriptor's own) names the string
        parameter offered as a select over the installed resource models.
        """
        model_argument = model_argument or self.model_argument
        parameters = tuple(
            dataclasses.replace(p, kind=ArgumentKind.SELECT, resource_model=True)
            if model_argument is not None and p.argument == model_argument else p
            for p in description.parameters
        )
        metadata = self.metadata
        if description.categories or description.steps:
            metadata = metadata.model_copy(update={
                "categories": description.categories or metadata.categories,
                "steps": description.steps or metadata.steps,
            })
        return ToolDescriptor(
            metadata, self.processor_key, parameters, description.argument_type,
            description_key=self.description_key,
            capabilities=self.capabilities.model_copy(update={
                "json_mode": True, "uses_resources": self.capabilities.uses_resources or model_argument is not None}),
            exit_policy=self.exit_policy,
            default_model=self.default_model,
            model_argument=model_argument,
            tool_description=description,
        )

    def describe(self, configuration: Configuration | None, *, docker: str = DOCKER) -> ToolDescription:
        """Ask the processor for its JSON description. Raises DescriptionError."""
        command = describe_command(configuration, self.processor_key,
                                   container=self.capabilities.container_mode, docker=docker)
        processor = self.processor_identifier(configuration)
        try:
            code, stdout, stderr = run(command.argv)
        except OSError as e:
            raise DescriptionError.invalid(processor, f"could not run '{command}' - {e}") from e
        if code != 0:
            raise DescriptionError.invalid(processor, f"{stderr.strip()} (process exit code {code})")
        logger.debug("processor described", extra={"processor": processor, "command": str(command)})
        return ToolDescription.parse(processor, stdout)

    def load(self, configuration: Configuration | None, *, docker: str = DOCKER) -> ToolDescriptor:
        """Descriptor with parameters from the processor's own description. Raises DescriptionError."""
        return self.with_description(self.describe(configuration, docker=docker))

    # ─────────────────────────────────────────────────────────────────
    # Host-facing views
    # ─────────────────────────────────────────────────────────────────

    def processor_identifier(self, configuration: Configuration | None) -> str:
        return resolve(configuration, self.processor_key) or self.processor_key.key

    def processor_description(self, configuration: Configuration | None) -> str:
        return resolve(configuration, self.description_key) or self.metadata.description

    def fields(self) -> list[BaseField]:
        """Declared fields with defaults read from the ProcessorArgument type."""
        return [p.field(default_of(self.argument_type, p.target)) for p in self.parameters]

    def _callbacks(self, configuration: Configuration | None, target: Target | None) -> dict[str, ModelFieldCallback]:
        callbacks: dict[str, ModelFieldCallback] = {}
        for p in self.parameters:
            if not p.resource_model:
                continue
            options = {"multiple": p.multiple, "separator": p.separator}
            if p.resource_extension:
                callbacks[p.argument] = opt_resources_file_callback(
                    configuration, target, self.processor_key, p.resource_extension, self.default_model, **options)
            else:
                callbacks[p.argument] = opt_resources_folder_callback(
                    configuration, target, self.processor_key, self.default_model, **options)
        return callbacks

    def model(
        self,
        configuration: Configuration | None,
        target: Target | None,
        pre: Sequence[BaseField] | None = None,
        post: Sequence[BaseField] | None = None,
    ) -> Model:
        """Fresh Model for this configuration and target (scans resource folders)."""
        return ModelFactory(self.fields()).get_model(pre, post, self._callbacks(configuration, target))

    def premise(self, configuration: Configuration | None, target: Target | None) -> Premise:
        """Blocked without docker (or the native executable); warns when no models are installed."""
        if self.capabilities.container_mode:
            premise = command_premise(configuration, DOCKER)
        else:
            premise = executable_premise(configuration, self.processor_key)
        if premise.is_blocked:
            return premise
        model = next((p for p in self.parameters if p.resource_model), None)
        if model is not None:
            return resources_premise(configuration, target, self.processor_key, model.resource_extension)
        return premise

    # ─────────────────────────────────────────────────────────────────
    # Execution
    # ─────────────────────────────────────────────────────────────────

    def binder(self, configuration: Configuration | None) -> ArgumentBinder:
        return ArgumentBinder(self.processor_identifier(configuration), self.parameters, self.argument_type)

    def command_builder(self, configuration: Configuration | None, *,
                        docker: str = DOCKER) -> Callable[[Framework, BoundArguments], Command]:
        json_mode = self.capabilities.json_mode

        def build(framework: Framework, bound: BoundArguments) -> Command:
            parameters = bound.to_json(exclude_unset=json_mode)
            if self.capabilities.container_mode:
                return container_command(configuration, framework, self.processor_key, parameters,
                                         uses_resources=self.capabilities.uses_resources, docker=docker)
            return native_command(self.processor_identifier(configuration), framework, parameters)

        return build

    def new_job(
        self,
        configuration: Configuration | None,
        *,
        controller: EventController | None = None,
        on_complete: Callable[[ProcessorJob], None] | None = None,
        docker: str = DOCKER,
    ) -> ProcessorJob:
        """Fresh job for one invocation. Async tools need an EventController."""
        options = {
            "exit_policy": self.exit_policy,
            "json_mode": self.capabilities.json_mode,
            "stop_grace": stop_grace(configuration),
            "on_complete": on_complete,
        }
        processor = self.processor_identifier(configuration)
        builder = self.command_builder(configuration, docker=docker)
        if self.capabilities.async_mode:
            if controller is None:
                raise ValueError(f"Tool '{self.name}' runs asynchronously and needs an EventController.")
            return AsyncProcessorJob(processor, self.binder(configuration), builder, controller=controller, **options)
        return ProcessorJob(processor, self.binder(configuration), builder, **options)

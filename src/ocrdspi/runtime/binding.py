"""Argument binding: ModelArgument -> tool-specific ProcessorArgument.

The binder walks the declared parameters in order. Each parameter present in
the ModelArgument is read as its declared static type, checked against its
domain rule and assigned to a fresh ProcessorArgument. Type mismatches and
rule violations abort binding with a `BindingError`; nothing is coerced.

Names the tool does not declare are not rejected. They are returned as
pass-through parameters and forwarded to the external processor unchanged.

Example:
    >>> binder = ArgumentBinder("ocrd-tesserocr-segment-line", specs, SegmentArgument)
    >>> bound = binder.bind(ModelArgument.of(dpi=300, level="line"))
    >>> bound.argument.dpi, bound.passthrough
    (300, {'level': 'line'})
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

import orjson
from pydantic import ValidationError

from ocrdspi.foundation.errors import BindingError
from ocrdspi.model.arguments import (
    ARGUMENT_TYPES,
    ArgumentKind,
    ArgumentTypeError,
    IntegerArgument,
    ModelArgument,
    SelectArgument,
)
from ocrdspi.model.parameters import ParameterSpec, ProcessorArgument

logger = logging.getLogger("ocrdspi.binding")


@dataclass(slots=True, frozen=True)
class BoundArguments:
    """Result of a successful bind."""

    argument: ProcessorArgument
    passthrough: dict[str, object] = field(default_factory=dict)

    def parameters(self, *, exclude_unset: bool = False) -> dict[str, object]:
        """Declared parameters followed by pass-through ones."""
        return {**self.argument.parameters(exclude_unset=exclude_unset), **self.passthrough}

    def to_json(self, *, exclude_unset: bool = False) -> str:
        return orjson.dumps(self.parameters(exclude_unset=exclude_unset)).decode()


class ArgumentBinder:
    """Binds ModelArguments against a fixed list of declared parameters."""

    __slots__ = ("_processor", "_parameters", "_argument_type")

    def __init__(self, processor: str, parameters: Iterable[ParameterSpec],
                 argument_type: type[ProcessorArgument]) -> None:
        self._processor = processor
        self._parameters: tuple[ParameterSpec, ...] = tuple(parameters)
        self._argument_type = argument_type

    @property
    def parameters(self) -> tuple[ParameterSpec, ...]:
        return self._parameters

    @property
    def argument_type(self) -> type[ProcessorArgument]:
        return self._argument_type

    def bind(self, model_argument: ModelArgument | None) -> BoundArguments:
        """Bind model_argument. Raises BindingError on the first type or domain failure."""
        argument = self._argument_type()
        if model_argument is None:
            return BoundArguments(argument)

        available = model_argument.names()
        for spec in self._parameters:
            if spec.argument not in available:
                continue
            available.discard(spec.argument)

            value, present = self._read(spec, model_argument)
            if not present:
                continue
            if (message := spec.violation(value)) is not None:
                raise BindingError.domain(self._processor, message)
            try:
                setattr(argument, spec.target, value)
            except ValidationError as e:
                detail = "; ".join(err["msg"] for err in e.errors())
                raise BindingError.domain(
                    self._processor, f"The value of argument '{spec.argument}' is not valid - {detail}.") from e

        passthrough = {name: model_argument.find(name).raw for name in sorted(available)}  # type: ignore[union-attr]
        if passthrough:
            logger.debug("pass-through parameters", extra={"processor": self._processor, "names": sorted(passthrough)})
        return BoundArguments(argument, passthrough)

    def _read(self, spec: ParameterSpec, model_argument: ModelArgument) -> tuple[object, bool]:
        kind = spec.kind
        # decimals accept integral input
        if kind == ArgumentKind.DECIMAL and isinstance(model_argument.find(spec.argument), IntegerArgument):
            kind = ArgumentKind.INTEGER
        try:
            arg = model_argument.get(ARGUMENT_TYPES[kind], spec.argument)
        except ArgumentTypeError as e:
            raise BindingError.wrong_type(self._processor, spec.argument, spec.kind.value) from e

        if not arg.present:
            return None, False
        if isinstance(arg, SelectArgument):
            if spec.multiple:
                return (spec.separator.join(arg.values) if spec.separator is not None else list(arg.values)), True
            if len(arg.values) > 1:
                raise BindingError.domain(
                    self._processor, f"The select argument '{spec.argument}' allows only one value.")
            return arg.values[0], True
        return arg.raw, True

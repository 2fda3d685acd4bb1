"""Parameter declarations shared by the Model and the argument binder.

A tool lists its parameters once, as `ParameterSpec` records. The same record
yields the UI field (with the default read from the tool's ProcessorArgument)
and the binding rule applied when a ModelArgument comes back.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

import orjson
from pydantic import BaseModel, ConfigDict

from .arguments import ArgumentKind
from .fields import (
    BaseField,
    BooleanField,
    DecimalField,
    IntegerField,
    Localized,
    SelectField,
    SelectOption,
    StringField,
)

# Rule: value -> True (pass) | False (fail with declared message) | str (fail with custom message)
Rule = Callable[[object], bool | str]


class ProcessorArgument(BaseModel):
    """Base for tool-specific, strongly-typed parameter structs.

    Assignment is validated, so field validators act as setters. Serialization
    uses aliases, which carry the external processor's own parameter names.

    Example:
        >>> class SegmentArgument(ProcessorArgument):
        ...     dpi: int = -1
        ...     overwrite_lines: bool = True
        >>> SegmentArgument(dpi=300).parameters()
        {'dpi': 300, 'overwrite_lines': True}
    """

    model_config = ConfigDict(
        validate_assignment=True,
        populate_by_name=True,
        extra="forbid",
    )

    def parameters(self, *, exclude_unset: bool = False) -> dict[str, object]:
        """Parameters as the external processor expects them.

        Unset (None) values are left out. With `exclude_unset`, only values
        assigned since construction are returned, leaving the processor to
        apply its own defaults.
        """
        return self.model_dump(by_alias=True, mode="json", exclude_unset=exclude_unset, exclude_none=True)


def default_of(argument_type: type[ProcessorArgument], attribute: str) -> object:
    """Declared default of a ProcessorArgument attribute (None if it has none)."""
    info = argument_type.model_fields.get(attribute)
    if info is None:
        raise KeyError(f"{argument_type.__name__} has no attribute '{attribute}'")
    return info.get_default(call_default_factory=True)


@dataclass(slots=True, frozen=True)
class ParameterSpec:
    """One declared tool parameter.

    `resource_model` marks a placeholder whose options come from the tool's
    resource folder at model build time: its subfolders, or its top-level
    files with `resource_extension` when that is set. A `multiple` select is
    bound as a list, or as one string joined by `separator` when given.
    """
    argument: str
    kind: ArgumentKind
    attribute: str | None = None
    label: Localized | None = None
    description: Localized | None = None
    step: float | None = None
    minimum: float | None = None
    maximum: float | None = None
    unit: str | None = None
    options: tuple[str, ...] = ()
    multiple: bool = False
    separator: str | None = None
    content_type: str | None = None
    check: Rule | None = None
    message: str | None = None
    resource_model: bool = False
    resource_extension: str | None = None
    json_object: bool = False

    @property
    def target(self) -> str:
        """ProcessorArgument attribute the value is bound to."""
        return self.attribute or self.argument.replace("-", "_")

    def violation(self, value: object) -> str | None:
        """Diagnostic if value breaks this parameter's domain rule, else None."""
        if self.check is None:
            return None
        result = self.check(value)
        if result is True:
            return None
        if isinstance(result, str):
            return result
        template = self.message or "The {argument} value {value} is not valid."
        return template.format(argument=self.argument, value=value)

    def field(self, default: object = None) -> BaseField:
        """UI field for this parameter."""
        common = {"argument": self.argument, "label": self.label, "description": self.description}
        match self.kind:
            case _ if self.resource_model:
                return StringField(**common, value=None if default is None else str(default))
            case ArgumentKind.BOOLEAN:
                return BooleanField(**common, value=default)
            case ArgumentKind.INTEGER:
                return IntegerField(**common, value=default, step=_int(self.step), minimum=_int(self.minimum),
                                    maximum=_int(self.maximum), unit=self.unit)
            case ArgumentKind.DECIMAL:
                return DecimalField(**common, value=default, step=self.step, minimum=self.minimum,
                                    maximum=self.maximum, unit=self.unit)
            case ArgumentKind.SELECT:
                selected = selected_values(default, self.separator)
                return SelectField(**common, multiple=self.multiple, options=tuple(
                    SelectOption(value=o, selected=o in selected) for o in self.options if o.strip()))
            case _ if self.json_object:
                text = None if default is None or isinstance(default, str) else orjson.dumps(default).decode()
                return StringField(**common, value=text if text is not None else default, content_type=self.content_type)
            case _:
                return StringField(**common, value=default, content_type=self.content_type)


def _int(v: float | None) -> int | None:
    return None if v is None else int(v)


def selected_values(default: object, separator: str | None = None) -> set[object]:
    """Values a default marks as selected in a select field."""
    if isinstance(default, (list, tuple)):
        return set(default)
    if separator and isinstance(default, str):
        return set(default.split(separator))
    return {default}


# ─────────────────────────────────────────────────────────────────────────────
# Preset Rules (common patterns)
# ─────────────────────────────────────────────────────────────────────────────

def non_negative(v: object) -> bool:
    return isinstance(v, (int, float)) and v >= 0


def positive(v: object) -> bool:
    return isinstance(v, (int, float)) and v > 0


def in_range(low: float, high: float) -> Rule:
    """Validate numeric value in range [low, high]."""
    return lambda v: (isinstance(v, (int, float)) and low <= v <= high) or f"The value {v} is not between {low} and {high}."


def one_of(*allowed: str) -> Rule:
    """Validate value is one of allowed options."""
    allowed_set = frozenset(allowed)
    return lambda v: v in allowed_set or f"The value '{v}' is not one of: {', '.join(allowed)}."

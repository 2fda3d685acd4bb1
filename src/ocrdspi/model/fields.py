"""Declarative parameter fields and the Model a host UI renders.

A Model is an ordered list of fields. Each field names the argument it
produces, carries a label/description (plain text or a `locale -> text`
callable) and a default, plus constraints specific to its variant. Models are
rebuilt on every request since select options may come from a directory scan.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field as PydanticField, field_serializer

Localized = Union[str, Callable[[str | None], str]]


def localize(text: Localized | None, locale: str | None = None) -> str | None:
    """Resolve a plain or locale-dependent text."""
    if text is None or isinstance(text, str):
        return text
    return text(locale)


class BaseField(BaseModel):
    """Common part of all field variants."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    argument: Annotated[str, PydanticField(min_length=1)]
    label: Localized | None = None
    description: Localized | None = None
    disabled: bool = False

    def get_label(self, locale: str | None = None) -> str:
        return localize(self.label, locale) or self.argument

    def get_description(self, locale: str | None = None) -> str | None:
        return localize(self.description, locale)

    @field_serializer("label", "description")
    def _serialize_text(self, v: Localized | None) -> str | None:
        return localize(v)


class StringField(BaseField):
    kind: Literal["string"] = "string"
    value: str | None = None
    content_type: str | None = None


class BooleanField(BaseField):
    kind: Literal["boolean"] = "boolean"
    value: bool | None = None


class IntegerField(BaseField):
    kind: Literal["integer"] = "integer"
    value: int | None = None
    step: int | None = None
    minimum: int | None = None
    maximum: int | None = None
    unit: str | None = None


class DecimalField(BaseField):
    kind: Literal["decimal"] = "decimal"
    value: float | None = None
    step: float | None = None
    minimum: float | None = None
    maximum: float | None = None
    unit: str | None = None


class SelectOption(BaseModel):
    """One choice of a SelectField."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    value: str
    label: Localized | None = None
    selected: bool = False
    disabled: bool = False

    def get_label(self, locale: str | None = None) -> str:
        return localize(self.label, locale) or self.value

    @field_serializer("label")
    def _serialize_text(self, v: Localized | None) -> str | None:
        return localize(v)


class SelectField(BaseField):
    kind: Literal["select"] = "select"
    options: tuple[SelectOption, ...] = ()
    multiple: bool = False

    @property
    def selected(self) -> list[str]:
        return [o.value for o in self.options if o.selected]


Field = Annotated[
    Union[StringField, BooleanField, IntegerField, DecimalField, SelectField],
    PydanticField(discriminator="kind"),
]


class Model(BaseModel):
    """Ordered field list describing one tool's parameters."""

    model_config = ConfigDict(frozen=True)

    entries: tuple[Field, ...] = ()

    def __len__(self) -> int:
        return len(self.entries)

    def iter_fields(self) -> Iterator[BaseField]:
        return iter(self.entries)

    def arguments(self) -> list[str]:
        return [f.argument for f in self.entries]

    def get(self, argument: str) -> BaseField | None:
        return next((f for f in self.entries if f.argument == argument), None)

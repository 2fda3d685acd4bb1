"""Caller-supplied argument bag (ModelArgument).

The host builds a ModelArgument from the Model it rendered. Every argument is
typed; asking for an argument as the wrong type raises `ArgumentTypeError`
instead of coercing, so `"1"` never becomes an integer and `True` never
becomes `1`.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from enum import StrEnum
from typing import Annotated, Literal, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictFloat, StrictInt, StrictStr


class ArgumentKind(StrEnum):
    """Static argument types; the value doubles as the name used in diagnostics."""
    STRING = "string"
    BOOLEAN = "boolean"
    INTEGER = "integer"
    DECIMAL = "decimal"
    SELECT = "select"


class ArgumentTypeError(TypeError):
    """An argument was read as a type it does not have."""

    def __init__(self, argument: str, expected: ArgumentKind, actual: ArgumentKind) -> None:
        self.argument, self.expected, self.actual = argument, expected, actual
        super().__init__(f"argument '{argument}' is {actual}, not {expected}")


class _Argument(BaseModel):
    model_config = ConfigDict(frozen=True)

    argument: Annotated[str, Field(min_length=1)]

    @property
    def present(self) -> bool:
        return getattr(self, "value", None) is not None

    @property
    def raw(self) -> object:
        """Plain value as forwarded to the external tool."""
        return getattr(self, "value", None)


class StringArgument(_Argument):
    kind: Literal[ArgumentKind.STRING] = ArgumentKind.STRING
    value: StrictStr | None = None


class BooleanArgument(_Argument):
    kind: Literal[ArgumentKind.BOOLEAN] = ArgumentKind.BOOLEAN
    value: StrictBool | None = None


class IntegerArgument(_Argument):
    kind: Literal[ArgumentKind.INTEGER] = ArgumentKind.INTEGER
    value: StrictInt | None = None


class DecimalArgument(_Argument):
    kind: Literal[ArgumentKind.DECIMAL] = ArgumentKind.DECIMAL
    value: StrictFloat | StrictInt | None = None


class SelectArgument(_Argument):
    kind: Literal[ArgumentKind.SELECT] = ArgumentKind.SELECT
    values: tuple[StrictStr, ...] = ()

    @property
    def present(self) -> bool:
        return bool(self.values)

    @property
    def raw(self) -> object:
        return self.values[0] if len(self.values) == 1 else list(self.values)


Argument = Annotated[
    Union[StringArgument, BooleanArgument, IntegerArgument, DecimalArgument, SelectArgument],
    Field(discriminator="kind"),
]

A = TypeVar("A", bound=_Argument)

_KIND_OF: dict[type[_Argument], ArgumentKind] = {
    StringArgument: ArgumentKind.STRING,
    BooleanArgument: ArgumentKind.BOOLEAN,
    IntegerArgument: ArgumentKind.INTEGER,
    DecimalArgument: ArgumentKind.DECIMAL,
    SelectArgument: ArgumentKind.SELECT,
}
ARGUMENT_TYPES: dict[ArgumentKind, type[_Argument]] = {v: k for k, v in _KIND_OF.items()}


class ModelArgument(BaseModel):
    """Bag of named, typed arguments.

    Example:
        >>> args = ModelArgument.of(dpi=300, padding=2, **{"overwrite-lines": False})
        >>> sorted(args.names())
        ['dpi', 'overwrite-lines', 'padding']
        >>> args.get(IntegerArgument, "dpi").value
        300
    """

    model_config = ConfigDict(frozen=True)

    arguments: tuple[Argument, ...] = ()

    def __len__(self) -> int:
        return len(self.arguments)

    def __contains__(self, name: object) -> bool:
        return any(a.argument == name for a in self.arguments)

    def names(self) -> set[str]:
        """Fresh set of the present argument names (safe to mutate)."""
        return {a.argument for a in self.arguments}

    def find(self, name: str) -> _Argument | None:
        return next((a for a in self.arguments if a.argument == name), None)

    def get(self, kind: type[A], name: str) -> A:
        """Argument `name` as type `kind`. Raises KeyError if absent, ArgumentTypeError on mismatch."""
        arg = self.find(name)
        if arg is None:
            raise KeyError(name)
        if not isinstance(arg, kind):
            raise ArgumentTypeError(name, _KIND_OF[kind], arg.kind)  # type: ignore[attr-defined]
        return arg

    @classmethod
    def of(cls, **values: object) -> ModelArgument:
        return cls.from_values(values)

    @classmethod
    def from_values(cls, values: Mapping[str, object]) -> ModelArgument:
        """Infer argument types from plain Python values (bool before int; list/tuple → select)."""
        return cls(arguments=tuple(_infer(name, value) for name, value in values.items()))

    @classmethod
    def from_arguments(cls, arguments: Iterable[_Argument]) -> ModelArgument:
        return cls(arguments=tuple(arguments))


def _infer(name: str, value: object) -> _Argument:
    match value:
        case bool():
            return BooleanArgument(argument=name, value=value)
        case int():
            return IntegerArgument(argument=name, value=value)
        case float():
            return DecimalArgument(argument=name, value=value)
        case str():
            return StringArgument(argument=name, value=value)
        case list() | tuple():
            return SelectArgument(argument=name, values=tuple(str(v) for v in value))
        case None:
            return StringArgument(argument=name)
        case _:
            raise TypeError(f"unsupported argument value for '{name}': {type(value).__name__}")

"""JSON processor descriptions (the `ocrd-tool.json` entry of one processor).

OCR-D processors describe themselves with `<processor> --dump-json`. This
module turns that document into parameter declarations and a ProcessorArgument
type built at runtime, so a tool can be offered without hand-written fields.

Supported parameter types: `string` (with optional `enum`), `number`
(`format` int/integer, otherwise decimal), `boolean` and `object` (edited as
JSON text, forwarded as a JSON value).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Optional

import orjson
from pydantic import Field, Json, create_model

from ocrdspi.foundation.errors import DescriptionError

from .arguments import ArgumentKind
from .parameters import ParameterSpec, ProcessorArgument

JSON_CONTENT_TYPE = "application/json"

_TYPES = {"string", "number", "boolean", "object"}
_INTEGER_FORMATS = {"integer", "int"}


@dataclass(slots=True, frozen=True)
class ToolDescription:
    """Parsed processor description."""

    processor: str
    json_text: str
    description: str | None = None
    categories: tuple[str, ...] = ()
    steps: tuple[str, ...] = ()
    parameters: tuple[ParameterSpec, ...] = ()
    argument_type: type[ProcessorArgument] = ProcessorArgument

    @property
    def object_parameters(self) -> set[str]:
        return {p.argument for p in self.parameters if p.json_object}

    @classmethod
    def parse(cls, processor: str, text: str | bytes) -> ToolDescription:
        """Parse a description. Raises DescriptionError on malformed input."""
        raw = text.decode() if isinstance(text, bytes) else text
        if not raw.strip():
            raise DescriptionError.invalid(processor, "empty JSON processor description.")
        try:
            root = orjson.loads(raw)
        except orjson.JSONDecodeError as e:
            raise DescriptionError.invalid(processor, f"could not parse JSON processor description - {e}") from e
        if not isinstance(root, dict):
            raise DescriptionError.invalid(processor, "expecting a JSON object as processor description.")

        node = root.get("parameters") or {}
        if not isinstance(node, dict):
            raise DescriptionError.invalid(
                processor, f"expecting type object for JSON processor parameters, but it is of type {type(node).__name__}.")

        specs: list[ParameterSpec] = []
        attributes: dict[str, Any] = {}
        for name, spec_node in node.items():
            spec, annotation, default = _parse_parameter(processor, name, spec_node)
            specs.append(spec)
            attributes[spec.target] = (annotation, Field(default=default, alias=name))

        description = root.get("description")
        return cls(
            processor=processor,
            json_text=raw.strip(),
            description=None if description is None or isinstance(description, (dict, list)) else str(description),
            categories=_as_list(root.get("categories")),
            steps=_as_list(root.get("steps")),
            parameters=tuple(specs),
            argument_type=create_model(_class_name(processor), __base__=ProcessorArgument, **attributes),
        )


def _as_list(node: object) -> tuple[str, ...]:
    if node is None:
        return ()
    if isinstance(node, list):
        return tuple(str(v) for v in node)
    return (str(node),)


def _class_name(processor: str) -> str:
    return "".join(part.capitalize() for part in re.split(r"[^0-9A-Za-z]+", processor) if part) + "Argument"


def _identifier(name: str) -> str:
    ident = re.sub(r"\W", "_", name)
    # must not shadow BaseModel or ProcessorArgument members
    if not ident or ident[0].isdigit() or ident.startswith(("_", "model_")) or hasattr(ProcessorArgument, ident):
        return f"p_{ident}"
    return ident


def _parse_parameter(processor: str, name: str, node: object) -> tuple[ParameterSpec, Any, Any]:
    if not isinstance(node, dict):
        raise DescriptionError.invalid(processor, f"parameter '{name}' is not a JSON object.")
    kind = node.get("type")
    if not isinstance(kind, str) or not kind.strip():
        raise DescriptionError.invalid(processor, f"undefined required type for parameter '{name}'.")
    kind = kind.strip().lower()
    if kind not in _TYPES:
        raise DescriptionError.invalid(processor, f"unknown type '{kind}' for parameter '{name}'.")

    description = node.get("description") if isinstance(node.get("description"), str) else None
    default = node.get("default")
    common = {"argument": name, "attribute": _identifier(name), "label": name, "description": description}

    match kind:
        case "string" if "enum" in node:
            enum = node["enum"]
            if not isinstance(enum, list) or not all(isinstance(v, str) for v in enum):
                raise DescriptionError.invalid(processor, f"the field 'enum' for parameter '{name}' is not an enumeration.")
            value = default if isinstance(default, str) else None
            return (ParameterSpec(kind=ArgumentKind.SELECT, options=tuple(enum), **common),
                    str | None, value)
        case "string":
            value = default if isinstance(default, str) and default else None
            content_type = node.get("content-type") if isinstance(node.get("content-type"), str) else None
            return (ParameterSpec(kind=ArgumentKind.STRING, content_type=content_type, **common),
                    str | None, value)
        case "number":
            fmt = str(node.get("format") or "").strip().lower()
            if fmt in _INTEGER_FORMATS:
                value = default if isinstance(default, int) and not isinstance(default, bool) else None
                return (ParameterSpec(kind=ArgumentKind.INTEGER, step=1, **common), int | None, value)
            value = float(default) if isinstance(default, (int, float)) and not isinstance(default, bool) else None
            return (ParameterSpec(kind=ArgumentKind.DECIMAL, **common), float | None, value)
        case "boolean":
            value = default if isinstance(default, bool) else None
            return (ParameterSpec(kind=ArgumentKind.BOOLEAN, **common), bool | None, value)
        case _:
            value = default if isinstance(default, dict) and default else None
            return (ParameterSpec(kind=ArgumentKind.STRING, content_type=JSON_CONTENT_TYPE, json_object=True, **common),
                    Optional[Json[Any]], value)


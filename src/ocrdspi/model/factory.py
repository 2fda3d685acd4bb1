"""Model construction with runtime field replacement.

Tools declare placeholder fields whose final shape depends on what is
installed. When a Model is requested, each placeholder is handed to the
callback registered for its argument, which may return replacement fields.
The standard callbacks turn a string placeholder into a select over the
tool's installed models (subfolders or model files).
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence

from ocrdspi.foundation.config import CollectionKey, Configuration, Target
from ocrdspi.io.resources import list_resource_files, list_resource_folders, resolve_opt_resources

from .fields import BaseField, Model, SelectField, SelectOption, StringField
from .parameters import selected_values

logger = logging.getLogger("ocrdspi.model")

# Callback: placeholder field -> replacement fields, or None for no change
ModelFieldCallback = Callable[[BaseField], Sequence[BaseField] | None]

EMPTY_MODEL = "empty"


class ModelFactory:
    """Builds a fresh Model from declared fields on every call.

    Example:
        >>> factory = ModelFactory([StringField(argument="model", value="fraktur")])
        >>> factory.get_model(callbacks={"model": lambda f: None}).arguments()
        ['model']
    """

    __slots__ = ("_fields",)

    def __init__(self, fields: Iterable[BaseField]) -> None:
        self._fields: tuple[BaseField, ...] = tuple(fields)

    @property
    def fields(self) -> tuple[BaseField, ...]:
        return self._fields

    def arguments(self) -> list[str]:
        return [f.argument for f in self._fields]

    def get_model(
        self,
        pre: Iterable[BaseField | None] | None = None,
        post: Iterable[BaseField | None] | None = None,
        callbacks: Mapping[str, ModelFieldCallback] | None = None,
    ) -> Model:
        entries: list[BaseField] = [f for f in pre or () if f is not None]
        for field in self._fields:
            callback = callbacks.get(field.argument) if callbacks else None
            replacement = callback(field) if callback is not None else None
            if replacement:
                entries.extend(f for f in replacement if f is not None)
            else:
                entries.append(field)
        entries.extend(f for f in post or () if f is not None)
        return Model(entries=tuple(entries))


def _select_callback(
    discover: Callable[[], list[str]],
    default_model: str | None,
    multiple: bool,
    separator: str | None,
) -> ModelFieldCallback:
    def handle(field: BaseField) -> list[BaseField] | None:
        if not isinstance(field, StringField):
            return None
        selected = selected_values(field.value if default_model is None else default_model, separator)
        options = [SelectOption(value=name, selected=name in selected) for name in discover()]
        if not options:
            logger.debug("no models available", extra={"argument": field.argument})
            options = [SelectOption(value=EMPTY_MODEL, label="no models available", disabled=True)]
        return [SelectField(argument=field.argument, label=field.label, description=field.description,
                            options=tuple(options), multiple=multiple)]

    return handle


def opt_resources_folder_callback(
    configuration: Configuration | None,
    target: Target | None,
    processor_key: CollectionKey,
    default_model: str | None = None,
    *,
    multiple: bool = False,
    separator: str | None = None,
) -> ModelFieldCallback:
    """Callback replacing a string placeholder with a select over installed model folders.

    The selected option is `default_model` when given, else the placeholder's
    own value. Without any folders, a single disabled "empty" option is offered.
    """
    return _select_callback(
        lambda: list_resource_folders(resolve_opt_resources(configuration, target, processor_key)),
        default_model, multiple, separator)


def opt_resources_file_callback(
    configuration: Configuration | None,
    target: Target | None,
    processor_key: CollectionKey,
    extension: str,
    default_model: str | None = None,
    *,
    multiple: bool = False,
    separator: str | None = None,
) -> ModelFieldCallback:
    """Like `opt_resources_folder_callback`, over top-level model files named `<model>.<extension>`."""
    return _select_callback(
        lambda: list_resource_files(resolve_opt_resources(configuration, target, processor_key), extension),
        default_model, multiple, separator)

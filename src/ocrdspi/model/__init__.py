"""Declarative parameter model: fields, argument bags and parameter declarations."""

from .arguments import (
    ARGUMENT_TYPES,
    Argument,
    ArgumentKind,
    ArgumentTypeError,
    BooleanArgument,
    DecimalArgument,
    IntegerArgument,
    ModelArgument,
    SelectArgument,
    StringArgument,
)
from .description import ToolDescription
from .factory import (
    EMPTY_MODEL,
    ModelFactory,
    ModelFieldCallback,
    opt_resources_file_callback,
    opt_resources_folder_callback,
)
from .fields import (
    BaseField,
    BooleanField,
    DecimalField,
    Field,
    IntegerField,
    Localized,
    Model,
    SelectField,
    SelectOption,
    StringField,
    localize,
)
from .parameters import (
    ParameterSpec,
    ProcessorArgument,
    default_of,
    in_range,
    non_negative,
    one_of,
    positive,
    selected_values,
)

__all__ = [
    # Fields
    "BaseField", "StringField", "BooleanField", "IntegerField", "DecimalField", "SelectField", "SelectOption",
    "Field", "Model", "Localized", "localize",
    # Factory
    "ModelFactory", "ModelFieldCallback", "opt_resources_folder_callback", "opt_resources_file_callback", "EMPTY_MODEL",
    # Arguments
    "ModelArgument", "Argument", "ArgumentKind", "ArgumentTypeError", "ARGUMENT_TYPES",
    "StringArgument", "BooleanArgument", "IntegerArgument", "DecimalArgument", "SelectArgument",
    # Parameters
    "ProcessorArgument", "ParameterSpec", "default_of", "selected_values", "non_negative", "positive", "in_range", "one_of",
    # Descriptions
    "ToolDescription",
]

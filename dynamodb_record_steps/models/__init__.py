from .records import (
    attribute_values,
    delete,
    find,
    new_instance,
    save,
    set_attribute,
    set_attributes,
)
from .schema import (
    ATTRIBUTE_TYPES,
    AttributeSpec,
    ModelDefinition,
    build_record_class,
    define_model,
)

__all__ = [
    # Model definition builder
    "ATTRIBUTE_TYPES",
    "AttributeSpec",
    "ModelDefinition",
    "build_record_class",
    "define_model",

    # Mapped record operations
    "attribute_values",
    "delete",
    "find",
    "new_instance",
    "save",
    "set_attribute",
    "set_attributes",
]

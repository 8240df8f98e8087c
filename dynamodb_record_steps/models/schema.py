"""
Model Definition Builder

Turns a declarative list of attribute specs, as written in a scenario, into
an immutable ``ModelDefinition`` and the PynamoDB ``Model`` subclass that
maps it. The attribute type vocabulary (``string_attr``, ``map_attr`` ...)
follows the names used in the scenario text; each one resolves to a
PynamoDB attribute class.

Key constraints (exactly one hash key, at most one range key) are checked
here because PynamoDB silently keeps the last key it sees.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Tuple, Type

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, ValidationError as PydanticValidationError, field_validator, model_validator
from pynamodb.attributes import (
    Attribute,
    BooleanAttribute,
    ListAttribute,
    MapAttribute,
    NumberAttribute,
    NumberSetAttribute,
    UnicodeAttribute,
    UnicodeSetAttribute,
    UTCDateTimeAttribute,
)
from pynamodb.models import Model

from ..config import StepsConfig
from ..exceptions import InvalidSchemaError

logger = logging.getLogger(__name__)


ATTRIBUTE_TYPES: Dict[str, Type[Attribute]] = {
    'string_attr': UnicodeAttribute,
    'integer_attr': NumberAttribute,
    'float_attr': NumberAttribute,
    'boolean_attr': BooleanAttribute,
    'date_time_attr': UTCDateTimeAttribute,
    'datetime_attr': UTCDateTimeAttribute,
    'list_attr': ListAttribute,
    'map_attr': MapAttribute,
    'string_set_attr': UnicodeSetAttribute,
    'numeric_set_attr': NumberSetAttribute,
}

# Only scalar types can be part of a DynamoDB primary key
KEY_ATTRIBUTE_TYPES = {'string_attr', 'integer_attr', 'float_attr'}

# Model members the record and migration operations call on the class or an instance
RESERVED_NAMES = frozenset({
    'Meta', 'save', 'delete', 'update', 'refresh', 'get', 'exists',
    'get_attributes', 'attribute_values', 'serialize', 'deserialize',
    'create_table', 'delete_table', 'describe_table',
})


class AttributeSpec(BaseModel):
    """One row of an ``an aws-record model with data`` step."""

    method: str = Field(..., description="Attribute type, e.g. string_attr")
    name: str = Field(..., min_length=1, description="Attribute name exposed on the model")
    database_name: Optional[str] = Field(default=None, description="Attribute name stored in DynamoDB")
    hash_key: bool = Field(default=False)
    range_key: bool = Field(default=False)

    @field_validator('hash_key', 'range_key', mode='before')
    @classmethod
    def validate_key_flag(cls, v):
        # Rows may carry an explicit null for "not a key"
        return False if v is None else v

    @property
    def storage_name(self) -> str:
        return self.database_name or self.name

    @model_validator(mode='after')
    def validate_spec(self):
        if self.method not in ATTRIBUTE_TYPES:
            raise ValueError(f"Unknown attribute method '{self.method}'. Known: {sorted(ATTRIBUTE_TYPES)}")
        if not self.name.isidentifier() or self.name.startswith('_') or self.name in RESERVED_NAMES:
            raise ValueError(f"'{self.name}' cannot be used as a model attribute name")
        if self.hash_key and self.range_key:
            raise ValueError(f"Attribute '{self.name}' cannot be both hash key and range key")
        if (self.hash_key or self.range_key) and self.method not in KEY_ATTRIBUTE_TYPES:
            raise ValueError(f"Key attribute '{self.name}' must be a string or number, not {self.method}")
        return self

    model_config = ConfigDict(frozen=True)


class ModelDefinition(BaseModel):
    """Immutable description of a mapped record type."""

    table_name: str = Field(..., min_length=3, max_length=255)
    attributes: Tuple[AttributeSpec, ...] = Field(..., min_length=1)

    _record_class: Optional[Type[Model]] = PrivateAttr(default=None)

    @model_validator(mode='after')
    def validate_keys(self):
        hash_keys = [a.name for a in self.attributes if a.hash_key]
        range_keys = [a.name for a in self.attributes if a.range_key]
        if len(hash_keys) != 1:
            raise ValueError(f"Exactly one hash key is required, got {hash_keys or 'none'}")
        if len(range_keys) > 1:
            raise ValueError(f"At most one range key is allowed, got {range_keys}")

        names = [a.name for a in self.attributes]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Duplicate attribute names: {duplicates}")

        storage = [a.storage_name for a in self.attributes]
        duplicates = sorted({n for n in storage if storage.count(n) > 1})
        if duplicates:
            raise ValueError(f"Duplicate database attribute names: {duplicates}")
        return self

    @property
    def hash_key(self) -> AttributeSpec:
        return next(a for a in self.attributes if a.hash_key)

    @property
    def range_key(self) -> Optional[AttributeSpec]:
        return next((a for a in self.attributes if a.range_key), None)

    def attribute(self, name: str) -> Optional[AttributeSpec]:
        return next((a for a in self.attributes if a.name == name), None)

    @property
    def record_class(self) -> Type[Model]:
        if self._record_class is None:
            raise InvalidSchemaError(f"No model class has been built for table '{self.table_name}'")
        return self._record_class

    model_config = ConfigDict(frozen=True)


def _class_name(table_name: str) -> str:
    return "Record_" + re.sub(r'\W', '_', table_name)


def build_record_class(definition: ModelDefinition, config: StepsConfig) -> Type[Model]:
    """Build the PynamoDB Model subclass for a definition."""
    meta_attrs: Dict[str, Any] = {
        'table_name': definition.table_name,
        'region': config.region_name,
        'max_retry_attempts': config.retries,
        'connect_timeout_seconds': config.timeout_seconds,
        'read_timeout_seconds': config.timeout_seconds,
    }
    if config.endpoint_url:
        meta_attrs['host'] = config.endpoint_url
    if config.aws_access_key_id and config.aws_secret_access_key:
        meta_attrs['aws_access_key_id'] = config.aws_access_key_id
        meta_attrs['aws_secret_access_key'] = config.aws_secret_access_key

    namespace: Dict[str, Any] = {'Meta': type('Meta', (), meta_attrs)}
    for spec in definition.attributes:
        attribute_cls = ATTRIBUTE_TYPES[spec.method]
        kwargs: Dict[str, Any] = {'hash_key': spec.hash_key, 'range_key': spec.range_key}
        if not (spec.hash_key or spec.range_key):
            kwargs['null'] = True
        if spec.database_name:
            kwargs['attr_name'] = spec.database_name
        namespace[spec.name] = attribute_cls(**kwargs)

    return type(_class_name(definition.table_name), (Model,), namespace)


def define_model(
    table_name: str,
    attribute_specs: List[Dict[str, Any]],
    config: StepsConfig
) -> ModelDefinition:
    """
    Build a ModelDefinition and its PynamoDB model class.

    Args:
        table_name: Table the model maps to
        attribute_specs: Decoded rows ``{method, name, database_name?, hash_key?, range_key?}``
        config: Connection settings baked into the model's Meta

    Returns:
        The immutable definition, with ``record_class`` ready to use

    Raises:
        InvalidSchemaError: If any spec or the key layout is invalid
    """
    try:
        definition = ModelDefinition(
            table_name=table_name,
            attributes=tuple(AttributeSpec(**spec) for spec in attribute_specs),
        )
    except PydanticValidationError as e:
        errors = {'.'.join(str(p) for p in err['loc']) or 'model': err['msg'] for err in e.errors()}
        raise InvalidSchemaError(f"Invalid model definition for '{table_name}'", errors, original_error=e) from e
    except TypeError as e:
        raise InvalidSchemaError(f"Model attribute specs must be JSON objects: {e}", original_error=e) from e

    definition._record_class = build_record_class(definition, config)
    logger.debug(f"Defined model {definition.record_class.__name__} for table {table_name}")
    return definition

"""
Mapped record operations.

Create, mutate, save, find and delete instances of a runtime-built PynamoDB
model. Each call is a single round trip through PynamoDB; nothing is cached
and nothing is retried here.
"""

import logging
from typing import Any, Dict

from botocore.exceptions import ClientError
from pynamodb.attributes import NumberSetAttribute, UnicodeSetAttribute, UTCDateTimeAttribute
from pynamodb.exceptions import DoesNotExist, PynamoDBException, TableDoesNotExist
from pynamodb.models import Model

from ..core.client_adapter import map_dynamodb_error
from ..exceptions import RecordNotFoundError, ResourceNotFoundError, ServiceError, ValidationError
from ..utils import parse_datetime, plain_value
from .schema import ModelDefinition

logger = logging.getLogger(__name__)


def map_pynamodb_error(error: PynamoDBException, operation: str, table_name: str) -> Exception:
    """Map a PynamoDB exception through the DynamoDB error mapping."""
    if isinstance(error, TableDoesNotExist):
        return ResourceNotFoundError(table_name, operation, original_error=error)
    if isinstance(error.cause, ClientError):
        return map_dynamodb_error(error.cause, operation, table_name)
    return ServiceError(f"{operation} on {table_name}: {error.msg}", error.cause_response_code, original_error=error)


def _coerce(attribute, value: Any) -> Any:
    """Convert a decoded JSON value into what the attribute class serializes."""
    if value is None:
        return None
    if isinstance(attribute, UTCDateTimeAttribute) and isinstance(value, str):
        return parse_datetime(value)
    if isinstance(attribute, (UnicodeSetAttribute, NumberSetAttribute)) and isinstance(value, list):
        return set(value)
    return value


def new_instance(definition: ModelDefinition) -> Model:
    """Return an instance with every attribute unset."""
    return definition.record_class()


def set_attribute(instance: Model, name: str, value: Any) -> None:
    """
    Set an attribute by its exposed name.

    Raises:
        ValidationError: If the model declares no such attribute
    """
    attributes = instance.get_attributes()
    if name not in attributes:
        raise ValidationError(
            f"Model {type(instance).__name__} has no attribute '{name}'",
            {'attribute': name, 'known': sorted(attributes)}
        )
    setattr(instance, name, _coerce(attributes[name], value))


def set_attributes(instance: Model, values: Dict[str, Any]) -> None:
    for name, value in values.items():
        set_attribute(instance, name, value)


def save(instance: Model) -> None:
    """
    Persist the full instance state.

    Raises:
        ConditionalCheckFailedError: If DynamoDB rejects the write condition
        ServiceError: For any other rejection
    """
    table_name = instance.Meta.table_name
    try:
        instance.save()
        logger.info(f"Saved {type(instance).__name__} to {table_name}")
    except PynamoDBException as e:
        raise map_pynamodb_error(e, "PutItem", table_name) from e


def _key_values(definition: ModelDefinition, key_values: Dict[str, Any]):
    hash_spec = definition.hash_key
    range_spec = definition.range_key
    key_names = {hash_spec.name} | ({range_spec.name} if range_spec else set())

    unknown = sorted(set(key_values) - key_names)
    if unknown:
        raise ValidationError(f"Lookup keys must be key attributes, got extra: {unknown}", {'extra': unknown})
    missing = sorted(key_names - set(key_values))
    if missing:
        raise ValidationError(f"Lookup is missing key attributes: {missing}", {'missing': missing})

    return key_values[hash_spec.name], key_values[range_spec.name] if range_spec else None


def find(definition: ModelDefinition, key_values: Dict[str, Any]) -> Model:
    """
    Load one record by its key.

    Args:
        definition: Model to load
        key_values: Exposed key names to values, e.g. ``{'id': 'u1'}``

    Raises:
        RecordNotFoundError: If no item matches
        ValidationError: If the lookup is not exactly the model's key
    """
    hash_value, range_value = _key_values(definition, key_values)
    try:
        return definition.record_class.get(hash_value, range_key=range_value, consistent_read=True)
    except DoesNotExist as e:
        raise RecordNotFoundError(definition.table_name, key_values, original_error=e) from e
    except PynamoDBException as e:
        raise map_pynamodb_error(e, "GetItem", definition.table_name) from e


def delete(instance: Model) -> None:
    """Delete the record. Deleting an absent record is not an error."""
    table_name = instance.Meta.table_name
    try:
        instance.delete()
        logger.info(f"Deleted {type(instance).__name__} from {table_name}")
    except PynamoDBException as e:
        raise map_pynamodb_error(e, "DeleteItem", table_name) from e


def attribute_values(instance: Model) -> Dict[str, Any]:
    """Plain values of every set attribute, keyed by exposed name."""
    values = {}
    for name in instance.get_attributes():
        value = getattr(instance, name)
        if value is not None:
            values[name] = plain_value(value)
    return values

"""
Value conversion helpers shared by the client adapter, record operations and assertions.

Step fixtures arrive as JSON. DynamoDB wants typed attribute values with
numbers as ``Decimal``; PynamoDB hands back ``MapAttribute`` containers for
map attributes. Everything here converts between those shapes and plain
Python values so comparisons can use ordinary equality.
"""

import json
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict

from boto3.dynamodb.types import TypeDeserializer, TypeSerializer
from pynamodb.attributes import MapAttribute

from .exceptions import ValidationError

_serializer = TypeSerializer()
_deserializer = TypeDeserializer()


def decode_json(text: str) -> Any:
    """Decode a JSON step argument.

    Raises:
        ValidationError: If the text is not valid JSON
    """
    try:
        return json.loads(text)
    except (TypeError, json.JSONDecodeError) as e:
        raise ValidationError(f"Step data is not valid JSON: {e}", original_error=e) from e


def to_decimal_safe(value: Any) -> Any:
    """Replace floats with Decimals, recursing into containers."""
    if isinstance(value, bool):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, dict):
        return {k: to_decimal_safe(v) for k, v in value.items()}
    if isinstance(value, list):
        return [to_decimal_safe(v) for v in value]
    return value


def to_dynamodb_item(data: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    """Serialize a plain mapping into DynamoDB attribute values."""
    return {k: _serializer.serialize(to_decimal_safe(v)) for k, v in data.items()}


def from_dynamodb_item(item: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
    """Deserialize DynamoDB attribute values into plain Python values."""
    return {k: plain_value(_deserializer.deserialize(v)) for k, v in item.items()}


def plain_value(value: Any) -> Any:
    """Normalize a stored or mapped value for structural comparison.

    MapAttribute containers become dicts, Decimals become int or float and
    containers are converted recursively. Sets stay sets.
    """
    if isinstance(value, MapAttribute):
        value = value.as_dict()
    if isinstance(value, bool) or value is None:
        return value
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, dict):
        return {k: plain_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [plain_value(v) for v in value]
    if isinstance(value, (set, frozenset)):
        return {plain_value(v) for v in value}
    return value


def pairs_to_dict(pairs: Any) -> Dict[str, Any]:
    """Turn ``[[name, value], ...]`` step data into a mapping.

    Plain JSON objects are accepted as-is.
    """
    if isinstance(pairs, dict):
        return dict(pairs)
    result = {}
    for row in pairs:
        if not isinstance(row, (list, tuple)) or len(row) != 2:
            raise ValidationError(f"Expected [name, value] pair, got: {row!r}")
        attribute, value = row
        result[attribute] = value
    return result


def parse_datetime(value: str) -> datetime:
    """Parse an ISO 8601 string, treating naive values as UTC."""
    try:
        parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError as e:
        raise ValidationError(f"Invalid datetime value: {value!r}", original_error=e) from e
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)

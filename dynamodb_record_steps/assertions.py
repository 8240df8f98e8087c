"""
Assertions against the table contents and the mapped instance.

Failures raise ``AssertionError`` so pytest reports them as test failures
rather than errors.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pynamodb.models import Model

from .core.client_adapter import DynamoDBClientAdapter
from .utils import parse_datetime, plain_value


def assert_item_present(adapter: DynamoDBClientAdapter, table_name: str, key: Dict[str, Any]) -> Dict[str, Any]:
    """Fail if no item is stored under ``key``. Returns the stored item."""
    item = adapter.get_item(table_name, key)
    assert item is not None, f"Expected an item in {table_name} with key {key}, found none"
    return item


def assert_item_absent(adapter: DynamoDBClientAdapter, table_name: str, key: Dict[str, Any]) -> None:
    """Fail if an item is stored under ``key``."""
    item = adapter.get_item(table_name, key)
    assert item is None, f"Expected no item in {table_name} with key {key}, found {item}"


def _equal(expected: Any, actual: Any) -> bool:
    # bool is an int subclass; True must not match 1
    if isinstance(expected, bool) or isinstance(actual, bool):
        return type(expected) is type(actual) and expected == actual
    if isinstance(expected, dict) and isinstance(actual, dict):
        return expected.keys() == actual.keys() and all(_equal(v, actual[k]) for k, v in expected.items())
    if isinstance(expected, list) and isinstance(actual, list):
        return len(expected) == len(actual) and all(_equal(e, a) for e, a in zip(expected, actual))
    return expected == actual


def _mismatch(expected: Any, actual: Any) -> Optional[str]:
    expected = plain_value(expected)
    actual = plain_value(actual)
    if isinstance(expected, list) and isinstance(actual, (set, frozenset)):
        # JSON has no sets; compare a list fixture against a stored set by membership
        expected = set(expected)
    if _equal(expected, actual):
        return None
    return f"expected {expected!r}, got {actual!r}"


def assert_item_matches(item: Optional[Dict[str, Any]], expected: Dict[str, Any]) -> None:
    """Fail unless every expected key structurally equals the stored item's value."""
    assert item is not None, "No stored object has been fetched"
    problems = {}
    for name, expected_value in expected.items():
        problem = _mismatch(expected_value, item.get(name))
        if problem:
            problems[name] = problem
    assert not problems, f"Stored object mismatch: {problems}"


def assert_attributes_equal(instance: Model, expected: Dict[str, Any]) -> None:
    """
    Fail unless every expected attribute structurally equals the instance's value.

    Attributes not named in ``expected`` are ignored.
    """
    assert instance is not None, "No model instance to compare against"

    attributes = instance.get_attributes()
    problems = {}
    for name, expected_value in expected.items():
        if name not in attributes:
            problems[name] = "attribute not defined on model"
            continue
        actual = getattr(instance, name)
        if isinstance(actual, datetime) and isinstance(expected_value, str):
            expected_value = parse_datetime(expected_value)
        problem = _mismatch(expected_value, actual)
        if problem:
            problems[name] = problem

    assert not problems, f"Attribute mismatch on {type(instance).__name__}: {problems}"

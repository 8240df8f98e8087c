"""
Step definitions for the DynamoDB record mapping scenarios.

Every step takes the explicit ``scenario_context`` fixture and, where the
phrase ends in a colon, a JSON ``docstring``. The consuming test suite must
provide a ``steps_config`` fixture (a ``StepsConfig``).

Scenarios tagged ``@item`` or ``@table`` delete their table afterwards.
"""

import pytest
from pytest_bdd import given, parsers, then, when

from ..assertions import assert_attributes_equal, assert_item_absent, assert_item_matches, assert_item_present
from ..config import StepsConfig
from ..context import ScenarioContext
from ..exceptions import RecordNotFoundError
from ..migrations import model_property, new_migration, table_exists
from ..models import define_model, delete, find, new_instance, save, set_attributes
from ..utils import decode_json, pairs_to_dict

CLEANUP_MARKERS = ('item', 'table')


@pytest.fixture
def scenario_context(request, steps_config: StepsConfig):
    """Explicit per-scenario state, torn down for tagged scenarios."""
    context = ScenarioContext.start(steps_config)
    yield context
    if any(request.node.get_closest_marker(name) for name in CLEANUP_MARKERS):
        context.teardown()


# =============================================================================
# Tables and items
# =============================================================================

@given(parsers.re(r"a DynamoDB table named '(?P<table>[^']*)' with data:"))
def create_fixture_table(scenario_context: ScenarioContext, table: str, docstring: str):
    rows = decode_json(docstring)
    fixture = scenario_context.tables.create_table(table, rows)
    scenario_context.table_fixture = fixture
    scenario_context.table_name = fixture.name


@given("an item exists in the DynamoDB table with item data:")
def put_fixture_item(scenario_context: ScenarioContext, docstring: str):
    scenario_context.adapter.put_item(scenario_context.require_table(), decode_json(docstring))


@then("the DynamoDB table should have an object with key values:")
def table_has_object(scenario_context: ScenarioContext, docstring: str):
    key = pairs_to_dict(decode_json(docstring))
    scenario_context.last_item = assert_item_present(
        scenario_context.adapter, scenario_context.require_table(), key
    )


@then("the DynamoDB table should not have an object with key values:")
def table_lacks_object(scenario_context: ScenarioContext, docstring: str):
    key = pairs_to_dict(decode_json(docstring))
    assert_item_absent(scenario_context.adapter, scenario_context.require_table(), key)


@then("the stored object should have item data:")
def stored_object_matches(scenario_context: ScenarioContext, docstring: str):
    assert_item_matches(scenario_context.last_item, decode_json(docstring))


# =============================================================================
# Models and records
# =============================================================================

@given("an aws-record model with data:")
def define_record_model(scenario_context: ScenarioContext, docstring: str):
    if scenario_context.table_name is None:
        scenario_context.table_name = scenario_context.tables.unique_table_name("test_table")
    scenario_context.model = define_model(
        scenario_context.table_name, decode_json(docstring), scenario_context.config
    )


@when("we create a new instance of the model with attribute value pairs:")
def create_instance(scenario_context: ScenarioContext, docstring: str):
    instance = new_instance(scenario_context.require_model())
    set_attributes(instance, pairs_to_dict(decode_json(docstring)))
    scenario_context.instance = instance


@when("we save the model instance")
def save_instance(scenario_context: ScenarioContext):
    save(scenario_context.require_instance())


@when("we call the 'find' class method with parameter data:")
def find_instance(scenario_context: ScenarioContext, docstring: str):
    scenario_context.instance = find(scenario_context.require_model(), decode_json(docstring))


@then("calling the 'find' class method with parameter data should find nothing:")
def find_nothing(scenario_context: ScenarioContext, docstring: str):
    with pytest.raises(RecordNotFoundError):
        find(scenario_context.require_model(), decode_json(docstring))


@then("we should receive an aws-record item with attribute data:")
def instance_has_attributes(scenario_context: ScenarioContext, docstring: str):
    assert_attributes_equal(scenario_context.require_instance(), decode_json(docstring))


@when("we call 'delete!' on the aws-record item instance")
def delete_instance(scenario_context: ScenarioContext):
    delete(scenario_context.require_instance())


# =============================================================================
# Migrations
# =============================================================================

@when("we create a table migration for the model")
def create_migration(scenario_context: ScenarioContext):
    scenario_context.migration = new_migration(scenario_context.require_model(), scenario_context.config)


@when("we call 'create!' with parameters:")
def migration_create(scenario_context: ScenarioContext, docstring: str):
    scenario_context.require_migration().create(decode_json(docstring))


@when("we call 'wait_until_available' on the migration")
def migration_wait(scenario_context: ScenarioContext):
    scenario_context.require_migration().wait_until_available()


@when("we call 'update!' on the migration with parameters:")
def migration_update(scenario_context: ScenarioContext, docstring: str):
    scenario_context.require_migration().update(decode_json(docstring))
    # Table is UPDATING until this returns
    scenario_context.adapter.wait_until_exists(scenario_context.require_table())


@when("we call 'delete!' on the migration")
def migration_delete(scenario_context: ScenarioContext):
    scenario_context.require_migration().delete()


@then("eventually the table should exist in DynamoDB")
def table_eventually_exists(scenario_context: ScenarioContext):
    scenario_context.adapter.wait_until_exists(scenario_context.require_table())


@then("eventually the table should not exist in DynamoDB")
def table_eventually_gone(scenario_context: ScenarioContext):
    scenario_context.adapter.wait_until_not_exists(scenario_context.require_table())


@then(parsers.re(r"calling 'table_exists\?' on the model should return \"(?P<expected>[^\"]*)\""))
def model_table_exists(scenario_context: ScenarioContext, expected: str):
    assert table_exists(scenario_context.require_model()) is (expected not in ('false', ''))


@then(parsers.re(r'calling "(?P<name>[^"]*)" on the model should return:'))
def model_property_matches(scenario_context: ScenarioContext, name: str, docstring: str):
    actual = model_property(scenario_context.require_model(), name, scenario_context.config)
    assert actual == decode_json(docstring), f"{name} returned {actual!r}"

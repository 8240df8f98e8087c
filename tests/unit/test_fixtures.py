"""
Tests for EphemeralTableManager and TableFixture (core/fixtures.py)
"""

from unittest.mock import Mock

import pytest

from dynamodb_record_steps.core.client_adapter import DynamoDBClientAdapter
from dynamodb_record_steps.core.fixtures import EphemeralTableManager, TableFixture
from dynamodb_record_steps.exceptions import (
    ResourceBusyError,
    ResourceNotFoundError,
    ResourceTimeoutError,
    ServiceError,
    ValidationError,
)

ROWS = [
    {'attribute_name': 'hk', 'attribute_type': 'S', 'key_type': 'HASH'},
    {'attribute_name': 'rk', 'attribute_type': 'N', 'key_type': 'RANGE'},
]


@pytest.fixture
def manager(mock_config, mock_dynamodb_client):
    return EphemeralTableManager(DynamoDBClientAdapter(mock_config), mock_config)


@pytest.fixture
def mock_adapter():
    return Mock(spec=DynamoDBClientAdapter)


class TestTableFixture:

    def test_requires_one_hash_key(self):
        with pytest.raises(ValueError, match="exactly one HASH key"):
            TableFixture(name='abc', attribute_definitions=[('a', 'S')], key_schema=[('a', 'RANGE')])

    def test_rejects_unknown_key_type(self):
        with pytest.raises(ValueError, match="Unknown key types"):
            TableFixture(
                name='abc',
                attribute_definitions=[('a', 'S'), ('b', 'S')],
                key_schema=[('a', 'HASH'), ('b', 'SORT')]
            )

    def test_request_shapes(self):
        fixture = TableFixture(name='abc', attribute_definitions=[('a', 'S')], key_schema=[('a', 'HASH')])

        assert fixture.attribute_definitions_request() == [{'AttributeName': 'a', 'AttributeType': 'S'}]
        assert fixture.key_schema_request() == [{'AttributeName': 'a', 'KeyType': 'HASH'}]

    def test_is_frozen(self):
        fixture = TableFixture(name='abc', attribute_definitions=[('a', 'S')], key_schema=[('a', 'HASH')])

        with pytest.raises(ValueError):
            fixture.name = 'other'


class TestCreateTable:

    def test_unique_names(self, manager):
        first = manager.unique_table_name('Users')
        second = manager.unique_table_name('Users')

        assert first.startswith('Users_')
        assert first != second

    def test_unique_name_uses_prefix(self, mock_config, mock_adapter):
        mock_config.table_prefix = 'ci'
        manager = EphemeralTableManager(mock_adapter, mock_config)

        assert manager.unique_table_name('Users').startswith('ci_Users_')

    def test_create_table(self, manager):
        fixture = manager.create_table('shared', ROWS)

        assert fixture.name.startswith('shared_')
        description = manager.adapter.describe_table(fixture.name)
        assert description['TableStatus'] == 'ACTIVE'
        assert {k['AttributeName']: k['KeyType'] for k in description['KeySchema']} == {'hk': 'HASH', 'rk': 'RANGE'}

    def test_missing_row_field(self, manager):
        with pytest.raises(ValidationError, match="attribute_name, attribute_type and key_type"):
            manager.create_table('shared', [{'attribute_name': 'hk', 'attribute_type': 'S'}])

    def test_invalid_key_layout(self, manager):
        rows = [{'attribute_name': 'hk', 'attribute_type': 'S', 'key_type': 'RANGE'}]

        with pytest.raises(ValidationError, match="Invalid table definition"):
            manager.create_table('shared', rows)

    def test_timeout_propagates(self, mock_config, mock_adapter):
        mock_adapter.wait_until_exists.side_effect = ResourceTimeoutError('t', 'table_exists', 3)
        manager = EphemeralTableManager(mock_adapter, mock_config)

        with pytest.raises(ResourceTimeoutError):
            manager.create_table('shared', ROWS)


class TestDeleteTable:

    def test_delete_existing(self, manager):
        fixture = manager.create_table('shared', ROWS)

        manager.delete_table(fixture.name)

        assert manager.adapter.table_exists(fixture.name) is False

    def test_repeated_delete_is_harmless(self, manager):
        fixture = manager.create_table('shared', ROWS)

        manager.delete_table(fixture.name)
        manager.delete_table(fixture.name)
        manager.delete_table(fixture.name)

    def test_busy_then_deleted(self, mock_config, mock_adapter):
        mock_adapter.delete_table.side_effect = [ResourceBusyError('t'), ResourceBusyError('t'), None]
        manager = EphemeralTableManager(mock_adapter, mock_config)

        manager.delete_table('t')

        assert mock_adapter.delete_table.call_count == 3
        assert mock_adapter.wait_until_exists.call_count == 2

    def test_busy_retry_is_bounded(self, mock_config, mock_adapter):
        mock_adapter.delete_table.side_effect = ResourceBusyError('t')
        manager = EphemeralTableManager(mock_adapter, mock_config)

        with pytest.raises(ResourceBusyError):
            manager.delete_table('t')

        assert mock_adapter.delete_table.call_count == mock_config.teardown_max_retries

    def test_not_found_after_busy(self, mock_config, mock_adapter):
        mock_adapter.delete_table.side_effect = [ResourceBusyError('t'), ResourceNotFoundError('t')]
        manager = EphemeralTableManager(mock_adapter, mock_config)

        manager.delete_table('t')

        assert mock_adapter.delete_table.call_count == 2

    def test_other_errors_propagate(self, mock_config, mock_adapter):
        mock_adapter.delete_table.side_effect = ServiceError("denied", "AccessDeniedException")
        manager = EphemeralTableManager(mock_adapter, mock_config)

        with pytest.raises(ServiceError):
            manager.delete_table('t')

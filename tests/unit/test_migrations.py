"""
Tests for table migrations (migrations/controller.py) against moto.
"""

from unittest.mock import patch

import pytest
from botocore.exceptions import ClientError
from pynamodb.exceptions import PynamoDBException

from dynamodb_record_steps.exceptions import ResourceNotFoundError, ResourceTimeoutError, ServiceError, ValidationError
from dynamodb_record_steps.migrations import (
    MigrationOptions,
    TableMigration,
    model_property,
    new_migration,
    table_exists,
)
from dynamodb_record_steps.models import define_model

SPECS = [
    {'method': 'string_attr', 'name': 'id', 'hash_key': True},
    {'method': 'string_attr', 'name': 'name'},
]


@pytest.fixture
def definition(mock_config, mock_dynamodb_client):
    return define_model('migration_test', SPECS, mock_config)


@pytest.fixture
def migration(definition, mock_config):
    return new_migration(definition, mock_config)


class TestMigrationOptions:

    def test_empty(self):
        options = MigrationOptions.parse(None)

        assert options.provisioned_throughput is None
        assert options.billing_mode is None

    def test_throughput(self):
        options = MigrationOptions.parse({
            'provisioned_throughput': {'read_capacity_units': 5, 'write_capacity_units': 2}
        })

        assert options.provisioned_throughput.read_capacity_units == 5
        assert options.provisioned_throughput.write_capacity_units == 2

    def test_passes_instance_through(self):
        options = MigrationOptions(billing_mode='PAY_PER_REQUEST')

        assert MigrationOptions.parse(options) is options

    @pytest.mark.parametrize("options", [
        {'provisioned_throughput': {'read_capacity_units': 0, 'write_capacity_units': 1}},
        {'provisioned_throughput': {'read_capacity_units': 1}},
        {'billing_mode': 'ON_DEMAND'},
        {'unknown': True},
        {'billing_mode': 'PAY_PER_REQUEST',
         'provisioned_throughput': {'read_capacity_units': 1, 'write_capacity_units': 1}},
    ])
    def test_rejected(self, options):
        with pytest.raises(ValidationError, match="Invalid migration options") as exc_info:
            MigrationOptions.parse(options)

        assert exc_info.value.errors


class TestTableMigration:

    def test_create_and_wait(self, migration, definition):
        assert table_exists(definition) is False

        migration.create({'provisioned_throughput': {'read_capacity_units': 1, 'write_capacity_units': 1}})
        migration.wait_until_available()

        assert table_exists(definition) is True
        assert migration.describe()['TableStatus'] == 'ACTIVE'

    def test_create_uses_configured_capacity(self, migration, definition, mock_config):
        migration.create()

        assert model_property(definition, 'provisioned_throughput', mock_config) == {
            'read_capacity_units': mock_config.read_capacity_units,
            'write_capacity_units': mock_config.write_capacity_units,
        }

    def test_create_pay_per_request(self, migration, definition, mock_config):
        migration.create({'billing_mode': 'PAY_PER_REQUEST'})
        migration.wait_until_available()

        assert model_property(definition, 'billing_mode', mock_config) == 'PAY_PER_REQUEST'

    def test_create_existing_table_is_noop(self, migration, definition):
        migration.create()
        migration.create()

        assert table_exists(definition) is True

    def test_update_throughput(self, migration, definition, mock_config):
        migration.create({'provisioned_throughput': {'read_capacity_units': 1, 'write_capacity_units': 1}})
        migration.wait_until_available()

        migration.update({'provisioned_throughput': {'read_capacity_units': 2, 'write_capacity_units': 4}})
        migration.wait_until_available()

        assert model_property(definition, 'provisioned_throughput', mock_config) == {
            'read_capacity_units': 2,
            'write_capacity_units': 4,
        }

    def test_update_to_pay_per_request(self, migration, definition, mock_config):
        migration.create({'provisioned_throughput': {'read_capacity_units': 1, 'write_capacity_units': 1}})
        migration.wait_until_available()

        migration.update({'billing_mode': 'PAY_PER_REQUEST'})
        migration.wait_until_available()

        assert model_property(definition, 'billing_mode', mock_config) == 'PAY_PER_REQUEST'

    def test_update_to_provisioned(self, migration, definition, mock_config):
        migration.create({'billing_mode': 'PAY_PER_REQUEST'})
        migration.wait_until_available()

        migration.update({
            'billing_mode': 'PROVISIONED',
            'provisioned_throughput': {'read_capacity_units': 2, 'write_capacity_units': 2},
        })
        migration.wait_until_available()

        assert model_property(definition, 'billing_mode', mock_config) == 'PROVISIONED'
        assert model_property(definition, 'provisioned_throughput', mock_config) == {
            'read_capacity_units': 2,
            'write_capacity_units': 2,
        }

    def test_update_to_provisioned_requires_throughput(self, migration):
        with pytest.raises(ValidationError, match="PROVISIONED requires provisioned_throughput"):
            migration.update({'billing_mode': 'PROVISIONED'})

    def test_update_billing_mode_missing_table(self, migration):
        with pytest.raises(ResourceNotFoundError):
            migration.update({'billing_mode': 'PAY_PER_REQUEST'})

    def test_update_requires_throughput(self, migration):
        with pytest.raises(ValidationError, match="requires provisioned_throughput"):
            migration.update({})

    def test_delete(self, migration, definition):
        migration.create()
        migration.wait_until_available()

        migration.delete()

        assert table_exists(definition) is False

    def test_delete_missing_table(self, migration):
        with pytest.raises(ResourceNotFoundError):
            migration.delete()

    def test_describe_missing_table(self, migration):
        with pytest.raises(ResourceNotFoundError):
            migration.describe()

    def test_wait_times_out(self, migration, mock_config):
        with patch.object(TableMigration, 'describe', return_value={'TableStatus': 'CREATING'}) as describe:
            with pytest.raises(ResourceTimeoutError) as exc_info:
                migration.wait_until_available()

        assert describe.call_count == mock_config.poll_max_attempts
        assert exc_info.value.attempts == mock_config.poll_max_attempts
        assert exc_info.value.waiting_for == 'ACTIVE'

    def test_wait_treats_missing_table_as_not_ready(self, migration):
        with pytest.raises(ResourceTimeoutError):
            migration.wait_until_available()


class TestModelProperty:

    def test_table_exists(self, migration, definition, mock_config):
        assert model_property(definition, 'table_exists', mock_config) is False

        migration.create()

        assert model_property(definition, 'table_exists?', mock_config) is True

    def test_table_status(self, migration, definition, mock_config):
        migration.create()
        migration.wait_until_available()

        assert model_property(definition, 'table_status', mock_config) == 'ACTIVE'

    def test_unsupported(self, migration, definition, mock_config):
        migration.create()

        with pytest.raises(ValidationError, match="Unsupported model property"):
            model_property(definition, 'item_count', mock_config)


class TestTableExists:

    def test_service_errors_are_mapped(self, definition):
        cause = ClientError(
            {'Error': {'Code': 'AccessDeniedException', 'Message': 'not allowed'}},
            'DescribeTable'
        )

        with patch.object(definition.record_class, 'exists', side_effect=PynamoDBException("describe failed", cause)):
            with pytest.raises(ServiceError) as exc_info:
                table_exists(definition)

        assert exc_info.value.error_code == 'AccessDeniedException'

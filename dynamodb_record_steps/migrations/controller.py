"""
Migration Controller

Structural operations on the table behind a model: create, update, delete
and wait until ACTIVE. Everything goes through the PynamoDB model class so
the table is built from the model's own key schema.

Create, update and delete return as soon as DynamoDB accepts the request.
Callers poll with ``wait_until_available`` (or the client adapter's
``wait_until_not_exists``) when they need the table to settle.
"""

import logging
import time
from typing import Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError, model_validator
from pynamodb.exceptions import PynamoDBException, TableDoesNotExist

from ..config import StepsConfig
from ..core.client_adapter import DynamoDBClientAdapter
from ..exceptions import ResourceNotFoundError, ResourceTimeoutError, ValidationError
from ..models.records import map_pynamodb_error
from ..models.schema import ModelDefinition

logger = logging.getLogger(__name__)

ACTIVE = 'ACTIVE'


class ProvisionedThroughput(BaseModel):
    read_capacity_units: int = Field(..., ge=1)
    write_capacity_units: int = Field(..., ge=1)

    model_config = ConfigDict(extra='forbid')


class MigrationOptions(BaseModel):
    """Options accepted by ``create`` and ``update``."""

    provisioned_throughput: Optional[ProvisionedThroughput] = None
    billing_mode: Optional[Literal['PROVISIONED', 'PAY_PER_REQUEST']] = None

    @model_validator(mode='after')
    def validate_billing(self):
        if self.billing_mode == 'PAY_PER_REQUEST' and self.provisioned_throughput is not None:
            raise ValueError("PAY_PER_REQUEST tables take no provisioned_throughput")
        return self

    model_config = ConfigDict(extra='forbid')

    @classmethod
    def parse(cls, options: Union['MigrationOptions', Dict[str, Any], None]) -> 'MigrationOptions':
        if isinstance(options, cls):
            return options
        try:
            return cls(**(options or {}))
        except PydanticValidationError as e:
            errors = {'.'.join(str(p) for p in err['loc']) or 'options': err['msg'] for err in e.errors()}
            raise ValidationError("Invalid migration options", errors, original_error=e) from e


class TableMigration:
    """Issues table-level operations on behalf of a model definition."""

    def __init__(self, definition: ModelDefinition, config: StepsConfig):
        self.definition = definition
        self.config = config
        self.adapter = DynamoDBClientAdapter(config)

    @property
    def table_name(self) -> str:
        return self.definition.table_name

    @property
    def _record_class(self):
        return self.definition.record_class

    def create(self, options: Union[MigrationOptions, Dict[str, Any], None] = None) -> None:
        """
        Create the table for the model without waiting for it to become ACTIVE.

        Provisioned tables fall back to the configured capacity when no
        throughput is given.
        """
        options = MigrationOptions.parse(options)
        kwargs: Dict[str, Any] = {'wait': False}
        if options.billing_mode == 'PAY_PER_REQUEST':
            kwargs['billing_mode'] = options.billing_mode
        else:
            throughput = options.provisioned_throughput or ProvisionedThroughput(
                read_capacity_units=self.config.read_capacity_units,
                write_capacity_units=self.config.write_capacity_units,
            )
            kwargs['read_capacity_units'] = throughput.read_capacity_units
            kwargs['write_capacity_units'] = throughput.write_capacity_units
            if options.billing_mode:
                kwargs['billing_mode'] = options.billing_mode

        try:
            self._record_class.create_table(**kwargs)
            logger.info(f"Migration created table {self.table_name}")
        except PynamoDBException as e:
            raise map_pynamodb_error(e, "CreateTable", self.table_name) from e

    def update(self, options: Union[MigrationOptions, Dict[str, Any]]) -> None:
        """
        Change the table's provisioned throughput and/or billing mode.

        Switching to PROVISIONED needs a throughput. The table goes through
        UPDATING; call ``wait_until_available`` before relying on it again.
        """
        options = MigrationOptions.parse(options)
        throughput = options.provisioned_throughput
        if throughput is None and options.billing_mode is None:
            raise ValidationError("update requires provisioned_throughput or billing_mode")
        if options.billing_mode == 'PROVISIONED' and throughput is None:
            raise ValidationError("update to PROVISIONED requires provisioned_throughput")

        if options.billing_mode:
            # PynamoDB's update_table only changes throughput
            self.adapter.update_table(
                self.table_name,
                billing_mode=options.billing_mode,
                read_capacity_units=throughput.read_capacity_units if throughput else None,
                write_capacity_units=throughput.write_capacity_units if throughput else None,
            )
            logger.info(f"Migration updated table {self.table_name} to {options.billing_mode}")
            return

        try:
            self._record_class._get_connection().update_table(
                read_capacity_units=throughput.read_capacity_units,
                write_capacity_units=throughput.write_capacity_units,
            )
            logger.info(f"Migration updated table {self.table_name}: {throughput}")
        except TableDoesNotExist as e:
            raise ResourceNotFoundError(self.table_name, "UpdateTable", original_error=e) from e
        except PynamoDBException as e:
            raise map_pynamodb_error(e, "UpdateTable", self.table_name) from e

    def delete(self) -> None:
        """Delete the table. Returns before the table is gone."""
        try:
            self._record_class.delete_table()
            logger.info(f"Migration deleted table {self.table_name}")
        except TableDoesNotExist as e:
            raise ResourceNotFoundError(self.table_name, "DeleteTable", original_error=e) from e
        except PynamoDBException as e:
            raise map_pynamodb_error(e, "DeleteTable", self.table_name) from e

    def describe(self) -> Dict[str, Any]:
        try:
            return self._record_class.describe_table()
        except TableDoesNotExist as e:
            raise ResourceNotFoundError(self.table_name, "DescribeTable", original_error=e) from e
        except PynamoDBException as e:
            raise map_pynamodb_error(e, "DescribeTable", self.table_name) from e

    def wait_until_available(self) -> None:
        """
        Poll until the table is ACTIVE.

        A table that does not exist yet counts as not ready.

        Raises:
            ResourceTimeoutError: After ``poll_max_attempts`` checks
        """
        for attempt in range(1, self.config.poll_max_attempts + 1):
            try:
                status = self.describe().get('TableStatus')
            except ResourceNotFoundError:
                status = None
            if status == ACTIVE:
                return
            logger.debug(f"Table {self.table_name} status {status} (attempt {attempt})")
            if attempt < self.config.poll_max_attempts:
                time.sleep(self.config.poll_delay_seconds)

        raise ResourceTimeoutError(self.table_name, ACTIVE, self.config.poll_max_attempts)


def new_migration(definition: ModelDefinition, config: StepsConfig) -> TableMigration:
    return TableMigration(definition, config)


def table_exists(definition: ModelDefinition) -> bool:
    """Point-in-time existence check, no polling."""
    try:
        return definition.record_class.exists()
    except PynamoDBException as e:
        raise map_pynamodb_error(e, "DescribeTable", definition.table_name) from e


def model_property(definition: ModelDefinition, name: str, config: StepsConfig) -> Any:
    """
    Answer a question about the model's table by name.

    Supported: ``provisioned_throughput``, ``billing_mode``, ``table_status``,
    ``table_exists``.
    """
    if name in ('table_exists', 'table_exists?'):
        return table_exists(definition)

    description = TableMigration(definition, config).describe()
    if name == 'provisioned_throughput':
        throughput = description.get('ProvisionedThroughput', {})
        return {
            'read_capacity_units': throughput.get('ReadCapacityUnits'),
            'write_capacity_units': throughput.get('WriteCapacityUnits'),
        }
    if name == 'billing_mode':
        return description.get('BillingModeSummary', {}).get('BillingMode', 'PROVISIONED')
    if name == 'table_status':
        return description.get('TableStatus')
    raise ValidationError(f"Unsupported model property '{name}'")

"""
Ephemeral table fixtures.

Each scenario gets its own table named ``<base>_<uuid4>`` so scenarios can
run concurrently against one account without colliding. Tables are created
before the scenario body and removed during teardown.
"""

import logging
import uuid
from typing import Any, Dict, List, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..config import StepsConfig
from ..exceptions import ResourceBusyError, ResourceNotFoundError, ValidationError
from .client_adapter import DynamoDBClientAdapter

logger = logging.getLogger(__name__)


class TableFixture(BaseModel):
    """An ephemeral table created for a single scenario."""

    name: str = Field(..., min_length=3, max_length=255)
    attribute_definitions: List[Tuple[str, str]] = Field(..., min_length=1)
    key_schema: List[Tuple[str, str]] = Field(..., min_length=1)

    @field_validator('key_schema')
    @classmethod
    def validate_key_schema(cls, v):
        roles = [role for _, role in v]
        if roles.count('HASH') != 1:
            raise ValueError("Key schema needs exactly one HASH key")
        if roles.count('RANGE') > 1:
            raise ValueError("Key schema allows at most one RANGE key")
        unknown = set(roles) - {'HASH', 'RANGE'}
        if unknown:
            raise ValueError(f"Unknown key types: {sorted(unknown)}")
        return v

    def attribute_definitions_request(self) -> List[Dict[str, str]]:
        return [
            {'AttributeName': name, 'AttributeType': attr_type}
            for name, attr_type in self.attribute_definitions
        ]

    def key_schema_request(self) -> List[Dict[str, str]]:
        return [
            {'AttributeName': name, 'KeyType': key_type}
            for name, key_type in self.key_schema
        ]

    model_config = ConfigDict(frozen=True)


class EphemeralTableManager:
    """Creates scenario tables and tears them down again."""

    def __init__(self, adapter: DynamoDBClientAdapter, config: StepsConfig):
        self.adapter = adapter
        self.config = config

    def unique_table_name(self, base_name: str) -> str:
        return self.config.get_table_name(f"{base_name}_{uuid.uuid4()}")

    def build_fixture(self, base_name: str, rows: List[Dict[str, Any]]) -> TableFixture:
        """Build a TableFixture from decoded step rows.

        Each row carries ``attribute_name``, ``attribute_type`` and
        ``key_type``; the same rows describe both the attribute definitions
        and the key schema.
        """
        try:
            return TableFixture(
                name=self.unique_table_name(base_name),
                attribute_definitions=[(row['attribute_name'], row['attribute_type']) for row in rows],
                key_schema=[(row['attribute_name'], row['key_type']) for row in rows],
            )
        except (KeyError, TypeError) as e:
            raise ValidationError(f"Table rows need attribute_name, attribute_type and key_type: {e}", original_error=e) from e
        except ValueError as e:
            raise ValidationError(f"Invalid table definition: {e}", original_error=e) from e

    def create_table(self, base_name: str, rows: List[Dict[str, Any]]) -> TableFixture:
        """Create a uniquely named table and block until it is ACTIVE.

        Raises:
            ResourceTimeoutError: If the table is not ready within the polling limit
        """
        fixture = self.build_fixture(base_name, rows)
        self.adapter.create_table(
            fixture.name,
            fixture.attribute_definitions_request(),
            fixture.key_schema_request(),
            self.config.read_capacity_units,
            self.config.write_capacity_units,
        )
        self.adapter.wait_until_exists(fixture.name)
        return fixture

    def delete_table(self, table_name: str) -> None:
        """Delete a table, tolerating a table that is already gone.

        While DynamoDB reports the table in use, wait for it to become
        ACTIVE and try again, up to ``teardown_max_retries`` attempts.

        Raises:
            ResourceBusyError: If the table is still in use after the last attempt
        """
        for attempt in range(1, self.config.teardown_max_retries + 1):
            try:
                self.adapter.delete_table(table_name)
                logger.info(f"Cleaned up table: {table_name}")
                return
            except ResourceNotFoundError:
                logger.warning(f"Cleanup: Table {table_name} doesn't exist, continuing.")
                return
            except ResourceBusyError:
                if attempt == self.config.teardown_max_retries:
                    raise
                logger.info(f"Table {table_name} busy, waiting before delete attempt {attempt + 1}")
                self.adapter.wait_until_exists(table_name)

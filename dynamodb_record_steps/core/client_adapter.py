"""
Thin DynamoDB Client Adapter

A lightweight wrapper around the boto3 DynamoDB client used by the steps to
look at a table directly, underneath the mapping layer:

1. Table lifecycle: create, update, delete, describe
2. Readiness polling through the boto3 ``table_exists`` / ``table_not_exists`` waiters
3. Item access with plain JSON values (``get_item`` / ``put_item``)

Every ``ClientError`` is mapped to the step exception taxonomy by
``map_dynamodb_error`` so callers never deal with raw error codes.
"""

import logging
from typing import Any, Dict, List, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError, WaiterError

from ..config import StepsConfig
from ..exceptions import (
    ConditionalCheckFailedError,
    ResourceBusyError,
    ResourceNotFoundError,
    ResourceTimeoutError,
    ServiceError,
    ValidationError,
)
from ..utils import from_dynamodb_item, to_dynamodb_item

logger = logging.getLogger(__name__)


def map_dynamodb_error(
    error: ClientError,
    operation: str,
    table_name: str
) -> Exception:
    """Map a DynamoDB ClientError to a step exception.

    Args:
        error: The botocore ClientError
        operation: The operation that failed (e.g., "CreateTable", "GetItem")
        table_name: The DynamoDB table name

    Returns:
        ResourceNotFoundError, ResourceBusyError, ConditionalCheckFailedError,
        ValidationError or ServiceError
    """
    error_code = error.response.get('Error', {}).get('Code', 'Unknown')
    error_message = error.response.get('Error', {}).get('Message', str(error))

    full_message = f"{operation} on {table_name}: {error_message}"

    if error_code == 'ResourceNotFoundException':
        return ResourceNotFoundError(table_name, operation, original_error=error)

    elif error_code == 'ResourceInUseException':
        return ResourceBusyError(table_name, f"Resource in use - {full_message}", original_error=error)

    elif error_code == 'ConditionalCheckFailedException':
        return ConditionalCheckFailedError(f"Conditional check failed - {full_message}", table_name, original_error=error)

    elif error_code == 'ValidationException':
        return ValidationError(f"Validation failed - {full_message}", original_error=error)

    logger.debug(f"DynamoDB error code '{error_code}' mapped to ServiceError")
    return ServiceError(full_message, error_code, original_error=error)


class DynamoDBClientAdapter:
    """
    Table and item operations against DynamoDB, keyed by table name.

    The boto3 client is created lazily from the configuration so an adapter
    can be built before any AWS mock or endpoint is in place.
    """

    def __init__(self, config: StepsConfig):
        self.config = config
        self._client = None

    @property
    def client(self):
        """Lazy initialization of the DynamoDB client."""
        if self._client is None:
            session = boto3.Session(
                aws_access_key_id=self.config.aws_access_key_id,
                aws_secret_access_key=self.config.aws_secret_access_key,
                region_name=self.config.region_name
            )

            client_kwargs = {
                'region_name': self.config.region_name,
                'config': Config(
                    retries={'max_attempts': self.config.retries},
                    read_timeout=self.config.timeout_seconds,
                    connect_timeout=self.config.timeout_seconds
                )
            }
            if self.config.endpoint_url:
                client_kwargs['endpoint_url'] = self.config.endpoint_url

            self._client = session.client('dynamodb', **client_kwargs)
        return self._client

    def create_table(
        self,
        table_name: str,
        attribute_definitions: List[Dict[str, str]],
        key_schema: List[Dict[str, str]],
        read_capacity_units: Optional[int] = None,
        write_capacity_units: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        Issue CreateTable with provisioned throughput.

        Returns immediately; the table may still be CREATING.

        Returns:
            The TableDescription from DynamoDB
        """
        try:
            response = self.client.create_table(
                TableName=table_name,
                AttributeDefinitions=attribute_definitions,
                KeySchema=key_schema,
                ProvisionedThroughput={
                    'ReadCapacityUnits': read_capacity_units or self.config.read_capacity_units,
                    'WriteCapacityUnits': write_capacity_units or self.config.write_capacity_units
                }
            )
            logger.info(f"Created table {table_name}")
            return response['TableDescription']
        except ClientError as e:
            raise map_dynamodb_error(e, "CreateTable", table_name) from e

    def delete_table(self, table_name: str) -> None:
        """Issue DeleteTable. Returns before the table is gone."""
        try:
            self.client.delete_table(TableName=table_name)
            logger.info(f"Deleted table {table_name}")
        except ClientError as e:
            raise map_dynamodb_error(e, "DeleteTable", table_name) from e

    def update_table(
        self,
        table_name: str,
        billing_mode: Optional[str] = None,
        read_capacity_units: Optional[int] = None,
        write_capacity_units: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        Issue UpdateTable for billing mode and/or provisioned throughput.

        Returns immediately; the table may still be UPDATING.
        """
        request: Dict[str, Any] = {'TableName': table_name}
        if billing_mode:
            request['BillingMode'] = billing_mode
        if read_capacity_units is not None and write_capacity_units is not None:
            request['ProvisionedThroughput'] = {
                'ReadCapacityUnits': read_capacity_units,
                'WriteCapacityUnits': write_capacity_units
            }

        try:
            response = self.client.update_table(**request)
            logger.info(f"Updated table {table_name}: {request}")
            return response['TableDescription']
        except ClientError as e:
            raise map_dynamodb_error(e, "UpdateTable", table_name) from e

    def describe_table(self, table_name: str) -> Dict[str, Any]:
        """Return the TableDescription for a table."""
        try:
            return self.client.describe_table(TableName=table_name)['Table']
        except ClientError as e:
            raise map_dynamodb_error(e, "DescribeTable", table_name) from e

    def table_exists(self, table_name: str) -> bool:
        """Point-in-time check, no polling."""
        try:
            self.describe_table(table_name)
            return True
        except ResourceNotFoundError:
            return False

    def wait_until_exists(self, table_name: str) -> None:
        """
        Block until the table is ACTIVE.

        Raises:
            ResourceTimeoutError: If the waiter attempt limit is exhausted
        """
        self._wait('table_exists', table_name)

    def wait_until_not_exists(self, table_name: str) -> None:
        """
        Block until the table is gone.

        Raises:
            ResourceTimeoutError: If the waiter attempt limit is exhausted
        """
        self._wait('table_not_exists', table_name)

    def _wait(self, waiter_name: str, table_name: str) -> None:
        logger.debug(f"Waiting for {waiter_name} on {table_name} ({self.config.waiter_config})")
        try:
            self.client.get_waiter(waiter_name).wait(
                TableName=table_name,
                WaiterConfig=self.config.waiter_config
            )
        except WaiterError as e:
            raise ResourceTimeoutError(
                table_name, waiter_name, self.config.poll_max_attempts, original_error=e
            ) from e

    def get_item(self, table_name: str, key: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Fetch an item with a consistent read.

        Args:
            table_name: Table to read
            key: Plain key mapping, e.g. ``{'id': 'u1'}``

        Returns:
            The item as plain values, or None if no item matches
        """
        try:
            response = self.client.get_item(
                TableName=table_name,
                Key=to_dynamodb_item(key),
                ConsistentRead=True
            )
        except ClientError as e:
            raise map_dynamodb_error(e, "GetItem", table_name) from e

        item = response.get('Item')
        if not item:
            return None
        return from_dynamodb_item(item)

    def put_item(self, table_name: str, item: Dict[str, Any]) -> None:
        """Write a plain item mapping to the table."""
        try:
            self.client.put_item(TableName=table_name, Item=to_dynamodb_item(item))
            logger.info(f"Put item in {table_name}: {item}")
        except ClientError as e:
            raise map_dynamodb_error(e, "PutItem", table_name) from e


def create_client_adapter(config: Optional[StepsConfig] = None) -> DynamoDBClientAdapter:
    """
    Factory function to create a DynamoDBClientAdapter.

    Args:
        config: Step configuration, read from the environment when omitted
    """
    return DynamoDBClientAdapter(config or StepsConfig.from_env())

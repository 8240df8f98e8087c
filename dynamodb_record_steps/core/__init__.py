"""
Core infrastructure for talking to DynamoDB underneath the mapping layer.

- DynamoDBClientAdapter: thin wrapper over the boto3 client
- EphemeralTableManager: per-scenario table creation and teardown
"""

from .client_adapter import DynamoDBClientAdapter, create_client_adapter, map_dynamodb_error
from .fixtures import EphemeralTableManager, TableFixture

__all__ = [
    "DynamoDBClientAdapter",
    "EphemeralTableManager",
    "TableFixture",
    "create_client_adapter",
    "map_dynamodb_error",
]

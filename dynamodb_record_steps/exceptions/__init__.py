# Base exception class
from .base import DynamoDBStepsError

from .domain_exceptions import (
    ConditionalCheckFailedError,
    InvalidSchemaError,
    RecordNotFoundError,
    ResourceBusyError,
    ResourceNotFoundError,
    ResourceTimeoutError,
    ServiceError,
    ValidationError,
)

__all__ = [
    # Base exception
    "DynamoDBStepsError",

    # Domain exceptions (alphabetically ordered)
    "ConditionalCheckFailedError",
    "InvalidSchemaError",
    "RecordNotFoundError",
    "ResourceBusyError",
    "ResourceNotFoundError",
    "ResourceTimeoutError",
    "ServiceError",
    "ValidationError",
]

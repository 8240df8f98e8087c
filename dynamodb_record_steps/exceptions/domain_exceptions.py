"""
Exceptions raised by the step definitions and their helpers.

Organized by category:
1. Input and schema validation
2. Table (resource) lifecycle
3. Record operations
4. Everything else DynamoDB rejects
"""

from typing import Any, Dict, Optional

from .base import DynamoDBStepsError


# =============================================================================
# Input and Schema Validation
# =============================================================================

class ValidationError(DynamoDBStepsError):
    """Raised when step input cannot be applied to a model.

    Used for:
    - Setting an attribute the model does not declare
    - Lookups missing a hash or range key value
    - Malformed JSON fixtures
    """

    def __init__(self, message: str, errors: Optional[Dict[str, Any]] = None, original_error: Optional[Exception] = None):
        self.errors = errors or {}
        context = {}
        if self.errors:
            context['validation_errors'] = self.errors
        super().__init__(message, original_error, context)


class InvalidSchemaError(ValidationError):
    """Raised when a model definition violates key or attribute constraints."""


# =============================================================================
# Table Lifecycle Errors
# =============================================================================

class ResourceNotFoundError(DynamoDBStepsError):
    """Raised when a table does not exist."""

    def __init__(self, table_name: str, operation: Optional[str] = None, original_error: Optional[Exception] = None):
        self.table_name = table_name
        context = {'table_name': table_name}
        if operation:
            context['operation'] = operation
        super().__init__(f"Table '{table_name}' not found", original_error, context)


class ResourceBusyError(DynamoDBStepsError):
    """Raised when a table is being created, updated or deleted."""

    def __init__(self, table_name: str, message: Optional[str] = None, original_error: Optional[Exception] = None):
        self.table_name = table_name
        super().__init__(message or f"Table '{table_name}' is in use", original_error, {'table_name': table_name})


class ResourceTimeoutError(DynamoDBStepsError):
    """Raised when a polling limit is exhausted before the table settles."""

    def __init__(self, table_name: str, waiting_for: str, attempts: Optional[int] = None, original_error: Optional[Exception] = None):
        self.table_name = table_name
        self.waiting_for = waiting_for
        self.attempts = attempts
        context = {'table_name': table_name, 'waiting_for': waiting_for}
        if attempts is not None:
            context['attempts'] = attempts
        super().__init__(f"Timed out waiting for table '{table_name}' ({waiting_for})", original_error, context)


# =============================================================================
# Record Errors
# =============================================================================

class RecordNotFoundError(DynamoDBStepsError):
    """Raised when a lookup matches no item."""

    def __init__(self, table_name: str, key: dict, original_error: Optional[Exception] = None):
        self.table_name = table_name
        self.key = key
        message = f"Record not found in table '{table_name}' with key: {key}"
        super().__init__(message, original_error, {'table_name': table_name, 'key': key})


class ConditionalCheckFailedError(DynamoDBStepsError):
    """Raised when DynamoDB rejects a write because its condition failed."""

    def __init__(self, message: str, table_name: Optional[str] = None, original_error: Optional[Exception] = None):
        self.table_name = table_name
        context = {}
        if table_name:
            context['table_name'] = table_name
        super().__init__(message, original_error, context)


# =============================================================================
# Service Errors
# =============================================================================

class ServiceError(DynamoDBStepsError):
    """Raised for any other rejection from DynamoDB, message kept verbatim."""

    def __init__(self, message: str, error_code: Optional[str] = None, original_error: Optional[Exception] = None):
        self.error_code = error_code
        context = {}
        if error_code:
            context['error_code'] = error_code
        super().__init__(message, original_error, context)

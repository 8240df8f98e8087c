"""
DynamoDB record mapping step definitions.

pytest-bdd steps that exercise PynamoDB models against DynamoDB: ephemeral
tables per scenario, runtime-built models, record save/find/delete, table
migrations, and assertions on both the mapped instance and the stored item.
The steps themselves live in ``dynamodb_record_steps.steps``.
"""

from .assertions import assert_attributes_equal, assert_item_absent, assert_item_matches, assert_item_present
from .config import StepsConfig, configure_logging
from .context import ScenarioContext
from .core import (
    DynamoDBClientAdapter,
    EphemeralTableManager,
    TableFixture,
    create_client_adapter,
)
from .exceptions import (
    ConditionalCheckFailedError,
    DynamoDBStepsError,
    InvalidSchemaError,
    RecordNotFoundError,
    ResourceBusyError,
    ResourceNotFoundError,
    ResourceTimeoutError,
    ServiceError,
    ValidationError,
)
from .migrations import MigrationOptions, TableMigration, model_property, new_migration, table_exists
from .models import (
    AttributeSpec,
    ModelDefinition,
    attribute_values,
    define_model,
    delete,
    find,
    new_instance,
    save,
    set_attribute,
)

__version__ = "1.0.0"
__all__ = [
    # Configuration
    "StepsConfig",
    "configure_logging",

    # Exceptions
    "ConditionalCheckFailedError",
    "DynamoDBStepsError",
    "InvalidSchemaError",
    "RecordNotFoundError",
    "ResourceBusyError",
    "ResourceNotFoundError",
    "ResourceTimeoutError",
    "ServiceError",
    "ValidationError",

    # Client adapter and fixtures
    "DynamoDBClientAdapter",
    "EphemeralTableManager",
    "TableFixture",
    "create_client_adapter",

    # Model definitions and records
    "AttributeSpec",
    "ModelDefinition",
    "attribute_values",
    "define_model",
    "delete",
    "find",
    "new_instance",
    "save",
    "set_attribute",

    # Migrations
    "MigrationOptions",
    "TableMigration",
    "model_property",
    "new_migration",
    "table_exists",

    # Assertions and scenario state
    "ScenarioContext",
    "assert_attributes_equal",
    "assert_item_absent",
    "assert_item_matches",
    "assert_item_present",
]

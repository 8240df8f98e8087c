from .controller import (
    MigrationOptions,
    ProvisionedThroughput,
    TableMigration,
    model_property,
    new_migration,
    table_exists,
)

__all__ = [
    "MigrationOptions",
    "ProvisionedThroughput",
    "TableMigration",
    "model_property",
    "new_migration",
    "table_exists",
]

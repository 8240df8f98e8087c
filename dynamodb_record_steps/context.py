"""
Scenario context.

Holds everything a scenario accumulates (the fixture table, the model
definition, the current instance and migration) and is passed explicitly to
every step. One context is created per scenario and torn down at its end.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict
from pynamodb.models import Model

from .config import StepsConfig
from .core import DynamoDBClientAdapter, EphemeralTableManager, TableFixture
from .migrations import TableMigration
from .models import ModelDefinition


class ScenarioContext(BaseModel):
    config: StepsConfig
    adapter: DynamoDBClientAdapter
    tables: EphemeralTableManager

    table_name: Optional[str] = None
    table_fixture: Optional[TableFixture] = None
    model: Optional[ModelDefinition] = None
    instance: Optional[Model] = None
    migration: Optional[TableMigration] = None
    last_item: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @classmethod
    def start(cls, config: StepsConfig) -> 'ScenarioContext':
        adapter = DynamoDBClientAdapter(config)
        return cls(config=config, adapter=adapter, tables=EphemeralTableManager(adapter, config))

    def require_table(self) -> str:
        assert self.table_name, "No table has been set up for this scenario"
        return self.table_name

    def require_model(self) -> ModelDefinition:
        assert self.model is not None, "No model has been defined for this scenario"
        return self.model

    def require_instance(self) -> Model:
        assert self.instance is not None, "No model instance in this scenario"
        return self.instance

    def require_migration(self) -> TableMigration:
        assert self.migration is not None, "No table migration in this scenario"
        return self.migration

    def teardown(self) -> None:
        """Delete the scenario's table, if any."""
        if self.table_name is None:
            return
        self.tables.delete_table(self.table_name)
        self.table_name = None

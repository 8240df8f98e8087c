import logging
import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

# Load environment variables from .env file if it exists
load_dotenv()


class StepsConfig(BaseModel):
    """Configuration for the DynamoDB connection and the polling limits used by the steps."""

    aws_access_key_id: Optional[str] = Field(
        default_factory=lambda: os.getenv("AWS_ACCESS_KEY_ID"),
        description="AWS access key ID"
    )

    aws_secret_access_key: Optional[str] = Field(
        default_factory=lambda: os.getenv("AWS_SECRET_ACCESS_KEY"),
        description="AWS secret access key"
    )

    region_name: str = Field(
        default_factory=lambda: os.getenv("AWS_REGION", "us-east-1"),
        description="AWS region name"
    )

    # DynamoDB specific settings
    endpoint_url: Optional[str] = Field(
        default_factory=lambda: os.getenv("DYNAMODB_ENDPOINT_URL"),
        description="DynamoDB endpoint URL (LocalStack or DynamoDB Local)"
    )

    table_prefix: str = Field(
        default_factory=lambda: os.getenv("DYNAMODB_TABLE_PREFIX", ""),
        description="Prefix added to every ephemeral table name"
    )

    # Polling limits
    poll_delay_seconds: float = Field(
        default=5.0,
        description="Delay between table status checks"
    )

    poll_max_attempts: int = Field(
        default=25,
        description="Maximum number of table status checks before giving up"
    )

    teardown_max_retries: int = Field(
        default=10,
        description="Maximum delete attempts while a table reports it is in use"
    )

    # Provisioning for fixture tables
    read_capacity_units: int = Field(default=1, description="Read capacity for fixture tables")
    write_capacity_units: int = Field(default=1, description="Write capacity for fixture tables")

    # Connection settings
    retries: int = Field(
        default=3,
        description="Number of botocore retry attempts for failed requests"
    )

    timeout_seconds: float = Field(
        default=30.0,
        description="Request timeout in seconds"
    )

    # Logging settings
    enable_debug_logging: bool = Field(
        default_factory=lambda: os.getenv("DYNAMODB_DEBUG_LOGGING", "false").lower() == "true",
        description="Enable debug logging for DynamoDB operations"
    )

    @field_validator('region_name')
    @classmethod
    def validate_region(cls, v):
        """Validate AWS region name."""
        if not v:
            raise ValueError("AWS region name is required")
        return v

    @field_validator('poll_max_attempts', 'teardown_max_retries', 'read_capacity_units', 'write_capacity_units')
    @classmethod
    def validate_positive(cls, v, info):
        if v < 1:
            raise ValueError(f"{info.field_name} must be at least 1")
        return v

    @field_validator('poll_delay_seconds')
    @classmethod
    def validate_delay(cls, v):
        if v < 0:
            raise ValueError("poll_delay_seconds cannot be negative")
        return v

    def get_table_name(self, base_name: str) -> str:
        """Get the table name with the configured prefix.

        Args:
            base_name: Base table name

        Returns:
            Table name with prefix
        """
        if self.table_prefix:
            return f"{self.table_prefix}_{base_name}"
        return base_name

    @property
    def waiter_config(self) -> dict:
        """WaiterConfig for boto3 table waiters."""
        return {'Delay': self.poll_delay_seconds, 'MaxAttempts': self.poll_max_attempts}

    @classmethod
    def from_env(cls) -> 'StepsConfig':
        """Create configuration from environment variables."""
        return cls()

    @classmethod
    def for_local_development(cls) -> 'StepsConfig':
        """Create configuration for DynamoDB Local.

        Returns:
            StepsConfig instance configured for local development
        """
        return cls(
            aws_access_key_id="local",
            aws_secret_access_key="local",
            region_name="us-east-1",
            endpoint_url="http://localhost:8000",
            poll_delay_seconds=1.0,
            enable_debug_logging=True
        )

    model_config = ConfigDict(
        validate_assignment=True
    )


def configure_logging(config: StepsConfig) -> None:
    """Set the package logger level from the configuration."""
    level = logging.DEBUG if config.enable_debug_logging else logging.INFO
    logging.getLogger("dynamodb_record_steps").setLevel(level)

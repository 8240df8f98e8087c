"""
Test configuration and fixtures.

Everything runs against moto's in-memory DynamoDB unless
DYNAMODB_ENDPOINT_URL is set, in which case the scenarios talk to that
endpoint (LocalStack or DynamoDB Local) instead.
"""

import os

import boto3
import pytest
from moto import mock_aws

from dynamodb_record_steps import StepsConfig, configure_logging

REGION = "us-east-1"


def live_endpoint():
    return os.getenv("DYNAMODB_ENDPOINT_URL")


@pytest.fixture
def mock_config():
    """Configuration for mocked testing with short polling limits."""
    return StepsConfig(
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
        region_name=REGION,
        endpoint_url=None,  # Use default AWS endpoint for moto
        poll_delay_seconds=0,
        poll_max_attempts=3,
        teardown_max_retries=3
    )


@pytest.fixture
def mock_dynamodb_client():
    """Mock DynamoDB client."""
    with mock_aws():
        yield boto3.client('dynamodb', region_name=REGION)


@pytest.fixture
def aws_backend():
    if live_endpoint():
        yield None
    else:
        with mock_aws():
            yield boto3.client('dynamodb', region_name=REGION)


@pytest.fixture
def steps_config(aws_backend, mock_config):
    """Configuration consumed by the step definitions' scenario_context."""
    config = StepsConfig.from_env() if live_endpoint() else mock_config
    configure_logging(config)
    return config

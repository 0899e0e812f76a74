"""
Pytest configuration and shared fixtures for lambda_kit.

This module provides common test fixtures and configuration used across
unit and integration tests.
"""

import os
from typing import Any, Callable, Dict
from unittest.mock import Mock

import boto3
import pytest
from moto import mock_aws

from lambda_kit.handlers.models.env_vars import HandlerEnvVars
from lambda_kit.logic.invocation import Invocation

FUNCTION_NAME = "orders-dev-create"
LOG_GROUP_NAME = "/lambda-kit/errors"


# Test environment configuration
@pytest.fixture(scope="session", autouse=True)
def test_environment():
    """Set up test environment variables."""
    os.environ.update({
        "AWS_DEFAULT_REGION": "us-east-1",
        "AWS_ACCESS_KEY_ID": "test",
        "AWS_SECRET_ACCESS_KEY": "test",
        "POWERTOOLS_SERVICE_NAME": "test-lambda-kit",
        "POWERTOOLS_METRICS_NAMESPACE": "TestLambdaKit",
        "POWERTOOLS_TRACE_DISABLED": "true",  # Disable X-Ray in tests
        "LOG_LEVEL": "DEBUG",
    })


@pytest.fixture
def make_settings() -> Callable[..., HandlerEnvVars]:
    """Factory for handler settings; overrides use the environment variable names."""

    def factory(**overrides: Any) -> HandlerEnvVars:
        values = {"AWS_LAMBDA_FUNCTION_NAME": FUNCTION_NAME}
        values.update(overrides)
        return HandlerEnvVars(**values)

    return factory


@pytest.fixture
def settings(make_settings) -> HandlerEnvVars:
    return make_settings()


@pytest.fixture
def lambda_context():
    """Create a mock Lambda context for testing."""
    context = Mock()
    context.function_name = FUNCTION_NAME
    context.function_version = "1"
    context.invoked_function_arn = f"arn:aws:lambda:us-east-1:123456789012:function:{FUNCTION_NAME}"
    context.memory_limit_in_mb = 512
    context.aws_request_id = "test-request-id-123"
    context.log_group_name = f"/aws/lambda/{FUNCTION_NAME}"
    context.log_stream_name = "2024/01/01/[$LATEST]test123"
    context.get_remaining_time_in_millis.return_value = 30000
    return context


@pytest.fixture
def api_gateway_event() -> Dict[str, Any]:
    """Create a sample API Gateway event for testing."""
    return {
        "httpMethod": "POST",
        "path": "/api/orders",
        "headers": {
            "Content-Type": "application/json",
            "Authorization": "Bearer abc",
            "X-Amz-Security-Token": "very-secret-session-token",
        },
        "body": '{"amount": 25, "currency": "EUR", "password": "hunter2"}',
        "requestContext": {
            "requestId": "test-request-id-123",
            "accountId": "123456789012",
            "stage": "test",
        },
        "pathParameters": None,
        "queryStringParameters": None,
        "isBase64Encoded": False,
    }


@pytest.fixture
def logs_client():
    """Mock CloudWatch Logs client."""
    return Mock()


@pytest.fixture
def invocation(api_gateway_event, lambda_context, settings, logs_client) -> Invocation:
    return Invocation.start(api_gateway_event, lambda_context, settings=settings, logs_client=logs_client)


# Moto-backed AWS fixtures
@pytest.fixture
def aws():
    with mock_aws():
        yield


@pytest.fixture
def dynamodb_resource(aws):
    return boto3.resource("dynamodb", region_name="us-east-1")


@pytest.fixture
def dynamodb_table(dynamodb_resource):
    """Create a mock DynamoDB table for testing."""
    table = dynamodb_resource.create_table(
        TableName="test-orders-table",
        KeySchema=[
            {"AttributeName": "pk", "KeyType": "HASH"},
            {"AttributeName": "sk", "KeyType": "RANGE"},
        ],
        AttributeDefinitions=[
            {"AttributeName": "pk", "AttributeType": "S"},
            {"AttributeName": "sk", "AttributeType": "S"},
        ],
        BillingMode="PAY_PER_REQUEST",
    )
    table.wait_until_exists()
    return table


@pytest.fixture
def cloudwatch_logs(aws):
    """Real (moto) CloudWatch Logs client with the destination group created."""
    client = boto3.client("logs", region_name="us-east-1")
    client.create_log_group(logGroupName=LOG_GROUP_NAME)
    return client


# Error simulation fixtures
@pytest.fixture
def client_error():
    """Build botocore ClientErrors for testing error handling."""
    from botocore.exceptions import ClientError

    def create_error(error_code: str, message: str = "Test error", status_code: int = 400,
                     operation_name: str = "TestOperation"):
        return ClientError(
            error_response={
                "Error": {
                    "Code": error_code,
                    "Message": message,
                },
                "ResponseMetadata": {"HTTPStatusCode": status_code},
            },
            operation_name=operation_name,
        )

    return create_error


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)

"""
Ping Lambda Function - sample entry point built on lambda_kit.

Echoes the validated request body back, which makes it a convenient smoke test
for the parameter gate, the response envelope and log shipping.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Tuple

from aws_lambda_powertools.logging import correlation_paths

from lambda_kit import Invocation, logger, metrics, request_handler


@request_handler
def ping(invocation: Invocation) -> Tuple[int, Dict[str, Any]]:
    """Answer with the request body and where it was handled."""
    body = invocation.body if isinstance(invocation.body, dict) else {}

    if body.get('fail'):
        invocation.record_error({'message': 'Ping asked to fail'}, {'requested': True})

    return 200, {
        "message": "pong",
        "echo": body,
        "function_name": invocation.function_name,
        "environment": invocation.environment,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@metrics.log_metrics
@logger.inject_lambda_context(correlation_id_path=correlation_paths.API_GATEWAY_REST)
def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda function entry point for the ping API.

    Args:
        event: API Gateway proxy event
        context: Lambda context object

    Returns:
        API Gateway response dictionary
    """
    return ping(event, context)

"""
Helper library for AWS Lambda request handlers.

Handlers built with lambda_kit get:

- a per-invocation context (Invocation) carrying the decoded, masked request
- a parameter gate enforcing configured required header and body fields
- a CORS response envelope, with 5xx statuses raised to the Lambda host
- collaborator wrappers for Lambda, DynamoDB and HTTP calls
- deferred shipping of error records to CloudWatch Logs after the response
"""

__version__ = "1.0.0"

from lambda_kit.handlers.request_handler import request_handler
from lambda_kit.handlers.utils.errors import (
    CollaboratorError,
    ConditionalCheckFailedError,
    MissingFieldError,
    MissingSectionError,
    ServerErrorResponse,
    ServiceError,
)
from lambda_kit.handlers.utils.observability import logger, metrics, tracer
from lambda_kit.handlers.utils.tracing import span
from lambda_kit.logic.invocation import Invocation

__all__ = [
    "__version__",
    "request_handler",
    "Invocation",
    "ServiceError",
    "MissingSectionError",
    "MissingFieldError",
    "CollaboratorError",
    "ConditionalCheckFailedError",
    "ServerErrorResponse",
    "logger",
    "tracer",
    "metrics",
    "span",
]

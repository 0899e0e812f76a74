"""
Handler layer: the Lambda-facing decorator and its utilities.

- request_handler: wraps a business function as a Lambda entry point
- models: typed environment configuration
- utils: observability singletons, errors, response envelope, tracing spans
"""

from lambda_kit.handlers.utils.observability import logger, tracer, metrics

__all__ = [
    "logger",
    "tracer",
    "metrics",
]

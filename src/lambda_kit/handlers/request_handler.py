"""
Request handler decorator.

Turns a business function ``func(invocation) -> (status_code, body)`` into a
Lambda entry point ``handler(event, context)`` that validates the request,
shapes the response envelope and flushes deferred log records after the
response has been completed.
"""

import functools
from typing import Any, Callable, Dict, Tuple

from aws_lambda_powertools.metrics import MetricUnit

from lambda_kit.handlers.utils.errors import (
    ErrorCode,
    InvalidBodyError,
    MissingFieldError,
    MissingSectionError,
    ServiceError,
)
from lambda_kit.handlers.utils.observability import logger, metrics, tracer
from lambda_kit.logic.invocation import Invocation

HandlerResult = Tuple[int, Any]

GATE_ERRORS = (MissingSectionError, MissingFieldError, InvalidBodyError)


def run_handler(func: Callable[[Invocation], HandlerResult], invocation: Invocation) -> HandlerResult:
    """Validate and run ``func``, mapping every failure to a status and body."""
    try:
        invocation.validate()
        return func(invocation)

    except GATE_ERRORS as e:
        metrics.add_metric(name="RequestRejected", unit=MetricUnit.Count, value=1)
        return e.status_code, e.to_dict()

    except ServiceError as e:
        # collaborators record their own failures
        logger.warning("Service error in request handler", extra={"error": e.to_dict()})
        return e.status_code, e.to_dict()

    except Exception as e:
        logger.exception("Unhandled error in request handler", extra={
            "error": str(e),
            "function_name": getattr(func, '__name__', repr(func)),
        })
        invocation.record_error(e)
        return 500, {
            "code": ErrorCode.INTERNAL_ERROR.value,
            "message": "An unexpected error occurred",
            "statusCode": 500,
        }


def request_handler(func: Callable[[Invocation], HandlerResult]) -> Callable[[Dict[str, Any], Any], Dict[str, Any]]:
    """
    Decorate a business function as a Lambda handler.

    Args:
        func: Receives the Invocation and returns ``(status_code, body)``

    Returns:
        Lambda handler returning the envelope for statuses below 500 and
        raising ServerErrorResponse for 500 and above
    """

    @functools.wraps(func)
    def wrapper(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
        invocation = Invocation.start(event, context)
        tracer.put_annotation("function_name", invocation.function_name)

        try:
            status_code, body = run_handler(func, invocation)
            return invocation.complete(status_code, body)
        finally:
            # the envelope is final here, whether returned or raised
            if invocation.completed:
                invocation.flush()

    return wrapper

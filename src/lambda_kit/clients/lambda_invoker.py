"""
Remote function invocation.

Invokes sibling functions deployed in the same environment and unwraps the
API Gateway style envelope they answer with.
"""

import json
from functools import lru_cache
from typing import Any, Dict, Mapping, Optional

import boto3
from aws_lambda_powertools.metrics import MetricUnit
from botocore.exceptions import BotoCoreError, ClientError

from lambda_kit.handlers.utils.errors import CollaboratorError
from lambda_kit.handlers.utils.observability import logger, metrics, tracer
from lambda_kit.logic.invocation import Invocation

SERVICE_NAME = 'Lambda'


@lru_cache(maxsize=1)
def get_lambda_client():
    return boto3.client('lambda')


def _decode(raw: Any) -> Any:
    if raw is None or raw == '' or raw == b'':
        return None
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode('utf-8')
    if isinstance(raw, str):
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            return raw
    return raw


class LambdaInvoker:
    """Calls other functions on behalf of one invocation."""

    def __init__(self, invocation: Invocation, client: Any = None):
        self.invocation = invocation
        self.client = client or get_lambda_client()

    def target_name(self, function_name: str) -> str:
        """Functions are deployed as ``<name>-<environment>``."""
        return f"{function_name}-{self.invocation.environment}"

    def _fail(self, message: str, status_code: int, details: Dict[str, Any]) -> CollaboratorError:
        metrics.add_metric(name="CollaboratorFailure", unit=MetricUnit.Count, value=1)
        error = CollaboratorError(
            message=message,
            service_name=SERVICE_NAME,
            status_code=status_code,
            details=details,
        )
        self.invocation.record_error(error)
        return error

    @tracer.capture_method
    def invoke(
        self,
        function_name: str,
        payload: Any,
        options: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """
        Invoke a function and return its decoded response body.

        Args:
            function_name: Function name without the environment suffix
            payload: JSON-serializable payload
            options: Extra Invoke parameters, e.g. ``{'InvocationType': 'Event'}``

        Returns:
            Decoded body of a 2xx response, the payload itself when it is not a
            statusCode/body envelope, None for asynchronous invocations

        Raises:
            CollaboratorError: When the call fails or answers with a non-2xx status
        """
        params: Dict[str, Any] = {
            'FunctionName': self.target_name(function_name),
            'Payload': json.dumps(payload, default=str),
        }
        if options:
            params.update(options)

        try:
            result = self.client.invoke(**params)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error invoking {params['FunctionName']}", extra={"error": str(e)})
            status_code = 500
            if isinstance(e, ClientError):
                status_code = e.response.get('ResponseMetadata', {}).get('HTTPStatusCode', 500)
            raise self._fail(
                f"Error invoking {params['FunctionName']}",
                status_code,
                {"function_name": params['FunctionName'], "reason": str(e)},
            ) from e

        if params.get('InvocationType') in ('Event', 'DryRun'):
            return None

        stream = result.get('Payload')
        response_payload = _decode(stream.read() if hasattr(stream, 'read') else stream)

        if result.get('FunctionError'):
            raise self._fail(
                f"{params['FunctionName']} raised {result['FunctionError']}",
                500,
                {"function_name": params['FunctionName'], "payload": response_payload},
            )

        if not isinstance(response_payload, dict) or not (
            'statusCode' in response_payload or 'body' in response_payload
        ):
            return response_payload

        body = _decode(response_payload.get('body'))
        try:
            status_code = int(response_payload.get('statusCode', 200))
        except (TypeError, ValueError) as e:
            raise self._fail(
                f"{params['FunctionName']} responded with an unreadable status",
                500,
                {"function_name": params['FunctionName'], "statusCode": str(response_payload.get('statusCode'))},
            ) from e

        if 200 <= status_code < 300:
            return body

        logger.warning("Invoked function answered with an error status", extra={
            "function_name": params['FunctionName'],
            "status_code": status_code,
        })
        raise CollaboratorError(
            message=f"{params['FunctionName']} responded with status {status_code}",
            service_name=SERVICE_NAME,
            status_code=status_code,
            details={"body": body},
        )

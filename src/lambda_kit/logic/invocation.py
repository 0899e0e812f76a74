"""
Per-invocation request context.

An Invocation holds everything one Lambda call needs: the decoded event, the
masked snapshot, the settings and the deferred log shipper. It is created at
the start of the call and handed to collaborators explicitly; nothing about a
request lives in module state.

One Invocation serves one call. It completes once and flushes once, and the
flush is refused until the response has been completed.
"""

import copy
import json
import time
from typing import Any, Dict, Mapping, Optional

from lambda_kit.handlers.models.env_vars import HandlerEnvVars, get_handler_env_vars
from lambda_kit.handlers.utils.errors import (
    ConditionalCheckFailedError,
    InvalidBodyError,
    ServerErrorResponse,
)
from lambda_kit.handlers.utils.observability import logger
from lambda_kit.handlers.utils.response import create_api_response, is_server_error
from lambda_kit.logic.log_shipper import DeferredLogShipper
from lambda_kit.logic.parameter_gate import check_required_params
from lambda_kit.models.snapshot import LogRecord, RequestSnapshot, context_to_dict
from lambda_kit.security.redaction import FieldMasker


def decode_event(event: Mapping[str, Any]) -> Dict[str, Any]:
    """Copy the event, decoding a JSON string body into a mapping."""
    decoded = copy.deepcopy(dict(event))
    body = decoded.get('body')
    if body and isinstance(body, str):
        try:
            decoded['body'] = json.loads(body)
        except json.JSONDecodeError as e:
            raise InvalidBodyError(str(e)) from e
    return decoded


class Invocation:
    """Explicit state of a single request, from init to flush."""

    def __init__(
        self,
        event: Mapping[str, Any],
        context: Any = None,
        settings: Optional[HandlerEnvVars] = None,
        logs_client: Any = None,
    ):
        self.settings = settings or get_handler_env_vars()
        self.raw_context = context
        self.started_at = time.perf_counter()
        self.response: Optional[Dict[str, Any]] = None
        self.shipper = DeferredLogShipper(
            function_name=self.settings.function_name,
            log_group_name=self.settings.CW_LOG_GROUP_NAME,
            logs_client=logs_client,
        )

        # an undecodable body is reported by validate(), not here
        self.body_error: Optional[InvalidBodyError] = None
        try:
            self.event = decode_event(event)
        except InvalidBodyError as e:
            self.event = copy.deepcopy(dict(event))
            self.body_error = e

        masker = FieldMasker(extra_pattern=self.settings.SECRET_FIELD_PATTERN)
        self.snapshot = RequestSnapshot(
            event=masker.mask(self.event),
            context=masker.mask(context_to_dict(context)),
        )

    @classmethod
    def start(
        cls,
        event: Mapping[str, Any],
        context: Any = None,
        settings: Optional[HandlerEnvVars] = None,
        logs_client: Any = None,
    ) -> 'Invocation':
        """Create the invocation and log the received (masked) event and context."""
        invocation = cls(event, context, settings=settings, logs_client=logs_client)
        snapshot = invocation.snapshot.to_dict()
        logger.info("Received event", extra={"event": snapshot["event"]})
        logger.info("Received context", extra={"context": snapshot["context"]})
        return invocation

    @property
    def function_name(self) -> str:
        return self.settings.function_name

    @property
    def environment(self) -> Optional[str]:
        return self.settings.environment

    @property
    def headers(self) -> Optional[Dict[str, Any]]:
        return self.event.get('headers')

    @property
    def body(self) -> Any:
        return self.event.get('body')

    @property
    def completed(self) -> bool:
        return self.response is not None

    @property
    def records(self) -> list[LogRecord]:
        return self.shipper.records

    def validate(self) -> None:
        """Run the parameter gate against the configured required fields."""
        if self.body_error is not None:
            raise self.body_error
        check_required_params(
            self.headers,
            self.body,
            required_headers=self.settings.required_header_params,
            required_body=self.settings.required_body_params,
        )

    def record_error(self, error: Any, options: Optional[Mapping[str, Any]] = None) -> Optional[LogRecord]:
        """Queue ``error`` for the deferred flush; conditional check conflicts are expected and skipped."""
        if isinstance(error, ConditionalCheckFailedError):
            return None
        return self.shipper.record(error, options)

    def complete(self, status_code: int, body: Any) -> Dict[str, Any]:
        """
        Finalize the response envelope.

        Returns:
            The envelope for statuses below 500

        Raises:
            ServerErrorResponse: For statuses of 500 and above
            RuntimeError: When the invocation was already completed
        """
        if self.completed:
            raise RuntimeError("Invocation already completed")

        self.response = create_api_response(status_code, body)
        logger.info("Response", extra={
            "response": self.response,
            "duration_ms": round((time.perf_counter() - self.started_at) * 1000, 2),
        })

        if is_server_error(status_code):
            raise ServerErrorResponse(self.response)
        return self.response

    def flush(self) -> bool:
        """Ship accumulated records once the response exists."""
        if not self.completed:
            raise RuntimeError("Cannot flush log records before the response is completed")
        return self.shipper.flush(self.snapshot)

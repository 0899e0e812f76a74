"""
Deferred log shipper.

Collects structured error records while an invocation runs and ships them to
CloudWatch Logs as one batch once the response has been produced. Shipping is
a tail action: every failure is reported on the local logger and swallowed,
because the caller already has its response.
"""

import json
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Dict, List, Mapping, Optional
from uuid import uuid4

import boto3
from aws_lambda_powertools.metrics import MetricUnit
from botocore.exceptions import ClientError

from lambda_kit.handlers.utils.errors import ServiceError
from lambda_kit.handlers.utils.observability import logger, metrics, tracer
from lambda_kit.models.snapshot import LogRecord, RequestSnapshot


@lru_cache(maxsize=1)
def get_logs_client():
    """CloudWatch Logs client shared by every invocation of the process."""
    return boto3.client('logs')


def _json_safe(data: Mapping[str, Any]) -> Dict[str, Any]:
    return json.loads(json.dumps(dict(data), default=str))


def error_fields(error: Any) -> Dict[str, Any]:
    """Flatten an error of any supported kind into record fields."""
    if isinstance(error, Mapping):
        return _json_safe(error)
    if isinstance(error, ServiceError):
        fields = error.to_dict()
        fields['errorType'] = type(error).__name__
        return _json_safe(fields)
    if isinstance(error, ClientError):
        details = error.response.get('Error', {})
        return {
            'errorType': type(error).__name__,
            'code': details.get('Code'),
            'message': details.get('Message', str(error)),
            'operation': error.operation_name,
        }
    if isinstance(error, BaseException):
        return {'errorType': type(error).__name__, 'message': str(error)}
    return {'message': str(error)}


class DeferredLogShipper:
    """Accumulates log records for one invocation and flushes them once."""

    def __init__(
        self,
        function_name: str,
        log_group_name: Optional[str] = None,
        logs_client: Any = None,
    ):
        self.function_name = function_name
        self.log_group_name = log_group_name
        self._logs_client = logs_client
        self.records: List[LogRecord] = []
        self.flushed = False

    @property
    def logs_client(self):
        if self._logs_client is None:
            self._logs_client = get_logs_client()
        return self._logs_client

    def record(self, error: Any, options: Optional[Mapping[str, Any]] = None) -> LogRecord:
        """
        Append a record built from ``error``.

        Fields are merged lowest to highest: ``options``, then the base record
        (level, time, functionName), then the error's own fields.

        Args:
            error: Mapping, ServiceError, ClientError or any exception
            options: Extra caller-supplied fields

        Returns:
            The appended record
        """
        fields = error_fields(error)
        if not fields.get('time'):
            fields['time'] = datetime.now(timezone.utc).isoformat()
            if isinstance(error, dict):
                # the caller's error is stamped too
                error['time'] = fields['time']

        merged: Dict[str, Any] = _json_safe(options) if options else {}
        merged.update({
            'level': 'ERROR',
            'time': fields['time'],
            'functionName': self.function_name,
        })
        merged.update(fields)

        log_record = LogRecord(**merged)
        self.records.append(log_record)
        return log_record

    def build_log_events(self, snapshot: RequestSnapshot) -> List[Dict[str, Any]]:
        """Serialize the records in emission order with the snapshot attached."""
        log_events = []
        for log_record in self.records:
            payload = log_record.to_payload()
            payload.update(snapshot.to_dict())
            log_events.append({
                'message': json.dumps(payload, indent=2, default=str),
                'timestamp': log_record.timestamp_ms,
            })
        return log_events

    def create_log_stream(self) -> str:
        log_stream_name = f"{self.function_name}/{uuid4()}"
        self.logs_client.create_log_stream(
            logGroupName=self.log_group_name,
            logStreamName=log_stream_name,
        )
        return log_stream_name

    @tracer.capture_method
    def flush(self, snapshot: RequestSnapshot) -> bool:
        """
        Ship the accumulated records, at most once.

        Returns:
            True when the batch reached CloudWatch Logs, False otherwise
        """
        if self.flushed:
            logger.debug("Log records already flushed for this invocation")
            return False
        self.flushed = True

        if not self.records:
            return False

        if not self.log_group_name:
            logger.info("No log group available in environment variables, not posting messages", extra={
                "records": [log_record.to_payload() for log_record in self.records],
            })
            return False

        log_events = self.build_log_events(snapshot)

        try:
            log_stream_name = self.create_log_stream()
        except Exception as e:
            self._report_failure("An error occurred creating a new log stream", e)
            return False

        try:
            self.logs_client.put_log_events(
                logGroupName=self.log_group_name,
                logStreamName=log_stream_name,
                logEvents=log_events,
            )
        except Exception as e:
            self._report_failure("An error occurred posting log messages to stream", e)
            return False

        logger.debug("Log records shipped", extra={
            "log_group_name": self.log_group_name,
            "log_stream_name": log_stream_name,
            "record_count": len(log_events),
        })
        return True

    def _report_failure(self, message: str, error: Exception) -> None:
        metrics.add_metric(name="LogShipFailure", unit=MetricUnit.Count, value=1)
        logger.error(message, extra={
            "log_group_name": self.log_group_name,
            "error": error_fields(error),
        })

"""
Outbound HTTP(S) requests.

Thin wrapper over httpx that turns transport failures and non-2xx answers into
CollaboratorError and records them for the deferred flush.
"""

from typing import Any, Optional

import httpx
from aws_lambda_powertools.metrics import MetricUnit

from lambda_kit.handlers.utils.errors import CollaboratorError
from lambda_kit.handlers.utils.observability import logger, metrics, tracer
from lambda_kit.logic.invocation import Invocation

SERVICE_NAME = 'HTTP'
DEFAULT_TIMEOUT_SECONDS = 30.0


class HttpClient:
    """Issues HTTP requests on behalf of one invocation."""

    def __init__(
        self,
        invocation: Invocation,
        client: Optional[httpx.Client] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self.invocation = invocation
        self.client = client if client is not None else httpx.Client(timeout=timeout)

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> 'HttpClient':
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _fail(self, error: CollaboratorError) -> CollaboratorError:
        metrics.add_metric(name="CollaboratorFailure", unit=MetricUnit.Count, value=1)
        self.invocation.record_error(error)
        return error

    @tracer.capture_method
    def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """
        Send a request and return the response when it is 2xx.

        Args:
            method: HTTP method
            url: Absolute URL
            **kwargs: Passed through to ``httpx.Client.request`` (headers, json, content, params...)

        Returns:
            The successful response

        Raises:
            CollaboratorError: On transport failure or a non-2xx status
        """
        try:
            response = self.client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error("HTTP request failed", extra={"method": method, "url": url, "error": str(e)})
            raise self._fail(CollaboratorError(
                message=f"{method} {url} failed: {e}",
                service_name=SERVICE_NAME,
                details={"method": method, "url": url},
            )) from e

        if not response.is_success:
            logger.warning("HTTP request returned an error status", extra={
                "method": method,
                "url": url,
                "status_code": response.status_code,
            })
            raise self._fail(CollaboratorError(
                message=f"{method} {url} responded with status {response.status_code}",
                service_name=SERVICE_NAME,
                status_code=response.status_code,
                details={"method": method, "url": url, "body": response.text},
            ))

        return response

    def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return self.request('GET', url, **kwargs)

    def post(self, url: str, **kwargs: Any) -> httpx.Response:
        return self.request('POST', url, **kwargs)

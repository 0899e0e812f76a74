"""
Error taxonomy for request handlers.

Every error raised on purpose by lambda_kit derives from ServiceError and
carries the HTTP status it maps to, so handlers can turn it into a response
envelope without inspecting the concrete type.
"""

import json
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    """Machine readable error codes."""
    INVALID_PARAMETER = "InvalidParameterException"
    COLLABORATOR_FAILURE = "CollaboratorFailure"
    CONDITIONAL_CHECK_FAILED = "ConditionalCheckFailed"
    INTERNAL_ERROR = "InternalServerError"


class ServiceError(Exception):
    """Base exception class for service errors."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logging and response."""
        data = {
            "code": self.error_code.value,
            "message": self.message,
            "statusCode": self.status_code,
        }
        if self.details:
            data["details"] = self.details
        return data


class MissingSectionError(ServiceError):
    """Raised when the headers or the body are entirely absent."""

    def __init__(self, section: str):
        super().__init__(
            message=f"No {section} found in the request",
            error_code=ErrorCode.INVALID_PARAMETER,
            status_code=400,
        )
        self.section = section


class MissingFieldError(ServiceError):
    """Raised when a required field is absent or empty."""

    def __init__(self, field_name: str):
        super().__init__(
            message=f"{field_name} is required",
            error_code=ErrorCode.INVALID_PARAMETER,
            status_code=400,
        )
        self.field_name = field_name


class InvalidBodyError(ServiceError):
    """Raised when a string body cannot be decoded as JSON."""

    def __init__(self, reason: str):
        super().__init__(
            message="Request body is not valid JSON",
            error_code=ErrorCode.INVALID_PARAMETER,
            status_code=400,
            details={"reason": reason},
        )


class CollaboratorError(ServiceError):
    """Raised when a downstream service call fails."""

    def __init__(
        self,
        message: str,
        service_name: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            error_code=ErrorCode.COLLABORATOR_FAILURE,
            status_code=status_code,
            details=details,
        )
        self.service_name = service_name

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["service"] = self.service_name
        return data


class ConditionalCheckFailedError(ServiceError):
    """Raised when a conditional write loses an optimistic concurrency check."""

    def __init__(self, table_name: str, operation: str):
        super().__init__(
            message=f"Conditional check failed for {operation} on {table_name}",
            error_code=ErrorCode.CONDITIONAL_CHECK_FAILED,
            status_code=409,
        )
        self.table_name = table_name
        self.operation = operation


class ServerErrorResponse(Exception):
    """
    Failure completion handed to the Lambda host for 5xx responses.

    The exception message is the serialized response envelope, which is what
    the host reports as the error detail.
    """

    def __init__(self, response: Dict[str, Any]):
        super().__init__(json.dumps(response))
        self.response = response
        self.status_code = response["statusCode"]

"""
Environment variable models for type-safe configuration.

Settings are read once per process and are immutable afterwards; the
required-field lists derived from them stay fixed for the process lifetime.
"""

from typing import Annotated, Optional, Tuple

from aws_lambda_env_modeler import get_environment_variables
from pydantic import BaseModel, ConfigDict, Field


def _split_fields(raw: str) -> Tuple[str, ...]:
    # a lone empty entry means no requirement
    fields = tuple(raw.split(',')) if raw else ()
    if fields == ('',):
        return ()
    return fields


class HandlerEnvVars(BaseModel):
    """Environment variables for request handlers."""

    model_config = ConfigDict(frozen=True)

    # Set by the Lambda runtime
    AWS_LAMBDA_FUNCTION_NAME: Annotated[Optional[str], Field(
        description='Name of the running function, <service>-<environment>[-...]'
    )] = None

    # Only consulted when running outside Lambda
    AWS_ENVIRONMENT: Annotated[Optional[str], Field(
        description='Environment name used for the local function name'
    )] = None

    REQUIRED_HEADER_PARAMS: Annotated[str, Field(
        description='Comma-separated header names every request must carry'
    )] = ''

    REQUIRED_BODY_PARAMS: Annotated[str, Field(
        description='Comma-separated body field names every request must carry'
    )] = ''

    CW_LOG_GROUP_NAME: Annotated[Optional[str], Field(
        description='CloudWatch log group receiving deferred error records'
    )] = None

    SECRET_FIELD_PATTERN: Annotated[Optional[str], Field(
        description='Extra regular expression for keys masked in logged snapshots'
    )] = None

    @property
    def function_name(self) -> str:
        if self.AWS_LAMBDA_FUNCTION_NAME:
            return self.AWS_LAMBDA_FUNCTION_NAME
        return f"local-{self.AWS_ENVIRONMENT or 'local'}"

    @property
    def environment(self) -> Optional[str]:
        """Second dash-delimited segment of the function name."""
        parts = self.function_name.split('-')
        return parts[1] if len(parts) > 1 else None

    @property
    def required_header_params(self) -> Tuple[str, ...]:
        return _split_fields(self.REQUIRED_HEADER_PARAMS)

    @property
    def required_body_params(self) -> Tuple[str, ...]:
        return _split_fields(self.REQUIRED_BODY_PARAMS)

    @property
    def log_shipping_enabled(self) -> bool:
        return bool(self.CW_LOG_GROUP_NAME)


def get_handler_env_vars() -> HandlerEnvVars:
    """
    Get typed environment variables for request handlers.

    Returns:
        Validated environment variables model instance (cached per process)
    """
    return get_environment_variables(model=HandlerEnvVars)

"""
Parameter gate: rejects a request early when required header or body fields
are missing.

The header half and the body half are independent. They are evaluated headers
first and the first failure is raised, so a request failing both reports only
the header error.
"""

from typing import Any, Mapping, Optional, Sequence

from lambda_kit.handlers.utils.errors import MissingFieldError, MissingSectionError
from lambda_kit.handlers.utils.observability import logger


def is_value(value: Any) -> bool:
    """
    Check whether a field counts as present.

    ``None`` and ``""`` are missing. ``False`` and ``0`` are explicit values and
    count as present, as do empty containers.
    """
    if value is None or value == '':
        return False
    # NaN never equals itself
    if isinstance(value, float) and value != value:
        return False
    return True


def has_section(values: Any) -> bool:
    """A section is absent when it is missing, false or zero. Empty containers still count."""
    if isinstance(values, bool):
        return values
    if isinstance(values, (int, float)) and values == 0:
        return False
    return is_value(values)


def check_values(required: Sequence[str], values: Mapping[str, Any]) -> None:
    """Raise MissingFieldError for the first required field without a value."""
    for field_name in required:
        if not is_value(values.get(field_name)):
            raise MissingFieldError(field_name)


def check_section(
    section: str,
    required: Sequence[str],
    values: Any,
) -> None:
    if not required:
        return
    if not has_section(values):
        raise MissingSectionError(section)
    if not isinstance(values, Mapping):
        # a scalar or list body carries no named fields
        raise MissingFieldError(required[0])
    check_values(required, values)


def check_required_params(
    headers: Optional[Mapping[str, Any]],
    body: Optional[Mapping[str, Any]],
    required_headers: Sequence[str] = (),
    required_body: Sequence[str] = (),
) -> None:
    """
    Validate that the configured header and body fields are present.

    Args:
        headers: Request headers, None when the request carried none
        body: Decoded request body, None when the request carried none
        required_headers: Header names that must be present
        required_body: Body field names that must be present

    Raises:
        MissingSectionError: A section with requirements is absent
        MissingFieldError: A required field is absent or empty
    """
    try:
        check_section('headers', required_headers, headers)
        check_section('body', required_body, body)
    except (MissingSectionError, MissingFieldError) as e:
        logger.info("Request rejected by parameter gate", extra={"reason": e.message})
        raise

"""
Named tracing spans around units of work.

Wraps a block in an X-Ray subsegment through the Powertools tracer and tags it
with its outcome. When tracing is disabled the SDK hands back a no-op
subsegment, so callers never need to check.
"""

from contextlib import contextmanager
from typing import Any, Iterator

from lambda_kit.handlers.utils.observability import logger, tracer

OUTCOME_ANNOTATION = "outcome"


@contextmanager
def span(name: str, **annotations: Any) -> Iterator[Any]:
    """
    Run the enclosed block inside a subsegment called ``## <name>``.

    Args:
        name: Name of the unit of work
        **annotations: Extra annotations set when the span starts

    Yields:
        The active subsegment
    """
    with tracer.provider.in_subsegment(f"## {name}") as subsegment:
        for key, value in annotations.items():
            subsegment.put_annotation(key, value)
        try:
            yield subsegment
        except Exception:
            subsegment.put_annotation(OUTCOME_ANNOTATION, "fail")
            logger.debug("Span failed", extra={"span": name})
            raise
        subsegment.put_annotation(OUTCOME_ANNOTATION, "success")

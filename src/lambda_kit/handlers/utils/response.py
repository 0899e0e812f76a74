"""
Response envelope helpers for API Gateway proxy integrations.
"""

import json
from typing import Any, Dict, Optional

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Credentials": True,
}


def create_api_response(
    status_code: int,
    body: Any,
    headers: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Create standardized API Gateway response with the body JSON-serialized."""

    response_headers = dict(CORS_HEADERS)
    if headers:
        response_headers.update(headers)

    return {
        "statusCode": status_code,
        "headers": response_headers,
        "body": json.dumps(body, default=str),
    }


def is_server_error(status_code: int) -> bool:
    return status_code >= 500

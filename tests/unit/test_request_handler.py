"""
Unit tests for the request_handler decorator.
"""

import json
from unittest.mock import Mock, patch

import pytest

from lambda_kit.handlers.request_handler import request_handler
from lambda_kit.handlers.utils.errors import CollaboratorError, ServerErrorResponse


@pytest.fixture
def configure(make_settings, logs_client):
    """Patch process settings and the CloudWatch Logs client for the handler under test."""
    patches = []

    def apply(**overrides):
        settings = make_settings(**overrides)
        for target, value in (
            ("lambda_kit.logic.invocation.get_handler_env_vars", settings),
            ("lambda_kit.logic.log_shipper.get_logs_client", logs_client),
        ):
            patcher = patch(target, return_value=value)
            patcher.start()
            patches.append(patcher)
        return settings

    yield apply

    for patcher in patches:
        patcher.stop()


class TestRequestHandler:
    """Test cases for request_handler."""

    def test_success_response(self, configure, api_gateway_event, lambda_context):
        configure(REQUIRED_BODY_PARAMS="amount")

        @request_handler
        def handler(invocation):
            return 200, {"amount": invocation.body["amount"]}

        response = handler(api_gateway_event, lambda_context)

        assert response["statusCode"] == 200
        assert json.loads(response["body"]) == {"amount": 25}

    def test_missing_header_field_rejected(self, configure, api_gateway_event, lambda_context):
        configure(REQUIRED_HEADER_PARAMS="Authorization,X-Tenant-Id")
        business = Mock()

        response = request_handler(business)(api_gateway_event, lambda_context)

        assert response["statusCode"] == 400
        assert json.loads(response["body"])["message"] == "X-Tenant-Id is required"
        business.assert_not_called()

    def test_missing_headers_section(self, configure, lambda_context):
        configure(REQUIRED_HEADER_PARAMS="Authorization")
        business = Mock()

        response = request_handler(business)({"body": None}, lambda_context)

        assert response["statusCode"] == 400
        body = json.loads(response["body"])
        assert body["message"] == "No headers found in the request"
        assert body["code"] == "InvalidParameterException"

    def test_missing_body_section(self, configure, lambda_context):
        configure(REQUIRED_BODY_PARAMS="amount")

        response = request_handler(Mock())({"headers": {}}, lambda_context)

        assert json.loads(response["body"])["message"] == "No body found in the request"

    def test_single_empty_requirement_never_rejects(self, configure, lambda_context):
        configure(REQUIRED_HEADER_PARAMS="", REQUIRED_BODY_PARAMS="")

        @request_handler
        def handler(invocation):
            return 204, None

        assert handler({}, lambda_context)["statusCode"] == 204

    def test_invalid_json_body(self, configure, lambda_context):
        configure()

        response = request_handler(Mock())({"body": "{oops"}, lambda_context)

        assert response["statusCode"] == 400

    def test_service_error_mapped_to_status(self, configure, api_gateway_event, lambda_context):
        configure()

        @request_handler
        def handler(invocation):
            raise CollaboratorError("upstream gone", service_name="HTTP", status_code=404)

        response = handler(api_gateway_event, lambda_context)

        assert response["statusCode"] == 404
        assert json.loads(response["body"])["service"] == "HTTP"

    def test_server_error_raised_to_host(self, configure, api_gateway_event, lambda_context):
        configure()

        @request_handler
        def handler(invocation):
            return 503, {"message": "maintenance"}

        with pytest.raises(ServerErrorResponse) as exc_info:
            handler(api_gateway_event, lambda_context)

        envelope = json.loads(str(exc_info.value))
        assert envelope["statusCode"] == 503
        assert json.loads(envelope["body"]) == {"message": "maintenance"}

    def test_unexpected_exception_recorded_and_raised_as_500(
        self, configure, api_gateway_event, lambda_context, logs_client
    ):
        configure(CW_LOG_GROUP_NAME="/lambda-kit/errors")

        @request_handler
        def handler(invocation):
            raise KeyError("missing")

        with pytest.raises(ServerErrorResponse) as exc_info:
            handler(api_gateway_event, lambda_context)

        assert exc_info.value.status_code == 500
        logs_client.put_log_events.assert_called_once()
        message = json.loads(logs_client.put_log_events.call_args.kwargs["logEvents"][0]["message"])
        assert message["errorType"] == "KeyError"

    def test_flush_runs_after_response(self, configure, api_gateway_event, lambda_context, logs_client):
        configure(CW_LOG_GROUP_NAME="/lambda-kit/errors")
        order = []
        logs_client.create_log_stream.side_effect = lambda **kwargs: order.append("flush")

        @request_handler
        def handler(invocation):
            invocation.record_error({"message": "recoverable"})
            order.append("business")
            return 200, {}

        with patch("lambda_kit.logic.invocation.create_api_response", wraps=_record_envelope(order)):
            handler(api_gateway_event, lambda_context)

        assert order == ["business", "response", "flush"]

    def test_flush_failure_does_not_affect_response(
        self, configure, api_gateway_event, lambda_context, logs_client, client_error
    ):
        configure(CW_LOG_GROUP_NAME="/lambda-kit/errors")
        logs_client.create_log_stream.side_effect = client_error("AccessDeniedException")

        @request_handler
        def handler(invocation):
            invocation.record_error({"message": "recoverable"})
            return 200, {"ok": True}

        response = handler(api_gateway_event, lambda_context)

        assert response["statusCode"] == 200
        logs_client.put_log_events.assert_not_called()

    def test_no_records_no_shipping(self, configure, api_gateway_event, lambda_context, logs_client):
        configure(CW_LOG_GROUP_NAME="/lambda-kit/errors")

        @request_handler
        def handler(invocation):
            return 200, {}

        handler(api_gateway_event, lambda_context)

        logs_client.create_log_stream.assert_not_called()


def _record_envelope(order):
    from lambda_kit.handlers.utils.response import create_api_response

    def build(status_code, body):
        order.append("response")
        return create_api_response(status_code, body)

    return build

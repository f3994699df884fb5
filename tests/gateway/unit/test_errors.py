"""
GatewayError serialization tests.
"""

import json

import pytest

from chatrelay.gateway.errors import (
    UPSTREAM_UNAVAILABLE_MESSAGE,
    GatewayError,
    GatewayErrorKind,
    as_gateway_error,
    client_input_error,
    stream_failure_error,
    upstream_status_error,
    upstream_unavailable_error,
)


@pytest.mark.unit
def test_error_envelope_is_deterministic():
    error = GatewayError(GatewayErrorKind.CLIENT_INPUT, "Invalid request: 'prompt' field is required")
    assert error.to_dict() == {
        "status": "Fail",
        "message": "Invalid request: 'prompt' field is required",
        "data": None,
        "kind": "client_input",
    }
    assert error.to_json() == error.to_json()
    assert json.loads(error.to_json()) == error.to_dict()


@pytest.mark.unit
def test_auth_failure_uses_unauthorized_status():
    error = GatewayError(GatewayErrorKind.AUTH_FAILURE, "no")
    assert error.to_dict()["status"] == "Unauthorized"
    assert error.http_status == 200


@pytest.mark.unit
def test_http_status_per_kind():
    assert client_input_error("x").http_status == 400
    assert upstream_unavailable_error().http_status == 500
    assert GatewayError(GatewayErrorKind.RATE_LIMITED, "x").http_status == 200


@pytest.mark.unit
def test_upstream_unavailable_has_fixed_message():
    assert upstream_unavailable_error().message == UPSTREAM_UNAVAILABLE_MESSAGE


@pytest.mark.unit
def test_upstream_status_error_known_code():
    error = upstream_status_error(401, "ignored detail")
    assert error.kind is GatewayErrorKind.UPSTREAM_NON_SUCCESS
    assert "Incorrect API key provided" in error.message
    assert error.upstream_status == 401
    assert error.http_status == 401
    assert error.to_dict()["upstreamStatus"] == 401


@pytest.mark.unit
def test_upstream_status_error_unknown_code_uses_detail():
    assert upstream_status_error(429, "quota exceeded").message == "quota exceeded"
    assert upstream_status_error(418).message == "Upstream returned HTTP 418"


@pytest.mark.unit
def test_stream_failure_wraps_plain_exception():
    error = stream_failure_error(RuntimeError("connection reset"))
    assert error.kind is GatewayErrorKind.STREAM_FAILURE
    assert error.message == "connection reset"


@pytest.mark.unit
def test_stream_failure_falls_back_to_exception_name():
    assert stream_failure_error(RuntimeError()).message == "RuntimeError"


@pytest.mark.unit
def test_as_gateway_error_keeps_gateway_errors():
    original = upstream_status_error(503)
    assert as_gateway_error(original) is original
    assert as_gateway_error(ValueError("bad")).kind is GatewayErrorKind.STREAM_FAILURE

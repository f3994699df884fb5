"""
Error taxonomy for the chat gateway.

Every failure a handler can surface is a GatewayError carrying one of a closed
set of kinds. Errors serialize to the same envelope the account endpoints use
({"status", "message", "data"}) so clients can parse any record the same way,
including a terminal error record written into an already-open stream.
"""

import enum
import json
from typing import Any, Dict, Optional


class GatewayErrorKind(str, enum.Enum):
    CLIENT_INPUT = "client_input"
    UPSTREAM_UNAVAILABLE = "upstream_unavailable"
    UPSTREAM_NON_SUCCESS = "upstream_non_success"
    STREAM_FAILURE = "stream_failure"
    AUTH_FAILURE = "auth_failure"
    RATE_LIMITED = "rate_limited"


# HTTP status used when the error is returned before any body was sent.
# Auth and rate-limit rejections keep the 200 + envelope contract of the web client.
_DEFAULT_HTTP_STATUS = {
    GatewayErrorKind.CLIENT_INPUT: 400,
    GatewayErrorKind.UPSTREAM_UNAVAILABLE: 500,
    GatewayErrorKind.UPSTREAM_NON_SUCCESS: 502,
    GatewayErrorKind.STREAM_FAILURE: 500,
    GatewayErrorKind.AUTH_FAILURE: 200,
    GatewayErrorKind.RATE_LIMITED: 200,
}

UPSTREAM_UNAVAILABLE_MESSAGE = "Error: Failed to retrieve response from Azure OpenAI."

# Messages shown for well-known upstream status codes.
UPSTREAM_STATUS_MESSAGES = {
    401: "[OpenAI] 提供错误的API密钥 | Incorrect API key provided",
    403: "[OpenAI] 服务器拒绝访问，请稍后再试 | Server refused to access, please try again later",
    500: "[OpenAI] 服务器繁忙，请稍后再试 | Internal Server Error",
    502: "[OpenAI] 错误的网关 |  Bad Gateway",
    503: "[OpenAI] 服务器繁忙，请稍后再试 | Server is busy, please try again later",
    504: "[OpenAI] 网关超时 | Gateway Time-out",
}


class GatewayError(Exception):
    """Gateway failure with a kind, a client-facing message and an optional upstream status."""

    def __init__(
        self,
        kind: GatewayErrorKind,
        message: str,
        upstream_status: Optional[int] = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.upstream_status = upstream_status

    @property
    def envelope_status(self) -> str:
        if self.kind is GatewayErrorKind.AUTH_FAILURE:
            return "Unauthorized"
        return "Fail"

    @property
    def http_status(self) -> int:
        if self.kind is GatewayErrorKind.UPSTREAM_NON_SUCCESS and self.upstream_status:
            return self.upstream_status
        return _DEFAULT_HTTP_STATUS[self.kind]

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "status": self.envelope_status,
            "message": self.message,
            "data": None,
            "kind": self.kind.value,
        }
        if self.upstream_status is not None:
            payload["upstreamStatus"] = self.upstream_status
        return payload

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)

    def __repr__(self) -> str:
        return f"GatewayError(kind={self.kind.value!r}, message={self.message!r}, upstream_status={self.upstream_status!r})"


def client_input_error(message: str) -> GatewayError:
    return GatewayError(GatewayErrorKind.CLIENT_INPUT, message)


def upstream_unavailable_error() -> GatewayError:
    return GatewayError(GatewayErrorKind.UPSTREAM_UNAVAILABLE, UPSTREAM_UNAVAILABLE_MESSAGE)


def upstream_status_error(status_code: int, detail: Optional[str] = None) -> GatewayError:
    """Build an UPSTREAM_NON_SUCCESS error, preferring the known message for the status code."""
    message = UPSTREAM_STATUS_MESSAGES.get(status_code) or detail or f"Upstream returned HTTP {status_code}"
    return GatewayError(GatewayErrorKind.UPSTREAM_NON_SUCCESS, message, upstream_status=status_code)


def stream_failure_error(exc: BaseException) -> GatewayError:
    """Wrap an exception raised after the response headers were sent."""
    if isinstance(exc, GatewayError):
        return GatewayError(GatewayErrorKind.STREAM_FAILURE, exc.message, upstream_status=exc.upstream_status)
    message = str(exc) or type(exc).__name__
    return GatewayError(GatewayErrorKind.STREAM_FAILURE, message)


def as_gateway_error(exc: BaseException) -> GatewayError:
    """Return exc unchanged if it is a GatewayError, otherwise wrap it as a stream failure."""
    if isinstance(exc, GatewayError):
        return exc
    return stream_failure_error(exc)

"""
Gateway-specific pytest configuration and fixtures.

The upstream Azure deployment is never contacted: tests build an
httpx.AsyncClient on top of httpx.MockTransport and script the upstream
response (status, SSE chunks, mid-stream failures) per test.
"""

from typing import List, Optional
from unittest.mock import Mock

import httpx
import pytest

from chatrelay.gateway.arguments import parse_args
from tests.gateway.mocks.fake_upstream import DONE_EVENT, chunked_body, mock_upstream_client


@pytest.fixture
def gateway_args():
    """Parsed gateway arguments pointing at a fake Azure instance."""
    args = parse_args([])
    args.azure_api_url = "https://test-instance.openai.azure.com"
    args.azure_api_key = "test-key"
    args.azure_deployment = "gpt35"
    args.azure_api_version = "2023-03-15-preview"
    args.auth_secret_key = ""
    args.max_request_per_hour = 0
    args.static_dir = ""
    args.https_proxy = None
    args.timeout_ms = 5000
    args.completion_max_retries = 3
    args.completion_retry_wait = 0
    args.verbose = False
    return args


@pytest.fixture
def upstream_requests() -> List[httpx.Request]:
    """Requests seen by the fake upstream, in order."""
    return []


@pytest.fixture
def sse_upstream(upstream_requests):
    """Factory for an upstream client that streams the given chunks with a status code."""

    def _factory(chunks: List[bytes], status_code: int = 200, error: Optional[Exception] = None):
        def handler(request: httpx.Request) -> httpx.Response:
            upstream_requests.append(request)
            return httpx.Response(
                status_code,
                headers={"content-type": "text/event-stream"},
                content=chunked_body(chunks, error),
            )

        return mock_upstream_client(handler)

    return _factory


@pytest.fixture
def mock_router(gateway_args):
    """Router stand-in exposing args and a client; tests replace the client as needed."""
    router = Mock()
    router.args = gateway_args
    router.verbose = False
    router.client = mock_upstream_client(lambda request: httpx.Response(200, content=DONE_EVENT))
    return router


def pytest_configure(config):
    """Register custom markers for clear test categorization."""
    config.addinivalue_line(
        "markers", "unit: marks tests that test individual components in isolation (fast, stable)"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests exercising the FastAPI app end to end with a fake upstream"
    )

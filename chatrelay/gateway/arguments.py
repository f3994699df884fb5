"""
Command line arguments for the chat gateway.

Environment variables provide the defaults so a container can be configured
without flags; the parsed namespace is built once at startup and handed to
GatewayRouter, which passes it on to every handler. Nothing below reads the
environment after parse time.
"""

import argparse
import os
from typing import List, Optional

DEFAULT_AZURE_API_URL = "https://ywt-chatgpt-instance.openai.azure.com"
DEFAULT_AZURE_DEPLOYMENT = "gpt35"
DEFAULT_AZURE_API_VERSION = "2023-03-15-preview"
DEFAULT_SYSTEM_MESSAGE = "You are an AI assistant that helps people find information."
DEFAULT_TIMEOUT_MS = 100 * 1000


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        raise SystemExit(f"Environment variable {name} must be an integer, got {value!r}")


def add_gateway_arguments(parser: argparse.ArgumentParser) -> argparse.ArgumentParser:
    server = parser.add_argument_group("server")
    server.add_argument("--host", type=str, default=os.environ.get("HOST", "0.0.0.0"))
    server.add_argument("--port", type=int, default=_env_int("PORT", 3002))
    server.add_argument(
        "--static-dir",
        type=str,
        default="public",
        help="Directory served at / when it exists.",
    )
    server.add_argument(
        "--no-trust-proxy",
        dest="trust_proxy",
        action="store_false",
        help="Use the socket peer instead of the last X-Forwarded-For hop as the client address.",
    )
    server.add_argument("--verbose", action="store_true", default=False)

    upstream = parser.add_argument_group("upstream")
    upstream.add_argument("--azure-api-url", type=str, default=os.environ.get("AZURE_API_URL") or DEFAULT_AZURE_API_URL)
    upstream.add_argument("--azure-api-key", type=str, default=os.environ.get("AZURE_API_KEY", ""))
    upstream.add_argument(
        "--azure-deployment",
        type=str,
        default=os.environ.get("AZURE_DEPLOYMENT") or DEFAULT_AZURE_DEPLOYMENT,
    )
    upstream.add_argument(
        "--azure-api-version",
        type=str,
        default=os.environ.get("AZURE_API_VERSION") or DEFAULT_AZURE_API_VERSION,
    )
    upstream.add_argument("--system-message", type=str, default=DEFAULT_SYSTEM_MESSAGE)
    upstream.add_argument("--max-tokens", type=int, default=1000)
    upstream.add_argument(
        "--timeout-ms",
        type=int,
        default=_env_int("TIMEOUT_MS", DEFAULT_TIMEOUT_MS),
        help="Read timeout for upstream calls, in milliseconds.",
    )
    upstream.add_argument("--https-proxy", type=str, default=os.environ.get("HTTPS_PROXY") or None)
    upstream.add_argument(
        "--completion-max-retries",
        type=int,
        default=3,
        help="Connection attempts for /chat-process before giving up.",
    )
    upstream.add_argument("--completion-retry-wait", type=float, default=1.0)

    access = parser.add_argument_group("access")
    access.add_argument("--auth-secret-key", type=str, default=os.environ.get("AUTH_SECRET_KEY", ""))
    access.add_argument(
        "--max-request-per-hour",
        type=int,
        default=_env_int("MAX_REQUEST_PER_HOUR", 0),
        help="Per-IP request budget for the chat routes; 0 disables the limiter.",
    )
    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Streaming chat gateway for Azure OpenAI")
    add_gateway_arguments(parser)
    return parser.parse_args(argv)

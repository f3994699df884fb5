"""
Completion provider behind /chat-process.

Streams a chat completion from the Azure deployment and yields one
ChatMessage dict per content delta. Each message carries the full text
accumulated so far, so the most recent record always describes the whole
reply.
"""

import json
import uuid
from typing import Any, AsyncIterator, Dict, Optional

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_fixed

from .errors import upstream_status_error, upstream_unavailable_error
from .upstream import build_completions_url, build_timeout, build_upstream_headers

DEFAULT_TEMPERATURE = 0.8
DEFAULT_TOP_P = 1


def _extract_upstream_error(content: bytes) -> Optional[str]:
    try:
        error_data = json.loads(content.decode("utf-8")) if content else {}
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    if not isinstance(error_data, dict):
        return None
    error = error_data.get("error")
    if isinstance(error, dict):
        return error.get("message")
    if isinstance(error, str):
        return error
    return error_data.get("message")


def _delta_content(chunk: Dict[str, Any]) -> str:
    choices = chunk.get("choices") or []
    if not choices:
        return ""
    delta = choices[0].get("delta") or {}
    return delta.get("content") or ""


class ChatCompletionProvider:
    """Produces ChatMessage fragments for a single prompt."""

    def __init__(self, args, client: httpx.AsyncClient):
        self.args = args
        self.client = client
        self.url = build_completions_url(args)

    def build_payload(
        self,
        message: str,
        system_message: Optional[str] = None,
        temperature: Optional[float] = None,
        top_p: Optional[float] = None,
    ) -> Dict[str, Any]:
        return {
            "messages": [
                {"role": "system", "content": system_message or self.args.system_message},
                {"role": "user", "content": message},
            ],
            "temperature": DEFAULT_TEMPERATURE if temperature is None else temperature,
            "top_p": DEFAULT_TOP_P if top_p is None else top_p,
            "max_tokens": self.args.max_tokens,
            "stream": True,
        }

    async def _open_stream(self, request: httpx.Request) -> httpx.Response:
        """Send the request, retrying connection failures. No retry once a response arrived."""
        max_attempts = max(1, getattr(self.args, "completion_max_retries", 3))
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(max_attempts),
                wait=wait_fixed(getattr(self.args, "completion_retry_wait", 1.0)),
                retry=retry_if_exception_type(httpx.TransportError),
                reraise=True,
            ):
                with attempt:
                    if getattr(self.args, "verbose", False) and attempt.retry_state.attempt_number > 1:
                        print(f"[chatrelay] retrying completion request (attempt {attempt.retry_state.attempt_number})")
                    return await self.client.send(request, stream=True)
        except httpx.TransportError as e:
            if getattr(self.args, "verbose", False):
                print(f"[chatrelay] completion upstream unreachable: {e!r}")
            raise upstream_unavailable_error() from e

    async def stream_reply(
        self,
        message: str,
        last_context: Optional[Dict[str, Any]] = None,
        system_message: Optional[str] = None,
        temperature: Optional[float] = None,
        top_p: Optional[float] = None,
    ) -> AsyncIterator[Dict[str, Any]]:
        """
        Yield ChatMessage dicts as the reply streams in.

        Raises:
            GatewayError: UPSTREAM_UNAVAILABLE if the deployment cannot be
                reached, UPSTREAM_NON_SUCCESS on a non-2xx status.
        """
        last_context = last_context or {}
        parent_message_id = str(uuid.uuid4())
        request = self.client.build_request(
            "POST",
            self.url,
            json=self.build_payload(message, system_message, temperature, top_p),
            headers=build_upstream_headers(self.args),
            timeout=build_timeout(self.args),
        )

        response = await self._open_stream(request)
        try:
            if response.status_code >= 400:
                content = await response.aread()
                raise upstream_status_error(response.status_code, _extract_upstream_error(content))

            text = ""
            async for line in response.aiter_lines():
                if not line.startswith("data: "):
                    continue
                chunk_data = line[6:].strip()
                if chunk_data == "[DONE]":
                    break
                try:
                    chunk = json.loads(chunk_data)
                except json.JSONDecodeError:
                    continue
                if not isinstance(chunk, dict):
                    continue

                delta = _delta_content(chunk)
                if not delta:
                    continue
                text += delta
                yield {
                    "role": "assistant",
                    "id": chunk.get("id") or str(uuid.uuid4()),
                    "parentMessageId": parent_message_id,
                    "conversationId": last_context.get("conversationId"),
                    "text": text,
                    "delta": delta,
                    "detail": chunk,
                }
        finally:
            await response.aclose()

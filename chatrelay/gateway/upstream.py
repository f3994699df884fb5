"""
Client for the Azure OpenAI chat completions deployment.

The response is opened in streaming mode and handed back unread: the caller
inspects the status code, then either relays the body or forwards it
verbatim. The caller owns the response and must close it.
"""

from typing import Any, Dict

import httpx

from .errors import upstream_unavailable_error

# Fixed sampling parameters for the SSE relay path.
SSE_SAMPLING_PARAMS = {
    "temperature": 0.7,
    "top_p": 0.95,
    "frequency_penalty": 0,
    "presence_penalty": 0,
    "stop": None,
}


def build_timeout(args) -> httpx.Timeout:
    """Timeout for upstream calls; --timeout-ms bounds every phase (0 disables it)."""
    timeout_ms = getattr(args, "timeout_ms", 0) or 0
    if timeout_ms <= 0:
        return httpx.Timeout(None)
    return httpx.Timeout(timeout_ms / 1000.0)


def build_completions_url(args) -> str:
    endpoint = args.azure_api_url.rstrip("/")
    return (
        f"{endpoint}/openai/deployments/{args.azure_deployment}"
        f"/chat/completions?api-version={args.azure_api_version}"
    )


def build_upstream_headers(args) -> Dict[str, str]:
    return {
        "api-key": args.azure_api_key or "",
        "Content-Type": "application/json",
    }


class AzureChatClient:
    """Issues streamed chat completion calls against one Azure deployment."""

    def __init__(self, args, client: httpx.AsyncClient):
        self.args = args
        self.client = client
        self.url = build_completions_url(args)

    def build_payload(self, prompt: str) -> Dict[str, Any]:
        return {
            "messages": [
                {"role": "system", "content": self.args.system_message},
                {"role": "user", "content": prompt},
            ],
            **SSE_SAMPLING_PARAMS,
            "max_tokens": self.args.max_tokens,
            "stream": True,
        }

    async def complete_stream(self, prompt: str, conversation_id: str) -> httpx.Response:
        """
        Send the completion request and return the unread streaming response.

        conversation_id only tags the verbose log lines; it is not sent upstream.

        Raises:
            GatewayError: UPSTREAM_UNAVAILABLE when no response could be obtained.
                A non-2xx status is not an error here.
        """
        request = self.client.build_request(
            "POST",
            self.url,
            json=self.build_payload(prompt),
            headers=build_upstream_headers(self.args),
            timeout=build_timeout(self.args),
        )
        if getattr(self.args, "verbose", False):
            print(f"[chatrelay] conversation {conversation_id}: POST {self.url}")

        try:
            response = await self.client.send(request, stream=True)
        except httpx.RequestError as e:
            if getattr(self.args, "verbose", False):
                print(f"[chatrelay] conversation {conversation_id}: upstream unreachable: {e!r}")
            raise upstream_unavailable_error() from e

        if getattr(self.args, "verbose", False):
            print(f"[chatrelay] conversation {conversation_id}: upstream status {response.status_code}")
        return response

"""
Server-Sent-Events chat relay.

Flow:
- Resolve the conversation id (minting one when the client sent no csid)
- Open a streamed completion against the Azure deployment
- 2xx: relay the upstream SSE body byte for byte, newline after the [DONE] chunk
- non-2xx: forward the upstream status and body verbatim
- upstream unreachable: 500 with a fixed message
"""

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.responses import Response

from ..conversation import CONVERSATION_ID_HEADER, resolve_conversation_id
from ..errors import GatewayError
from ..relay import relay_sse_stream
from ..upstream import AzureChatClient
from .common import read_json_body, require_prompt

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}


class ChatSSEHandler:
    """Handles POST /chat-sse."""

    def __init__(self, router):
        """
        Args:
            router: GatewayRouter providing args and the shared httpx client
        """
        self.router = router
        self.args = router.args
        self.upstream = AzureChatClient(router.args, router.client)

    async def handle_request(self, request: Request):
        try:
            request_data = await read_json_body(request)
            prompt = require_prompt(request_data)
            conversation_id, is_new = resolve_conversation_id(request_data.get("csid"))

            headers = dict(SSE_HEADERS)
            if is_new:
                headers[CONVERSATION_ID_HEADER] = conversation_id

            try:
                upstream_response = await self.upstream.complete_stream(prompt, conversation_id)
            except GatewayError as e:
                extra = {CONVERSATION_ID_HEADER: conversation_id} if is_new else None
                return JSONResponse(content=e.to_dict(), status_code=e.http_status, headers=extra)

            if 200 <= upstream_response.status_code < 300:
                return StreamingResponse(
                    relay_sse_stream(upstream_response, verbose=getattr(self.args, "verbose", False)),
                    status_code=upstream_response.status_code,
                    media_type="text/event-stream",
                    headers=headers,
                )

            return await self._forward_non_success(upstream_response, conversation_id if is_new else None)
        except (GatewayError, HTTPException):
            raise
        except Exception as e:
            import traceback
            if getattr(self.args, "verbose", False):
                print(f"[chatrelay] ERROR in chat-sse: {e}")
                print(f"[chatrelay] Traceback:\n{traceback.format_exc()}")
            raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")

    async def _forward_non_success(self, upstream_response, minted_id):
        """Return the upstream status and body unmodified."""
        try:
            content = await upstream_response.aread()
        finally:
            await upstream_response.aclose()

        if getattr(self.args, "verbose", False):
            print(f"[chatrelay] forwarding upstream HTTP {upstream_response.status_code}: {content[:200]!r}")

        headers = {CONVERSATION_ID_HEADER: minted_id} if minted_id else None
        return Response(
            content=content,
            status_code=upstream_response.status_code,
            media_type=upstream_response.headers.get("content-type"),
            headers=headers,
        )


def create_chat_sse_handler(router) -> ChatSSEHandler:
    return ChatSSEHandler(router)

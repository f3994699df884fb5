"""
Chunked chat relay: newline-delimited ChatMessage records.

Each record holds the full reply accumulated so far; clients split on
newlines and treat the last complete line as the current message. A failed
completion ends the body with an error envelope record.
"""

from fastapi import HTTPException, Request
from fastapi.responses import StreamingResponse

from ..completion import ChatCompletionProvider
from ..errors import GatewayError, client_input_error
from ..relay import relay_fragments
from .common import optional_number, read_json_body, require_prompt


class ChatProcessHandler:
    """Handles POST /chat-process."""

    def __init__(self, router, completion=None):
        self.router = router
        self.args = router.args
        self.completion = completion or ChatCompletionProvider(router.args, router.client)

    async def handle_request(self, request: Request):
        try:
            request_data = await read_json_body(request)
            prompt = require_prompt(request_data)

            options = request_data.get("options") or {}
            if not isinstance(options, dict):
                raise client_input_error("Invalid request: 'options' must be an object")
            system_message = request_data.get("systemMessage")
            if system_message is not None and not isinstance(system_message, str):
                raise client_input_error("Invalid request: 'systemMessage' must be a string")

            fragments = self.completion.stream_reply(
                prompt,
                last_context=options,
                system_message=system_message,
                temperature=optional_number(request_data, "temperature"),
                top_p=optional_number(request_data, "top_p"),
            )
            return StreamingResponse(
                relay_fragments(fragments, verbose=getattr(self.args, "verbose", False)),
                media_type="application/octet-stream",
            )
        except (GatewayError, HTTPException):
            raise
        except Exception as e:
            if getattr(self.args, "verbose", False):
                print(f"[chatrelay] ERROR in chat-process: {e}")
            raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")


def create_chat_process_handler(router, completion=None) -> ChatProcessHandler:
    return ChatProcessHandler(router, completion=completion)

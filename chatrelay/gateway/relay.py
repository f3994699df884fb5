"""
Relays that turn an upstream stream into a StreamingResponse body.

Both relays are async generators: Starlette pulls one item, sends it, then
pulls the next, so the upstream is never read ahead of a slow client. When
the client goes away Starlette closes the generator and the finally blocks
release the upstream.
"""

import json
from typing import Any, AsyncIterator, Dict

import httpx

from .errors import as_gateway_error, stream_failure_error

TERMINATION_SENTINEL = "data: [DONE]"


def contains_sentinel(chunk: bytes) -> bool:
    # Upstream framing is opaque here; only look for the marker in the decoded text.
    return TERMINATION_SENTINEL in chunk.decode("utf-8", errors="replace")


async def relay_sse_stream(upstream: httpx.Response, verbose: bool = False) -> AsyncIterator[bytes]:
    """
    Pass a 2xx upstream SSE body through chunk by chunk.

    A chunk holding the termination sentinel gets one trailing newline and the
    relay keeps reading: only the end of the upstream body finishes the
    response. A mid-stream upstream failure is reported as one JSON error
    record on its own line after whatever was already relayed.
    """
    try:
        async for chunk in upstream.aiter_bytes():
            if not chunk:
                continue
            if contains_sentinel(chunk):
                yield chunk + b"\n"
            else:
                yield chunk
    except Exception as e:
        if verbose:
            print(f"[chatrelay] SSE relay interrupted: {e!r}")
        # Own line: the failure may have cut an SSE line in half.
        yield b"\n" + stream_failure_error(e).to_json().encode("utf-8")
    finally:
        await upstream.aclose()


async def relay_fragments(
    fragments: AsyncIterator[Dict[str, Any]], verbose: bool = False
) -> AsyncIterator[str]:
    """
    Write chat fragments as newline-delimited JSON.

    The first record is bare, every later one is prefixed with a newline.
    A completion error becomes the terminal record, serialized as the error
    envelope.
    """
    first_chunk = True
    try:
        async for fragment in fragments:
            record = json.dumps(fragment, ensure_ascii=False)
            yield record if first_chunk else f"\n{record}"
            first_chunk = False
    except Exception as e:
        if verbose:
            print(f"[chatrelay] chat-process failed: {e!r}")
        record = as_gateway_error(e).to_json()
        yield record if first_chunk else f"\n{record}"
    finally:
        aclose = getattr(fragments, "aclose", None)
        if aclose is not None:
            await aclose()

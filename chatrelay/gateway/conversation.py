"""Conversation id resolution for multi-turn chat sessions."""

import string
import time
from typing import Optional, Tuple

_BASE36_ALPHABET = string.digits + string.ascii_lowercase

CONVERSATION_ID_HEADER = "Conversation-ID"


def to_base36(value: int) -> str:
    """Encode a non-negative integer in lowercase base 36."""
    if value < 0:
        raise ValueError(f"Cannot encode negative value {value} in base 36")
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_ALPHABET[remainder])
    return "".join(reversed(digits))


def current_millis() -> int:
    return int(time.time() * 1000)


def resolve_conversation_id(existing_id: Optional[str] = None) -> Tuple[str, bool]:
    """
    Return (conversation_id, is_new).

    A non-empty string id supplied by the client is kept as-is. Anything else
    gets a fresh id minted from the current epoch milliseconds in base 36; the
    caller should only echo the id back (Conversation-ID header) when is_new.
    """
    if isinstance(existing_id, str) and existing_id:
        return existing_id, False
    return to_base36(current_millis()), True

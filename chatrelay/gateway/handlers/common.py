"""Request body helpers shared by the chat handlers."""

import json
from typing import Any, Dict

from fastapi import Request

from ..errors import client_input_error


async def read_json_body(request: Request) -> Dict[str, Any]:
    """
    Parse the request body as a JSON object.

    Raises:
        GatewayError: CLIENT_INPUT if the body is not a JSON object.
    """
    try:
        request_data = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise client_input_error(f"Invalid JSON in request body: {str(e)}")
    if not isinstance(request_data, dict):
        raise client_input_error("Invalid request: body must be a JSON object")
    return request_data


def require_prompt(request_data: Dict[str, Any]) -> str:
    prompt = request_data.get("prompt")
    if not isinstance(prompt, str) or not prompt:
        raise client_input_error("Invalid request: 'prompt' field is required")
    return prompt


def optional_number(request_data: Dict[str, Any], field: str):
    value = request_data.get(field)
    if value is None:
        return None
    # bool is an int subclass but never a valid sampling value
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise client_input_error(f"Invalid request: '{field}' must be a number")
    return value

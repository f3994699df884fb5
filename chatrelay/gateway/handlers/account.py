"""Session, verify and config endpoints used by the web client."""

import json

from fastapi import Request

from ..middleware.auth import is_not_empty_string

API_MODEL = "AzureChatGPTAPI"
SECRET_KEY_EMPTY_MESSAGE = "Secret key is empty"
SECRET_KEY_INVALID_MESSAGE = "密钥无效 | Secret key is invalid"


def send_response(status: str, message=None, data=None) -> dict:
    return {"status": status, "message": message, "data": data}


class AccountHandler:
    """Handles POST /session, /verify and /config."""

    def __init__(self, router):
        self.router = router
        self.args = router.args

    @property
    def auth_secret_key(self) -> str:
        return getattr(self.args, "auth_secret_key", "") or ""

    def current_model(self) -> str:
        return self.args.azure_deployment

    async def session(self):
        has_auth = is_not_empty_string(self.auth_secret_key)
        return send_response("Success", "", {"auth": has_auth, "model": self.current_model()})

    async def verify(self, request: Request):
        try:
            body = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            body = {}
        token = body.get("token") if isinstance(body, dict) else None

        if not token:
            return send_response("Fail", SECRET_KEY_EMPTY_MESSAGE)
        if self.auth_secret_key != token:
            return send_response("Fail", SECRET_KEY_INVALID_MESSAGE)
        return send_response("Success", "Verify successfully")

    async def config(self):
        """Configuration snapshot; the API key is deliberately absent."""
        return send_response(
            "Success",
            data={
                "apiModel": API_MODEL,
                "deployment": self.args.azure_deployment,
                "apiVersion": self.args.azure_api_version,
                "endpoint": self.args.azure_api_url,
                "timeoutMs": self.args.timeout_ms,
                "httpsProxy": getattr(self.args, "https_proxy", None) or "-",
                "maxRequestPerHour": getattr(self.args, "max_request_per_hour", 0),
                "usage": "-",
            },
        )


def create_account_handler(router) -> AccountHandler:
    return AccountHandler(router)

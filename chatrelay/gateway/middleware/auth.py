"""Bearer-token check for the protected routes."""

from fastapi import Request

from ..errors import GatewayError, GatewayErrorKind

NO_ACCESS_MESSAGE = "Error: 无访问权限 | No access rights"


def is_not_empty_string(value) -> bool:
    return isinstance(value, str) and len(value) > 0


class AuthCheck:
    """
    FastAPI dependency that passes when no secret is configured or when the
    Authorization header carries the configured secret.
    """

    def __init__(self, args):
        self.secret_key = getattr(args, "auth_secret_key", "") or ""

    @property
    def enabled(self) -> bool:
        return is_not_empty_string(self.secret_key)

    def is_authorized(self, authorization) -> bool:
        if not self.enabled:
            return True
        if not authorization:
            return False
        return authorization.replace("Bearer ", "").strip() == self.secret_key.strip()

    async def __call__(self, request: Request) -> None:
        if not self.is_authorized(request.headers.get("Authorization")):
            raise GatewayError(GatewayErrorKind.AUTH_FAILURE, NO_ACCESS_MESSAGE)

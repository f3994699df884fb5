"""
Chat gateway router.

Owns the FastAPI application and the shared upstream httpx client, and wires
the handlers, the access checks and the static site together. Routes are
served both at the root and under /api.
"""

import os
from contextlib import asynccontextmanager
from typing import List, Optional

import httpx
import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from .arguments import parse_args
from .conversation import CONVERSATION_ID_HEADER
from .errors import GatewayError
from .handlers.account import create_account_handler
from .handlers.chat_process import create_chat_process_handler
from .handlers.chat_sse import create_chat_sse_handler
from .middleware.auth import AuthCheck
from .middleware.limiter import RateLimiter
from .upstream import build_timeout

ROUTE_PREFIXES = ("", "/api")


async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    return JSONResponse(content=exc.to_dict(), status_code=exc.http_status)


class GatewayRouter:
    def __init__(self, args, verbose: bool = False, client: Optional[httpx.AsyncClient] = None):
        self.args = args
        self.verbose = verbose or getattr(args, "verbose", False)

        self.client = client or httpx.AsyncClient(
            timeout=build_timeout(args),
            proxy=getattr(args, "https_proxy", None) or None,
        )
        self.app = FastAPI(title="chatrelay", lifespan=self._lifespan)

        self.auth = AuthCheck(args)
        self.limiter = RateLimiter(args)

        self.chat_sse_handler = create_chat_sse_handler(self)
        self.chat_process_handler = create_chat_process_handler(self)
        self.account_handler = create_account_handler(self)

        self._setup_middleware()
        self._setup_routes()
        self._setup_static()

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI):
        yield
        await self.client.aclose()

    def _setup_middleware(self):
        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["*"],
            allow_headers=["authorization", "Content-Type"],
            expose_headers=[CONVERSATION_ID_HEADER],
        )
        self.app.add_exception_handler(GatewayError, gateway_error_handler)

    def _setup_routes(self):
        chat_guards = [Depends(self.auth), Depends(self.limiter)]
        for prefix in ROUTE_PREFIXES:
            self.app.post(f"{prefix}/chat-sse", dependencies=chat_guards)(self.chat_sse)
            self.app.post(f"{prefix}/chat-process", dependencies=chat_guards)(self.chat_process)
            self.app.post(f"{prefix}/config", dependencies=[Depends(self.auth)])(self.config)
            self.app.post(f"{prefix}/session")(self.session)
            self.app.post(f"{prefix}/verify")(self.verify)

    def _setup_static(self):
        static_dir = getattr(self.args, "static_dir", None)
        if static_dir and os.path.isdir(static_dir):
            # Mounted last so the API routes take precedence.
            self.app.mount("/", StaticFiles(directory=static_dir, html=True), name="static")
            if self.verbose:
                print(f"[chatrelay] serving static files from {static_dir}")

    async def chat_sse(self, request: Request):
        return await self.chat_sse_handler.handle_request(request)

    async def chat_process(self, request: Request):
        return await self.chat_process_handler.handle_request(request)

    async def config(self):
        return await self.account_handler.config()

    async def session(self):
        return await self.account_handler.session()

    async def verify(self, request: Request):
        return await self.account_handler.verify(request)


def run_router(args):
    """Start the gateway with uvicorn."""
    router = GatewayRouter(args, verbose=args.verbose)
    print(f"[chatrelay] Server is running on port {args.port}")
    uvicorn.run(router.app, host=args.host, port=args.port, log_level="info" if args.verbose else "error")


def main(argv: Optional[List[str]] = None):
    run_router(parse_args(argv))


if __name__ == "__main__":
    main()

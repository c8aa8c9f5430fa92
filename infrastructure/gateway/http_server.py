"""HTTP server collaborator: a FastAPI application served by uvicorn."""
from __future__ import annotations

import logging
import time
from typing import Awaitable, Callable, Optional, Sequence

import uvicorn
from fastapi import APIRouter, FastAPI, Request
from starlette.responses import Response

from domain.ports.server_port import Middleware, RouterLoader

__all__ = ['HttpServer', 'build_app', 'client_ip', 'request_log_middleware']
logger = logging.getLogger(__name__)

_LOCAL_IPV6 = '::1'
_LOCAL_IPV4 = '127.0.0.1'


def client_ip(request: Request) -> str:
    forwarded = request.headers.get('x-forwarded-for')
    if forwarded:
        ip = forwarded.split(',')[0].strip()
    elif request.client is not None:
        ip = request.client.host
    else:
        ip = ''
    return _LOCAL_IPV4 if ip == _LOCAL_IPV6 else ip


async def request_log_middleware(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
    start = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = int((time.perf_counter() - start) * 1000)
    logger.info(f'[{response.status_code:3d}][{elapsed_ms:4d}ms][{client_ip(request)}]'
                f'[{request.method:<4s} {request.url.path}]')
    return response


def build_app(
    prefix: str,
    routers: Sequence[RouterLoader] = (),
    middlewares: Sequence[Middleware] = (),
    debug: bool = False,
    title: str = 'app',
) -> FastAPI:
    """Mount every router loader under ``/<prefix>`` and install the middlewares."""
    app = FastAPI(title=title, debug=debug)
    # starlette runs the last registered http middleware outermost
    for middleware in reversed(list(middlewares)):
        app.middleware('http')(middleware)
    app.middleware('http')(request_log_middleware)

    api_prefix = '/' + prefix.strip('/') if prefix.strip('/') else ''
    router = APIRouter(prefix=api_prefix)
    for load in routers:
        load(router)
    app.include_router(router)
    return app


class HttpServer:

    def __init__(self, title: str = 'app', log_level: str = 'warning'):
        self.title = title
        self.log_level = log_level
        self.app: Optional[FastAPI] = None
        self._server: Optional[uvicorn.Server] = None

    def serve(
        self,
        host: str,
        port: int,
        prefix: str,
        routers: Sequence[RouterLoader],
        middlewares: Sequence[Middleware],
        debug: bool = False,
    ) -> None:
        self.app = build_app(prefix, routers, middlewares, debug=debug, title=self.title)
        config = uvicorn.Config(self.app, host=host or '0.0.0.0', port=port, log_level=self.log_level)
        self._server = uvicorn.Server(config)
        logger.info(f'http server listening: {host or "0.0.0.0"}:{port}/{prefix.strip("/")}')
        try:
            self._server.run()
        except SystemExit as e:
            # uvicorn exits the process when the port cannot be bound
            raise RuntimeError(f'http server failed to start on port {port}') from e
        if not self._server.started:
            raise RuntimeError(f'http server failed to start on port {port}')

    def shutdown(self) -> None:
        if self._server is not None:
            self._server.should_exit = True

    @property
    def running(self) -> bool:
        return self._server is not None and self._server.started and not self._server.should_exit

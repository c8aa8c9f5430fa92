from __future__ import annotations

from typing import Any, Callable, Protocol, Sequence, runtime_checkable

RouterLoader = Callable[[Any], None]
Middleware = Callable[..., Any]


@runtime_checkable
class ServerPort(Protocol):
    """The component that binds a port and serves until stopped."""

    def serve(
        self,
        host: str,
        port: int,
        prefix: str,
        routers: Sequence[RouterLoader],
        middlewares: Sequence[Middleware],
        debug: bool = False,
    ) -> None:
        """Blocks until the listener stops. Raises if binding or serving fails."""
        ...

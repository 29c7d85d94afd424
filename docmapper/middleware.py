"""ASGI middleware resetting the identity map once per request."""

import logging
from typing import Any, Awaitable, Callable, MutableMapping

from docmapper.identity_map import IdentityMap, get_identity_map

logger = logging.getLogger(__name__)

Scope = MutableMapping[str, Any]
ASGIApp = Callable[[Scope, Callable[..., Awaitable[Any]], Callable[..., Awaitable[Any]]], Awaitable[None]]


class IdentityMapSessionMiddleware:
    """
    Treats every HTTP request (and WebSocket connection) as a unit of work.

    The identity map is purged before the wrapped application is called, so
    models never leak from one request into the next.

    Usage with FastAPI:
        app = FastAPI()
        app.add_middleware(IdentityMapSessionMiddleware)
    """

    def __init__(self, app: ASGIApp, identity_map: IdentityMap | None = None):
        self.app = app
        self.identity_map = identity_map if identity_map is not None else get_identity_map()

    async def __call__(self, scope: Scope, receive, send) -> None:
        if scope["type"] in ("http", "websocket"):
            logger.debug("[SESSION] Resetting the identity map")
            self.identity_map.reset()
        await self.app(scope, receive, send)

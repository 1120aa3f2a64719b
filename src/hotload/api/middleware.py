"""Middleware that runs a reload pass at the start of a request.

A pass runs at most once per cooldown window, however many requests
arrive; with no cooldown configured the middleware never reloads.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from hotload.reload import Reloader

logger = logging.getLogger(__name__)


class ReloaderMiddleware(BaseHTTPMiddleware):
    """Checks for changed source files before handing a request on."""

    def __init__(self, app: ASGIApp, reloader: Reloader, cooldown: float | None = 1.0):
        super().__init__(app)
        self.reloader = reloader
        self.cooldown = cooldown
        self._last = time.monotonic() - (cooldown or 0)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if self.cooldown is not None and time.monotonic() - self._last >= self.cooldown:
            self._reload()
            self._last = time.monotonic()
        return await call_next(request)

    def _reload(self) -> None:
        # Reloader.reload holds the reloader lock for the whole pass
        try:
            self.reloader.reload()
        except Exception:
            logger.exception("Reload failed, serving previously loaded code")

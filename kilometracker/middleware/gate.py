"""Request gate middleware: redirect page requests the session may not see."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import RedirectResponse

from kilometracker.services.gate_service import GateDecision, RequestGate

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from starlette.requests import Request
    from starlette.responses import Response
    from starlette.types import ASGIApp

    from kilometracker.services.session_service import SessionStore

logger = logging.getLogger(__name__)

API_PREFIX = "/api"


class RequestGateMiddleware(BaseHTTPMiddleware):
    """Run the page gate before any page handler.

    ``/api`` paths pass straight through; proxy handlers do their own session
    check and answer with a 401 envelope instead of a redirect.
    """

    def __init__(self, app: ASGIApp, session_store: SessionStore, gate: RequestGate) -> None:
        super().__init__(app)
        self.session_store = session_store
        self.gate = gate

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        path = request.url.path
        if path == API_PREFIX or path.startswith(API_PREFIX + "/"):
            return await call_next(request)

        has_credential = self.session_store.read(request) is not None
        decision = self.gate.decide(path, has_credential)
        if decision is GateDecision.ALLOW:
            return await call_next(request)

        target = self.gate.redirect_target(decision)
        logger.debug("Gate redirect %s -> %s (%s)", path, target, decision.value)
        return RedirectResponse(url=str(request.url.replace(path=target, query="")))

"""Authentication endpoints with session side effects: login and logout.

Registration, profile and user administration are plain proxy rows in the
descriptor table; only these two touch the session cookie directly.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse

from kilometracker.api.deps import get_proxy, get_session_store
from kilometracker.exceptions import UpstreamTokenMissingError
from kilometracker.proxy.endpoints import LOGIN
from kilometracker.proxy.engine import ProxyEngine
from kilometracker.proxy.envelope import UPSTREAM_TOKEN_MISSING_MESSAGE, ErrorEnvelope
from kilometracker.services.auth_service import extract_login_session, login_response_body
from kilometracker.services.session_service import SessionStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login", response_class=JSONResponse)
async def login(
    request: Request,
    proxy: Annotated[ProxyEngine, Depends(get_proxy)],
    store: Annotated[SessionStore, Depends(get_session_store)],
) -> Response:
    """Exchange email/password for a session cookie; the token never reaches the page."""
    outcome = await proxy.forward(LOGIN, credential=None, load_body=request.json)
    if isinstance(outcome, ErrorEnvelope):
        return outcome.to_response()

    try:
        session = extract_login_session(outcome.body)
    except UpstreamTokenMissingError as exc:
        logger.error("Backend login succeeded without a usable token: %s", exc)
        return ErrorEnvelope(
            error=UPSTREAM_TOKEN_MISSING_MESSAGE,
            status=status.HTTP_502_BAD_GATEWAY,
        ).to_response()

    response = JSONResponse(status_code=status.HTTP_200_OK, content=login_response_body(session))
    store.issue(response, session.token)
    logger.info("Session issued")
    return response


@router.post("/logout", response_class=JSONResponse)
async def logout(
    store: Annotated[SessionStore, Depends(get_session_store)],
) -> Response:
    """Drop the session cookie. The backend keeps no session to revoke."""
    response = JSONResponse(content={"success": True})
    store.clear(response)
    return response

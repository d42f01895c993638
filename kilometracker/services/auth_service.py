"""Login response handling: find the token in whichever shape the backend used."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from kilometracker.exceptions import UpstreamTokenMissingError


@dataclass(frozen=True)
class LoginSession:
    token: str
    user: Any


def extract_login_session(body: Any) -> LoginSession:
    """Read ``token``/``user`` from a flat body or from a nested ``data`` object.

    Flat fields win over nested ones. Raises ``UpstreamTokenMissingError`` when
    neither shape carries a non-empty string token.
    """
    if not isinstance(body, dict):
        msg = "Login response body is not an object"
        raise UpstreamTokenMissingError(msg)

    nested = body.get("data")
    if not isinstance(nested, dict):
        nested = {}

    token = body.get("token") or nested.get("token")
    user = body.get("user") or nested.get("user")

    if not isinstance(token, str) or not token:
        msg = "Login response did not include a token"
        raise UpstreamTokenMissingError(msg)
    return LoginSession(token=token, user=user)


def login_response_body(session: LoginSession) -> dict[str, Any]:
    """What the browser sees after login: never the token itself."""
    return {"success": True, "user": session.user}

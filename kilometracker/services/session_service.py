"""Session cookie access: the single HttpOnly cookie holding the bearer token."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from starlette.requests import HTTPConnection
    from starlette.responses import Response

    from kilometracker.config import Settings


class SessionStore:
    """Read, issue and clear the session credential cookie.

    Holds no per-request state; one instance per application is enough.
    """

    def __init__(self, settings: Settings) -> None:
        self.cookie_name = settings.session_cookie_name
        self.max_age = settings.session_max_age_seconds
        self.secure = settings.is_production

    def read(self, connection: HTTPConnection) -> str | None:
        """Return the current credential, or None when absent or empty."""
        token = connection.cookies.get(self.cookie_name)
        return token or None

    def issue(self, response: Response, token: str) -> None:
        response.set_cookie(
            key=self.cookie_name,
            value=token,
            httponly=True,
            secure=self.secure,
            samesite="strict",
            path="/",
            max_age=self.max_age,
        )

    def clear(self, response: Response) -> None:
        response.delete_cookie(
            self.cookie_name,
            path="/",
            secure=self.secure,
            httponly=True,
            samesite="strict",
        )

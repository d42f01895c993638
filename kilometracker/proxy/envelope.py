"""The uniform failure shape returned to the browser."""

from __future__ import annotations

from fastapi import status as http_status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

UNAUTHORIZED_MESSAGE = "No autorizado"
MISSING_FIELDS_MESSAGE = "Faltan campos requeridos"
UPSTREAM_MALFORMED_MESSAGE = "La API no respondió correctamente. Verifica la URL del endpoint."
UPSTREAM_TOKEN_MISSING_MESSAGE = "La API no devolvió un token válido"
INTERNAL_ERROR_MESSAGE = "Error interno del servidor"


class ErrorEnvelope(BaseModel):
    """One failed request: a human-readable message and the status to send.

    Only ``error`` goes into the body; ``status`` becomes the HTTP status.
    """

    error: str
    status: int = Field(ge=400, le=599)

    def to_response(self) -> JSONResponse:
        return JSONResponse(status_code=self.status, content={"error": self.error})


def unauthorized() -> ErrorEnvelope:
    return ErrorEnvelope(error=UNAUTHORIZED_MESSAGE, status=http_status.HTTP_401_UNAUTHORIZED)


def bad_request(message: str) -> ErrorEnvelope:
    return ErrorEnvelope(error=message, status=http_status.HTTP_400_BAD_REQUEST)


def upstream_malformed() -> ErrorEnvelope:
    return ErrorEnvelope(error=UPSTREAM_MALFORMED_MESSAGE, status=http_status.HTTP_502_BAD_GATEWAY)


def upstream_rejected(message: str | None, default: str, status: int) -> ErrorEnvelope:
    """Backend said no: keep its status, prefer its message over ``default``."""
    return ErrorEnvelope(error=message or default, status=status)


def internal_error(context: str, exc: BaseException) -> ErrorEnvelope:
    """Failure before any usable backend response existed."""
    detail = str(exc) or type(exc).__name__
    return ErrorEnvelope(
        error=f"{context}: {detail}",
        status=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
    )

"""Backend response classification shared by every proxy handler."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    import httpx

JSON_MEDIA_TYPE = "application/json"
ERROR_FIELDS = ("message", "error")


@dataclass(frozen=True)
class Success:
    """2xx with a JSON body (or 204 with none); ``raw`` is sent back verbatim."""

    status_code: int
    body: Any
    raw: bytes


@dataclass(frozen=True)
class StructuredError:
    """Non-2xx with a JSON body; ``message`` is None when the body names none."""

    status_code: int
    message: str | None


@dataclass(frozen=True)
class MalformedUpstream:
    """Any response whose content type is not JSON."""

    status_code: int
    content_type: str


BackendResult = Success | StructuredError | MalformedUpstream


def is_json_content_type(content_type: str | None) -> bool:
    return bool(content_type) and JSON_MEDIA_TYPE in content_type.lower()


def extract_error_message(body: Any, preferred: str = "message") -> str | None:
    """Pull a human-readable message out of a backend error body.

    ``preferred`` is looked up first, then the other conventional field.
    """
    if not isinstance(body, dict):
        return None
    fields = (preferred, *(name for name in ERROR_FIELDS if name != preferred))
    for name in fields:
        value = body.get(name)
        if isinstance(value, str) and value.strip():
            return value
    return None


def classify_response(response: httpx.Response, error_field: str = "message") -> BackendResult:
    """Sort a backend response into one of the three outcomes.

    Raises ``ValueError`` when a JSON content type carries an unparseable
    body; the engine reports that as a transport-level failure.
    """
    if response.status_code == 204:
        return Success(status_code=204, body=None, raw=b"")

    content_type = response.headers.get("content-type", "")
    if not is_json_content_type(content_type):
        return MalformedUpstream(status_code=response.status_code, content_type=content_type)

    body = response.json()
    if response.is_success:
        return Success(status_code=response.status_code, body=body, raw=response.content)
    return StructuredError(
        status_code=response.status_code,
        message=extract_error_message(body, error_field),
    )

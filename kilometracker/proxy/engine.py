"""Generic proxy engine: one inbound request in, one backend call, one reply out.

Per call the engine walks ``Start -> AuthChecked -> Validated -> Dispatched ->
{Success | UpstreamError | TransportError} -> Responded``. It never retries,
never caches, and never lets an exception escape: every failure becomes a
single ``ErrorEnvelope``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import httpx
from fastapi import Response
from fastapi import status as http_status

from kilometracker.proxy.classify import (
    MalformedUpstream,
    StructuredError,
    Success,
    classify_response,
)
from kilometracker.proxy.envelope import (
    ErrorEnvelope,
    bad_request,
    internal_error,
    unauthorized,
    upstream_malformed,
    upstream_rejected,
)
from kilometracker.services.date_service import validate_range

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Mapping

    from kilometracker.proxy.endpoints import Endpoint

logger = logging.getLogger(__name__)

ProxyOutcome = Success | ErrorEnvelope


@dataclass(frozen=True)
class ProxyRequest:
    """The normalized backend call derived from one inbound request."""

    method: str
    path: str
    params: list[tuple[str, str]] = field(default_factory=list)
    json_body: Any = None
    sends_body: bool = False


def _query_values(query: Mapping[str, str], key: str) -> list[str]:
    getlist = getattr(query, "getlist", None)
    if getlist is not None:
        return list(getlist(key))
    return [query[key]] if key in query else []


def select_query_params(
    query: Mapping[str, str] | None, allowed: tuple[str, ...]
) -> list[tuple[str, str]]:
    """Copy allow-listed keys in allow-list order.

    A key missing from ``query`` is skipped; a key present with an empty value
    is kept, so "filter cleared" stays distinct from "filter not set".
    Repeated keys keep every value when ``query`` supports ``getlist``.
    """
    if not query:
        return []
    params: list[tuple[str, str]] = []
    for key in allowed:
        params.extend((key, value) for value in _query_values(query, key))
    return params


def check_date_range(
    query: Mapping[str, str], start_key: str, end_key: str
) -> ErrorEnvelope | None:
    """Validate every forwarded start/end pair, repeated keys included."""
    starts = _query_values(query, start_key) or [None]
    ends = _query_values(query, end_key) or [None]
    for start in starts:
        for end in ends:
            check = validate_range(start, end)
            if not check.valid:
                return bad_request(check.message or "Rango de fechas inválido")
    return None


def check_request(
    endpoint: Endpoint, query: Mapping[str, str] | None, body: Any
) -> ErrorEnvelope | None:
    """Local validation run before the backend is contacted."""
    if endpoint.required_fields:
        if not isinstance(body, dict) or any(
            not body.get(name) for name in endpoint.required_fields
        ):
            return bad_request(endpoint.missing_fields_message)

    if endpoint.body_check is not None and isinstance(body, dict):
        problem = endpoint.body_check(body)
        if problem is not None:
            return bad_request(problem)

    if endpoint.date_range is not None and query:
        return check_date_range(query, *endpoint.date_range)
    return None


def project_body(endpoint: Endpoint, body: Any) -> Any:
    """Keep only ``endpoint.body_fields`` when the row restricts the body."""
    if endpoint.body_fields is None or not isinstance(body, dict):
        return body
    return {name: body.get(name) for name in endpoint.body_fields}


def build_proxy_request(
    endpoint: Endpoint,
    path_params: Mapping[str, str] | None = None,
    query: Mapping[str, str] | None = None,
    body: Any = None,
) -> ProxyRequest:
    return ProxyRequest(
        method=endpoint.method,
        path=endpoint.backend_url_path(dict(path_params or {})),
        params=select_query_params(query, endpoint.query_keys),
        json_body=project_body(endpoint, body) if endpoint.sends_body else None,
        sends_body=endpoint.sends_body,
    )


def outcome_response(outcome: ProxyOutcome) -> Response:
    """Render an outcome for the browser; success bodies go out untouched."""
    if isinstance(outcome, ErrorEnvelope):
        return outcome.to_response()
    if outcome.status_code == http_status.HTTP_204_NO_CONTENT:
        return Response(status_code=http_status.HTTP_204_NO_CONTENT)
    return Response(
        content=outcome.raw,
        status_code=outcome.status_code,
        media_type="application/json",
    )


class ProxyEngine:
    """Shared outbound client plus the per-call proxy contract.

    ``timeout`` is left to the httpx default unless given explicitly.
    ``transport`` lets tests substitute the backend.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        client_kwargs: dict[str, Any] = {"base_url": base_url}
        if timeout is not None:
            client_kwargs["timeout"] = timeout
        if transport is not None:
            client_kwargs["transport"] = transport
        self._client = httpx.AsyncClient(**client_kwargs)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def send(self, proxy_request: ProxyRequest, credential: str | None) -> httpx.Response:
        headers: dict[str, str] = {}
        if credential:
            headers["Authorization"] = f"Bearer {credential}"
        request_kwargs: dict[str, Any] = {"headers": headers}
        if proxy_request.params:
            request_kwargs["params"] = proxy_request.params
        if proxy_request.sends_body:
            headers["Content-Type"] = "application/json"
            request_kwargs["json"] = proxy_request.json_body
        return await self._client.request(
            proxy_request.method, proxy_request.path, **request_kwargs
        )

    async def forward(
        self,
        endpoint: Endpoint,
        *,
        credential: str | None,
        path_params: Mapping[str, str] | None = None,
        query: Mapping[str, str] | None = None,
        load_body: Callable[[], Awaitable[Any]] | None = None,
    ) -> ProxyOutcome:
        """Run the full proxy contract for one call of ``endpoint``.

        The body is loaded lazily so the session check always comes first.
        """
        try:
            if endpoint.requires_session and not credential:
                return unauthorized()

            body = None
            if endpoint.sends_body and load_body is not None:
                body = await load_body()

            rejection = check_request(endpoint, query, body)
            if rejection is not None:
                return rejection

            proxy_request = build_proxy_request(endpoint, path_params, query, body)
            response = await self.send(
                proxy_request, credential if endpoint.requires_session else None
            )
            logger.info(
                "%s %s -> %d (%s)",
                proxy_request.method,
                proxy_request.path,
                response.status_code,
                endpoint.name,
            )
            return self._interpret(endpoint, response)
        except Exception as exc:
            logger.error("Proxy call %s failed: %s", endpoint.name, exc, exc_info=exc)
            return internal_error(endpoint.exception_context, exc)

    def _interpret(self, endpoint: Endpoint, response: httpx.Response) -> ProxyOutcome:
        result = classify_response(response, endpoint.error_field)
        if isinstance(result, Success):
            return result
        if isinstance(result, MalformedUpstream):
            logger.warning(
                "Non-JSON response from backend for %s: status=%d content-type=%r",
                endpoint.name,
                result.status_code,
                result.content_type,
            )
            return upstream_malformed()
        assert isinstance(result, StructuredError)
        if result.status_code < http_status.HTTP_400_BAD_REQUEST:
            logger.warning(
                "Unexpected %d from backend for %s", result.status_code, endpoint.name
            )
            return upstream_malformed()
        return upstream_rejected(result.message, endpoint.failure_message, result.status_code)

"""Resource proxy routes generated from the endpoint descriptor table."""

from __future__ import annotations

from typing import TYPE_CHECKING, Annotated

from fastapi import APIRouter, Depends, Request, Response, status

from kilometracker.api.deps import get_proxy, get_session_store
from kilometracker.proxy.endpoints import RESOURCES
from kilometracker.proxy.engine import ProxyEngine, outcome_response
from kilometracker.proxy.envelope import ErrorEnvelope
from kilometracker.services.session_service import SessionStore

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from kilometracker.proxy.endpoints import Endpoint


def make_proxy_handler(endpoint: Endpoint) -> Callable[..., Awaitable[Response]]:
    """Build the route handler for one descriptor row."""

    async def handler(
        request: Request,
        proxy: Annotated[ProxyEngine, Depends(get_proxy)],
        store: Annotated[SessionStore, Depends(get_session_store)],
    ) -> Response:
        credential = store.read(request)
        outcome = await proxy.forward(
            endpoint,
            credential=credential,
            path_params=request.path_params,
            query=request.query_params,
            load_body=request.json,
        )
        response = outcome_response(outcome)
        # The backend rejected the token we sent: the session is stale.
        if (
            credential
            and endpoint.requires_session
            and isinstance(outcome, ErrorEnvelope)
            and outcome.status == status.HTTP_401_UNAUTHORIZED
        ):
            store.clear(response)
        return response

    handler.__name__ = endpoint.name.replace(".", "_")
    handler.__doc__ = f"{endpoint.method} {endpoint.route} -> backend {endpoint.backend_path}"
    return handler


def build_router(resources: dict[str, tuple[Endpoint, ...]] = RESOURCES) -> APIRouter:
    router = APIRouter()
    for resource, endpoints in resources.items():
        for endpoint in endpoints:
            router.add_api_route(
                endpoint.route,
                make_proxy_handler(endpoint),
                methods=[endpoint.method],
                name=endpoint.name,
                tags=[resource],
                response_class=Response,
            )
    return router


router = build_router()

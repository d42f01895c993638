"""Tests for application startup and shutdown."""

from __future__ import annotations

import pytest

from kilometracker.config import Settings
from kilometracker.exceptions import ConfigurationError
from kilometracker.main import create_app
from kilometracker.proxy.engine import ProxyEngine


class TestLifespan:
    async def test_creates_and_closes_proxy(self, test_settings: Settings) -> None:
        app = create_app(test_settings)

        async with app.router.lifespan_context(app):
            proxy = app.state.proxy
            assert isinstance(proxy, ProxyEngine)

        assert proxy._client.is_closed

    async def test_refuses_to_start_with_bad_backend_url(self, test_settings: Settings) -> None:
        test_settings.api_base_url = "not-a-url"
        app = create_app(test_settings)

        with pytest.raises(ConfigurationError):
            async with app.router.lifespan_context(app):
                pass


class TestCreateApp:
    def test_docs_hidden_by_default(self, test_settings: Settings) -> None:
        test_settings.debug = False
        app = create_app(test_settings)
        assert app.docs_url is None
        assert app.openapi_url is None

    def test_docs_in_debug(self, test_settings: Settings) -> None:
        app = create_app(test_settings)
        assert app.docs_url == "/docs"

    def test_every_descriptor_row_is_routed(self, test_settings: Settings) -> None:
        from kilometracker.proxy.endpoints import all_endpoints

        app = create_app(test_settings)
        routed = {getattr(route, "name", None) for route in app.routes}
        proxied = {endpoint.name for endpoint in all_endpoints() if endpoint.requires_session}
        assert proxied <= routed
        assert "auth.register" in routed
        assert "login" in routed
        assert "logout" in routed

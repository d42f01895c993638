"""Shared API dependencies: settings, proxy engine, session store."""

from __future__ import annotations

from fastapi import Request

from kilometracker.config import Settings
from kilometracker.proxy.engine import ProxyEngine
from kilometracker.services.session_service import SessionStore


def get_settings(request: Request) -> Settings:
    """Get application settings from app state."""
    settings: Settings = request.app.state.settings
    return settings


def get_proxy(request: Request) -> ProxyEngine:
    """Get the shared proxy engine from app state."""
    proxy: ProxyEngine = request.app.state.proxy
    return proxy


def get_session_store(request: Request) -> SessionStore:
    store: SessionStore = request.app.state.session_store
    return store

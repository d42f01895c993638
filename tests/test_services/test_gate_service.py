"""Tests for page access rules."""

from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from kilometracker.services.gate_service import (
    DASHBOARD_PATH,
    LANDING_PATH,
    PROTECTED_PREFIXES,
    GateDecision,
    RequestGate,
    RouteAccess,
)

_SEGMENT = st.text(alphabet="abcdefghijklmnopqrstuvwxyz0123456789-_", min_size=1, max_size=12)


class TestClassify:
    @pytest.fixture
    def gate(self) -> RequestGate:
        return RequestGate()

    def test_landing_is_public_only(self, gate: RequestGate) -> None:
        assert gate.classify("/") is RouteAccess.PUBLIC_ONLY

    def test_landing_does_not_cover_everything(self, gate: RequestGate) -> None:
        assert gate.classify("/register") is RouteAccess.OPEN

    @pytest.mark.parametrize("path", ["/dashboard", "/dashboard/", "/dashboard/vehicles/abc"])
    def test_dashboard_subtree_is_protected(self, gate: RequestGate, path: str) -> None:
        assert gate.classify(path) is RouteAccess.PROTECTED

    def test_prefix_match_is_segment_aware(self, gate: RequestGate) -> None:
        assert gate.classify("/dashboards") is RouteAccess.OPEN
        assert gate.classify("/profile-picture") is RouteAccess.OPEN

    def test_every_dashboard_page_is_protected(self, gate: RequestGate) -> None:
        for prefix in PROTECTED_PREFIXES:
            assert gate.classify(prefix) is RouteAccess.PROTECTED

    @given(first=_SEGMENT, rest=st.lists(_SEGMENT, max_size=3))
    def test_protected_wins_for_any_subpath(self, first: str, rest: list[str]) -> None:
        path = "/".join(["/admin-users", first, *rest])
        assert RequestGate().classify(path) is RouteAccess.PROTECTED


class TestDecide:
    @pytest.fixture
    def gate(self) -> RequestGate:
        return RequestGate()

    def test_protected_without_credential(self, gate: RequestGate) -> None:
        assert gate.decide("/dashboard", has_credential=False) is GateDecision.REDIRECT_LOGIN

    def test_protected_with_credential(self, gate: RequestGate) -> None:
        assert gate.decide("/dashboard", has_credential=True) is GateDecision.ALLOW

    def test_landing_with_credential(self, gate: RequestGate) -> None:
        assert gate.decide("/", has_credential=True) is GateDecision.REDIRECT_DASHBOARD

    def test_landing_without_credential(self, gate: RequestGate) -> None:
        assert gate.decide("/", has_credential=False) is GateDecision.ALLOW

    @pytest.mark.parametrize("has_credential", [True, False])
    def test_open_paths_always_allowed(self, gate: RequestGate, has_credential: bool) -> None:
        assert gate.decide("/register", has_credential) is GateDecision.ALLOW
        assert gate.decide("/favicon.ico", has_credential) is GateDecision.ALLOW

    def test_redirect_targets(self, gate: RequestGate) -> None:
        assert gate.redirect_target(GateDecision.REDIRECT_LOGIN) == LANDING_PATH
        assert gate.redirect_target(GateDecision.REDIRECT_DASHBOARD) == DASHBOARD_PATH
        assert gate.redirect_target(GateDecision.ALLOW) is None


class TestConfiguration:
    def test_custom_prefixes(self) -> None:
        gate = RequestGate(protected=("/fleet",), public_only=("/login",))
        assert gate.decide("/fleet/1", has_credential=False) is GateDecision.REDIRECT_LOGIN
        assert gate.decide("/dashboard", has_credential=False) is GateDecision.ALLOW
        assert gate.decide("/login", has_credential=True) is GateDecision.REDIRECT_DASHBOARD

    def test_overlapping_prefixes_rejected(self) -> None:
        with pytest.raises(ValueError, match="overlap"):
            RequestGate(protected=("/account",), public_only=("/account/login",))

    def test_landing_does_not_overlap_protected_pages(self) -> None:
        RequestGate(protected=("/dashboard",), public_only=("/",))

"""Page access rules: decide from the path and cookie presence alone."""

from __future__ import annotations

import enum
from dataclasses import dataclass

LANDING_PATH = "/"
DASHBOARD_PATH = "/dashboard"

PROTECTED_PREFIXES: tuple[str, ...] = (
    "/dashboard",
    "/admin-users",
    "/add-expense",
    "/add-maintenance",
    "/add-refuel",
    "/add-route",
    "/add-vehicle",
    "/edit-expense",
    "/edit-maintenance",
    "/edit-vehicle",
    "/expenses-history",
    "/expenses-summary",
    "/fuel-analysis",
    "/maintenance-history",
    "/profile",
    "/refuels-history",
    "/routes-history",
    "/upcoming-expenses",
    "/upcoming-maintenance",
    "/vehicle-stats",
)
PUBLIC_ONLY_PREFIXES: tuple[str, ...] = (LANDING_PATH,)


class RouteAccess(enum.Enum):
    PROTECTED = "protected"
    PUBLIC_ONLY = "public_only"
    OPEN = "open"


class GateDecision(enum.Enum):
    ALLOW = "allow"
    REDIRECT_LOGIN = "redirect_login"
    REDIRECT_DASHBOARD = "redirect_dashboard"


def _matches(path: str, prefix: str) -> bool:
    # "/" would prefix everything, so the landing page matches exactly.
    if prefix == LANDING_PATH:
        return path == LANDING_PATH
    return path == prefix or path.startswith(prefix.rstrip("/") + "/")


@dataclass(frozen=True)
class RequestGate:
    """Prefix-based page gate. Never contacts the backend; presence-only."""

    protected: tuple[str, ...] = PROTECTED_PREFIXES
    public_only: tuple[str, ...] = PUBLIC_ONLY_PREFIXES
    login_path: str = LANDING_PATH
    dashboard_path: str = DASHBOARD_PATH

    def __post_init__(self) -> None:
        overlap = sorted(
            {p for p in self.protected for q in self.public_only if _matches(p, q) or _matches(q, p)}
        )
        if overlap:
            msg = f"Protected and public-only prefixes overlap: {overlap}"
            raise ValueError(msg)

    def classify(self, path: str) -> RouteAccess:
        if any(_matches(path, prefix) for prefix in self.protected):
            return RouteAccess.PROTECTED
        if any(_matches(path, prefix) for prefix in self.public_only):
            return RouteAccess.PUBLIC_ONLY
        return RouteAccess.OPEN

    def decide(self, path: str, has_credential: bool) -> GateDecision:
        access = self.classify(path)
        if access is RouteAccess.PROTECTED and not has_credential:
            return GateDecision.REDIRECT_LOGIN
        if access is RouteAccess.PUBLIC_ONLY and has_credential:
            return GateDecision.REDIRECT_DASHBOARD
        return GateDecision.ALLOW

    def redirect_target(self, decision: GateDecision) -> str | None:
        if decision is GateDecision.REDIRECT_LOGIN:
            return self.login_path
        if decision is GateDecision.REDIRECT_DASHBOARD:
            return self.dashboard_path
        return None

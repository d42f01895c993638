"""CLI that watches upcoming maintenance and expense counts through the edge."""

from __future__ import annotations

import argparse
import asyncio
import getpass
import sys
from typing import TYPE_CHECKING
from urllib.parse import urlparse

import httpx

from kilometracker.services.upcoming_service import (
    REFRESH_INTERVAL_SECONDS,
    UpcomingCounts,
    fetch_upcoming_counts,
)

if TYPE_CHECKING:
    from collections.abc import Callable

_LOCALHOST_HOSTS = frozenset({"localhost", "127.0.0.1", "::1"})
SESSION_COOKIE = "token"


class LoginError(Exception):
    """Raised when the edge refuses the credentials."""


class UpcomingClient:
    """Talks to the edge with the session cookie, like the dashboard does."""

    def __init__(
        self,
        server_url: str,
        token: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.server_url = server_url.rstrip("/")
        self.client = httpx.AsyncClient(
            base_url=self.server_url, timeout=timeout, transport=transport
        )
        if token:
            self.use_session(token)

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self) -> UpcomingClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()

    def use_session(self, token: str) -> None:
        self.client.headers["Cookie"] = f"{SESSION_COOKIE}={token}"

    async def login(self, email: str, password: str) -> None:
        """Log in through the edge and keep the issued session cookie."""
        resp = await self.client.post(
            "/api/auth/login",
            json={"email": email, "password": password},
        )
        if not resp.is_success:
            detail = resp.json().get("error", "") if _is_json(resp) else ""
            msg = f"Login failed ({resp.status_code}) {detail}".strip()
            raise LoginError(msg)
        token = resp.cookies.get(SESSION_COOKIE)
        if not token:
            msg = "Login succeeded but no session cookie was issued"
            raise LoginError(msg)
        self.use_session(token)

    async def refresh(self) -> UpcomingCounts:
        return await fetch_upcoming_counts(self.client)

    async def watch(
        self,
        interval: float,
        report: Callable[[UpcomingCounts], None],
        iterations: int | None = None,
    ) -> None:
        """Start a refresh every ``interval`` seconds.

        Refreshes are not coalesced: a slow one does not delay or cancel the
        next. Pending refreshes are awaited before returning.
        """
        pending: set[asyncio.Task[None]] = set()

        async def _refresh_and_report() -> None:
            report(await self.refresh())

        started = 0
        try:
            while iterations is None or started < iterations:
                task = asyncio.create_task(_refresh_and_report())
                pending.add(task)
                task.add_done_callback(pending.discard)
                started += 1
                if iterations is not None and started >= iterations:
                    break
                await asyncio.sleep(interval)
        finally:
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)


def _is_json(resp: httpx.Response) -> bool:
    return "application/json" in resp.headers.get("content-type", "")


def validate_server_url(server_url: str, allow_insecure_http: bool = False) -> str:
    """Validate server URL and enforce HTTPS for non-localhost hosts by default."""
    normalized = server_url.strip().rstrip("/")
    parsed = urlparse(normalized)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise ValueError("Server URL must include scheme and host (e.g. https://example.com)")

    hostname = parsed.hostname
    if parsed.scheme == "http" and not allow_insecure_http and hostname not in _LOCALHOST_HOSTS:
        raise ValueError(
            "HTTPS is required for non-localhost servers. "
            "Use --allow-insecure-http only on trusted networks."
        )

    return normalized


def format_counts(counts: UpcomingCounts) -> str:
    line = f"Upcoming: {counts.maintenance_count} maintenance, {counts.expenses_count} expense(s)"
    if counts.errors:
        line += f" [{len(counts.errors)} fetch error(s)]"
    return line


async def _run(args: argparse.Namespace, server_url: str, password: str | None) -> None:
    async with UpcomingClient(server_url, token=args.token) as client:
        if password is not None:
            await client.login(args.email, password)
        iterations = 1 if args.once else None
        await client.watch(args.interval, lambda counts: print(format_counts(counts)), iterations)


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="kilometracker-upcoming",
        description="Show upcoming maintenance and expense counts",
    )
    parser.add_argument("--server", "-s", required=True, help="Edge server URL")
    parser.add_argument(
        "--allow-insecure-http",
        action="store_true",
        help="Allow http:// server URLs for non-localhost hosts",
    )
    parser.add_argument("--email", "-e", help="Email for login")
    parser.add_argument("--token", help="Existing session token (skips login)")
    parser.add_argument(
        "--interval",
        type=float,
        default=REFRESH_INTERVAL_SECONDS,
        help=f"Seconds between refreshes (default: {REFRESH_INTERVAL_SECONDS})",
    )
    parser.add_argument("--once", action="store_true", help="Refresh once and exit")
    args = parser.parse_args()

    try:
        server_url = validate_server_url(args.server, args.allow_insecure_http)
    except ValueError as exc:
        print(f"Error: {exc}")
        sys.exit(1)

    password = None
    if args.token is None:
        if not args.email:
            args.email = input("Email: ")
        password = getpass.getpass("Password: ")

    try:
        asyncio.run(_run(args, server_url, password))
    except LoginError as exc:
        print(f"Error: {exc}")
        sys.exit(1)
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()

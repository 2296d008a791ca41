"""Shared CLI helpers: sessions, rendering and exit codes."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any, NoReturn, TypeVar

import structlog
import typer

from superhuman_agent.cdp.launcher import connect_or_launch
from superhuman_agent.cdp.session import Session
from superhuman_agent.config import (
    TARGET_ORIGIN,
    get_default_app_path,
    get_default_auto_launch,
    get_default_cdp_port,
)
from superhuman_agent.errors import AgentError, target_not_found_error

T = TypeVar("T")

PORT_HELP = "Superhuman remote debugging port (env: SUPERHUMAN_CDP_PORT)"


def configure_logging(verbose: bool) -> None:
    """Send structlog output to stderr so --json stdout stays parseable."""
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG if verbose else logging.WARNING),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


def format_json(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=True)


def render_error(error: AgentError, json_output: bool = False) -> NoReturn:
    """Print an AgentError and exit 1."""
    if json_output:
        typer.echo(format_json({"error": error.to_dict()}))
    else:
        typer.echo(f"{error.code}: {error.message}", err=True)
        if error.remediation:
            typer.echo(f"Hint: {error.remediation}", err=True)
    raise typer.Exit(code=1)


def resolve_port(port: int | None) -> int:
    return port if port is not None else get_default_cdp_port()


@asynccontextmanager
async def superhuman_session(port: int | None, no_auto_launch: bool = False) -> AsyncIterator[Session]:
    """Connect (launching Superhuman if allowed) and always disconnect."""
    resolved = resolve_port(port)
    auto_launch = get_default_auto_launch() and not no_auto_launch
    session = await connect_or_launch(resolved, auto_launch, get_default_app_path())
    if session is None:
        raise target_not_found_error(resolved, TARGET_ORIGIN)
    try:
        yield session
    finally:
        await session.disconnect()


def run(coro_fn: Callable[[], Awaitable[T]], json_output: bool = False) -> T:
    """Run a coroutine, rendering AgentError the same way for every command."""

    async def _main() -> T:
        return await coro_fn()

    try:
        return asyncio.run(_main())
    except AgentError as exc:
        render_error(exc, json_output)


def with_session(
    port: int | None,
    no_auto_launch: bool,
    body: Callable[[Session], Awaitable[T]],
    json_output: bool = False,
) -> T:
    """Open a session, run `body` with it, and close it on every path."""

    async def _main() -> T:
        async with superhuman_session(port, no_auto_launch) as session:
            return await body(session)

    return run(_main, json_output)


def finish(success: bool, data: dict[str, Any], message: str, json_output: bool) -> None:
    """Print a result and exit 1 when it failed."""
    if json_output:
        typer.echo(format_json(data))
    elif success:
        typer.echo(f"✓ {message}")
    else:
        typer.echo(f"✗ {message}", err=True)
        if data.get("error"):
            typer.echo(f"  {data['error']}", err=True)
    if not success:
        raise typer.Exit(code=1)

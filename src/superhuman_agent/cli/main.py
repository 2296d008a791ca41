"""CLI entry point using Typer."""

from __future__ import annotations

import asyncio
from typing import Any

import typer

from superhuman_agent.accounts import current_account
from superhuman_agent.cdp.session import connect
from superhuman_agent.cli.commands import accounts, attachments, compose, threads
from superhuman_agent.cli.utils import PORT_HELP, configure_logging, format_json, resolve_port
from superhuman_agent.errors import AgentError

app = typer.Typer(
    name="superhuman-agent",
    help="Drive the Superhuman desktop app over its remote debugging port",
    no_args_is_help=True,
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output to stderr"),
) -> None:
    configure_logging(verbose)


@app.command()
def version() -> None:
    """Show version information."""
    from superhuman_agent import __version__

    typer.echo(f"superhuman-agent v{__version__}")


async def _status(port: int) -> dict[str, Any]:
    try:
        session = await connect(port)
    except AgentError as exc:
        return {"connected": False, "port": port, "error": exc.to_dict()}
    if session is None:
        return {"connected": False, "port": port, "error": {"message": "No Superhuman mail page is open"}}
    try:
        return {
            "connected": True,
            "port": port,
            "url": session.target.url,
            "account": await current_account(session),
        }
    finally:
        await session.disconnect()


@app.command()
def status(
    port: int | None = typer.Option(None, "--port", help=PORT_HELP),
    json_output: bool = typer.Option(False, "--json", help="Output JSON"),
) -> None:
    """Check the connection to Superhuman. Never launches the app."""
    data = asyncio.run(_status(resolve_port(port)))
    if json_output:
        typer.echo(format_json(data))
    elif data["connected"]:
        typer.echo(f"✓ Connected on port {data['port']}")
        typer.echo(f"  Page: {data['url']}")
        typer.echo(f"  Account: {data['account'] or 'unknown'}")
    else:
        typer.echo(f"✗ Not connected on port {data['port']}: {data['error'].get('message')}", err=True)
        if data["error"].get("remediation"):
            typer.echo(f"Hint: {data['error']['remediation']}", err=True)
    if not data["connected"]:
        raise typer.Exit(code=1)


# Unnamed sub-apps add their commands at the top level.
app.add_typer(compose.app)
app.add_typer(threads.app)
app.add_typer(attachments.app)
app.add_typer(accounts.app)


if __name__ == "__main__":
    app()

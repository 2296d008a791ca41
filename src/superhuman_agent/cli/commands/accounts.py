"""Account CLI commands."""

from __future__ import annotations

import typer

from superhuman_agent.accounts import (
    SwitchResult,
    format_accounts_json,
    format_accounts_list,
    list_accounts,
    resolve_account,
    switch_account,
)
from superhuman_agent.cdp.session import Session
from superhuman_agent.cli.utils import PORT_HELP, finish, with_session

app = typer.Typer(help="Account commands")


@app.command("accounts")
def accounts(
    port: int | None = typer.Option(None, "--port", help=PORT_HELP),
    no_auto_launch: bool = typer.Option(False, "--no-auto-launch", help="Do not launch Superhuman"),
    json_output: bool = typer.Option(False, "--json", help="Output JSON"),
) -> None:
    """List linked accounts."""
    found = with_session(port, no_auto_launch, list_accounts, json_output)
    if json_output:
        typer.echo(format_accounts_json(found))
    elif not found:
        typer.echo("No linked accounts found")
    else:
        typer.echo(format_accounts_list(found))


async def _switch(session: Session, account: str) -> SwitchResult:
    found = await list_accounts(session)
    email = resolve_account(found, account)
    return await switch_account(session, email)


@app.command("account")
def account(
    target: str = typer.Argument(..., help="Account index (1-based) or email"),
    port: int | None = typer.Option(None, "--port", help=PORT_HELP),
    no_auto_launch: bool = typer.Option(False, "--no-auto-launch", help="Do not launch Superhuman"),
    json_output: bool = typer.Option(False, "--json", help="Output JSON"),
) -> None:
    """Switch the active account."""
    result = with_session(port, no_auto_launch, lambda s: _switch(s, target), json_output)
    if result.success and not result.switched:
        message = f"Already on {result.email}"
    elif result.success:
        message = f"Switched to {result.email}"
    else:
        message = f"Failed to switch to {result.email}"
    finish(result.success, result.to_dict(), message, json_output)

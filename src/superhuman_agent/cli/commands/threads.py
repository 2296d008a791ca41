"""Thread action CLI commands (bulk-capable) and label listing."""

from __future__ import annotations

from collections.abc import Awaitable, Callable

import typer

from superhuman_agent.actions.bulk import (
    ActionOutcome,
    BulkOperationResult,
    BulkPolicy,
    plan_bulk,
    run_bulk_action,
)
from superhuman_agent.actions.read_status import mark_as_read, mark_as_unread
from superhuman_agent.actions.threads import (
    Label,
    add_label,
    archive_thread,
    delete_thread,
    filter_draft_threads,
    get_thread_labels,
    list_labels,
    remove_label,
    star_thread,
    unstar_thread,
)
from superhuman_agent.cdp.session import Session
from superhuman_agent.cli.utils import PORT_HELP, finish, format_json, with_session

app = typer.Typer(help="Thread action commands")

Action = Callable[[Session, str], Awaitable[ActionOutcome]]


def render_bulk(operation: str, result: BulkOperationResult, json_output: bool) -> None:
    if json_output:
        typer.echo(format_json(result.to_dict()))
    elif result.error is not None:
        typer.echo(result.error.message, err=True)
        typer.echo(result.error.remediation, err=True)
    else:
        for item in result.results:
            if item.dry_run:
                typer.echo(f"[dry-run] Would {operation} {item.target}")
            elif item.success:
                typer.echo(f"✓ {item.target}")
            else:
                typer.echo(f"✗ {item.target}: {item.error}", err=True)
        if result.total > 1:
            typer.echo(f"{result.success_count}/{result.total} succeeded")
    if not result.ok:
        raise typer.Exit(code=1)


def run_bulk(
    operation: str,
    thread_ids: list[str],
    action: Action,
    *,
    yes: bool,
    dry_run: bool,
    port: int | None,
    no_auto_launch: bool,
    json_output: bool,
) -> None:
    """Gate, filter drafts, then run `action` over the threads."""
    targets, drafts = filter_draft_threads(thread_ids)
    if drafts:
        typer.echo(f"Skipping {len(drafts)} draft id(s): drafts have no server-side thread", err=True)
    if not targets:
        typer.echo("No thread ids to act on", err=True)
        raise typer.Exit(code=1)

    policy = BulkPolicy(confirm=yes, dry_run=dry_run)
    result = plan_bulk(operation, targets, policy)
    if result is None:
        result = with_session(
            port,
            no_auto_launch,
            lambda session: run_bulk_action(session, targets, action, policy, operation=operation),
            json_output,
        )
    render_bulk(operation, result, json_output)


def _bulk_command(operation: str, action: Action, doc: str) -> Callable[..., None]:
    def command(
        thread_ids: list[str] = typer.Argument(..., help="Thread ID(s)"),
        yes: bool = typer.Option(False, "--yes", "-y", help="Confirm operations on more than one thread"),
        dry_run: bool = typer.Option(False, "--dry-run", help="Preview without changing anything"),
        port: int | None = typer.Option(None, "--port", help=PORT_HELP),
        no_auto_launch: bool = typer.Option(False, "--no-auto-launch", help="Do not launch Superhuman"),
        json_output: bool = typer.Option(False, "--json", help="Output JSON"),
    ) -> None:
        run_bulk(
            operation,
            thread_ids,
            action,
            yes=yes,
            dry_run=dry_run,
            port=port,
            no_auto_launch=no_auto_launch,
            json_output=json_output,
        )

    command.__doc__ = doc
    return command


def _label_command(
    operation: str,
    mutate: Callable[[Session, str, str], Awaitable[ActionOutcome]],
    doc: str,
) -> Callable[..., None]:
    def command(
        thread_ids: list[str] = typer.Argument(..., help="Thread ID(s)"),
        label: str = typer.Option(..., "--label", "-l", help="Label ID"),
        yes: bool = typer.Option(False, "--yes", "-y", help="Confirm operations on more than one thread"),
        dry_run: bool = typer.Option(False, "--dry-run", help="Preview without changing anything"),
        port: int | None = typer.Option(None, "--port", help=PORT_HELP),
        no_auto_launch: bool = typer.Option(False, "--no-auto-launch", help="Do not launch Superhuman"),
        json_output: bool = typer.Option(False, "--json", help="Output JSON"),
    ) -> None:
        run_bulk(
            operation,
            thread_ids,
            lambda session, thread_id: mutate(session, thread_id, label),
            yes=yes,
            dry_run=dry_run,
            port=port,
            no_auto_launch=no_auto_launch,
            json_output=json_output,
        )

    command.__doc__ = doc
    return command


def labels(
    port: int | None = typer.Option(None, "--port", help=PORT_HELP),
    no_auto_launch: bool = typer.Option(False, "--no-auto-launch", help="Do not launch Superhuman"),
    json_output: bool = typer.Option(False, "--json", help="Output JSON"),
) -> None:
    """List all labels of the current account."""
    result = with_session(port, no_auto_launch, list_labels, json_output)
    _render_labels(result.ok, result.value or [], result.describe(), json_output)


def get_labels(
    thread_id: str = typer.Argument(..., help="Thread ID"),
    port: int | None = typer.Option(None, "--port", help=PORT_HELP),
    no_auto_launch: bool = typer.Option(False, "--no-auto-launch", help="Do not launch Superhuman"),
    json_output: bool = typer.Option(False, "--json", help="Output JSON"),
) -> None:
    """List labels on one thread."""
    result = with_session(
        port, no_auto_launch, lambda session: get_thread_labels(session, thread_id), json_output
    )
    _render_labels(result.ok, result.value or [], result.describe(), json_output)


def _render_labels(ok: bool, values: list[Label], error: str, json_output: bool) -> None:
    if not ok:
        finish(False, {"success": False, "error": error}, "Could not read labels", json_output)
    if json_output:
        typer.echo(format_json([label.model_dump() for label in values]))
        return
    if not values:
        typer.echo("No labels found")
    for label in values:
        typer.echo(f"{label.id}\t{label.name}")


app.command("archive")(_bulk_command("archive", archive_thread, "Archive thread(s)."))
app.command("delete")(_bulk_command("delete", delete_thread, "Move thread(s) to the trash."))
app.command("mark-read")(_bulk_command("mark-read", mark_as_read, "Mark thread(s) as read."))
app.command("mark-unread")(_bulk_command("mark-unread", mark_as_unread, "Mark thread(s) as unread."))
app.command("star")(_bulk_command("star", star_thread, "Star thread(s)."))
app.command("unstar")(_bulk_command("unstar", unstar_thread, "Unstar thread(s)."))
app.command("add-label")(_label_command("add-label", add_label, "Add a label to thread(s)."))
app.command("remove-label")(_label_command("remove-label", remove_label, "Remove a label from thread(s)."))
app.command("labels")(labels)
app.command("get-labels")(get_labels)


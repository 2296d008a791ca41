"""Compose, draft, send, reply and forward CLI commands."""

from __future__ import annotations

import mimetypes
from enum import Enum
from pathlib import Path
from typing import Any

import typer

from superhuman_agent.actions.attachments import encode_file
from superhuman_agent.cdp.session import Session
from superhuman_agent.cli.utils import PORT_HELP, finish, with_session
from superhuman_agent.compose.machine import DraftComposer
from superhuman_agent.compose.reply import ReplyResult, forward_thread, reply_all_to_thread, reply_to_thread
from superhuman_agent.compose.text import text_to_html

app = typer.Typer(help="Compose, reply and forward commands")


class Finish(Enum):
    KEEP_OPEN = "keep_open"
    SAVE = "save"
    SEND = "send"


def _read_attachment(path_str: str) -> tuple[str, str, str]:
    path = Path(path_str).expanduser()
    if not path.is_file():
        raise typer.BadParameter(f"Attachment not found: {path}")
    mime_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    return path.name, encode_file(path.read_bytes()), mime_type


async def compose_message(
    session: Session,
    *,
    to: list[str],
    cc: list[str],
    bcc: list[str],
    subject: str | None,
    html: str,
    attachments: list[tuple[str, str, str]],
    finish_with: Finish,
) -> dict[str, Any]:
    """Open a new draft, fill every field, then keep, save or send it.

    Field failures are reported but do not stop the remaining fields.
    Saving or sending only happens when every field went in.
    """
    composer = DraftComposer.for_session(session)
    if await composer.open() is None:
        return {"success": False, **composer.to_dict()}

    for field_name, recipients in (("to", to), ("cc", cc), ("bcc", bcc)):
        for email in recipients:
            await composer.add_recipient(email, field=field_name)
    if subject:
        await composer.set_subject(subject)
    if html:
        await composer.set_body(html)
    for filename, data, mime_type in attachments:
        await composer.add_attachment(filename, data, mime_type)

    all_fields = all(f.success for f in composer.fields)
    if finish_with is Finish.KEEP_OPEN or not all_fields:
        return {"success": all_fields, **composer.to_dict()}
    done = await composer.save() if finish_with is Finish.SAVE else await composer.send()
    return {"success": done, **composer.to_dict()}


def _compose_command(finish_with: Finish, doc: str, done_message: str) -> Any:
    def command(
        to: list[str] = typer.Option(..., "--to", help="Recipient email (repeatable)"),
        cc: list[str] = typer.Option([], "--cc", help="CC recipient (repeatable)"),
        bcc: list[str] = typer.Option([], "--bcc", help="BCC recipient (repeatable)"),
        subject: str | None = typer.Option(None, "--subject", help="Subject"),
        body: str | None = typer.Option(None, "--body", help="Body as plain text"),
        html: str | None = typer.Option(None, "--html", help="Body as HTML"),
        attach: list[str] = typer.Option([], "--attach", help="File to attach (repeatable)"),
        port: int | None = typer.Option(None, "--port", help=PORT_HELP),
        no_auto_launch: bool = typer.Option(False, "--no-auto-launch", help="Do not launch Superhuman"),
        json_output: bool = typer.Option(False, "--json", help="Output JSON"),
    ) -> None:
        if body and html:
            raise typer.BadParameter("--body and --html are mutually exclusive")
        files = [_read_attachment(p) for p in attach]
        rendered = html or text_to_html(body or "")
        data = with_session(
            port,
            no_auto_launch,
            lambda session: compose_message(
                session,
                to=to,
                cc=cc,
                bcc=bcc,
                subject=subject,
                html=rendered,
                attachments=files,
                finish_with=finish_with,
            ),
            json_output,
        )
        message = done_message if data["success"] else "Compose did not complete"
        if data.get("error"):
            data["error"] = data["error"]["message"]
        elif not data["success"]:
            failed = [f["field"] for f in data["fields"] if not f["success"]]
            data["error"] = f"Failed fields: {', '.join(failed)}"
        if data.get("draft_key") and not json_output and data["success"]:
            message += f" ({data['draft_key']})"
        finish(data["success"], data, message, json_output)

    command.__doc__ = doc
    return command


def _render_reply(result: ReplyResult, send: bool, json_output: bool) -> None:
    data = result.to_dict()
    if result.success:
        message = "Sent" if send else f"Draft saved ({result.draft_id})"
    else:
        message = "Reply failed"
    finish(result.success, data, message, json_output)


def reply(
    thread_id: str = typer.Argument(..., help="Thread ID"),
    body: str = typer.Option("", "--body", help="Reply text"),
    send: bool = typer.Option(False, "--send", help="Send instead of saving a draft"),
    port: int | None = typer.Option(None, "--port", help=PORT_HELP),
    no_auto_launch: bool = typer.Option(False, "--no-auto-launch", help="Do not launch Superhuman"),
    json_output: bool = typer.Option(False, "--json", help="Output JSON"),
) -> None:
    """Reply to the sender of a thread."""
    result = with_session(
        port, no_auto_launch, lambda s: reply_to_thread(s, thread_id, body, send), json_output
    )
    _render_reply(result, send, json_output)


def reply_all(
    thread_id: str = typer.Argument(..., help="Thread ID"),
    body: str = typer.Option("", "--body", help="Reply text"),
    send: bool = typer.Option(False, "--send", help="Send instead of saving a draft"),
    port: int | None = typer.Option(None, "--port", help=PORT_HELP),
    no_auto_launch: bool = typer.Option(False, "--no-auto-launch", help="Do not launch Superhuman"),
    json_output: bool = typer.Option(False, "--json", help="Output JSON"),
) -> None:
    """Reply to everyone on a thread."""
    result = with_session(
        port, no_auto_launch, lambda s: reply_all_to_thread(s, thread_id, body, send), json_output
    )
    _render_reply(result, send, json_output)


def forward(
    thread_id: str = typer.Argument(..., help="Thread ID"),
    to: str = typer.Option(..., "--to", help="Forward to this address"),
    body: str = typer.Option("", "--body", help="Note above the forwarded message"),
    send: bool = typer.Option(False, "--send", help="Send instead of saving a draft"),
    port: int | None = typer.Option(None, "--port", help=PORT_HELP),
    no_auto_launch: bool = typer.Option(False, "--no-auto-launch", help="Do not launch Superhuman"),
    json_output: bool = typer.Option(False, "--json", help="Output JSON"),
) -> None:
    """Forward a thread."""
    result = with_session(
        port, no_auto_launch, lambda s: forward_thread(s, thread_id, to, body, send), json_output
    )
    _render_reply(result, send, json_output)


app.command("compose")(
    _compose_command(Finish.KEEP_OPEN, "Open compose and fill it in (window stays open).", "Compose filled in")
)
app.command("draft")(_compose_command(Finish.SAVE, "Create and save a draft.", "Draft saved"))
app.command("send")(_compose_command(Finish.SEND, "Compose and send immediately.", "Sent"))
app.command("reply")(reply)
app.command("reply-all")(reply_all)
app.command("forward")(forward)

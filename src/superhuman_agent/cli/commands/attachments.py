"""Attachment CLI commands. Downloads are the only files the CLI writes."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import typer

from superhuman_agent.actions.attachments import Attachment, download_attachment, list_attachments
from superhuman_agent.cdp.session import Session
from superhuman_agent.cli.utils import PORT_HELP, finish, format_json, with_session
from superhuman_agent.gateway import RemoteCallGateway

app = typer.Typer(help="Attachment commands")


@app.command("attachments")
def attachments(
    thread_id: str = typer.Argument(..., help="Thread ID"),
    port: int | None = typer.Option(None, "--port", help=PORT_HELP),
    no_auto_launch: bool = typer.Option(False, "--no-auto-launch", help="Do not launch Superhuman"),
    json_output: bool = typer.Option(False, "--json", help="Output JSON"),
) -> None:
    """List attachments on a thread."""
    result = with_session(port, no_auto_launch, lambda s: list_attachments(s, thread_id), json_output)
    if not result.ok:
        finish(False, result.to_dict(), "Could not list attachments", json_output)
    items: list[Attachment] = result.value or []
    if json_output:
        typer.echo(format_json([a.model_dump() for a in items]))
        return
    if not items:
        typer.echo("No attachments")
    for item in items:
        typer.echo(f"{item.name}\t{item.mimeType}\tmessage={item.messageId}\tid={item.attachmentId}")


def _safe_name(name: str) -> str | None:
    """Last path component of a sender-supplied name, or None if nothing usable is left."""
    base = Path(name.replace("\\", "/")).name.strip()
    if base in ("", ".", ".."):
        return None
    return base


def _target_path(output: str | None, name: str, many: bool) -> Path | None:
    """Where to write one attachment; None when the name would escape the directory."""
    if output is not None:
        path = Path(output).expanduser()
        if not many and not path.is_dir():
            return path
        path.mkdir(parents=True, exist_ok=True)
        directory = path
    else:
        directory = Path.cwd()
    safe = _safe_name(name)
    if safe is None:
        return None
    root = directory.resolve()
    target = (root / safe).resolve()
    if not target.is_relative_to(root) or target == root:
        return None
    return target


async def _download(
    session: Session,
    thread_id: str,
    attachment_id: str | None,
    message_id: str | None,
    output: str | None,
) -> dict[str, Any]:
    listed = await list_attachments(session, thread_id)
    if not listed.ok:
        return {"success": False, "error": listed.describe(), "files": []}
    items: list[Attachment] = listed.value or []
    if attachment_id:
        items = [
            a
            for a in items
            if attachment_id in (a.attachmentId, a.id) and (message_id is None or a.messageId == message_id)
        ]
    if not items:
        return {"success": False, "error": "No matching attachments", "files": []}

    kind = await RemoteCallGateway(session).is_microsoft()
    if not kind.ok:
        return {"success": False, "error": kind.describe(), "files": []}

    files: list[dict[str, Any]] = []
    for item in items:
        content = await download_attachment(
            session,
            item.messageId,
            item.attachmentId,
            thread_id=item.threadId,
            mime_type=item.mimeType,
            is_microsoft=bool(kind.value),
        )
        if not content.ok or content.value is None:
            files.append({"name": item.name, "success": False, "error": content.describe()})
            continue
        path = _target_path(output, item.name, len(items) > 1)
        if path is None:
            files.append({"name": item.name, "success": False, "error": f"Unsafe attachment name: {item.name!r}"})
            continue
        path.write_bytes(content.value.decode())
        files.append({"name": item.name, "success": True, "path": str(path), "size": content.value.size})
    return {"success": all(f["success"] for f in files), "files": files}


@app.command("download")
def download(
    thread_id: str = typer.Argument(..., help="Thread ID"),
    attachment_id: str | None = typer.Option(None, "--attachment", help="Only this attachment ID"),
    message_id: str | None = typer.Option(None, "--message", help="Message ID of the attachment"),
    output: str | None = typer.Option(None, "--output", "-o", help="Output file or directory"),
    port: int | None = typer.Option(None, "--port", help=PORT_HELP),
    no_auto_launch: bool = typer.Option(False, "--no-auto-launch", help="Do not launch Superhuman"),
    json_output: bool = typer.Option(False, "--json", help="Output JSON"),
) -> None:
    """Download attachments from a thread."""
    if message_id and not attachment_id:
        raise typer.BadParameter("--message needs --attachment")
    data = with_session(
        port,
        no_auto_launch,
        lambda s: _download(s, thread_id, attachment_id, message_id, output),
        json_output,
    )
    if not json_output:
        for f in data["files"]:
            if f["success"]:
                typer.echo(f"✓ {f['name']} -> {f['path']} ({f['size']} bytes)")
            else:
                typer.echo(f"✗ {f['name']}: {f['error']}", err=True)
    finish(data["success"], data, "Download complete" if data["success"] else "Download failed", json_output)

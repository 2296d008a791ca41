"""Attachment listing and download."""

from __future__ import annotations

import base64
from typing import TYPE_CHECKING

import structlog
from pydantic import BaseModel, ValidationError

from superhuman_agent.gateway import ErrorKind, RemoteCallGateway, RemoteCallResult, strategy_for

if TYPE_CHECKING:
    from superhuman_agent.cdp.session import Session

logger = structlog.get_logger()


class Attachment(BaseModel):
    id: str
    attachmentId: str
    name: str
    mimeType: str = "application/octet-stream"
    extension: str = ""
    messageId: str
    threadId: str
    inline: bool = False


class AttachmentContent(BaseModel):
    """Base64 payload, the same shape for every account kind."""

    data: str
    size: int

    def decode(self) -> bytes:
        return base64.b64decode(self.data)


async def list_attachments(session: Session, thread_id: str) -> RemoteCallResult[list[Attachment]]:
    """Attachments across every message in a thread."""
    result = await RemoteCallGateway(session).call("thread.attachments", thread_id=thread_id)
    if not result.ok:
        return result

    attachments = []
    for entry in result.value or []:
        try:
            attachments.append(Attachment.model_validate(entry))
        except ValidationError as exc:
            logger.debug("attachment_entry_skipped", thread_id=thread_id, error=str(exc))
    result.value = attachments
    return result


async def download_attachment(
    session: Session,
    message_id: str,
    attachment_id: str,
    thread_id: str | None = None,
    mime_type: str | None = None,
    is_microsoft: bool | None = None,
) -> RemoteCallResult[AttachmentContent]:
    """Fetch one attachment as base64.

    Pass `is_microsoft` when the account kind is already known; otherwise
    it is probed first.
    """
    gateway = RemoteCallGateway(session)
    if is_microsoft is None:
        kind = await gateway.is_microsoft()
        if not kind.ok:
            return kind
        is_microsoft = bool(kind.value)

    strategy = strategy_for(gateway, is_microsoft)
    result = await strategy.download_attachment(
        message_id,
        attachment_id,
        thread_id=thread_id or "",
        mime_type=mime_type or "",
    )
    if not result.ok:
        return result

    try:
        content = AttachmentContent.model_validate(result.value)
    except ValidationError as exc:
        return RemoteCallResult.failure(ErrorKind.REMOTE_THREW, f"Malformed attachment payload: {exc}", path=result.path)
    logger.info(
        "attachment_downloaded",
        message_id=message_id,
        attachment_id=attachment_id,
        account=strategy.kind,
        size=content.size,
    )
    result.value = content
    return result


def encode_file(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


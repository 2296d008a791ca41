"""Read/unread status for threads.

Gmail accounts toggle the UNREAD label on the thread. Microsoft accounts
have no labels, so every message in the thread gets its isRead flag set.
Either way the local thread model is updated afterwards so Superhuman's
list views reflect the change before the next sync.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from superhuman_agent.actions.bulk import ActionOutcome
from superhuman_agent.gateway import RemoteCallGateway, strategy_for
from superhuman_agent.gateway.strategies import UNREAD

if TYPE_CHECKING:
    from superhuman_agent.cdp.session import Session

logger = structlog.get_logger()

NOOP_PATH = "noop"


async def thread_state(gateway: RemoteCallGateway, thread_id: str) -> tuple[dict[str, Any] | None, str | None]:
    """Label ids, message ids and account kind for one thread."""
    result = await gateway.call("thread.state", thread_id=thread_id)
    if not result.ok:
        return None, result.describe()
    return dict(result.value or {}), None


async def sync_local_labels(
    gateway: RemoteCallGateway,
    thread_id: str,
    add: list[str],
    remove: list[str],
) -> None:
    """Mirror a label change into the in-memory thread model."""
    result = await gateway.call("thread.sync_labels", thread_id=thread_id, add=add, remove=remove)
    if not result.ok:
        logger.debug("local_label_sync_skipped", thread_id=thread_id, error=result.describe())


async def _set_read(session: Session, thread_id: str, read: bool) -> ActionOutcome:
    gateway = RemoteCallGateway(session)
    state, error = await thread_state(gateway, thread_id)
    if state is None:
        return ActionOutcome(False, error)

    is_unread = UNREAD in (state.get("labelIds") or [])
    if is_unread != read:
        logger.debug("read_status_unchanged", thread_id=thread_id, read=read)
        return ActionOutcome(True, path=NOOP_PATH)

    strategy = strategy_for(gateway, bool(state.get("isMicrosoft")))
    message_ids = list(state.get("messageIds") or [])
    if strategy.kind == "microsoft" and not message_ids:
        return ActionOutcome(False, "No messages found in thread")

    result = await strategy.set_read(thread_id, message_ids, read)
    if not result.ok:
        return ActionOutcome(False, result.describe())

    if read:
        await sync_local_labels(gateway, thread_id, [], [UNREAD])
    else:
        await sync_local_labels(gateway, thread_id, [UNREAD], [])
    logger.info("read_status_changed", thread_id=thread_id, read=read, account=strategy.kind, via=result.path)
    return ActionOutcome(True, path=f"{strategy.kind}:{result.path}")


async def mark_as_read(session: Session, thread_id: str) -> ActionOutcome:
    """Mark a thread read. Already-read threads are left untouched."""
    return await _set_read(session, thread_id, True)


async def mark_as_unread(session: Session, thread_id: str) -> ActionOutcome:
    """Mark a thread unread. Already-unread threads are left untouched."""
    return await _set_read(session, thread_id, False)

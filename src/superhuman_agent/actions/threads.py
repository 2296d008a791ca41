"""Thread mutations: archive, trash, star and labels."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import BaseModel, ValidationError

from superhuman_agent.actions.bulk import ActionOutcome
from superhuman_agent.actions.read_status import sync_local_labels, thread_state
from superhuman_agent.gateway import AccountStrategy, RemoteCallGateway, RemoteCallResult, strategy_for
from superhuman_agent.gateway.strategies import INBOX, STARRED, TRASH

if TYPE_CHECKING:
    from superhuman_agent.cdp.session import Session

logger = structlog.get_logger()

DRAFT_PREFIX = "draft"


class Label(BaseModel):
    id: str
    name: str
    type: str | None = None


def is_draft_thread(thread_id: str) -> bool:
    """Draft-shaped ids are local drafts with no server-side thread."""
    return thread_id.startswith(DRAFT_PREFIX)


def filter_draft_threads(ids: Sequence[str]) -> tuple[list[str], list[str]]:
    """Split ids into (threads, drafts)."""
    threads = [i for i in ids if not is_draft_thread(i)]
    drafts = [i for i in ids if is_draft_thread(i)]
    return threads, drafts


Mutation = Callable[[AccountStrategy, list[str]], Awaitable[RemoteCallResult[Any]]]


async def _mutate(
    session: Session,
    thread_id: str,
    operation: str,
    mutation: Mutation,
    add: list[str],
    remove: list[str],
) -> ActionOutcome:
    gateway = RemoteCallGateway(session)
    state, error = await thread_state(gateway, thread_id)
    if state is None:
        return ActionOutcome(False, error)

    strategy = strategy_for(gateway, bool(state.get("isMicrosoft")))
    message_ids = list(state.get("messageIds") or [])
    if strategy.kind == "microsoft" and not message_ids:
        return ActionOutcome(False, "No messages found in thread")

    result = await mutation(strategy, message_ids)
    if not result.ok:
        return ActionOutcome(False, result.describe())

    await sync_local_labels(gateway, thread_id, add, remove)
    logger.info("thread_mutated", operation=operation, thread_id=thread_id, account=strategy.kind, via=result.path)
    return ActionOutcome(True, path=f"{strategy.kind}:{result.path}")


async def archive_thread(session: Session, thread_id: str) -> ActionOutcome:
    return await _mutate(
        session, thread_id, "archive", lambda s, m: s.archive(thread_id, m), [], [INBOX]
    )


async def delete_thread(session: Session, thread_id: str) -> ActionOutcome:
    """Move a thread to the trash."""
    return await _mutate(
        session, thread_id, "delete", lambda s, m: s.trash(thread_id, m), [TRASH], [INBOX]
    )


async def star_thread(session: Session, thread_id: str) -> ActionOutcome:
    return await _mutate(
        session, thread_id, "star", lambda s, m: s.set_starred(thread_id, m, True), [STARRED], []
    )


async def unstar_thread(session: Session, thread_id: str) -> ActionOutcome:
    return await _mutate(
        session, thread_id, "unstar", lambda s, m: s.set_starred(thread_id, m, False), [], [STARRED]
    )


async def add_label(session: Session, thread_id: str, label_id: str) -> ActionOutcome:
    return await _mutate(
        session,
        thread_id,
        "add_label",
        lambda s, m: s.change_labels(thread_id, m, [label_id], []),
        [label_id],
        [],
    )


async def remove_label(session: Session, thread_id: str, label_id: str) -> ActionOutcome:
    return await _mutate(
        session,
        thread_id,
        "remove_label",
        lambda s, m: s.change_labels(thread_id, m, [], [label_id]),
        [],
        [label_id],
    )


def _parse_labels(raw: Any) -> list[Label]:
    labels = []
    for entry in raw or []:
        try:
            labels.append(Label.model_validate(entry))
        except ValidationError:
            logger.debug("label_entry_skipped", entry=str(entry)[:100])
    return labels


async def list_labels(session: Session) -> RemoteCallResult[list[Label]]:
    """Every label (or category) the active account knows about."""
    result = await RemoteCallGateway(session).call("labels.list")
    if result.ok:
        result.value = _parse_labels(result.value)
    return result


async def get_thread_labels(session: Session, thread_id: str) -> RemoteCallResult[list[Label]]:
    """Labels on one thread, named where the account's label list allows."""
    gateway = RemoteCallGateway(session)
    state = await gateway.call("thread.state", thread_id=thread_id)
    if not state.ok:
        return state

    known = await gateway.call("labels.list")
    names = {label.id: label for label in _parse_labels(known.value)} if known.ok else {}
    label_ids = (state.value or {}).get("labelIds") or []
    labels = [names.get(label_id) or Label(id=label_id, name=label_id) for label_id in label_ids]
    return RemoteCallResult.success(labels, path=state.path)

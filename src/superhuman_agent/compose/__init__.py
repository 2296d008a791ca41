"""Draft composition: the state machine and the flows built on it."""

from superhuman_agent.compose.machine import (
    ComposeVariant,
    DraftComposer,
    DraftPhase,
    DraftState,
    FieldResult,
)
from superhuman_agent.compose.operations import (
    add_attachment,
    add_recipient,
    close_compose,
    get_draft_state,
    open_compose,
    save_draft,
    send_draft,
    set_body,
    set_subject,
)
from superhuman_agent.compose.reply import (
    ReplyResult,
    forward_thread,
    reply_all_to_thread,
    reply_to_thread,
)
from superhuman_agent.compose.text import text_to_html

__all__ = [
    "ComposeVariant",
    "DraftComposer",
    "DraftPhase",
    "DraftState",
    "FieldResult",
    "ReplyResult",
    "add_attachment",
    "add_recipient",
    "close_compose",
    "forward_thread",
    "get_draft_state",
    "open_compose",
    "reply_all_to_thread",
    "reply_to_thread",
    "save_draft",
    "send_draft",
    "set_body",
    "set_subject",
    "text_to_html",
]

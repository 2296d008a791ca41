"""Account strategies - Gmail-style and Microsoft-style mutation paths.

The two account kinds expose disjoint services (`gmail` vs `msgraph`) with
different argument shapes. Callers pick a strategy once per operation and
get the same result shape back from either.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol

from superhuman_agent.gateway.gateway import RemoteCallGateway
from superhuman_agent.gateway.result import RemoteCallResult

UNREAD = "UNREAD"
STARRED = "STARRED"
INBOX = "INBOX"
TRASH = "TRASH"


class AccountStrategy(Protocol):
    """Mutations that differ by account kind."""

    kind: str

    async def set_read(
        self, thread_id: str, message_ids: Sequence[str], read: bool
    ) -> RemoteCallResult[Any]: ...

    async def set_starred(
        self, thread_id: str, message_ids: Sequence[str], starred: bool
    ) -> RemoteCallResult[Any]: ...

    async def archive(self, thread_id: str, message_ids: Sequence[str]) -> RemoteCallResult[Any]: ...

    async def trash(self, thread_id: str, message_ids: Sequence[str]) -> RemoteCallResult[Any]: ...

    async def change_labels(
        self,
        thread_id: str,
        message_ids: Sequence[str],
        add: Sequence[str],
        remove: Sequence[str],
    ) -> RemoteCallResult[Any]: ...

    async def download_attachment(
        self,
        message_id: str,
        attachment_id: str,
        thread_id: str = "",
        mime_type: str = "",
    ) -> RemoteCallResult[dict[str, Any]]: ...


class GmailStrategy:
    """Label-based mutations through the `gmail` service."""

    kind = "gmail"

    def __init__(self, gateway: RemoteCallGateway) -> None:
        self.gateway = gateway

    async def change_labels(
        self,
        thread_id: str,
        message_ids: Sequence[str],
        add: Sequence[str],
        remove: Sequence[str],
    ) -> RemoteCallResult[Any]:
        return await self.gateway.call(
            "gmail.change_labels", thread_id=thread_id, add=list(add), remove=list(remove)
        )

    async def set_read(self, thread_id: str, message_ids: Sequence[str], read: bool) -> RemoteCallResult[Any]:
        if read:
            return await self.change_labels(thread_id, message_ids, [], [UNREAD])
        return await self.change_labels(thread_id, message_ids, [UNREAD], [])

    async def set_starred(
        self, thread_id: str, message_ids: Sequence[str], starred: bool
    ) -> RemoteCallResult[Any]:
        if starred:
            return await self.change_labels(thread_id, message_ids, [STARRED], [])
        return await self.change_labels(thread_id, message_ids, [], [STARRED])

    async def archive(self, thread_id: str, message_ids: Sequence[str]) -> RemoteCallResult[Any]:
        return await self.change_labels(thread_id, message_ids, [], [INBOX])

    async def trash(self, thread_id: str, message_ids: Sequence[str]) -> RemoteCallResult[Any]:
        return await self.change_labels(thread_id, message_ids, [TRASH], [INBOX])

    async def download_attachment(
        self,
        message_id: str,
        attachment_id: str,
        thread_id: str = "",
        mime_type: str = "",
    ) -> RemoteCallResult[dict[str, Any]]:
        return await self.gateway.call(
            "gmail.download_attachment",
            thread_id=thread_id,
            message_id=message_id,
            attachment_id=attachment_id,
            mime_type=mime_type,
        )


class MicrosoftStrategy:
    """Per-message mutations through the `msgraph` service.

    Graph has folders and categories instead of labels, so archive and trash
    are moves and label changes become category edits.
    """

    kind = "microsoft"

    ARCHIVE_FOLDER = "archive"
    TRASH_FOLDER = "deleteditems"

    def __init__(self, gateway: RemoteCallGateway) -> None:
        self.gateway = gateway

    async def set_read(self, thread_id: str, message_ids: Sequence[str], read: bool) -> RemoteCallResult[Any]:
        return await self.gateway.call("msgraph.set_read", message_ids=list(message_ids), is_read=read)

    async def set_starred(
        self, thread_id: str, message_ids: Sequence[str], starred: bool
    ) -> RemoteCallResult[Any]:
        return await self.gateway.call(
            "msgraph.set_flag",
            message_ids=list(message_ids),
            flag_status="flagged" if starred else "notFlagged",
        )

    async def archive(self, thread_id: str, message_ids: Sequence[str]) -> RemoteCallResult[Any]:
        return await self.gateway.call("msgraph.move", message_ids=list(message_ids), folder=self.ARCHIVE_FOLDER)

    async def trash(self, thread_id: str, message_ids: Sequence[str]) -> RemoteCallResult[Any]:
        return await self.gateway.call("msgraph.move", message_ids=list(message_ids), folder=self.TRASH_FOLDER)

    async def change_labels(
        self,
        thread_id: str,
        message_ids: Sequence[str],
        add: Sequence[str],
        remove: Sequence[str],
    ) -> RemoteCallResult[Any]:
        return await self.gateway.call(
            "msgraph.set_categories",
            thread_id=thread_id,
            message_ids=list(message_ids),
            add=list(add),
            remove=list(remove),
        )

    async def download_attachment(
        self,
        message_id: str,
        attachment_id: str,
        thread_id: str = "",
        mime_type: str = "",
    ) -> RemoteCallResult[dict[str, Any]]:
        return await self.gateway.call(
            "msgraph.download_attachment",
            message_id=message_id,
            attachment_id=attachment_id,
        )


def strategy_for(gateway: RemoteCallGateway, is_microsoft: bool) -> AccountStrategy:
    """Pick the mutation path for the active account."""
    if is_microsoft:
        return MicrosoftStrategy(gateway)
    return GmailStrategy(gateway)

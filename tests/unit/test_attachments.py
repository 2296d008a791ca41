"""Tests for attachment listing and download."""

from __future__ import annotations

import pytest

from superhuman_agent.actions.attachments import download_attachment, encode_file, list_attachments
from superhuman_agent.gateway import ErrorKind
from conftest import FakeSession

PAYLOAD = {"data": encode_file(b"%PDF-1.7"), "size": 8}


class TestListAttachments:
    """Tests for list_attachments."""

    @pytest.mark.asyncio
    async def test_lists_valid_entries(self, fake_session: FakeSession) -> None:
        """Each message's attachments are returned; malformed ones dropped."""
        fake_session.on(
            "thread.attachments",
            fake_session.ok(
                [
                    {
                        "id": "a1",
                        "attachmentId": "att-1",
                        "name": "report.pdf",
                        "mimeType": "application/pdf",
                        "extension": "pdf",
                        "messageId": "m1",
                        "threadId": "t1",
                    },
                    {"name": "broken"},
                ]
            ),
        )

        result = await list_attachments(fake_session, "t1")

        assert result.ok
        assert [a.name for a in result.value or []] == ["report.pdf"]
        assert (result.value or [])[0].inline is False

    @pytest.mark.asyncio
    async def test_missing_thread(self, fake_session: FakeSession) -> None:
        """Failures pass through unchanged."""
        fake_session.on("thread.attachments", fake_session.not_found("Thread t9"))

        result = await list_attachments(fake_session, "t9")

        assert result.error is ErrorKind.NOT_FOUND


class TestDownloadAttachment:
    """Tests for download_attachment."""

    @pytest.mark.asyncio
    async def test_same_shape_for_both_accounts(self, fake_session: FakeSession) -> None:
        """Gmail and Microsoft downloads decode to the same content."""
        fake_session.on("gmail.download_attachment", fake_session.ok(PAYLOAD))
        fake_session.on("msgraph.download_attachment", fake_session.ok(PAYLOAD))

        gmail = await download_attachment(fake_session, "m1", "att-1", thread_id="t1", is_microsoft=False)
        outlook = await download_attachment(fake_session, "AAMk1", "att-1", is_microsoft=True)

        assert gmail.value == outlook.value
        assert gmail.value is not None
        assert gmail.value.decode() == b"%PDF-1.7"
        assert gmail.path == "gmail.downloadAttachment"
        assert outlook.path == "msgraph.downloadAttachment"

    @pytest.mark.asyncio
    async def test_probes_account_kind(self, fake_session: FakeSession) -> None:
        """Without a known kind the account is probed first."""
        fake_session.on("account.kind", fake_session.ok(True))
        fake_session.on("msgraph.download_attachment", fake_session.ok(PAYLOAD))

        result = await download_attachment(fake_session, "AAMk1", "att-1")

        assert result.ok
        assert fake_session.calls == [
            "account.kind:di.isMicrosoft",
            "msgraph.download_attachment:msgraph.downloadAttachment",
        ]

    @pytest.mark.asyncio
    async def test_malformed_payload(self, fake_session: FakeSession) -> None:
        """A payload without data and size is rejected."""
        fake_session.on("gmail.download_attachment", fake_session.ok({"bytes": "?"}))

        result = await download_attachment(fake_session, "m1", "att-1", is_microsoft=False)

        assert result.error is ErrorKind.REMOTE_THREW
        assert "Malformed attachment payload" in result.detail

    @pytest.mark.asyncio
    async def test_probe_failure(self, fake_session: FakeSession) -> None:
        """A failed account probe is returned as is."""
        fake_session.on("account.kind", fake_session.not_found("DI container not found"))

        result = await download_attachment(fake_session, "m1", "att-1")

        assert result.error is ErrorKind.NOT_FOUND

"""Runs real envelope expressions under node against a stand-in page."""

from __future__ import annotations

import asyncio
import base64
import json
import shutil
from typing import Any

import pytest

from superhuman_agent.gateway import ErrorKind, RemoteCallGateway

pytestmark = pytest.mark.skipif(shutil.which("node") is None, reason="node is not installed")

_RUNNER = """
const window = globalThis;
%s
(async () => {
  try {
    const value = await (%s);
    process.stdout.write(JSON.stringify({ result: { type: 'object', value } }));
  } catch (e) {
    process.stdout.write(JSON.stringify({ exceptionDetails: { text: String(e) } }));
  }
})();
"""


class NodeSession:
    """Evaluates each expression in a fresh node process after `page` setup code."""

    def __init__(self, page: str) -> None:
        self.page = page
        self.expressions: list[str] = []

    async def evaluate(self, expression: str, await_promise: bool = False) -> dict[str, Any]:
        self.expressions.append(expression)
        process = await asyncio.create_subprocess_exec(
            "node",
            "-e",
            _RUNNER % (self.page, expression),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=30)
        assert process.returncode == 0, stderr.decode()
        result: dict[str, Any] = json.loads(stdout)
        return result


def page_with_services(services: str, extra: str = "") -> str:
    """Page setup where `GoogleAccount.di` serves the given services object."""
    return f"""
    const services = {services};
    window.GoogleAccount = {{ di: {{ get: (name) => services[name] }} {extra} }};
    """


class TestFallThrough:
    """Tests for chains walking past missing or reshaped entry points."""

    @pytest.mark.asyncio
    async def test_first_candidate_answers(self) -> None:
        """A present entry point wins on the first hop."""
        gateway = RemoteCallGateway(NodeSession("window.GoogleAccount = { emailAddress: 'me@example.com' };"))

        result = await gateway.call("account.current_email")

        assert result.ok
        assert result.value == "me@example.com"
        assert result.path == "GoogleAccount.emailAddress"
        assert len(result.attempts) == 1

    @pytest.mark.asyncio
    async def test_missing_property_falls_through(self) -> None:
        """A missing object moves on to the next candidate."""
        gateway = RemoteCallGateway(
            NodeSession("window.GoogleAccount = { getEmailAddress: () => 'me@example.com' };")
        )

        result = await gateway.call("account.current_email")

        assert result.ok
        assert result.path == "GoogleAccount.getEmailAddress"
        assert result.attempts[0].error is ErrorKind.NOT_FOUND
        assert "GoogleAccount.emailAddress not found" in result.attempts[0].detail

    @pytest.mark.asyncio
    async def test_reshaped_label_list_falls_through(self) -> None:
        """getList returning an object instead of a list moves on to the identity map."""
        gateway = RemoteCallGateway(
            NodeSession(
                """
                window.GoogleAccount = {
                  labels: {
                    getList: () => ({}),
                    identityMap: new Map([['INBOX', { id: 'INBOX', name: 'Inbox', type: 'system' }]]),
                  },
                };
                """
            )
        )

        result = await gateway.call("labels.list")

        assert result.ok
        assert result.path == "labels.identityMap"
        assert result.value == [{"id": "INBOX", "name": "Inbox", "type": "system"}]
        assert result.attempts[0].error is ErrorKind.NOT_FOUND
        assert "unexpected shape" in result.attempts[0].detail

    @pytest.mark.asyncio
    async def test_reshaped_account_list_falls_through(self) -> None:
        """An account list that is not a list moves on to getAccountEmails."""
        gateway = RemoteCallGateway(
            NodeSession(
                """
                window.ViewState = { accountList: { primary: 'a@example.com' } };
                window.GoogleAccount = { getAccountEmails: async () => ['a@example.com', 'b@example.com'] };
                """
            )
        )

        result = await gateway.call("account.list")

        assert result.ok
        assert result.path == "GoogleAccount.getAccountEmails"
        assert result.value == ["a@example.com", "b@example.com"]

    @pytest.mark.asyncio
    async def test_missing_methods_exhaust_chain(self) -> None:
        """With no label method present every candidate is tried."""
        gateway = RemoteCallGateway(NodeSession(page_with_services("{ gmail: {} }")))

        result = await gateway.call("gmail.change_labels", thread_id="t1", add=[], remove=["INBOX"])

        assert result.error is ErrorKind.METHOD_UNAVAILABLE
        assert [a.path for a in result.attempts] == ["gmail.changeLabelsPerThread", "gmail.modifyThread"]


class TestRemoteThrow:
    """Tests for errors raised by Superhuman's own methods."""

    @pytest.mark.asyncio
    async def test_throw_stops_chain(self) -> None:
        """A method that exists and rejects is not retried elsewhere."""
        gateway = RemoteCallGateway(
            NodeSession(
                page_with_services(
                    """{
                      gmail: {
                        changeLabelsPerThread: async () => { throw new Error('quota exceeded'); },
                        modifyThread: async () => true,
                      },
                    }"""
                )
            )
        )

        result = await gateway.call("gmail.change_labels", thread_id="t1", add=[], remove=["INBOX"])

        assert result.error is ErrorKind.REMOTE_THREW
        assert result.detail == "quota exceeded"
        assert len(result.attempts) == 1


class TestMarshaling:
    """Tests for values crossing back out of the page."""

    @pytest.mark.asyncio
    async def test_binary_download_is_base64(self) -> None:
        """ArrayBuffer responses become `{data, size}`."""
        gateway = RemoteCallGateway(
            NodeSession(
                page_with_services(
                    "{ gmail: { downloadAttachment: async () => new Uint8Array([104, 105]).buffer } }"
                )
            )
        )

        result = await gateway.call(
            "gmail.download_attachment",
            thread_id="t1",
            message_id="m1",
            attachment_id="att-1",
            mime_type="text/plain",
        )

        assert result.ok
        assert result.value == {"data": base64.b64encode(b"hi").decode(), "size": 2}

    @pytest.mark.asyncio
    async def test_unknown_download_format_is_a_shape_change(self) -> None:
        """A response of no known format reads as changed internals."""
        gateway = RemoteCallGateway(
            NodeSession(page_with_services("{ gmail: { downloadAttachment: async () => 42 } }"))
        )

        result = await gateway.call(
            "gmail.download_attachment",
            thread_id="t1",
            message_id="m1",
            attachment_id="att-1",
            mime_type="text/plain",
        )

        assert result.error is ErrorKind.NOT_FOUND
        assert "Unexpected Gmail response format: number" in result.detail

    @pytest.mark.asyncio
    async def test_draft_state_is_plain_data(self) -> None:
        """Draft state comes back as plain fields, recipients as addresses."""
        gateway = RemoteCallGateway(
            NodeSession(
                """
                window.ViewState = {
                  _composeFormController: {
                    draft0001: {
                      state: {
                        draft: {
                          id: 'd1',
                          subject: 'Hi',
                          body: '<p>Hello</p>',
                          to: [{ email: 'a@example.com' }, null],
                          from: { email: 'me@example.com' },
                          dirty: true,
                        },
                      },
                    },
                  },
                };
                """
            )
        )

        result = await gateway.call("compose.read_state", draft_key="draft0001")

        assert result.ok
        assert result.value == {
            "id": "d1",
            "subject": "Hi",
            "body": "<p>Hello</p>",
            "to": ["a@example.com"],
            "cc": [],
            "bcc": [],
            "from": "me@example.com",
            "isDirty": True,
        }

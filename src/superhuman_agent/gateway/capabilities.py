"""Capability table - every Superhuman entry point the agent knows about.

Each operation maps to an ordered tuple of candidates. The gateway tries
them in order and falls through when one is missing. When Superhuman
renames something, add a candidate here; nothing else should name a
remote method.

Bodies are `string.Template` text run inside the envelope from
`superhuman_agent.gateway.js`; `$name` placeholders become JSON literals.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CallCandidate:
    """One way to perform an operation."""

    name: str
    template: str
    is_async: bool = False


# Account

_ACCOUNT_KIND = (
    CallCandidate(
        "di.isMicrosoft",
        """
        const di = need(account().di, 'DI container');
        return !!(di.get && di.get('isMicrosoft'));
        """,
    ),
)

_ACCOUNT_CURRENT_EMAIL = (
    CallCandidate(
        "GoogleAccount.emailAddress",
        "return need(account().emailAddress, 'GoogleAccount.emailAddress');",
    ),
    CallCandidate(
        "GoogleAccount.getEmailAddress",
        "return need(fn(account(), 'getEmailAddress', 'GoogleAccount')(), 'Account email');",
    ),
)

_ACCOUNT_LIST = (
    CallCandidate(
        "ViewState.accountList",
        """
        const list = listOf(window.ViewState && window.ViewState.accountList, 'ViewState.accountList');
        return list
          .map((a) => (typeof a === 'string' ? a : (a && (a.emailAddress || a.email))))
          .filter(Boolean);
        """,
    ),
    CallCandidate(
        "GoogleAccount.getAccountEmails",
        """
        const emails = await fn(account(), 'getAccountEmails', 'GoogleAccount')();
        return listOf(emails, 'GoogleAccount.getAccountEmails result').filter((e) => typeof e === 'string');
        """,
        is_async=True,
    ),
    CallCandidate(
        "GoogleAccount.emailAddress",
        "return [need(account().emailAddress, 'GoogleAccount.emailAddress')];",
    ),
)

_ACCOUNT_SWITCH = (
    CallCandidate(
        "ViewState.switchAccount",
        """
        await fn(window.ViewState, 'switchAccount', 'ViewState')($email);
        return true;
        """,
        is_async=True,
    ),
    CallCandidate(
        "ViewState.selectAccount",
        """
        await fn(window.ViewState, 'selectAccount', 'ViewState')($email);
        return true;
        """,
        is_async=True,
    ),
    CallCandidate(
        "location.assign",
        """
        window.location.assign('https://mail.superhuman.com/' + encodeURIComponent($email));
        return true;
        """,
    ),
)

# Compose

_COMPOSE_DRAFT_KEYS = (
    CallCandidate(
        "ViewState._composeFormController",
        """
        const cfc = window.ViewState && window.ViewState._composeFormController;
        if (!cfc) return [];
        return Object.keys(cfc).filter((k) => k.startsWith('draft'));
        """,
    ),
)

_COMPOSE_OPEN_NEW = (
    CallCandidate(
        "ThreadListView-compose",
        """
        const button = need(document.querySelector('.ThreadListView-compose'), 'Compose button');
        button.click();
        return true;
        """,
    ),
)


def _native_command(command: str) -> tuple[CallCandidate, ...]:
    """Candidates that run one of Superhuman's pop-out commands on a thread."""
    return (
        CallCandidate(
            "ViewState.runCommand",
            """
            await fn(window.ViewState, 'runCommand', 'ViewState')('COMMAND', { threadId: $thread_id });
            return true;
            """.replace("COMMAND", command),
            is_async=True,
        ),
        CallCandidate(
            "ViewState.commands.execute",
            """
            const commands = need(window.ViewState && window.ViewState.commands, 'Command registry');
            await fn(commands, 'execute', 'commands')('COMMAND', { threadId: $thread_id });
            return true;
            """.replace("COMMAND", command),
            is_async=True,
        ),
    )


_COMPOSE_SET_SUBJECT = (
    CallCandidate(
        "setSubject",
        """
        fn(draftController($draft_key), 'setSubject', 'compose controller')($subject);
        return true;
        """,
    ),
    CallCandidate(
        "_updateDraft.subject",
        """
        fn(draftController($draft_key), '_updateDraft', 'compose controller')({ subject: $subject });
        return true;
        """,
    ),
)

_COMPOSE_ADD_RECIPIENT = (
    CallCandidate(
        "_updateDraft.recipient",
        """
        const ctrl = draftController($draft_key);
        const draft = draftOf(ctrl);
        const Recipient = need(draft.from && draft.from.constructor, 'Recipient constructor');
        const update = fn(ctrl, '_updateDraft', 'compose controller');
        const recipient = new Recipient({ email: $email, name: $name, raw: $raw });
        const field = $field;
        update({ [field]: listOf(draft[field] || [], 'Draft ' + field).concat([recipient]) });
        return true;
        """,
    ),
)

_COMPOSE_SET_BODY = (
    CallCandidate(
        "_updateDraft.body",
        """
        fn(draftController($draft_key), '_updateDraft', 'compose controller')({ body: $html });
        return true;
        """,
    ),
)

_COMPOSE_READ_STATE = (
    CallCandidate(
        "state.draft",
        """
        const draft = draftOf(draftController($draft_key));
        const emails = (list, what) =>
          listOf(list || [], what).map((r) => r && r.email).filter(Boolean);
        return {
          id: draft.id,
          subject: draft.subject || (draft.getSubject ? draft.getSubject() : '') || '',
          body: draft.body || (draft.getBody ? draft.getBody() : '') || '',
          to: emails(draft.to || (draft.getTo ? draft.getTo() : []), 'Draft to'),
          cc: emails(draft.cc || (draft.getCc ? draft.getCc() : []), 'Draft cc'),
          bcc: emails(draft.bcc || (draft.getBcc ? draft.getBcc() : []), 'Draft bcc'),
          from: (draft.from && draft.from.email) || '',
          isDirty: !!draft.dirty,
        };
        """,
    ),
)

_COMPOSE_SAVE = (
    CallCandidate(
        "_saveDraftAsync",
        """
        fn(draftController($draft_key), '_saveDraftAsync', 'compose controller')();
        return true;
        """,
    ),
    CallCandidate(
        "saveDraft",
        """
        fn(draftController($draft_key), 'saveDraft', 'compose controller')();
        return true;
        """,
    ),
)

_COMPOSE_SEND = (
    CallCandidate(
        "_sendDraft",
        """
        fn(draftController($draft_key), '_sendDraft', 'compose controller')();
        return true;
        """,
    ),
    CallCandidate(
        "sendDraft",
        """
        fn(draftController($draft_key), 'sendDraft', 'compose controller')();
        return true;
        """,
    ),
)

_COMPOSE_ADD_ATTACHMENT = (
    CallCandidate(
        "_onAddAttachments",
        """
        const file = fileFrom($data, $filename, $mime_type);
        await fn(draftController($draft_key), '_onAddAttachments', 'compose controller')([file]);
        return true;
        """,
        is_async=True,
    ),
    CallCandidate(
        "onPasteFile",
        """
        const file = fileFrom($data, $filename, $mime_type);
        await fn(draftController($draft_key), 'onPasteFile', 'compose controller')(file);
        return true;
        """,
        is_async=True,
    ),
    CallCandidate(
        "draft.addUploads",
        """
        const file = fileFrom($data, $filename, $mime_type);
        const draft = draftOf(draftController($draft_key));
        await fn(draft, 'addUploads', 'draft')([file]);
        return true;
        """,
        is_async=True,
    ),
)

# Threads

_THREAD_STATE = (
    CallCandidate(
        "identityMap._threadModel",
        """
        const { model } = threadModel($thread_id);
        return {
          labelIds: listOf(model.labelIds || [], 'Thread labelIds'),
          messageIds: listOf(model.messageIds || [], 'Thread messageIds'),
          isMicrosoft: isMicrosoft(),
        };
        """,
    ),
)

_THREAD_SYNC_LABELS = (
    CallCandidate(
        "identityMap.labelIds",
        """
        const { thread, model } = threadModel($thread_id);
        const add = $add;
        const remove = $remove;
        const labels = listOf(model.labelIds || [], 'Thread labelIds').filter((l) => remove.indexOf(l) === -1);
        add.forEach((l) => { if (labels.indexOf(l) === -1) labels.push(l); });
        model.labelIds = labels;
        if (typeof thread.recalculateListIds === 'function') {
          try { thread.recalculateListIds(); } catch (e) { /* list views refresh on next sync */ }
        }
        return labels;
        """,
    ),
)

_THREAD_ATTACHMENTS = (
    CallCandidate(
        "_threadModel.messages",
        """
        const { model } = threadModel($thread_id);
        const out = [];
        listOf(model.messages || [], 'Thread messages').forEach((message) => {
          listOf((message && message.attachments) || [], 'Message attachments').forEach((a) => {
            if (!a) return;
            out.push({
              id: a.id || a.attachmentId,
              attachmentId: a.attachmentId || a.id,
              name: a.name || a.filename || 'attachment',
              mimeType: a.type || a.mimeType || 'application/octet-stream',
              extension: a.extension || '',
              messageId: a.messageId || message.id,
              threadId: a.threadId || $thread_id,
              inline: !!a.inline,
            });
          });
        });
        return out;
        """,
    ),
)

_LABELS_LIST = (
    CallCandidate(
        "labels.getList",
        """
        const labels = need(account().labels, 'Label store');
        return listOf(fn(labels, 'getList', 'labels')(), 'labels.getList result')
          .filter(Boolean)
          .map((l) => ({ id: l.id, name: l.name, type: l.type || null }));
        """,
    ),
    CallCandidate(
        "labels.identityMap",
        """
        const map = need(account().labels && account().labels.identityMap, 'Label identity map');
        return Array.from(fn(map, 'values', 'Label identity map')())
          .filter(Boolean)
          .map((l) => ({ id: l.id, name: l.name, type: l.type || null }));
        """,
    ),
)

# Gmail

_GMAIL_CHANGE_LABELS = (
    CallCandidate(
        "gmail.changeLabelsPerThread",
        """
        await fn(service('gmail'), 'changeLabelsPerThread', 'gmail')($thread_id, $add, $remove);
        return true;
        """,
        is_async=True,
    ),
    CallCandidate(
        "gmail.modifyThread",
        """
        await fn(service('gmail'), 'modifyThread', 'gmail')($thread_id, { addLabelIds: $add, removeLabelIds: $remove });
        return true;
        """,
        is_async=True,
    ),
)

_GMAIL_DOWNLOAD_ATTACHMENT = (
    CallCandidate(
        "gmail.downloadAttachment",
        """
        const response = await fn(service('gmail'), 'downloadAttachment', 'gmail')({
          threadId: $thread_id,
          messageId: $message_id,
          id: $attachment_id,
          type: $mime_type,
        });
        return marshalBinary(response, 'Gmail');
        """,
        is_async=True,
    ),
)

# Microsoft Graph


def _per_message(method: str, payload: str) -> CallCandidate:
    return CallCandidate(
        f"msgraph.{method}",
        """
        const call = fn(service('msgraph'), 'METHOD', 'msgraph');
        for (const id of $message_ids) {
          await call(id, PAYLOAD);
        }
        return true;
        """.replace("METHOD", method).replace("PAYLOAD", payload),
        is_async=True,
    )


_MSGRAPH_SET_READ = (
    CallCandidate(
        "msgraph.updateMessages",
        """
        const isRead = $is_read;
        await fn(service('msgraph'), 'updateMessages', 'msgraph')($message_ids.map((id) => ({ id, isRead })));
        return true;
        """,
        is_async=True,
    ),
    CallCandidate(
        "msgraph.patchMessages",
        """
        const isRead = $is_read;
        await fn(service('msgraph'), 'patchMessages', 'msgraph')($message_ids.map((id) => ({ id, isRead })));
        return true;
        """,
        is_async=True,
    ),
    CallCandidate(
        "msgraph.markMessagesAs",
        """
        const method = $is_read ? 'markMessagesAsRead' : 'markMessagesAsUnread';
        await fn(service('msgraph'), method, 'msgraph')($message_ids);
        return true;
        """,
        is_async=True,
    ),
    _per_message("updateMessage", "{ isRead: $is_read }"),
    _per_message("patchMessage", "{ isRead: $is_read }"),
)

_MSGRAPH_SET_FLAG = (
    _per_message("updateMessage", "{ flag: { flagStatus: $flag_status } }"),
    _per_message("patchMessage", "{ flag: { flagStatus: $flag_status } }"),
)

_MSGRAPH_MOVE = (
    CallCandidate(
        "msgraph.moveMessages",
        """
        await fn(service('msgraph'), 'moveMessages', 'msgraph')($message_ids, $folder);
        return true;
        """,
        is_async=True,
    ),
    _per_message("moveMessage", "$folder"),
)

_MSGRAPH_SET_CATEGORIES = (
    CallCandidate(
        "msgraph.updateMessage.categories",
        """
        const call = fn(service('msgraph'), 'updateMessage', 'msgraph');
        const { model } = threadModel($thread_id);
        const add = $add;
        const remove = $remove;
        const current = listOf(model.categories || model.labelIds || [], 'Message categories');
        const categories = current.filter((c) => remove.indexOf(c) === -1);
        add.forEach((c) => { if (categories.indexOf(c) === -1) categories.push(c); });
        for (const id of $message_ids) {
          await call(id, { categories });
        }
        return true;
        """,
        is_async=True,
    ),
)

_MSGRAPH_DOWNLOAD_ATTACHMENT = (
    CallCandidate(
        "msgraph.downloadAttachment",
        """
        const response = await fn(service('msgraph'), 'downloadAttachment', 'msgraph')({
          messageId: $message_id,
          id: $attachment_id,
        });
        return marshalBinary(response, 'Microsoft Graph');
        """,
        is_async=True,
    ),
)


CAPABILITIES: dict[str, tuple[CallCandidate, ...]] = {
    "account.kind": _ACCOUNT_KIND,
    "account.current_email": _ACCOUNT_CURRENT_EMAIL,
    "account.list": _ACCOUNT_LIST,
    "account.switch": _ACCOUNT_SWITCH,
    "compose.draft_keys": _COMPOSE_DRAFT_KEYS,
    "compose.open.new": _COMPOSE_OPEN_NEW,
    "compose.open.reply": _native_command("REPLY_POP_OUT"),
    "compose.open.reply_all": _native_command("REPLY_ALL_POP_OUT"),
    "compose.open.forward": _native_command("FORWARD_POP_OUT"),
    "compose.set_subject": _COMPOSE_SET_SUBJECT,
    "compose.add_recipient": _COMPOSE_ADD_RECIPIENT,
    "compose.set_body": _COMPOSE_SET_BODY,
    "compose.read_state": _COMPOSE_READ_STATE,
    "compose.save": _COMPOSE_SAVE,
    "compose.send": _COMPOSE_SEND,
    "compose.add_attachment": _COMPOSE_ADD_ATTACHMENT,
    "thread.state": _THREAD_STATE,
    "thread.sync_labels": _THREAD_SYNC_LABELS,
    "thread.attachments": _THREAD_ATTACHMENTS,
    "labels.list": _LABELS_LIST,
    "gmail.change_labels": _GMAIL_CHANGE_LABELS,
    "gmail.download_attachment": _GMAIL_DOWNLOAD_ATTACHMENT,
    "msgraph.set_read": _MSGRAPH_SET_READ,
    "msgraph.set_flag": _MSGRAPH_SET_FLAG,
    "msgraph.move": _MSGRAPH_MOVE,
    "msgraph.set_categories": _MSGRAPH_SET_CATEGORIES,
    "msgraph.download_attachment": _MSGRAPH_DOWNLOAD_ATTACHMENT,
}

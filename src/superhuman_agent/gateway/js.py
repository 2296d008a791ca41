"""JavaScript envelope for remote evaluation.

Every body runs inside an IIFE that defines a few lookup helpers and
marshals the outcome as a tagged object:

    {__gw: "ok", value}            body returned normally
    {__gw: "not_found", detail}    need() hit a missing object, or listOf()
                                   a value of the wrong shape
    {__gw: "method_unavailable"}   fn() hit a missing method
    {__gw: "threw", detail}        Superhuman's own code raised

Bodies check the shape of anything they iterate before touching it, so
a reshaped internal surfaces as not_found and the fallback chain moves
on instead of stopping on a TypeError from our own marshaling.

Bodies are `string.Template` text; parameters are substituted as JSON
literals, so templates must not use `$` for anything else.
"""

from __future__ import annotations

import json
from string import Template
from typing import Any

HELPERS = r"""
  const __fail = (kind, detail) => { throw { __gw: kind, detail: String(detail) }; };
  const need = (value, what) =>
    (value === undefined || value === null) ? __fail('not_found', what + ' not found') : value;
  const fn = (obj, name, what) =>
    (obj && typeof obj[name] === 'function')
      ? obj[name].bind(obj)
      : __fail('method_unavailable', (what ? what + '.' : '') + name + ' is not available');
  const listOf = (value, what) =>
    Array.isArray(need(value, what)) ? value : __fail('not_found', what + ' has an unexpected shape');
  const account = () => need(window.GoogleAccount, 'GoogleAccount');
  const service = (name) => {
    const di = need(account().di, 'DI container');
    return need(di.get ? di.get(name) : undefined, name + ' service');
  };
  const isMicrosoft = () => {
    const di = account().di;
    return !!(di && di.get && di.get('isMicrosoft'));
  };
  const threadModel = (threadId) => {
    const map = need(account().threads && account().threads.identityMap, 'Thread identity map');
    const thread = need(map.get ? map.get(threadId) : undefined, 'Thread ' + threadId);
    return { thread, model: need(thread._threadModel, 'Thread model for ' + threadId) };
  };
  const composeController = () =>
    need(window.ViewState && window.ViewState._composeFormController, 'Compose form controller');
  const draftController = (key) => need(composeController()[key], 'Draft controller ' + key);
  const draftOf = (ctrl) => need(ctrl.state && ctrl.state.draft, 'Draft state');
  const toBase64 = (buffer) => {
    const bytes = new Uint8Array(buffer);
    const chunk = 8192;
    let binary = '';
    for (let i = 0; i < bytes.byteLength; i += chunk) {
      binary += String.fromCharCode.apply(null, bytes.subarray(i, Math.min(i + chunk, bytes.byteLength)));
    }
    return btoa(binary);
  };
  const marshalBinary = async (response, source) => {
    if (response && (response instanceof ArrayBuffer || response.byteLength !== undefined)) {
      return { data: toBase64(response), size: response.byteLength };
    }
    if (typeof response === 'string') {
      return { data: response, size: response.length };
    }
    if (typeof Blob !== 'undefined' && response instanceof Blob) {
      return { data: toBase64(await response.arrayBuffer()), size: response.size };
    }
    if (response && response.data) {
      return marshalBinary(response.data, source);
    }
    return __fail('not_found', 'Unexpected ' + source + ' response format: ' + typeof response);
  };
  const fileFrom = (base64, filename, mimeType) => {
    const chars = atob(base64);
    const bytes = new Uint8Array(chars.length);
    for (let i = 0; i < chars.length; i++) bytes[i] = chars.charCodeAt(i);
    return new File([new Blob([bytes], { type: mimeType })], filename, { type: mimeType });
  };
  const __caught = (e) =>
    (e && e.__gw)
      ? { __gw: e.__gw, detail: e.detail }
      : { __gw: 'threw', detail: (e && (e.message || String(e))) || 'Unknown error' };
"""


def render(template: str, **params: Any) -> str:
    """Substitute parameters into a body as JSON literals."""
    return Template(template).substitute({key: json.dumps(value) for key, value in params.items()})


def wrap(body: str, is_async: bool = False, label: str = "") -> str:
    """Wrap a body in the marshaling envelope."""
    header = f"/* superhuman-agent: {label} */\n" if label else ""
    if is_async:
        return (
            f"{header}(async () => {{\n{HELPERS}\n"
            f"  try {{\n    const __value = await (async () => {{\n{body}\n    }})();\n"
            "    return { __gw: 'ok', value: __value === undefined ? null : __value };\n"
            "  } catch (e) { return __caught(e); }\n})()"
        )
    return (
        f"{header}(() => {{\n{HELPERS}\n"
        f"  try {{\n    const __value = (() => {{\n{body}\n    }})();\n"
        "    return { __gw: 'ok', value: __value === undefined ? null : __value };\n"
        "  } catch (e) { return __caught(e); }\n})()"
    )

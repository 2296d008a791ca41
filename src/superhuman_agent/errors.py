"""Error model - Actionable errors with remediation hints."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class AgentError(Exception):
    """
    Base error with context and remediation guidance.

    All errors should be actionable - tell the caller what went wrong
    and what they can do about it. The remediation text is what lets a user
    tell "Superhuman is not running" apart from "Superhuman changed its
    internals" apart from "Superhuman rejected the operation".
    """

    code: str
    message: str
    context: dict[str, Any] = field(default_factory=dict)
    remediation: str = ""

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context,
            "remediation": self.remediation,
        }


# Specific error constructors for common cases


def endpoint_unreachable_error(port: int, reason: str = "") -> AgentError:
    """Create error for a debugging endpoint that refuses connections."""
    return AgentError(
        code="ERR_CONNECTION",
        message=f"Superhuman is not running on debugging port {port}",
        context={"port": port, "reason": reason, "unreachable": True},
        remediation=(
            f"Start Superhuman with --remote-debugging-port={port}, "
            "or rerun without --no-auto-launch"
        ),
    )


def connection_error(reason: str) -> AgentError:
    """Create error for a debugging channel that failed mid-session."""
    return AgentError(
        code="ERR_CONNECTION",
        message=f"Debugging channel failed: {reason}",
        context={"reason": reason},
        remediation="Check Superhuman is still running, then reconnect",
    )


def session_closed_error(target_id: str) -> AgentError:
    """Create error for use of a session after disconnect."""
    return AgentError(
        code="ERR_CONNECTION",
        message=f"Session is disconnected: {target_id}",
        context={"target_id": target_id},
        remediation="Open a new session with connect()",
    )


def target_not_found_error(port: int, origin: str, candidates: int = 0) -> AgentError:
    """Create error for a debugging endpoint without the main UI page."""
    return AgentError(
        code="ERR_TARGET_NOT_FOUND",
        message=f"No page for {origin} among {candidates} debugging targets on port {port}",
        context={"port": port, "origin": origin, "candidates": candidates},
        remediation="Make sure a Superhuman mail window is open and signed in",
    )


def protocol_error(method: str, reason: str) -> AgentError:
    """Create error for a debugging-protocol request the endpoint rejected."""
    return AgentError(
        code="ERR_PROTOCOL",
        message=f"{method} rejected by debugging endpoint: {reason}",
        context={"method": method, "reason": reason},
        remediation="Reconnect; the page may have reloaded or navigated",
    )


def request_timeout_error(method: str, timeout_s: float) -> AgentError:
    """Create error for a debugging-protocol request without a response."""
    return AgentError(
        code="ERR_TIMEOUT",
        message=f"No response to {method} within {timeout_s}s",
        context={"method": method, "timeout_ms": timeout_s * 1000},
        remediation="Superhuman may be busy or frozen; retry or restart it",
    )


def compose_open_failed_error(variant: str, settle_s: float) -> AgentError:
    """Create error for a compose form that never produced a draft key."""
    return AgentError(
        code="ERR_COMPOSE_OPEN_FAILED",
        message=f"No new draft appeared within {settle_s}s after opening {variant} compose",
        context={"variant": variant, "settle_ms": settle_s * 1000},
        remediation="Bring the Superhuman window to the inbox view and retry",
    )


def confirmation_required_error(operation: str, count: int) -> AgentError:
    """Create error for a bulk operation attempted without confirmation."""
    return AgentError(
        code="ERR_CONFIRMATION_REQUIRED",
        message=f"Refusing to run {operation} on {count} threads without --yes",
        context={"operation": operation, "count": count},
        remediation="Use --yes to execute, or --dry-run to preview.",
    )


def invalid_transition_error(phase: str, operation: str) -> AgentError:
    """Create error for a draft operation not allowed in the current phase."""
    return AgentError(
        code="ERR_INVALID_TRANSITION",
        message=f"Cannot {operation} a draft in phase {phase}",
        context={"phase": phase, "operation": operation},
        remediation="Open a new compose; drafts are never reused after save, send or failure",
    )


def account_not_found_error(account: str, available: list[str]) -> AgentError:
    """Create error for an unknown account index or email."""
    return AgentError(
        code="ERR_ACCOUNT_NOT_FOUND",
        message=f"Account not found: {account}",
        context={"account": account, "available": available},
        remediation="List linked accounts with 'accounts' and pass an index or email",
    )


def launch_failed_error(app_path: str, reason: str) -> AgentError:
    """Create error for an auto-launch that did not bring up the endpoint."""
    return AgentError(
        code="ERR_LAUNCH_FAILED",
        message=f"Failed to launch Superhuman: {reason}",
        context={"app_path": app_path, "reason": reason},
        remediation="Set SUPERHUMAN_APP_PATH or launch Superhuman manually",
    )


_REMOTE_CALL_CODES = {
    "not_found": "ERR_NOT_FOUND",
    "method_unavailable": "ERR_METHOD_UNAVAILABLE",
    "remote_threw": "ERR_REMOTE_THREW",
    "connection_error": "ERR_CONNECTION",
}

_REMOTE_CALL_REMEDIATION = {
    "not_found": "Superhuman internals changed; open the relevant view or update superhuman-agent",
    "method_unavailable": "Superhuman internals changed; update superhuman-agent",
    "remote_threw": "Superhuman rejected the operation; check the message and retry",
    "connection_error": "Check Superhuman is still running, then reconnect",
}


def remote_call_error(operation: str, kind: str, detail: str) -> AgentError:
    """Create error for a remote call that failed after its fallback chain."""
    return AgentError(
        code=_REMOTE_CALL_CODES.get(kind, "ERR_REMOTE_THREW"),
        message=f"{operation} failed: {detail}",
        context={"operation": operation, "kind": kind},
        remediation=_REMOTE_CALL_REMEDIATION.get(kind, ""),
    )

"""Remote call results - the tagged union every gateway operation returns."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class ErrorKind(Enum):
    """Why a remote call failed."""

    NOT_FOUND = "not_found"
    METHOD_UNAVAILABLE = "method_unavailable"
    REMOTE_THREW = "remote_threw"
    CONNECTION_ERROR = "connection_error"

    @property
    def recoverable(self) -> bool:
        """Missing entry points can be retried down a fallback chain."""
        return self in (ErrorKind.NOT_FOUND, ErrorKind.METHOD_UNAVAILABLE)


_CAUSES = {
    ErrorKind.CONNECTION_ERROR: "Superhuman is not reachable",
    ErrorKind.NOT_FOUND: "Superhuman internals changed",
    ErrorKind.METHOD_UNAVAILABLE: "Superhuman internals changed",
    ErrorKind.REMOTE_THREW: "Superhuman rejected the operation",
}


@dataclass(frozen=True)
class Attempt:
    """One hop of a fallback chain."""

    path: str
    ok: bool
    error: ErrorKind | None = None
    detail: str = ""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"path": self.path, "ok": self.ok}
        if self.error is not None:
            data["error"] = self.error.value
            data["detail"] = self.detail
        return data


@dataclass
class RemoteCallResult(Generic[T]):
    """`{ok: true, value}` or `{ok: false, error, detail}`.

    `value` is plain data; nothing in it refers back into the page heap.
    `path` names the entry point that produced the value when the call went
    through a fallback chain.
    """

    ok: bool
    value: T | None = None
    error: ErrorKind | None = None
    detail: str = ""
    path: str | None = None
    attempts: list[Attempt] = field(default_factory=list)

    @classmethod
    def success(cls, value: T | None = None, path: str | None = None) -> RemoteCallResult[T]:
        return cls(ok=True, value=value, path=path)

    @classmethod
    def failure(cls, error: ErrorKind, detail: str, path: str | None = None) -> RemoteCallResult[T]:
        return cls(ok=False, error=error, detail=detail, path=path)

    def describe(self) -> str:
        """Human-readable cause, or empty string on success."""
        if self.ok or self.error is None:
            return ""
        cause = _CAUSES[self.error]
        return f"{cause}: {self.detail}" if self.detail else cause

    def to_dict(self) -> dict[str, Any]:
        """The `{success, error?}` shape callers see."""
        data: dict[str, Any] = {"success": self.ok}
        if not self.ok:
            data["error"] = self.describe()
            data["kind"] = self.error.value if self.error else None
        if self.path:
            data["path"] = self.path
        return data

"""Remote call gateway - the single boundary between Python and the page heap."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

import structlog

from superhuman_agent.errors import AgentError
from superhuman_agent.gateway.capabilities import CAPABILITIES, CallCandidate
from superhuman_agent.gateway.js import render, wrap
from superhuman_agent.gateway.result import Attempt, ErrorKind, RemoteCallResult

if TYPE_CHECKING:
    from superhuman_agent.cdp.session import Session

logger = structlog.get_logger()

_ENVELOPE_KINDS = {
    "not_found": ErrorKind.NOT_FOUND,
    "method_unavailable": ErrorKind.METHOD_UNAVAILABLE,
    "threw": ErrorKind.REMOTE_THREW,
}


def _exception_text(details: dict[str, Any]) -> str:
    exception = details.get("exception") or {}
    return str(exception.get("description") or details.get("text") or "Uncaught exception")


class RemoteCallGateway:
    """Evaluates bodies on the page and walks fallback chains.

    Nothing here raises for remote failures: every outcome comes back as a
    RemoteCallResult so callers branch on `ok` and `error`.
    """

    def __init__(
        self,
        session: Session,
        capabilities: Mapping[str, Sequence[CallCandidate]] = CAPABILITIES,
    ) -> None:
        self.session = session
        self.capabilities = capabilities

    async def evaluate(
        self,
        body: str,
        *,
        is_async: bool = False,
        path: str = "",
    ) -> RemoteCallResult[Any]:
        """Evaluate one body inside the envelope."""
        expression = wrap(body, is_async=is_async, label=path)
        try:
            raw = await self.session.evaluate(expression, await_promise=is_async)
        except AgentError as exc:
            return RemoteCallResult.failure(ErrorKind.CONNECTION_ERROR, exc.message, path=path or None)
        except Exception as exc:
            logger.exception("gateway_evaluate_failed", path=path)
            return RemoteCallResult.failure(ErrorKind.CONNECTION_ERROR, str(exc), path=path or None)

        details = raw.get("exceptionDetails")
        if details:
            return RemoteCallResult.failure(ErrorKind.REMOTE_THREW, _exception_text(details), path=path or None)

        value = (raw.get("result") or {}).get("value")
        if not isinstance(value, dict) or "__gw" not in value:
            return RemoteCallResult.failure(
                ErrorKind.REMOTE_THREW,
                f"Unexpected evaluation result: {value!r}"[:200],
                path=path or None,
            )

        tag = value["__gw"]
        if tag == "ok":
            return RemoteCallResult.success(value.get("value"), path=path or None)
        kind = _ENVELOPE_KINDS.get(tag, ErrorKind.REMOTE_THREW)
        return RemoteCallResult.failure(kind, str(value.get("detail") or tag), path=path or None)

    async def run(self, candidate: CallCandidate, label: str = "", **params: Any) -> RemoteCallResult[Any]:
        """Render and evaluate a single candidate."""
        body = render(candidate.template, **params)
        return await self.evaluate(body, is_async=candidate.is_async, path=label or candidate.name)

    async def call_chain(
        self,
        operation: str,
        candidates: Sequence[CallCandidate],
        **params: Any,
    ) -> RemoteCallResult[Any]:
        """Try candidates in order until one succeeds or fails for real.

        Falls through only on NOT_FOUND and METHOD_UNAVAILABLE. A remote
        throw or a dead connection stops the chain, since retrying a
        different entry point would not help.
        """
        attempts: list[Attempt] = []
        for candidate in candidates:
            result = await self.run(candidate, label=f"{operation}:{candidate.name}", **params)
            attempts.append(Attempt(candidate.name, result.ok, result.error, result.detail))
            if result.ok:
                if len(attempts) > 1:
                    logger.info("gateway_chain_fallback_used", operation=operation, path=candidate.name)
                result.path = candidate.name
                result.attempts = attempts
                return result

            error = result.error or ErrorKind.REMOTE_THREW
            logger.debug(
                "gateway_chain_hop",
                operation=operation,
                candidate=candidate.name,
                error=error.value,
                detail=result.detail,
            )
            if not error.recoverable:
                result.path = candidate.name
                result.attempts = attempts
                return result

        kind = (
            ErrorKind.METHOD_UNAVAILABLE
            if any(a.error is ErrorKind.METHOD_UNAVAILABLE for a in attempts)
            else ErrorKind.NOT_FOUND
        )
        detail = "; ".join(f"{a.path}: {a.detail}" for a in attempts) or "no candidates"
        logger.warning("gateway_chain_exhausted", operation=operation, error=kind.value, detail=detail)
        failure: RemoteCallResult[Any] = RemoteCallResult.failure(kind, f"{operation} failed ({detail})")
        failure.attempts = attempts
        return failure

    async def call(self, operation: str, **params: Any) -> RemoteCallResult[Any]:
        """Run the fallback chain registered for an operation."""
        candidates = self.capabilities.get(operation)
        if candidates is None:
            raise ValueError(f"Unknown remote operation: {operation}")
        return await self.call_chain(operation, candidates, **params)

    async def is_microsoft(self) -> RemoteCallResult[bool]:
        """Probe whether the active account is Microsoft-backed."""
        result = await self.call("account.kind")
        if result.ok:
            result.value = bool(result.value)
        return result

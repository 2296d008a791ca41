"""Bulk action orchestrator - one operation over many thread ids."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import structlog

from superhuman_agent.errors import AgentError, confirmation_required_error

if TYPE_CHECKING:
    from superhuman_agent.cdp.session import Session

logger = structlog.get_logger()

CANCELLED = "cancelled"


@dataclass
class ActionOutcome:
    """Result of one thread action."""

    success: bool
    error: str | None = None
    path: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"success": self.success}
        if self.error:
            data["error"] = self.error
        if self.path:
            data["path"] = self.path
        return data


ThreadAction = Callable[["Session", str], Awaitable["ActionOutcome | dict[str, Any]"]]


@dataclass(frozen=True)
class BulkPolicy:
    """Confirmation and preview flags for a bulk run."""

    confirm: bool = False
    dry_run: bool = False


@dataclass
class ItemResult:
    """Outcome for one id in a bulk run."""

    target: str
    success: bool
    error: str | None = None
    dry_run: bool = False
    path: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"target": self.target, "success": self.success}
        if self.error:
            data["error"] = self.error
        if self.dry_run:
            data["dryRun"] = True
        if self.path:
            data["path"] = self.path
        return data


@dataclass
class BulkOperationResult:
    """Aggregate of a bulk run.

    `success_count + fail_count == total == len(results)` always holds,
    including for refused and cancelled runs.
    """

    total: int
    success_count: int
    fail_count: int
    results: list[ItemResult] = field(default_factory=list)
    error: AgentError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.fail_count == 0

    @classmethod
    def from_items(cls, results: list[ItemResult], error: AgentError | None = None) -> BulkOperationResult:
        succeeded = sum(1 for r in results if r.success)
        return cls(
            total=len(results),
            success_count=succeeded,
            fail_count=len(results) - succeeded,
            results=results,
            error=error,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "summary": {
                "total": self.total,
                "successCount": self.success_count,
                "failCount": self.fail_count,
            },
            "results": [r.to_dict() for r in self.results],
        }
        if self.error:
            data["error"] = self.error.to_dict()
        return data


def check_confirmation(operation: str, ids: Sequence[str], policy: BulkPolicy) -> None:
    """Raise ERR_CONFIRMATION_REQUIRED for unconfirmed multi-id runs."""
    if len(ids) > 1 and not policy.confirm and not policy.dry_run:
        raise confirmation_required_error(operation, len(ids))


def plan_bulk(operation: str, ids: Sequence[str], policy: BulkPolicy) -> BulkOperationResult | None:
    """Settle a run that needs no session: dry runs and refusals.

    Returns None when the run should actually execute. Callers use this to
    avoid opening a session at all.
    """
    if policy.dry_run:
        logger.info("bulk_dry_run", operation=operation, count=len(ids))
        return BulkOperationResult.from_items([ItemResult(i, True, dry_run=True) for i in ids])
    try:
        check_confirmation(operation, ids, policy)
    except AgentError as exc:
        logger.warning("bulk_refused", operation=operation, count=len(ids))
        return BulkOperationResult.from_items([ItemResult(i, False, exc.message) for i in ids], error=exc)
    return None


def _outcome(value: ActionOutcome | dict[str, Any]) -> ActionOutcome:
    if isinstance(value, ActionOutcome):
        return value
    return ActionOutcome(success=bool(value.get("success")), error=value.get("error"), path=value.get("path"))


async def run_bulk_action(
    session: Session | None,
    ids: Sequence[str],
    action: ThreadAction,
    policy: BulkPolicy = BulkPolicy(),
    *,
    operation: str = "action",
    should_continue: Callable[[], bool] | None = None,
) -> BulkOperationResult:
    """Run `action` on each id, strictly one after another in input order.

    A failure or exception on one id is recorded and the run moves on.
    `should_continue` is checked before each item; once it returns False
    the remaining ids are reported as cancelled failures.
    """
    planned = plan_bulk(operation, ids, policy)
    if planned is not None:
        return planned
    if session is None:
        raise ValueError("run_bulk_action needs a session unless the run is a dry run or refused")

    results: list[ItemResult] = []
    cancelled = False
    for thread_id in ids:
        if not cancelled and should_continue is not None and not should_continue():
            cancelled = True
            logger.info("bulk_cancelled", operation=operation, remaining=len(ids) - len(results))
        if cancelled:
            results.append(ItemResult(thread_id, False, CANCELLED))
            continue

        try:
            outcome = _outcome(await action(session, thread_id))
        except AgentError as exc:
            outcome = ActionOutcome(False, exc.message)
        except Exception as exc:
            logger.exception("bulk_item_raised", operation=operation, target=thread_id)
            outcome = ActionOutcome(False, str(exc) or type(exc).__name__)

        if not outcome.success:
            logger.warning("bulk_item_failed", operation=operation, target=thread_id, error=outcome.error)
        results.append(ItemResult(thread_id, outcome.success, outcome.error, path=outcome.path))

    summary = BulkOperationResult.from_items(results)
    logger.info(
        "bulk_finished",
        operation=operation,
        total=summary.total,
        succeeded=summary.success_count,
        failed=summary.fail_count,
    )
    return summary

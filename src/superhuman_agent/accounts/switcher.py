"""Account context switcher.

Which account is "current" is process-wide state inside Superhuman, and
a switch propagates with no completion signal. Switching waits a fixed
propagation delay and then re-reads the current account to confirm.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Sequence
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any

import structlog

from superhuman_agent.config import DEFAULT_TIMINGS
from superhuman_agent.errors import account_not_found_error
from superhuman_agent.gateway import RemoteCallGateway

if TYPE_CHECKING:
    from superhuman_agent.cdp.session import Session

logger = structlog.get_logger()


@dataclass(frozen=True)
class AccountContext:
    """One linked account."""

    email: str
    is_current: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"email": self.email, "isCurrent": self.is_current}


@dataclass
class SwitchResult:
    success: bool
    email: str
    switched: bool = False
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        if data["error"] is None:
            del data["error"]
        return data


async def current_account(session: Session) -> str | None:
    """Email of the active account, or None when it cannot be read."""
    result = await RemoteCallGateway(session).call("account.current_email")
    if not result.ok or not result.value:
        logger.warning("current_account_unknown", error=result.describe())
        return None
    return str(result.value)


async def list_accounts(session: Session) -> list[AccountContext]:
    """Linked accounts in Superhuman's order, the active one marked current.

    Returns an empty list when no account source answers.
    """
    gateway = RemoteCallGateway(session)
    listed = await gateway.call("account.list")
    if not listed.ok:
        logger.warning("account_list_failed", error=listed.describe())
        return []

    current = await current_account(session)
    seen: set[str] = set()
    accounts = []
    for email in listed.value or []:
        email = str(email)
        if email.lower() in seen:
            continue
        seen.add(email.lower())
        is_current = current is not None and email.lower() == current.lower()
        accounts.append(AccountContext(email, is_current))
    logger.debug("accounts_listed", count=len(accounts), via=listed.path)
    return accounts


def resolve_account(accounts: Sequence[AccountContext], arg: str) -> str:
    """Resolve a 1-based index or an email (any case) to an account email."""
    available = [a.email for a in accounts]
    value = arg.strip()
    if value.isdigit():
        index = int(value)
        if 1 <= index <= len(accounts):
            return accounts[index - 1].email
        raise account_not_found_error(
            f"{value} (valid range: 1-{len(accounts)})" if accounts else value,
            available,
        )
    for account in accounts:
        if account.email.lower() == value.lower():
            return account.email
    raise account_not_found_error(value, available)


async def switch_account(
    session: Session,
    email: str,
    *,
    propagation_delay: float = DEFAULT_TIMINGS.account_propagation,
) -> SwitchResult:
    """Make `email` the active account.

    A no-op success when it already is. Otherwise succeeds only if the
    active account reads back as `email` after the propagation delay.
    """
    before = await current_account(session)
    if before is not None and before.lower() == email.lower():
        logger.info("account_already_current", email=email)
        return SwitchResult(success=True, email=before, switched=False)

    result = await RemoteCallGateway(session).call("account.switch", email=email)
    if not result.ok:
        logger.warning("account_switch_failed", email=email, error=result.describe())
        return SwitchResult(success=False, email=email, error=result.describe())

    await asyncio.sleep(propagation_delay)
    after = await current_account(session)
    if after is None or after.lower() != email.lower():
        logger.warning("account_switch_unconfirmed", email=email, current=after, via=result.path)
        return SwitchResult(
            success=False,
            email=email,
            error=f"Active account is {after or 'unknown'} after switching to {email}",
        )

    logger.info("account_switched", email=after, previous=before, via=result.path)
    return SwitchResult(success=True, email=after, switched=True)


def format_accounts_list(accounts: Sequence[AccountContext]) -> str:
    """One line per account; the current one starred and suffixed."""
    lines = []
    for index, account in enumerate(accounts, start=1):
        if account.is_current:
            lines.append(f"* {index}. {account.email} (current)")
        else:
            lines.append(f"  {index}. {account.email}")
    return "\n".join(lines)


def format_accounts_json(accounts: Sequence[AccountContext]) -> str:
    return json.dumps([a.to_dict() for a in accounts])

"""Linked accounts and switching between them."""

from superhuman_agent.accounts.switcher import (
    AccountContext,
    SwitchResult,
    current_account,
    format_accounts_json,
    format_accounts_list,
    list_accounts,
    resolve_account,
    switch_account,
)

__all__ = [
    "AccountContext",
    "SwitchResult",
    "current_account",
    "format_accounts_json",
    "format_accounts_list",
    "list_accounts",
    "resolve_account",
    "switch_account",
]

"""Remote call gateway: fallback chains over Superhuman internals."""

from superhuman_agent.gateway.capabilities import CAPABILITIES, CallCandidate
from superhuman_agent.gateway.gateway import RemoteCallGateway
from superhuman_agent.gateway.result import Attempt, ErrorKind, RemoteCallResult
from superhuman_agent.gateway.strategies import (
    AccountStrategy,
    GmailStrategy,
    MicrosoftStrategy,
    strategy_for,
)

__all__ = [
    "CAPABILITIES",
    "AccountStrategy",
    "Attempt",
    "CallCandidate",
    "ErrorKind",
    "GmailStrategy",
    "MicrosoftStrategy",
    "RemoteCallGateway",
    "RemoteCallResult",
    "strategy_for",
]

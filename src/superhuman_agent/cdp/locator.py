"""Session locator - find the Superhuman main page among debugging targets."""

from __future__ import annotations

import httpx
import structlog
from pydantic import BaseModel, ConfigDict, ValidationError

from superhuman_agent.config import TARGET_ORIGIN
from superhuman_agent.errors import (
    AgentError,
    endpoint_unreachable_error,
    protocol_error,
    target_not_found_error,
)

logger = structlog.get_logger()

# Superhuman runs background and service-worker contexts on the same origin.
_EXCLUDED_URL_MARKERS = ("background", "serviceworker")


class TargetInfo(BaseModel):
    """One execution context listed by the debugging endpoint."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    type: str
    url: str = ""
    title: str = ""
    webSocketDebuggerUrl: str = ""


async def list_targets(
    port: int,
    host: str = "127.0.0.1",
    timeout: float = 5.0,
) -> list[TargetInfo]:
    """List execution contexts exposed on the debugging port."""
    url = f"http://{host}:{port}/json/list"
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            resp = await client.get(url)
            resp.raise_for_status()
            payload = resp.json()
    except httpx.ConnectError as exc:
        raise endpoint_unreachable_error(port, str(exc)) from None
    except httpx.HTTPError as exc:
        raise protocol_error("json/list", str(exc)) from None
    except ValueError as exc:
        raise protocol_error("json/list", f"invalid JSON: {exc}") from None

    if not isinstance(payload, list):
        raise protocol_error("json/list", "expected a list of targets")

    targets: list[TargetInfo] = []
    for entry in payload:
        try:
            targets.append(TargetInfo.model_validate(entry))
        except ValidationError:
            logger.debug("target_entry_skipped", entry=entry)
    return targets


def is_main_page(target: TargetInfo, origin: str = TARGET_ORIGIN) -> bool:
    """Check if a target is the primary UI page for the origin."""
    if target.type != "page":
        return False
    if origin not in target.url:
        return False
    url = target.url.lower()
    return not any(marker in url for marker in _EXCLUDED_URL_MARKERS)


def select_main_page(
    targets: list[TargetInfo],
    port: int,
    origin: str = TARGET_ORIGIN,
) -> TargetInfo:
    """Pick the first main page, raising when none matches."""
    for target in targets:
        if is_main_page(target, origin):
            return target
    raise target_not_found_error(port, origin, candidates=len(targets))


async def locate(port: int, origin: str = TARGET_ORIGIN, host: str = "127.0.0.1") -> TargetInfo:
    """Discover the main page target on a debugging port."""
    targets = await list_targets(port, host=host)
    target = select_main_page(targets, port, origin)
    if not target.webSocketDebuggerUrl:
        raise AgentError(
            code="ERR_TARGET_NOT_FOUND",
            message=f"Target {target.id} has no debugger URL; another client may be attached",
            context={"target_id": target.id, "port": port},
            remediation="Close other DevTools windows attached to Superhuman and retry",
        )
    logger.info("target_located", target_id=target.id, url=target.url, port=port)
    return target

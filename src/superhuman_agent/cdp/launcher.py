"""App launcher - start Superhuman with remote debugging when it is not running."""

from __future__ import annotations

import asyncio
import subprocess
import time
from pathlib import Path

import structlog

from superhuman_agent.cdp.locator import is_main_page, list_targets
from superhuman_agent.cdp.session import Session, connect
from superhuman_agent.config import DEFAULT_TIMINGS, TARGET_ORIGIN, Timings
from superhuman_agent.errors import AgentError, launch_failed_error

logger = structlog.get_logger()

STATE_DIR = Path.home() / ".superhuman-agent"
LOG_FILE = STATE_DIR / "superhuman.log"


class AppLauncher:
    """Spawns the app and waits for its debugging endpoint to serve a main page."""

    def __init__(self, app_path: str, port: int, timings: Timings = DEFAULT_TIMINGS) -> None:
        self.app_path = app_path
        self.port = port
        self.timings = timings

    def launch(self) -> int:
        """Start the app detached; returns its PID."""
        if not Path(self.app_path).exists():
            raise launch_failed_error(self.app_path, "application binary not found")

        LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
        args = [self.app_path, f"--remote-debugging-port={self.port}"]
        with LOG_FILE.open("a", encoding="utf-8") as log_handle:
            try:
                proc = subprocess.Popen(
                    args,
                    stdout=log_handle,
                    stderr=log_handle,
                    start_new_session=True,
                )
            except OSError as exc:
                raise launch_failed_error(self.app_path, str(exc)) from None
        logger.info("app_launched", pid=proc.pid, port=self.port)
        return proc.pid

    async def wait_until_ready(self) -> None:
        """Poll the endpoint until a main page shows up or time runs out."""
        deadline = time.monotonic() + self.timings.launch_timeout
        last_reason = "endpoint never answered"
        while True:
            try:
                targets = await list_targets(self.port)
                if any(is_main_page(t, TARGET_ORIGIN) for t in targets):
                    logger.info("app_ready", port=self.port)
                    return
                last_reason = f"{len(targets)} targets but no main page yet"
            except AgentError as exc:
                last_reason = exc.message
            if time.monotonic() >= deadline:
                raise launch_failed_error(self.app_path, last_reason)
            await asyncio.sleep(self.timings.launch_poll_interval)


async def connect_or_launch(
    port: int,
    auto_launch: bool,
    app_path: str,
    timings: Timings = DEFAULT_TIMINGS,
) -> Session | None:
    """Connect, launching the app first if nothing listens on the port.

    Process management lives here, on the caller side; the locator itself
    only discovers targets.
    """
    try:
        return await connect(port)
    except AgentError as exc:
        if not exc.context.get("unreachable") or not auto_launch:
            raise

    logger.info("app_not_running", port=port, auto_launch=auto_launch)
    launcher = AppLauncher(app_path, port, timings)
    launcher.launch()
    await launcher.wait_until_ready()
    return await connect(port)

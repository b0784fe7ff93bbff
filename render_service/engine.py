"""
Engine Manager - owns the single shared Chromium process.

The browser is launched lazily on the first render, reused by every
subsequent request, relaunched if it crashes, and closed exactly once when
the service shuts down. All access goes through acquire_engine() and
shutdown_engine().
"""

import asyncio
import logging
from enum import Enum
from typing import Optional

from playwright.async_api import Browser, Playwright, async_playwright

from .errors import EngineStartFailure


logger = logging.getLogger(__name__)

# Container friendly launch flags: no setuid sandbox, no GPU, no /dev/shm
CHROMIUM_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-gpu",
    "--disable-dev-shm-usage",
]


class EngineState(str, Enum):
    """Lifecycle of the shared engine."""

    NOT_STARTED = "not_started"
    STARTING = "starting"
    RUNNING = "running"
    STOPPED = "stopped"


class EngineManager:
    """
    Lazily started, start-once guarded Chromium singleton.

    Construction is serialized by an asyncio.Lock: concurrent callers that
    find no live browser wait on the same launch and receive the same handle.
    """

    def __init__(self, headless: bool = True, shutdown_grace_seconds: float = 5.0):
        self._headless = headless
        self._shutdown_grace_seconds = shutdown_grace_seconds
        self._lock = asyncio.Lock()
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._state = EngineState.NOT_STARTED
        self._start_count = 0

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def start_count(self) -> int:
        """Number of successful browser launches since creation."""
        return self._start_count

    @property
    def is_running(self) -> bool:
        return (
            self._state == EngineState.RUNNING
            and self._browser is not None
            and self._browser.is_connected()
        )

    async def acquire_engine(self) -> Browser:
        """
        Return the live browser, launching it if needed.

        Raises:
            EngineStartFailure: Chromium could not be launched, or the
                manager has already been shut down
        """
        if self.is_running:
            return self._browser

        async with self._lock:
            if self._state == EngineState.STOPPED:
                raise EngineStartFailure("Engine has been shut down")

            # Another caller may have finished the launch while we waited
            if self.is_running:
                return self._browser

            if self._browser is not None:
                logger.warning("Chromium is no longer connected - relaunching")
                self._browser = None

            self._state = EngineState.STARTING
            try:
                if self._playwright is None:
                    self._playwright = await async_playwright().start()
                browser = await self._playwright.chromium.launch(
                    headless=self._headless,
                    args=CHROMIUM_ARGS,
                )
            except Exception as e:
                logger.error(f"❌ Chromium launch failed: {e}")
                await self._stop_playwright()
                if self._state != EngineState.STOPPED:
                    self._state = EngineState.NOT_STARTED
                raise EngineStartFailure(f"Failed to launch browser: {e}") from e

            if self._state == EngineState.STOPPED:
                # shutdown_engine() gave up waiting for this launch
                logger.warning("Engine shut down during launch - closing the new browser")
                await self._close_browser(browser)
                await self._stop_playwright()
                raise EngineStartFailure("Engine has been shut down")

            browser.on("disconnected", self._on_disconnected)
            self._browser = browser
            self._start_count += 1
            self._state = EngineState.RUNNING
            logger.info(f"✅ Chromium launched (start #{self._start_count}, headless={self._headless})")
            return browser

    async def shutdown_engine(self) -> None:
        """
        Close the browser and stop the Playwright driver.

        Idempotent and best effort: errors and timeouts are logged and
        suppressed, since the hosting process is exiting anyway. Waiting
        for an in-flight launch is bounded by the grace period; past it the
        manager is stopped anyway and the launch cleans up after itself.
        """
        try:
            await asyncio.wait_for(self._lock.acquire(), timeout=self._shutdown_grace_seconds)
            locked = True
        except asyncio.TimeoutError:
            logger.warning(
                f"Engine launch still in progress after {self._shutdown_grace_seconds}s, "
                f"shutting down without waiting"
            )
            locked = False

        try:
            if self._state == EngineState.STOPPED:
                return
            self._state = EngineState.STOPPED

            browser = self._browser
            self._browser = None
            if browser is not None:
                logger.info("Closing Chromium...")
                await self._close_browser(browser)

            await self._stop_playwright()
            logger.info("Engine stopped")
        finally:
            if locked:
                self._lock.release()

    async def _close_browser(self, browser: Browser) -> None:
        """Close a browser, ignoring failures."""
        try:
            await asyncio.wait_for(browser.close(), timeout=self._shutdown_grace_seconds)
        except asyncio.TimeoutError:
            logger.warning(
                f"Chromium did not close within {self._shutdown_grace_seconds}s, abandoning"
            )
        except Exception as e:
            logger.warning(f"Error closing Chromium (ignored): {e}")

    async def _stop_playwright(self) -> None:
        """Stop the Playwright driver process, ignoring failures."""
        playwright = self._playwright
        self._playwright = None
        if playwright is None:
            return
        try:
            await asyncio.wait_for(playwright.stop(), timeout=self._shutdown_grace_seconds)
        except asyncio.TimeoutError:
            logger.warning("Playwright driver did not stop in time, abandoning")
        except Exception as e:
            logger.warning(f"Error stopping Playwright driver (ignored): {e}")

    def _on_disconnected(self, browser: Browser) -> None:
        if self._state == EngineState.RUNNING and browser is self._browser:
            logger.warning("Chromium disconnected unexpectedly - will relaunch on next render")

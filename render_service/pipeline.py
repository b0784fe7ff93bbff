"""
Render Pipeline - one HTML document in, one PDF out.

Each render runs in its own browser context on the shared engine, under a
fixed deadline, and always closes that context before returning.
"""

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass
from typing import Optional

from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .engine import EngineManager
from .errors import (
    CleanupFailure,
    EngineStartFailure,
    RenderFailure,
    RenderServiceError,
    RenderTimeout,
    ValidationError,
)
from .models import RenderRequest


logger = logging.getLogger(__name__)

DEFAULT_WIDTH_MM = 80
DEFAULT_HEIGHT_MM = 80
ZERO_MARGINS = {"top": "0mm", "right": "0mm", "bottom": "0mm", "left": "0mm"}


@dataclass
class RenderJob:
    """A validated render request with defaults applied."""

    html: str
    width_mm: float = DEFAULT_WIDTH_MM
    height_mm: float = DEFAULT_HEIGHT_MM

    @classmethod
    def build(
        cls,
        html: Optional[str],
        width_mm: Optional[float] = None,
        height_mm: Optional[float] = None,
    ) -> "RenderJob":
        """
        Validate raw input and apply default dimensions.

        Raises:
            ValidationError: HTML missing/empty or a dimension is not positive
        """
        if not html or not html.strip():
            raise ValidationError("HTML is required")

        width = DEFAULT_WIDTH_MM if width_mm is None else width_mm
        height = DEFAULT_HEIGHT_MM if height_mm is None else height_mm
        if width <= 0 or height <= 0:
            raise ValidationError(
                "Invalid request", detail="widthMm and heightMm must be positive"
            )

        return cls(html=html, width_mm=width, height_mm=height)


@dataclass
class RenderResult:
    """Outcome of a single render: either pdf bytes or a classified error."""

    render_ms: int
    pdf: Optional[bytes] = None
    error_kind: Optional[str] = None
    message: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.pdf is not None

    @property
    def size(self) -> int:
        return len(self.pdf) if self.pdf is not None else 0

    @classmethod
    def ok(cls, pdf: bytes, render_ms: int) -> "RenderResult":
        return cls(render_ms=render_ms, pdf=pdf)

    @classmethod
    def failed(cls, kind: str, message: str, render_ms: int) -> "RenderResult":
        return cls(render_ms=render_ms, error_kind=kind, message=message)


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


class RenderPipeline:
    """
    Executes render jobs against the shared engine.

    Args:
        engine_manager: Owner of the shared browser
        timeout_ms: Ceiling for load + settle + capture
        settle_ms: Wait after the load event before capturing
        prefer_css_page_size: Let CSS @page size override width/height
        cleanup_timeout_ms: Bound on each page/context close
    """

    def __init__(
        self,
        engine_manager: EngineManager,
        timeout_ms: int = 15000,
        settle_ms: int = 200,
        prefer_css_page_size: bool = False,
        cleanup_timeout_ms: int = 5000,
    ):
        self.engine_manager = engine_manager
        self.timeout_ms = timeout_ms
        self.settle_ms = settle_ms
        self.prefer_css_page_size = prefer_css_page_size
        self.cleanup_timeout_ms = cleanup_timeout_ms

    async def render(self, request: RenderRequest) -> RenderResult:
        """
        Render one request to PDF.

        Engine and page errors are never raised; they come back as a failed
        RenderResult with the elapsed time.

        Raises:
            ValidationError: HTML missing/empty or a dimension is not
                positive. Raised before the engine is touched.
        """
        job = RenderJob.build(request.html, request.widthMm, request.heightMm)
        request_id = uuid.uuid4().hex[:8]
        started = time.monotonic()
        context = None
        page = None

        logger.info(
            f"[{request_id}] Starting render ({job.width_mm:g}x{job.height_mm:g}mm, "
            f"{len(job.html)} chars)"
        )

        try:
            browser = await self.engine_manager.acquire_engine()
            context = await browser.new_context()
            page = await context.new_page()
            page.set_default_timeout(self.timeout_ms)

            pdf_bytes = await asyncio.wait_for(
                self._capture(page, job),
                timeout=self.timeout_ms / 1000,
            )

            result = RenderResult.ok(pdf_bytes, _elapsed_ms(started))
            logger.info(f"[{request_id}] Render completed: {result.size} bytes in {result.render_ms}ms")
            return result

        except EngineStartFailure as e:
            return self._fail(request_id, e, started)
        except (asyncio.TimeoutError, PlaywrightTimeoutError):
            error = RenderTimeout(f"Render timed out after {self.timeout_ms}ms")
            return self._fail(request_id, error, started)
        except Exception as e:
            error = RenderFailure(str(e) or type(e).__name__)
            return self._fail(request_id, error, started)
        finally:
            await self._close(request_id, page, context)

    async def _capture(self, page, job: RenderJob) -> bytes:
        # "load" only: pages pulling remote fonts or trackers may never reach network idle
        await page.set_content(job.html, wait_until="load")
        if self.settle_ms:
            await page.wait_for_timeout(self.settle_ms)
        return await page.pdf(
            width=f"{job.width_mm:g}mm",
            height=f"{job.height_mm:g}mm",
            margin=ZERO_MARGINS,
            print_background=True,
            prefer_css_page_size=self.prefer_css_page_size,
        )

    def _fail(self, request_id: str, error: RenderServiceError, started: float) -> RenderResult:
        result = RenderResult.failed(error.kind, error.message, _elapsed_ms(started))
        logger.error(f"[{request_id}] {error.kind}: {error.message} ({result.render_ms}ms)")
        return result

    async def _close(self, request_id: str, page, context) -> None:
        """Close page then context. Failures are logged, never raised."""
        for name, resource in (("page", page), ("context", context)):
            if resource is None:
                continue
            try:
                await asyncio.wait_for(resource.close(), timeout=self.cleanup_timeout_ms / 1000)
            except Exception as e:
                failure = CleanupFailure(f"Failed to close {name}: {str(e) or type(e).__name__}")
                logger.warning(f"[{request_id}] {failure.kind}: {failure.message}")

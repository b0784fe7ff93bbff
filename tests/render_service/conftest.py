"""
Pytest fixtures for render service tests.

Playwright is replaced with mocks so no Chromium process is ever launched.
"""

import asyncio
import os
from types import SimpleNamespace
from unittest.mock import patch, MagicMock, AsyncMock

# IMPORTANT: Set environment variables BEFORE any imports from render_service
# so RenderSettings is configured correctly when first loaded.
os.environ["ENVIRONMENT"] = "development"
os.environ["RENDER_SECRET"] = "test-render-secret-1234"
os.environ["SETTLE_MS"] = "0"

import pytest


TEST_SECRET = "test-render-secret-1234"
FAKE_PDF = b"%PDF-1.4 fake pdf content"


def make_page(pdf_bytes: bytes = FAKE_PDF) -> MagicMock:
    page = MagicMock()
    page.set_content = AsyncMock()
    page.wait_for_timeout = AsyncMock()
    page.pdf = AsyncMock(return_value=pdf_bytes)
    page.close = AsyncMock()
    return page


def make_context(page: MagicMock) -> MagicMock:
    context = MagicMock()
    context.new_page = AsyncMock(return_value=page)
    context.close = AsyncMock()
    return context


def make_browser(context: MagicMock) -> MagicMock:
    browser = MagicMock()
    browser.new_context = AsyncMock(return_value=context)
    browser.close = AsyncMock()
    browser.is_connected = MagicMock(return_value=True)
    return browser


@pytest.fixture
def chromium():
    """
    Patch async_playwright in the engine module with a fake driver.

    launch() yields to the event loop before returning, so callers racing
    on a cold engine really do overlap.
    """
    page = make_page()
    context = make_context(page)
    browser = make_browser(context)

    async def slow_launch(*args, **kwargs):
        await asyncio.sleep(0.01)
        return browser

    playwright = MagicMock()
    playwright.chromium.launch = AsyncMock(side_effect=slow_launch)
    playwright.stop = AsyncMock()

    with patch("render_service.engine.async_playwright") as mock_async_playwright:
        mock_async_playwright.return_value.start = AsyncMock(return_value=playwright)
        yield SimpleNamespace(
            async_playwright=mock_async_playwright,
            playwright=playwright,
            launch=playwright.chromium.launch,
            browser=browser,
            context=context,
            page=page,
        )


@pytest.fixture
def engine_manager(chromium):
    from render_service.engine import EngineManager
    return EngineManager(headless=True, shutdown_grace_seconds=0.5)


@pytest.fixture
def pipeline(engine_manager):
    from render_service.pipeline import RenderPipeline
    return RenderPipeline(engine_manager, timeout_ms=1000, settle_ms=0, cleanup_timeout_ms=200)


@pytest.fixture
def app_module(monkeypatch, engine_manager, pipeline):
    """render_service.app with a fresh engine manager and pipeline per test."""
    import render_service.app as module
    monkeypatch.setattr(module, "engine_manager", engine_manager)
    monkeypatch.setattr(module, "pipeline", pipeline)
    return module


@pytest.fixture
def client(app_module):
    """FastAPI test client fixture."""
    from fastapi.testclient import TestClient
    return TestClient(app_module.app)


@pytest.fixture
def auth_headers():
    return {"X-Render-Secret": TEST_SECRET}


@pytest.fixture
def invalid_auth_headers():
    return {"X-Render-Secret": "wrong-secret"}

"""
Unit tests for PlaywrightRenderer.

Playwright is mocked; no browser is launched.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from report_service.config import ReportServiceSettings
from report_service.errors import GenerationError, RenderError
from report_service.renderer import PlaywrightRenderer, RenderOptions


def _mock_playwright(mock_playwright, pdf_result=b"%PDF-1.4 fake pdf content", pdf_error=None):
    """Wire async_playwright() -> chromium.launch() -> browser -> page."""
    mock_browser = AsyncMock()
    mock_page = AsyncMock()
    mock_page.set_default_timeout = MagicMock()
    if pdf_error is not None:
        mock_page.pdf = AsyncMock(side_effect=pdf_error)
    else:
        mock_page.pdf = AsyncMock(return_value=pdf_result)
    mock_browser.new_page = AsyncMock(return_value=mock_page)
    mock_playwright.return_value.__aenter__ = AsyncMock(
        return_value=MagicMock(
            chromium=MagicMock(
                launch=AsyncMock(return_value=mock_browser)
            )
        )
    )
    return mock_browser, mock_page


class TestRenderOptions:
    """Tests for RenderOptions construction."""

    def test_from_settings(self):
        settings = ReportServiceSettings(
            _env_file=None, page_format="letter", margin_mm=15, render_timeout_ms=10000
        )

        options = RenderOptions.from_settings(settings)

        assert options.format == "Letter"
        assert options.margin == {"top": "15mm", "right": "15mm", "bottom": "15mm", "left": "15mm"}
        assert options.timeout_ms == 10000
        assert options.print_background is True


class TestPlaywrightRenderer:
    """Tests for PlaywrightRenderer.render."""

    @pytest.mark.asyncio
    @patch("playwright.async_api.async_playwright")
    async def test_render_success(self, mock_playwright):
        """Test that page.pdf receives the configured geometry."""
        mock_browser, mock_page = _mock_playwright(mock_playwright)
        options = RenderOptions()

        pdf_bytes = await PlaywrightRenderer().render("<h1>Hello</h1>", options)

        assert pdf_bytes.startswith(b"%PDF-")
        mock_page.set_content.assert_awaited_once_with("<h1>Hello</h1>", wait_until="networkidle")
        mock_page.set_default_timeout.assert_called_once_with(15000)
        mock_page.pdf.assert_awaited_once_with(
            format="A4",
            print_background=True,
            margin={"top": "20mm", "right": "20mm", "bottom": "20mm", "left": "20mm"},
        )
        mock_browser.close.assert_awaited_once()

    @pytest.mark.asyncio
    @patch("playwright.async_api.async_playwright")
    async def test_render_handles_timeout(self, mock_playwright):
        """Test that Playwright timeouts become RenderError."""
        mock_browser, _ = _mock_playwright(mock_playwright, pdf_error=asyncio.TimeoutError())

        with pytest.raises(RenderError, match="timed out"):
            await PlaywrightRenderer().render("<h1>Test</h1>", RenderOptions())

        mock_browser.close.assert_awaited_once()

    @pytest.mark.asyncio
    @patch("playwright.async_api.async_playwright")
    async def test_render_wraps_browser_errors(self, mock_playwright):
        """Test that arbitrary browser failures become RenderError."""
        _mock_playwright(mock_playwright, pdf_error=RuntimeError("Target closed"))

        with pytest.raises(RenderError, match="Target closed") as exc_info:
            await PlaywrightRenderer().render("<h1>Test</h1>", RenderOptions())

        assert isinstance(exc_info.value, GenerationError)

    @pytest.mark.asyncio
    @patch("playwright.async_api.async_playwright")
    async def test_render_rejects_empty_output(self, mock_playwright):
        """Test that an empty PDF is treated as a failure."""
        _mock_playwright(mock_playwright, pdf_result=b"")

        with pytest.raises(RenderError, match="empty"):
            await PlaywrightRenderer().render("<h1>Test</h1>", RenderOptions())

    @pytest.mark.asyncio
    @patch("playwright.async_api.async_playwright")
    async def test_launches_with_headless_setting(self, mock_playwright):
        _mock_playwright(mock_playwright)

        await PlaywrightRenderer(headless=False).render("<p>x</p>", RenderOptions())

        p = await mock_playwright.return_value.__aenter__()
        p.chromium.launch.assert_awaited_with(headless=False)


class TestValidate:
    """Tests for the startup renderer check."""

    @pytest.mark.asyncio
    @patch("playwright.async_api.async_playwright")
    async def test_validate_success(self, mock_playwright):
        _mock_playwright(mock_playwright)
        assert await PlaywrightRenderer().validate() is True

    @pytest.mark.asyncio
    @patch("playwright.async_api.async_playwright")
    async def test_validate_failure_does_not_raise(self, mock_playwright):
        _mock_playwright(mock_playwright, pdf_error=RuntimeError("Executable doesn't exist"))
        assert await PlaywrightRenderer().validate() is False

"""
HTML to PDF rendering using Playwright/Chromium.

The report pipeline only depends on the `Renderer` protocol, so tests
and alternative engines can stand in for the browser.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, Protocol

from .config import ReportServiceSettings
from .errors import RenderError

logger = logging.getLogger(__name__)

TEST_PAGE_HTML = "<html><body><h1>Test</h1></body></html>"


@dataclass(frozen=True)
class RenderOptions:
    """Page geometry and limits for one render."""

    format: str = "A4"
    print_background: bool = True
    margin: Dict[str, str] = field(
        default_factory=lambda: {"top": "20mm", "right": "20mm", "bottom": "20mm", "left": "20mm"}
    )
    timeout_ms: int = 15000

    @classmethod
    def from_settings(cls, settings: ReportServiceSettings) -> "RenderOptions":
        margin = settings.margin
        return cls(
            format=settings.page_format,
            print_background=settings.print_background,
            margin={"top": margin, "right": margin, "bottom": margin, "left": margin},
            timeout_ms=settings.render_timeout_ms,
        )


class Renderer(Protocol):
    """Anything that turns an HTML string into PDF bytes."""

    async def render(self, html: str, options: RenderOptions) -> bytes:
        """Render `html` to PDF bytes, raising RenderError on failure."""
        ...


class PlaywrightRenderer:
    """
    Renders HTML with a fresh headless Chromium per call.

    Every failure (launch, navigation, timeout, empty output) is raised
    as RenderError; no retries are attempted.
    """

    def __init__(self, headless: bool = True):
        self.headless = headless

    async def render(self, html: str, options: RenderOptions) -> bytes:
        timeout_s = options.timeout_ms / 1000
        try:
            pdf_bytes = await asyncio.wait_for(self._render(html, options), timeout=timeout_s)
        except asyncio.TimeoutError as e:
            raise RenderError(f"Rendering timed out after {options.timeout_ms}ms") from e
        except Exception as e:
            raise RenderError(f"Rendering failed: {e}") from e

        if not pdf_bytes:
            raise RenderError("Rendering returned an empty document")
        return pdf_bytes

    async def _render(self, html: str, options: RenderOptions) -> bytes:
        # Import here to avoid loading Playwright on startup
        from playwright.async_api import async_playwright

        async with async_playwright() as p:
            browser = await p.chromium.launch(headless=self.headless)
            try:
                page = await browser.new_page()
                page.set_default_timeout(options.timeout_ms)
                await page.set_content(html, wait_until="networkidle")
                return await page.pdf(
                    format=options.format,
                    print_background=options.print_background,
                    margin=dict(options.margin),
                )
            finally:
                await browser.close()

    async def validate(self) -> bool:
        """
        Render a test page to confirm Chromium is installed and working.

        Returns True when a non-empty PDF comes back. Never raises.
        """
        try:
            test_pdf = await self.render(TEST_PAGE_HTML, RenderOptions())
        except RenderError as e:
            logger.error(f"❌ Playwright validation failed: {e}")
            logger.error("PDF generation will not work until this is resolved.")
            return False

        logger.info(f"✅ Playwright validation successful - generated {len(test_pdf)} byte test PDF")
        return True

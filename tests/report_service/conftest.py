"""
Pytest fixtures for report service tests.

The renderer is replaced with an in-memory fake so no Chromium is needed.
"""

import pytest
from fastapi.testclient import TestClient

from report_service.app import create_app
from report_service.config import ReportServiceSettings
from report_service.errors import RenderError

FAKE_PDF = b"%PDF-1.4 fake report pdf"


class FakeRenderer:
    """Records render calls and returns canned PDF bytes (or fails)."""

    def __init__(self, result: bytes = FAKE_PDF, error: Exception = None):
        self.result = result
        self.error = error
        self.calls = []

    async def render(self, html, options):
        self.calls.append((html, options))
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def fake_renderer():
    return FakeRenderer()


@pytest.fixture
def failing_renderer():
    return FakeRenderer(error=RenderError("Rendering timed out after 15000ms"))


@pytest.fixture
def make_settings(tmp_path):
    """Build settings isolated from the environment and the working directory."""

    def _make(**overrides):
        values = {
            "persist_mode": "link",
            "pdf_output_dir": str(tmp_path / "pdfs"),
            "public_base_url": None,
            "vercel_url": None,
            "template_path": None,
            "validate_renderer_on_startup": False,
            "pdf_retention_hours": 24,
        }
        values.update(overrides)
        return ReportServiceSettings(_env_file=None, **values)

    return _make


@pytest.fixture
def link_settings(make_settings):
    return make_settings()


@pytest.fixture
def inline_settings(make_settings):
    return make_settings(persist_mode="inline")


@pytest.fixture
def client(link_settings, fake_renderer):
    """Link-mode test client backed by the fake renderer."""
    return TestClient(create_app(link_settings, fake_renderer))


@pytest.fixture
def inline_client(inline_settings, fake_renderer):
    """Inline-mode test client backed by the fake renderer."""
    return TestClient(create_app(inline_settings, fake_renderer))


@pytest.fixture
def failing_client(link_settings, failing_renderer):
    """Link-mode test client whose renderer always fails."""
    return TestClient(create_app(link_settings, failing_renderer))


@pytest.fixture
def make_renderer():
    """Factory for fake renderers with custom output or errors."""
    return FakeRenderer

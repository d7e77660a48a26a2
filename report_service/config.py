"""
Report Service Configuration Module

Centralized configuration management with Pydantic validation.
All environment variables are validated at startup to catch misconfigurations early.
"""

import logging
from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PERSIST_MODES = {"link", "inline"}
PAGE_FORMATS = {"a4": "A4", "letter": "Letter"}


class ReportServiceSettings(BaseSettings):
    """
    Report service configuration with validation.

    All settings can be overridden via environment variables
    (PERSIST_MODE, RENDER_TIMEOUT_MS, ...) or a local .env file.
    """

    # === Output Mode ===
    persist_mode: str = Field(
        default="link",
        description="'link' stores the PDF and returns a URL, 'inline' returns Base64"
    )
    inline_data_uri: bool = Field(
        default=False,
        description="Prefix inline payloads with 'data:application/pdf;base64,'"
    )

    # === Page Geometry ===
    page_format: str = Field(default="A4", description="Page size: 'A4' or 'Letter'")
    margin_mm: int = Field(
        default=20,
        ge=15,
        le=20,
        description="Margin on all four sides in millimeters (15-20)"
    )
    print_background: bool = Field(default=True, description="Print background colors/images")
    render_timeout_ms: int = Field(
        default=15000,
        ge=10000,
        le=30000,
        description="Render timeout in milliseconds (10000-30000)"
    )

    # === Request Limits ===
    max_body_size_bytes: int = Field(
        default=10 * 1024 * 1024,
        ge=10 * 1024 * 1024,
        le=50 * 1024 * 1024,
        description="Maximum accepted request body size (10-50 MiB)"
    )

    # === Link Mode Storage ===
    pdf_output_dir: str = Field(default="pdfs", description="Directory for stored PDFs")
    pdf_url_prefix: str = Field(default="/pdfs", description="URL prefix serving stored PDFs")
    public_base_url: Optional[str] = Field(
        default=None,
        description="Public base URL used in download links (overrides detection)"
    )
    vercel_url: Optional[str] = Field(
        default=None,
        description="Deployment host injected by Vercel (no scheme)"
    )
    pdf_retention_hours: int = Field(
        default=24,
        ge=0,
        description="Delete stored PDFs older than this many hours (0 keeps them forever)"
    )
    pdf_cleanup_interval_seconds: int = Field(
        default=3600,
        ge=60,
        description="Seconds between retention sweeps"
    )

    # === Template ===
    template_path: Optional[str] = Field(
        default=None,
        description="HTML template file; the bundled template is used when unset"
    )

    # === Diagnostics ===
    expose_error_detail: bool = Field(
        default=True,
        description="Include the underlying failure message in code-500 responses"
    )

    # === Playwright ===
    playwright_headless: bool = Field(default=True, description="Run Chromium headless")
    validate_renderer_on_startup: bool = Field(
        default=True,
        description="Render a test page at startup to report readiness"
    )

    # === CORS ===
    cors_origins: str = Field(
        default="*",
        description="Comma-separated list of allowed CORS origins"
    )

    # === Server ===
    host: str = Field(default="0.0.0.0", description="Bind address for `python -m report_service`")
    port: int = Field(default=3000, ge=1, le=65535, description="Listen port")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("persist_mode")
    @classmethod
    def validate_persist_mode(cls, v: str) -> str:
        """Validate persist mode is a known value."""
        v_lower = v.strip().lower()
        if v_lower not in PERSIST_MODES:
            raise ValueError(f"persist_mode must be one of: {', '.join(sorted(PERSIST_MODES))}")
        return v_lower

    @field_validator("page_format")
    @classmethod
    def validate_page_format(cls, v: str) -> str:
        """Normalize page format to the name Chromium expects."""
        normalized = PAGE_FORMATS.get(v.strip().lower())
        if normalized is None:
            raise ValueError(f"page_format must be one of: {', '.join(PAGE_FORMATS.values())}")
        return normalized

    @field_validator("pdf_url_prefix")
    @classmethod
    def validate_url_prefix(cls, v: str) -> str:
        """Prefix must be an absolute path without a trailing slash."""
        if not v.startswith("/") or v == "/":
            raise ValueError(f"pdf_url_prefix must start with '/' and name a path: {v}")
        return v.rstrip("/")

    @field_validator("public_base_url")
    @classmethod
    def validate_public_base_url(cls, v: Optional[str]) -> Optional[str]:
        """Basic URL format validation."""
        if v is None or not v.strip():
            return None
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Invalid URL format: {v}")
        return v.rstrip("/")

    @field_validator("vercel_url")
    @classmethod
    def validate_vercel_url(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return v.strip().rstrip("/")

    @property
    def is_link_mode(self) -> bool:
        return self.persist_mode == "link"

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins into a list."""
        if not self.cors_origins:
            return []
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def margin(self) -> str:
        return f"{self.margin_mm}mm"

    @property
    def configured_base_url(self) -> Optional[str]:
        """
        Base URL for download links when it doesn't come from the request.

        PUBLIC_BASE_URL wins over the Vercel deployment host. Returns None
        when neither is set and the request's own host should be used.
        """
        if self.public_base_url:
            return self.public_base_url
        if self.vercel_url:
            return f"https://{self.vercel_url}"
        return None

    @property
    def retention_seconds(self) -> int:
        return self.pdf_retention_hours * 3600


@lru_cache()
def get_settings() -> ReportServiceSettings:
    """
    Get cached settings instance.

    Settings are loaded once and cached for performance.
    """
    return ReportServiceSettings()


def validate_config_on_startup(settings: ReportServiceSettings) -> None:
    """
    Log configuration warnings that don't prevent startup.
    """
    logger = logging.getLogger(__name__)

    if settings.is_link_mode and settings.pdf_retention_hours == 0:
        logger.warning(
            "PDF_RETENTION_HOURS=0: stored PDFs in %s are never deleted",
            settings.pdf_output_dir,
        )
    if not settings.is_link_mode and settings.public_base_url:
        logger.warning("PUBLIC_BASE_URL is ignored in inline mode")

    logger.info(
        "Configuration validated (persist_mode=%s, format=%s, margin=%s, timeout=%dms)",
        settings.persist_mode,
        settings.page_format,
        settings.margin,
        settings.render_timeout_ms,
    )

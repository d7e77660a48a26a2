"""
Report generation pipeline.

validate -> merge text into template -> render -> store or encode -> respond.
Every outcome is returned as a GenerateResponse; nothing is raised to the
HTTP layer.
"""

import asyncio
import base64
import logging
from datetime import datetime
from typing import Any, Optional

from .config import ReportServiceSettings
from .errors import GenerationError, InvalidContentError
from .models import PDF_MEDIA_TYPE, GenerateResponse, InlinePdfData
from .renderer import RenderOptions, Renderer
from .report_helpers import build_report_html
from .storage import PdfStorage

logger = logging.getLogger(__name__)

MSG_SUCCESS = "PDF生成成功"
MSG_MISSING_CONTENT = "请输入要生成PDF的文本内容"
MSG_FAILURE = "PDF生成失败，请重试"


def validate_content(content: Any) -> str:
    """
    Return the content unchanged if it is non-blank text.

    Raises:
        InvalidContentError: If content is missing, not a string, or blank
    """
    # A byte order mark (U+FEFF) alone counts as blank
    if not isinstance(content, str) or not content.replace("\ufeff", " ").strip():
        raise InvalidContentError(MSG_MISSING_CONTENT)
    return content


class ReportGenerator:
    """
    Runs one generation request end to end.

    Args:
        settings: Validated service settings (fixes the persist mode)
        renderer: HTML-to-PDF capability
        storage: Required in link mode, ignored in inline mode
    """

    def __init__(
        self,
        settings: ReportServiceSettings,
        renderer: Renderer,
        storage: Optional[PdfStorage] = None,
    ):
        if settings.is_link_mode and storage is None:
            raise ValueError("Link mode requires a PdfStorage")
        self.settings = settings
        self.renderer = renderer
        self.storage = storage
        self.render_options = RenderOptions.from_settings(settings)

    async def generate(self, content: Any, request_base_url: str) -> GenerateResponse:
        """
        Generate a PDF for `content` and describe the outcome.

        Args:
            content: Raw `content` value from the request body
            request_base_url: Scheme and host the request arrived on, used for
                download links when no public base URL is configured

        Returns:
            GenerateResponse with code 200, 400 or 500
        """
        try:
            text = validate_content(content)
        except InvalidContentError as e:
            logger.warning("Rejected generation request: missing content")
            return self._failure(e.code, str(e))

        try:
            html = build_report_html(text, self.settings.template_path, datetime.now())
            pdf_bytes = await self.renderer.render(html, self.render_options)
            if self.settings.is_link_mode:
                return await self._respond_with_link(pdf_bytes, request_base_url)
            return self._respond_inline(pdf_bytes)
        except Exception as e:
            logger.error(f"PDF生成失败：{e}")
            return self._failure(GenerationError.code, MSG_FAILURE, error=e)

    async def _respond_with_link(self, pdf_bytes: bytes, request_base_url: str) -> GenerateResponse:
        # Blocking file write, keep it off the event loop
        filename = await asyncio.to_thread(self.storage.save, pdf_bytes)
        base_url = self.settings.configured_base_url or request_base_url
        return GenerateResponse(
            code=200,
            msg=MSG_SUCCESS,
            pdf_url=self.storage.build_url(base_url, filename),
        )

    def _respond_inline(self, pdf_bytes: bytes) -> GenerateResponse:
        encoded = base64.b64encode(pdf_bytes).decode("ascii")
        if self.settings.inline_data_uri:
            encoded = f"data:{PDF_MEDIA_TYPE};base64,{encoded}"
        return GenerateResponse(
            code=200,
            msg=MSG_SUCCESS,
            data=InlinePdfData(pdf_base64=encoded),
        )

    def _failure(self, code: int, msg: str, error: Optional[Exception] = None) -> GenerateResponse:
        detail = None
        if error is not None and self.settings.expose_error_detail:
            detail = str(error) or type(error).__name__
        return GenerateResponse(
            code=code,
            msg=msg,
            pdf_url="" if self.settings.is_link_mode else None,
            error=detail,
        )

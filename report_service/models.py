"""
Pydantic models for the report service API.

All application outcomes are sent with HTTP 200; the `code` field in the
body carries the application status (200, 400 or 500).
"""

from typing import Optional

from pydantic import BaseModel, Field

PDF_MEDIA_TYPE = "application/pdf"
INLINE_TIP = "pdf_base64 为 PDF 文件的 Base64 编码，解码后保存为 .pdf 文件即可打开"


class GenerateRequest(BaseModel):
    """Text to render. No other fields are read."""

    content: Optional[str] = Field(None, description="Text to place in the report body")


class InlinePdfData(BaseModel):
    """Inline PDF payload returned in inline mode."""

    pdf_base64: str = Field(..., description="Base64-encoded PDF bytes")
    pdf_type: str = Field(PDF_MEDIA_TYPE, description="MIME type of the decoded payload")
    tip: str = Field(INLINE_TIP, description="Usage hint for the payload")


class GenerateResponse(BaseModel):
    """
    Result of a generation request.

    Link mode fills `pdf_url`; inline mode fills `data`. `error` is only
    set for code 500 responses.
    """

    code: int
    msg: str
    pdf_url: Optional[str] = None
    data: Optional[InlinePdfData] = None
    error: Optional[str] = None

    def to_body(self) -> dict:
        """Serialize, dropping fields that don't apply to this outcome."""
        return self.model_dump(exclude_none=True)


class HealthResponse(BaseModel):
    """Health check response."""

    code: int = 200
    msg: str
    time: str
    persist_mode: str
    renderer_ready: bool

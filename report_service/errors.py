"""
Exceptions raised by the report generation pipeline.

Two outcomes are distinguished: bad input (code 400) and everything
else that goes wrong while building the document (code 500).
"""


class ReportServiceError(Exception):
    """Base class for report service errors."""

    code: int = 500


class InvalidContentError(ReportServiceError):
    """Content is missing, not text, or blank after trimming."""

    code = 400


class GenerationError(ReportServiceError):
    """Template loading, rendering or file I/O failed."""

    code = 500


class RenderError(GenerationError):
    """The headless browser failed, timed out, or produced no output."""

"""
Helper functions for building report HTML.

These functions load the report template and merge the submitted text
and a generation timestamp into it before rendering via Playwright.
"""

from datetime import datetime
from pathlib import Path
from typing import Optional

from .errors import GenerationError

CONTENT_PLACEHOLDER = "{{content}}"
TIME_PLACEHOLDER = "{{time}}"

DEFAULT_TEMPLATE_PATH = Path(__file__).resolve().parent / "templates" / "report.html"


def format_report_time(now: Optional[datetime] = None) -> str:
    """
    Format a timestamp the way the zh-CN locale prints date and time.

    Month and day are not zero-padded, the time of day is.

    Example:
        >>> format_report_time(datetime(2024, 3, 5, 9, 7, 2))
        '2024/3/5 09:07:02'
    """
    now = now or datetime.now()
    return f"{now.year}/{now.month}/{now.day} {now:%H:%M:%S}"


def validate_template(template: str) -> None:
    """
    Check the template defines each placeholder exactly once.

    Substitution only replaces the first occurrence, so a repeated
    placeholder would leave a literal token in the rendered report.

    Raises:
        GenerationError: If a placeholder is missing or repeated
    """
    for placeholder in (CONTENT_PLACEHOLDER, TIME_PLACEHOLDER):
        count = template.count(placeholder)
        if count != 1:
            raise GenerationError(
                f"Template must contain {placeholder} exactly once (found {count})"
            )


def load_template(template_path: Optional[str] = None) -> str:
    """
    Read the report template from disk.

    Args:
        template_path: Optional template file; the bundled template is used when None

    Returns:
        Template text

    Raises:
        GenerationError: If the file can't be read or breaks the placeholder contract
    """
    path = Path(template_path) if template_path else DEFAULT_TEMPLATE_PATH
    try:
        template = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise GenerationError(f"Failed to load template {path}: {e}") from e

    validate_template(template)
    return template


def fill_template(template: str, content: str, time_text: str) -> str:
    """
    Substitute the content and time placeholders, first occurrence each.

    The time placeholder is filled first so a literal "{{time}}" typed
    into the content survives untouched.
    """
    html = template.replace(TIME_PLACEHOLDER, time_text, 1)
    return html.replace(CONTENT_PLACEHOLDER, content, 1)


def build_report_html(
    content: str,
    template_path: Optional[str] = None,
    now: Optional[datetime] = None,
) -> str:
    """
    Build the complete HTML document for one report.

    Args:
        content: Submitted text, inserted as-is
        template_path: Optional template file override
        now: Generation time (defaults to the current local time)

    Returns:
        HTML string ready for rendering
    """
    template = load_template(template_path)
    return fill_template(template, content, format_report_time(now))

"""
Local storage for generated PDFs (link mode).

Files are written under one directory that the app also serves
read-only, named with a random UUID so concurrent requests never
collide or overwrite each other.
"""

import logging
import time
import uuid
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class PdfStorage:
    """Writes PDFs to disk, builds their public URLs, and expires old files."""

    def __init__(self, output_dir: str, url_prefix: str = "/pdfs"):
        self.output_dir = Path(output_dir)
        self.url_prefix = "/" + url_prefix.strip("/")

    def ensure_dir(self) -> Path:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        return self.output_dir

    def save(self, pdf_bytes: bytes) -> str:
        """
        Write PDF bytes to a new uniquely named file.

        Returns:
            The generated filename (not the full path)

        Raises:
            OSError: If the directory or file can't be written
        """
        self.ensure_dir()
        filename = f"{uuid.uuid4().hex}.pdf"
        path = self.output_dir / filename
        # "xb" refuses to clobber an existing file
        with open(path, "xb") as f:
            f.write(pdf_bytes)
        logger.info(f"Saved PDF {filename} ({len(pdf_bytes)} bytes)")
        return filename

    def build_url(self, base_url: str, filename: str) -> str:
        """Join base URL, prefix and filename without doubled slashes."""
        return f"{base_url.rstrip('/')}{self.url_prefix}/{filename}"

    def sweep_expired(self, max_age_seconds: int, now: Optional[float] = None) -> int:
        """
        Delete stored PDFs older than `max_age_seconds`.

        Args:
            max_age_seconds: Age threshold based on file modification time
            now: Reference epoch time (defaults to time.time())

        Returns:
            Number of files removed
        """
        if not self.output_dir.is_dir():
            return 0

        cutoff = (now if now is not None else time.time()) - max_age_seconds
        removed = 0
        for path in self.output_dir.glob("*.pdf"):
            try:
                if path.stat().st_mtime < cutoff:
                    path.unlink()
                    removed += 1
            except FileNotFoundError:
                # Already gone (concurrent sweep or manual cleanup)
                continue

        if removed:
            logger.info(f"Retention sweep removed {removed} PDF(s) from {self.output_dir}")
        return removed

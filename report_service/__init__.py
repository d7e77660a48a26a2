"""
Report Service - Text-to-PDF report generation.

Accepts a block of text, merges it into an HTML template and renders
the result to PDF using Playwright/Chromium. The PDF is either stored
and served under a download URL or returned inline as Base64.
"""

__version__ = "0.1.0"

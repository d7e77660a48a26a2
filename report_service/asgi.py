"""
ASGI entry point for servers that import a module-level app.

    uvicorn report_service.asgi:app
"""

from .app import create_app

app = create_app()

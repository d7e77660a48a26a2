"""
Report Service - FastAPI application for text-to-PDF report generation.

Provides the generation endpoint, a health check, and (in link mode)
read-only hosting of generated PDFs.
"""

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.formparsers import MultiPartException

from . import __version__
from .config import ReportServiceSettings, get_settings, validate_config_on_startup
from .models import GenerateRequest, GenerateResponse, HealthResponse
from .renderer import PlaywrightRenderer, Renderer
from .report_helpers import format_report_time
from .service import ReportGenerator
from .storage import PdfStorage

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)
logger = logging.getLogger(__name__)

FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


class BodyTooLargeError(Exception):
    """Request body exceeded MAX_BODY_SIZE_BYTES while being read."""


class UTF8JSONResponse(JSONResponse):
    """JSON response that declares its charset explicitly."""

    media_type = "application/json; charset=utf-8"


def _too_large_response(limit: int) -> UTF8JSONResponse:
    return UTF8JSONResponse(
        status_code=413,
        content={"code": 413, "msg": f"请求体过大，最大允许 {limit} 字节"},
    )


def get_report_generator(request: Request) -> ReportGenerator:
    """Dependency returning the generator bound to this app."""
    return request.app.state.generator


async def _read_capped_body(request: Request, limit: int) -> bytes:
    """
    Read the raw body, stopping once it grows past `limit`.

    Covers chunked uploads that carry no Content-Length header.

    Raises:
        BodyTooLargeError: If more than `limit` bytes arrive
    """
    chunks = []
    size = 0
    async for chunk in request.stream():
        size += len(chunk)
        if size > limit:
            raise BodyTooLargeError(f"Request body exceeded {limit} bytes")
        chunks.append(chunk)
    return b"".join(chunks)


def _replay_request(request: Request, body: bytes) -> Request:
    """Build a request over the same scope that re-serves an already read body."""
    sent = False

    async def receive():
        nonlocal sent
        if sent:
            return {"type": "http.disconnect"}
        sent = True
        return {"type": "http.request", "body": body, "more_body": False}

    return Request(request.scope, receive)


async def _read_generate_request(request: Request, limit: int) -> GenerateRequest:
    """
    Parse a JSON or form body into a GenerateRequest.

    Malformed bodies and wrongly typed fields come back as an empty
    request so they are reported as missing content.

    Raises:
        BodyTooLargeError: If the body is larger than `limit`
    """
    content_type = request.headers.get("content-type", "").lower()
    body = await _read_capped_body(request, limit)
    payload: Any
    try:
        if content_type.startswith(FORM_CONTENT_TYPES):
            form = await _replay_request(request, body).form(max_part_size=limit)
            payload = {key: value for key, value in form.items()}
        else:
            payload = json.loads(body) if body.strip() else {}
    except (ValueError, RecursionError, MultiPartException, StarletteHTTPException) as e:
        logger.warning(f"Unreadable request body: {type(e).__name__}")
        return GenerateRequest()

    if not isinstance(payload, dict):
        return GenerateRequest()
    try:
        return GenerateRequest.model_validate(payload)
    except ValidationError:
        return GenerateRequest()


async def _sweep_periodically(storage: PdfStorage, settings: ReportServiceSettings) -> None:
    """Apply the retention policy until cancelled."""
    while True:
        try:
            await asyncio.to_thread(storage.sweep_expired, settings.retention_seconds)
        except Exception as e:
            logger.error(f"Retention sweep failed: {e}")
        await asyncio.sleep(settings.pdf_cleanup_interval_seconds)


def _log_banner(settings: ReportServiceSettings) -> None:
    base_url = settings.configured_base_url or f"http://localhost:{settings.port}"
    logger.info("✅ PDF生成API服务启动成功！")
    logger.info(f"✅ 本地访问地址：http://localhost:{settings.port}")
    logger.info(f"✅ 核心接口：POST {base_url}/api/generate")
    logger.info(f"✅ 健康检查接口：GET {base_url}/health")


def create_app(
    settings: Optional[ReportServiceSettings] = None,
    renderer: Optional[Renderer] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Service settings; loaded from the environment when None
        renderer: HTML-to-PDF renderer; a PlaywrightRenderer when None

    Returns:
        Configured FastAPI app
    """
    settings = settings or get_settings()
    renderer = renderer or PlaywrightRenderer(headless=settings.playwright_headless)

    storage: Optional[PdfStorage] = None
    if settings.is_link_mode:
        storage = PdfStorage(settings.pdf_output_dir, settings.pdf_url_prefix)
        storage.ensure_dir()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Validate config and renderer, run the retention sweeper."""
        validate_config_on_startup(settings)

        if settings.validate_renderer_on_startup and hasattr(renderer, "validate"):
            logger.info("Validating renderer installation...")
            app.state.renderer_ready = await renderer.validate()
        else:
            app.state.renderer_ready = True

        if storage is not None and settings.pdf_retention_hours > 0:
            app.state.cleanup_task = asyncio.create_task(_sweep_periodically(storage, settings))

        _log_banner(settings)
        yield

        task = app.state.cleanup_task
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            app.state.cleanup_task = None

    app = FastAPI(
        title="Report Service",
        version=__version__,
        description="Text-to-PDF report generation using Playwright/Chromium",
        default_response_class=UTF8JSONResponse,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.renderer = renderer
    app.state.storage = storage
    app.state.generator = ReportGenerator(settings, renderer, storage)
    app.state.renderer_ready = False
    app.state.cleanup_task = None

    @app.middleware("http")
    async def limit_body_size(request: Request, call_next):
        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit():
            if int(content_length) > settings.max_body_size_bytes:
                logger.warning(f"Rejected request body of {content_length} bytes")
                return _too_large_response(settings.max_body_size_bytes)
        return await call_next(request)

    # Added last so it wraps the size check and 413s still carry CORS headers
    origins = settings.cors_origins_list
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials="*" not in origins,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.get("/health", response_model=HealthResponse)
    async def health_check() -> HealthResponse:
        """
        Health check endpoint for uptime monitors and keep-alive pings.

        Always answers code 200; `renderer_ready` reports the startup
        renderer check result.
        """
        return HealthResponse(
            code=200,
            msg="PDF生成服务正常运行中 ✅",
            time=format_report_time(),
            persist_mode=settings.persist_mode,
            renderer_ready=app.state.renderer_ready,
        )

    @app.post(
        "/api/generate",
        response_model=GenerateResponse,
        response_model_exclude_none=True,
        openapi_extra={
            "requestBody": {
                "content": {"application/json": {"schema": GenerateRequest.model_json_schema()}},
            }
        },
    )
    async def generate_report(
        request: Request,
        generator: ReportGenerator = Depends(get_report_generator),
    ) -> Dict[str, Any]:
        """
        Render the submitted text to PDF.

        Returns a download URL (link mode) or a Base64 payload (inline
        mode). Bad input and render failures are reported through the
        body's `code` field with HTTP 200.
        """
        limit = request.app.state.settings.max_body_size_bytes
        try:
            payload = await _read_generate_request(request, limit)
        except BodyTooLargeError as e:
            logger.warning(str(e))
            return _too_large_response(limit)
        result = await generator.generate(payload.content, str(request.base_url))
        return result.to_body()

    if storage is not None:
        app.mount(
            storage.url_prefix,
            StaticFiles(directory=str(storage.output_dir), check_dir=False),
            name="pdfs",
        )

    return app

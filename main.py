"""
Main API module for Paste Gateway.

Responsibilities:
    - Serve stored content by short identifier (GET/HEAD) through the response cache
    - Accept uploads on allow-listed path prefixes (POST multipart form, PUT raw body)
    - Forward shortening requests on prefixes mapped to the delegated shortener
    - Resolve the per-host configuration before anything else runs
    - Translate every known failure into a status-only response

Architecture:
    - App Factory pattern (create_app) for test isolation and DI.
    - Object store and cache backends come from factories (env-selected) unless injected.
    - One catch-all route classifies requests by method and first path segment;
      errors are caught once here and never leak bodies or internals.
"""

import logging
from typing import Any, List, Optional

from fastapi import BackgroundTasks, FastAPI, Request, Response
from fastapi.responses import PlainTextResponse
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException

from paste_gateway.cache.base import BaseCacheStore
from paste_gateway.cache.cache_factory import get_cache_store
from paste_gateway.cache.gateway import CacheGateway
from paste_gateway.config import EndpointMode, GatewayConfig, load_config, resolve_config, settings
from paste_gateway.errors import (
    ConfigurationError,
    GatewayError,
    IdentifierValidationError,
    UnsupportedMethodError,
)
from paste_gateway.manager.codec import IdentifierCodec
from paste_gateway.manager.shortener import ShortenerClient
from paste_gateway.manager.upload_manager import CodecFactory, UploadEntry, UploadManager
from paste_gateway.storage.base import BaseObjectStore
from paste_gateway.storage.storage_factory import get_object_store

ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def _client_ip(request: Request) -> Optional[str]:
    """Best guess at the uploading client: CDN header, proxy chain, then socket peer."""
    ip = request.headers.get("cf-connecting-ip")
    if ip:
        return ip
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


def _first_segment(path: str) -> str:
    parts = path.split("/")
    return parts[1] if len(parts) > 1 else ""


def _trailing_filename(path: str) -> Optional[str]:
    """Return the last segment after the upload prefix (``/img/photo.png`` -> ``photo.png``)."""
    parts = [p for p in path.split("/") if p]
    return parts[-1] if len(parts) > 1 else None


def create_app(
    config: Optional[GatewayConfig] = None,
    object_store: Optional[BaseObjectStore] = None,
    cache_store: Optional[BaseCacheStore] = None,
    shortener: Optional[ShortenerClient] = None,
    codec_factory: CodecFactory = IdentifierCodec,
    max_part_size: Optional[int] = None,
) -> FastAPI:
    """
    Factory function to build and configure a new FastAPI app instance.

    Args:
        config: Base gateway configuration; loaded from PASTE_CONFIG_FILE when omitted.
        object_store: Object-store backend; chosen by PASTE_STORAGE_BACKEND when omitted.
        cache_store: Response cache; chosen by PASTE_CACHE_BACKEND when omitted.
        shortener: Client for the delegated shortener.
        codec_factory: Builds an IdentifierCodec from an effective configuration.
        max_part_size: Largest multipart text field in bytes; PASTE_MAX_PART_SIZE when omitted.

    Returns:
        FastAPI: A fully configured application with isolated dependencies.
    """
    app = FastAPI(
        title="Paste Gateway",
        description="Short self-validating identifiers for content stored in a GitLab repository",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    log = logging.getLogger("paste_gateway")

    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=settings.LOG_LEVEL,
            format="%(asctime)s %(levelname)s %(name)s - %(message)s",
        )

    # ----------------------------------------------------------------
    # Per-app instances (isolated for tests, swappable for production)
    # ----------------------------------------------------------------
    base_config = config if config is not None else load_config()
    store = object_store if object_store is not None else get_object_store()
    cache = cache_store if cache_store is not None else get_cache_store()
    gateway = CacheGateway(object_store=store, cache_store=cache)
    uploads = UploadManager(object_store=store, codec_factory=codec_factory)
    shortener_client = shortener or ShortenerClient()
    part_limit = max_part_size if max_part_size is not None else settings.MAX_PART_SIZE

    log.info(
        "Paste Gateway ready: store=%s cache=%s prefixes=%s",
        type(store).__name__,
        type(cache).__name__,
        sorted(base_config.upload_keys),
    )

    # ----------------------------------------------------------------
    # Handlers
    # ----------------------------------------------------------------
    async def _serve(config: GatewayConfig, request: Request, background_tasks: BackgroundTasks) -> Response:
        match = codec_factory(config).validate(request.url.path)
        if match is None:
            raise IdentifierValidationError(request.url.path)

        base_url = f"{request.url.scheme}://{request.url.netloc}"
        result = await gateway.serve(
            config,
            match,
            base_url=base_url,
            headers=request.headers,
            schedule=background_tasks.add_task,
        )

        headers = dict(result.headers)
        if request.method == "HEAD":
            headers["content-length"] = str(len(result.body))
            return Response(status_code=result.status_code, headers=headers)
        return Response(content=result.body, status_code=result.status_code, headers=headers)

    async def _shorten(config: GatewayConfig, request: Request) -> Response:
        if request.method != "POST":
            raise UnsupportedMethodError(request.method)

        content_type = request.headers.get("content-type", "")
        body: Any = {}
        if "application/json" in content_type:
            body = await request.json()
        elif "form" in content_type:
            form = await request.form(max_part_size=part_limit)
            body = {key: value for key, value in form.items() if isinstance(value, str)}

        if not body:
            raise GatewayError("empty shortener request")

        result = await shortener_client.shorten(config.waaai, body)
        if result.link is None:
            return Response(status_code=result.status_code)
        return PlainTextResponse(result.link, status_code=result.status_code)

    async def _upload_batch(config: GatewayConfig, mode: EndpointMode, request: Request) -> Response:
        form = await request.form(max_part_size=part_limit)
        entries: List[UploadEntry] = []
        for name, value in form.multi_items():
            if isinstance(value, UploadFile):
                entries.append(UploadEntry(name=name, content=await value.read(), filename=value.filename))
            else:
                entries.append(UploadEntry(name=name, content=value))

        result = await uploads.handle_batch(config, entries, mode, _client_ip(request), str(request.url))
        return PlainTextResponse(result.body, status_code=result.status_code)

    async def _upload_single(config: GatewayConfig, mode: EndpointMode, request: Request) -> Response:
        blob = await request.body()
        result = await uploads.handle_single(
            config,
            blob,
            mode,
            _client_ip(request),
            str(request.url),
            filename=_trailing_filename(request.url.path),
        )
        return PlainTextResponse(result.body, status_code=result.status_code)

    async def _dispatch(request: Request, background_tasks: BackgroundTasks) -> Response:
        config = resolve_config(base_config, request.url.hostname)

        if request.method in ("GET", "HEAD"):
            return await _serve(config, request, background_tasks)

        prefix = _first_segment(request.url.path)
        mode = config.endpoint_mode(prefix)
        if mode is None:
            if not config.upload_allow_insecure:
                raise ConfigurationError(f"no upload mapping for prefix {prefix!r}")
            mode = EndpointMode.PLAIN

        if mode == EndpointMode.SHORTENER:
            return await _shorten(config, request)
        if request.method == "POST":
            return await _upload_batch(config, mode, request)
        if request.method == "PUT":
            return await _upload_single(config, mode, request)
        raise UnsupportedMethodError(request.method)

    # ----------------------------------------------------------------
    # Routes
    # ----------------------------------------------------------------
    @app.get("/health_gateway")
    def health_gateway():
        return {"status": "ok"}

    @app.api_route("/{full_path:path}", methods=ALL_METHODS, include_in_schema=False)
    async def dispatch(request: Request, background_tasks: BackgroundTasks) -> Response:
        """
        Single entry point for content reads, uploads and shortening.

        Known failures become status-only responses; anything unexpected is
        logged with its stack trace and answered with 500.
        """
        try:
            return await _dispatch(request, background_tasks)
        except GatewayError as exc:
            log.info("%s %s -> %s (%s)", request.method, request.url.path, exc.status_code, exc.kind)
            return Response(status_code=exc.status_code)
        except StarletteHTTPException as exc:
            log.info("%s %s -> %s (%s)", request.method, request.url.path, exc.status_code, exc.detail)
            return Response(status_code=exc.status_code)
        except Exception:
            log.exception("Unhandled error for %s %s", request.method, request.url.path)
            return Response(status_code=500)

    @app.exception_handler(StarletteHTTPException)
    async def routing_error(request: Request, exc: StarletteHTTPException) -> Response:
        """Methods outside ALL_METHODS never reach dispatch; answer them like any unsupported method."""
        status_code = UnsupportedMethodError.status_code if exc.status_code == 405 else exc.status_code
        log.info("%s %s -> %s (routing)", request.method, request.url.path, status_code)
        return Response(status_code=status_code)

    return app


# `uvicorn main:app` and `from main import app` continue to work.
app = create_app()

"""FastAPI application exposing the aggregation pipeline over HTTP.

Usage::

    uvicorn ai_news_aggregator.api:create_app --factory --port 8787

Every response carries permissive CORS headers. Source endpoints are cached
for ``cache_ttl_seconds`` keyed by path, so query strings never split the cache.
"""

from __future__ import annotations

import json
import time
import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .aggregator import Aggregator, utc_now_iso
from .config import ConfigRepository, GlobalConfig, SourceConfig
from .infra import ResponseCache
from .logging_conf import configure_logging

logger = structlog.get_logger("ai_news_aggregator.api")

CORS_HEADERS: dict[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
    "Access-Control-Max-Age": "86400",
}


def _render(payload: dict[str, Any]) -> bytes:
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


def json_response(
    payload: dict[str, Any],
    status_code: int = 200,
    headers: dict[str, str] | None = None,
) -> Response:
    return raw_json_response(_render(payload), status_code, headers)


def raw_json_response(
    body: bytes,
    status_code: int = 200,
    headers: dict[str, str] | None = None,
) -> Response:
    return Response(content=body, status_code=status_code, media_type="application/json", headers=headers)


def error_payload(message: str, **extra: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {"success": False, "error": message}
    payload.update(extra)
    payload["timestamp"] = utc_now_iso()
    return payload


def _describe_source(source: SourceConfig) -> str:
    kind = "AI tools" if source.kind.value == "tools" else "AI news"
    scope = f" ({source.list_kind})" if source.list_kind else ""
    return f"{kind}{scope} from {source.label}"


def build_documentation(config: GlobalConfig) -> dict[str, Any]:
    endpoints: dict[str, str] = {"/": "API documentation"}
    for source in config.enabled_sources():
        endpoints[f"/{source.name}"] = _describe_source(source)
        for alias in source.aliases:
            endpoints[f"/{alias}"] = f"Alias of /{source.name}"
    endpoints["/all"] = "All sources fetched concurrently"
    endpoints["/status"] = "Service health and uptime"
    return {
        "api_name": config.api_name,
        "version": __version__,
        "description": "Scrapes AI tool directories and AI news sites and returns normalised JSON.",
        "endpoints": endpoints,
        "response_format": {
            "success": "boolean",
            "source": "string",
            "count": "number",
            "data": "array of records",
            "timestamp": "ISO 8601 string",
        },
        "cache_ttl_seconds": config.cache_ttl_seconds,
        "cors": "Access-Control-Allow-Origin: *",
    }


def create_app(
    config: GlobalConfig | None = None,
    aggregator: Aggregator | None = None,
    cache: ResponseCache | None = None,
) -> FastAPI:
    """Build and configure the FastAPI application.

    Dependencies can be injected for tests; when omitted the global
    configuration is loaded from disk and a fresh aggregator and cache built.
    """

    if config is None:
        config = aggregator.config if aggregator is not None else ConfigRepository().load_global_config()
    configure_logging(level=config.log_level)
    aggregator = aggregator or Aggregator(config)
    cache = cache if cache is not None else ResponseCache(config.cache_ttl_seconds)
    documentation = build_documentation(config)
    started_monotonic = time.monotonic()
    started_at = utc_now_iso()

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        logger.info("api_started", sources=aggregator.source_names())
        yield
        aggregator.close()
        logger.info("api_stopped")

    application = FastAPI(
        title=config.api_name,
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        redirect_slashes=False,
        lifespan=lifespan,
    )
    application.state.aggregator = aggregator
    application.state.cache = cache
    application.state.config = config

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["Content-Type"],
        max_age=86400,
    )

    @application.middleware("http")
    async def request_logging_middleware(request: Request, call_next: Callable) -> Response:
        request_id = str(uuid.uuid4())
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )
        start = time.perf_counter()
        cross_origin = "origin" in request.headers
        if request.method == "OPTIONS" and not cross_origin:
            response: Response = Response(status_code=204, headers=CORS_HEADERS)
        else:
            try:
                response = await call_next(request)
            except Exception as exc:
                logger.error("unhandled_exception", exc_info=exc)
                response = json_response(error_payload(f"Internal server error: {exc}"), 500)
        if cross_origin:
            response.headers.setdefault("Access-Control-Allow-Origin", "*")
        else:
            for name, value in CORS_HEADERS.items():
                response.headers.setdefault(name, value)
        response.headers["X-Request-ID"] = request_id
        elapsed_ms = round((time.perf_counter() - start) * 1000, 2)
        log_fn = logger.warning if response.status_code >= 400 else logger.info
        log_fn("request_complete", status_code=response.status_code, elapsed_ms=elapsed_ms)
        return response

    @application.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> Response:
        if exc.status_code == 404:
            return json_response(
                error_payload(
                    "Endpoint not found",
                    path=request.url.path,
                    available_endpoints=list(documentation["endpoints"]),
                ),
                404,
            )
        return json_response(error_payload(str(exc.detail)), exc.status_code)

    def cached(key: str, produce: Callable[[], tuple[int, dict[str, Any]]]) -> Response:
        body = cache.get(key)
        if body is not None:
            return raw_json_response(body, 200, {"X-Cache": "HIT"})
        status_code, payload = produce()
        body = _render(payload)
        if status_code == 200:
            cache.set(key, body)
        return raw_json_response(body, status_code, {"X-Cache": "MISS"})

    def source_payload(source: SourceConfig) -> tuple[int, dict[str, Any]]:
        result = aggregator.run_source(source.name)
        if not result.success:
            return 503, error_payload(
                f"Failed to fetch {source.label}: {result.error}",
                source=source.label,
                attempts=result.attempts,
            )
        payload: dict[str, Any] = {
            "success": True,
            "source": source.label,
            "count": result.count,
            "data": [record.to_dict() for record in result.records],
            "timestamp": utc_now_iso(),
        }
        if result.warning:
            payload["warning"] = result.warning
        return 200, payload

    def aggregate_payload() -> tuple[int, dict[str, Any]]:
        result = aggregator.aggregate()
        return (200 if result.success else 503), result.to_dict()

    @application.get("/")
    def documentation_endpoint() -> Response:
        return json_response(documentation)

    @application.get("/status")
    def status_endpoint() -> Response:
        return json_response(
            {
                "success": True,
                "status": "healthy",
                "version": __version__,
                "started_at": started_at,
                "uptime_seconds": round(time.monotonic() - started_monotonic, 3),
                "cache_entries": len(cache),
                "cache_ttl_seconds": cache.ttl_seconds,
                "sources": aggregator.source_names(),
                "timestamp": utc_now_iso(),
            }
        )

    @application.get("/all")
    def all_endpoint(request: Request) -> Response:
        return cached(request.url.path, aggregate_payload)

    def make_source_endpoint(source: SourceConfig) -> Callable[[Request], Response]:
        def endpoint(request: Request) -> Response:
            return cached(request.url.path, lambda: source_payload(source))

        endpoint.__name__ = f"source_{source.name.replace('-', '_')}"
        return endpoint

    for source in config.enabled_sources():
        for path_name in (source.name, *source.aliases):
            application.add_api_route(
                f"/{path_name}",
                make_source_endpoint(source),
                methods=["GET"],
            )

    return application


__all__ = [
    "CORS_HEADERS",
    "build_documentation",
    "create_app",
    "error_payload",
    "json_response",
]

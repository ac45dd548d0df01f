"""FastAPI application exposing YANG document parsing.

Quick start (run the server)::

    uvicorn yang_schema_api.app:app --reload

Core endpoints (REST):

    POST /api/yang/parse            Parse one document
    POST /api/yang/parse-multiple   Parse several documents + dependency graph
    GET  /health                    Basic health probe
    GET  /config/parser             Current parser configuration
    POST /config/parser             Update parser configuration (next request)
    GET  /metrics/performance       Parse, cache and endpoint statistics
    GET  /metrics/cache             Result cache analytics
    POST /metrics/reset             Reset all metrics

Example: parse a single module::

    curl -X POST http://localhost:8000/api/yang/parse \
         -H "Content-Type: application/json" \
         -d '{"content": "module m { namespace \\"urn:m\\"; prefix m; }", "filename": "m.yang"}'

Example: parse a batch and inspect the import graph::

    curl -X POST http://localhost:8000/api/yang/parse-multiple \
         -H "Content-Type: application/json" \
         -d '{"files": [{"name": "a.yang", "content": "..."},
                        {"name": "b.yang", "content": "..."}]}' | jq .graph

Error handling:
    * Malformed payloads produce HTTP 400 with an ``{"error": ...}`` body
      (``Content must be a string``, ``Files must be an array``).
    * Documents larger than ``YANG_MAX_CONTENT_BYTES`` (default 5 MiB,
      summed over a batch) produce HTTP 413.
    * Parse problems are never HTTP errors: they are reported in ``errors``
      with ``valid=false``.
    * 404 and 500 are wrapped with JSON payloads.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import asdict, replace
from datetime import datetime
from functools import lru_cache
from typing import Any, Dict, List, Optional

import pyang
from fastapi import Depends, FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, StrictStr

from . import __version__
from .coordinator import DEFAULT_FILENAME, ParseCoordinator, ParserConfig, load_parser_config
from .monitoring import get_monitor

logger = logging.getLogger(__name__)

PARSE_PATH = "/api/yang/parse"
PARSE_MULTIPLE_PATH = "/api/yang/parse-multiple"


def _get_max_content_bytes() -> int:
    """Get the request content size cap from environment variables."""
    return int(os.getenv("YANG_MAX_CONTENT_BYTES", str(5 * 1024 * 1024)))


PARSER_CONFIG = load_parser_config()
MAX_CONTENT_BYTES = _get_max_content_bytes()

app = FastAPI(
    title="YANG Schema API",
    version=__version__,
    description="API for parsing YANG modules into navigable trees, diagnostics and dependency graphs",
    docs_url="/docs",
    redoc_url="/redoc",
)


# Performance monitoring middleware
@app.middleware("http")
async def monitor_requests(request: Request, call_next):
    """Middleware to monitor API request performance."""
    start_time = time.time()

    response = await call_next(request)

    response_time = time.time() - start_time
    monitor = get_monitor()
    endpoint = f"{request.method} {request.url.path}"
    monitor.record_endpoint_request(endpoint, response_time, response.status_code)

    response.headers["X-Response-Time"] = f"{response_time:.3f}s"
    response.headers["X-API-Version"] = __version__

    return response


class ParseRequest(BaseModel):
    """Request model for single document parsing."""

    content: StrictStr = Field(..., description="YANG document text")
    filename: Optional[StrictStr] = Field(
        None, description=f"Document name used in diagnostics (default {DEFAULT_FILENAME})"
    )


class FileEntry(BaseModel):
    """One document of a batch."""

    name: StrictStr = Field(..., description="Document name")
    content: StrictStr = Field(..., description="YANG document text")


class ParseMultipleRequest(BaseModel):
    """Request model for batch parsing."""

    files: List[FileEntry] = Field(..., description="Documents to parse")


class ParserConfigRequest(BaseModel):
    """Request model for parser configuration."""

    enable_primary: Optional[bool] = Field(None, description="Run pyang before the fallback parser")
    search_path: Optional[str] = Field(None, description="Module search path for imports")
    use_env_search_path: Optional[bool] = Field(
        None, description="Also search YANG_MODPATH and bundled modules"
    )
    max_workers: Optional[int] = Field(None, ge=1, le=32, description="Batch worker threads")
    cache_results: Optional[bool] = Field(None, description="Memoize parse results")
    cache_ttl: Optional[float] = Field(None, gt=0, description="Result cache TTL in seconds")
    include_edges: Optional[bool] = Field(None, description="Add include edges to graphs")


class ParserConfigResponse(BaseModel):
    """Response model for parser configuration."""

    enable_primary: bool
    search_path: str
    use_env_search_path: bool
    max_workers: int
    cache_results: bool
    cache_ttl: float
    include_edges: bool


@lru_cache(maxsize=1)
def get_coordinator() -> ParseCoordinator:
    logger.info(f"Creating parse coordinator with {PARSER_CONFIG}")
    return ParseCoordinator(PARSER_CONFIG)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _too_large(size: int) -> Optional[JSONResponse]:
    if size > MAX_CONTENT_BYTES:
        return _error(
            413, f"Content too large: {size} bytes exceeds limit of {MAX_CONTENT_BYTES}"
        )
    return None


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Map payload validation failures of the parse endpoints to HTTP 400."""
    path = request.url.path
    locations = [tuple(err.get("loc", ())) for err in exc.errors()]

    if path == PARSE_PATH:
        if any(loc[1:2] == ("filename",) for loc in locations) and not any(
            loc[1:2] == ("content",) or len(loc) < 2 for loc in locations
        ):
            return _error(400, "Filename must be a string")
        return _error(400, "Content must be a string")

    if path == PARSE_MULTIPLE_PATH:
        if any(len(loc) <= 2 for loc in locations):
            return _error(400, "Files must be an array")
        return _error(400, "Each file must have a string name and content")

    return await request_validation_exception_handler(request, exc)


@app.post(PARSE_PATH)
def parse_document(
    request: ParseRequest,
    coordinator: ParseCoordinator = Depends(get_coordinator),
):
    """Parse one YANG document.

    Returns ``{valid, tree, modules, errors, metadata, parser}``.
    """
    oversized = _too_large(len(request.content.encode("utf-8")))
    if oversized is not None:
        return oversized
    result = coordinator.parse_document(request.content, request.filename or DEFAULT_FILENAME)
    return result.to_dict()


@app.post(PARSE_MULTIPLE_PATH)
def parse_multiple(
    request: ParseMultipleRequest,
    coordinator: ParseCoordinator = Depends(get_coordinator),
):
    """Parse several documents and return ``{files, dependencies, graph, summary}``."""
    oversized = _too_large(sum(len(entry.content.encode("utf-8")) for entry in request.files))
    if oversized is not None:
        return oversized
    batch = coordinator.parse_batch(
        [{"name": entry.name, "content": entry.content} for entry in request.files]
    )
    return batch.to_dict()


@app.get("/health")
def health() -> Dict[str, Any]:
    """Health check endpoint."""
    return {
        "status": "healthy",
        "version": __version__,
        "grammar_engine": f"pyang {getattr(pyang, '__version__', 'unknown')}",
        "primary_enabled": PARSER_CONFIG.enable_primary,
    }


@app.get("/config/parser")
def get_parser_config(
    coordinator: ParseCoordinator = Depends(get_coordinator),
) -> ParserConfigResponse:
    """Get current parser configuration."""
    return ParserConfigResponse(**asdict(coordinator.config))


@app.post("/config/parser")
def update_parser_config(config_request: ParserConfigRequest) -> Dict[str, Any]:
    """Update parser configuration (a new coordinator is built on next access)."""
    global PARSER_CONFIG
    config_updates = {
        key: value
        for key, value in config_request.model_dump().items()
        if value is not None
    }
    PARSER_CONFIG = replace(PARSER_CONFIG, **config_updates)

    # Clear the coordinator cache to force recreation with new config
    get_coordinator.cache_clear()
    logger.info(f"Parser configuration updated: {sorted(config_updates)}")

    return {
        "message": "Parser configuration updated",
        "note": "Changes will take effect on next parse request",
        "updated_fields": list(config_updates.keys()),
    }


# Performance monitoring endpoints


@app.get("/metrics/performance")
def get_performance_metrics():
    """Get parse, cache and endpoint statistics."""
    monitor = get_monitor()
    return monitor.get_performance_summary()


@app.get("/metrics/cache")
def get_cache_metrics(coordinator: ParseCoordinator = Depends(get_coordinator)):
    """Get detailed result cache analytics."""
    analytics = get_monitor().get_cache_analytics()
    analytics["cache_stats"] = (
        coordinator.cache.get_cache_stats()
        if coordinator.cache is not None
        else {"cache_available": False}
    )
    return analytics


@app.post("/metrics/reset")
def reset_metrics():
    """Reset all performance metrics (useful for testing)."""
    monitor = get_monitor()
    monitor.reset_metrics()
    return {
        "message": "All metrics have been reset",
        "timestamp": datetime.now().isoformat(),
    }


@app.exception_handler(404)
async def not_found_handler(request, exc):
    """Custom 404 handler with more helpful error messages."""
    return JSONResponse(
        status_code=404,
        content={
            "error": "Not Found",
            "detail": (
                str(exc.detail)
                if hasattr(exc, "detail")
                else "The requested resource was not found"
            ),
            "path": str(request.url.path),
        },
    )


@app.exception_handler(500)
async def internal_error_handler(request, exc):
    """Custom 500 handler for internal errors."""
    logger.error(f"Unhandled error on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal Server Error",
            "detail": "An unexpected error occurred processing your request",
        },
    )

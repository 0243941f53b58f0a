"""
FastAPI application for the timetable cache.

Lifespan manages the httpx client, cache store, and timetable service.
Routes: / (timetable by busStopNo), /health.
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import Response

from timetable_cache.cache import CacheStore
from timetable_cache.config import load_config
from timetable_cache.models import ErrorKind, ErrorResponse, TimetableResponse
from timetable_cache.service import TimetableService
from timetable_cache.upstream_client import TimetableClient

logger = logging.getLogger(__name__)

STATUS_CODES = {
    ErrorKind.invalid_input: 200,
    ErrorKind.no_data: 200,
    ErrorKind.upstream_unavailable: 502,
    ErrorKind.invalid_upstream_format: 502,
    ErrorKind.internal_error: 500,
}


def configure_logging() -> None:
    log_level = os.environ.get("LOG_LEVEL", "info").upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: load config, open the cache store and HTTP client, build the service."""
    configure_logging()

    config = load_config()
    logger.info(
        "Loaded config: upstream=%s, db_path=%s, timeout=%.1fs",
        config.upstream_base_url,
        config.db_path,
        config.upstream_timeout,
    )

    store = CacheStore(config.db_path)
    store.init_schema()
    try:
        async with httpx.AsyncClient() as http_client:
            client = TimetableClient(
                http_client=http_client,
                base_url=config.upstream_base_url,
                timeout=config.upstream_timeout,
            )
            app.state.config = config
            app.state.service = TimetableService(client=client, store=store)
            logger.info("Timetable cache ready")
            yield
    finally:
        app.state.service = None
        store.close()


app = FastAPI(
    title="Timetable Cache API",
    version="1.0.0",
    description="""
A read-through cache in front of the real-time stop timetable source.

Ask for a stop number and get back a normalized JSON timetable with
estimated departure times and human-readable countdowns. Results for a
stop are reused for one minute before the upstream source is queried again.
    """.strip(),
    lifespan=lifespan,
    openapi_tags=[
        {
            "name": "timetable",
            "description": "Departures for a stop",
        },
        {
            "name": "health",
            "description": "Service health check",
        },
    ],
    docs_url="/docs",
    redoc_url="/redoc",
)


def get_service(request: Request) -> TimetableService:
    """Return the service built during lifespan startup."""
    service: Optional[TimetableService] = getattr(request.app.state, "service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Service not ready")
    return service


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@app.get(
    "/health",
    tags=["health"],
    summary="Health check",
    response_description="Service is healthy",
)
async def health():
    """
    Health check endpoint for monitoring and Docker health checks.

    Always returns HTTP 200 with a simple JSON response.
    """
    return {"status": "healthy"}


@app.get(
    "/",
    tags=["timetable"],
    summary="Get timetable for a stop",
    response_description="Upcoming departures, or an error object",
    responses={
        200: {
            "model": TimetableResponse,
            "description": (
                "Timetable, or an `{\"error\": ...}` object for an invalid "
                "stop number or a stop with no data today"
            ),
        },
        502: {
            "model": ErrorResponse,
            "description": "Upstream unreachable or returned an invalid document",
        },
        500: {"model": ErrorResponse, "description": "Local cache storage failure"},
    },
)
async def get_timetable(
    bus_stop_no: Optional[str] = Query(default=None, alias="busStopNo"),
    service: TimetableService = Depends(get_service),
):
    """
    Return departures for one stop.

    The stop number is validated by the service rather than by FastAPI so
    that bad input gets the same `{"error": ...}` body as every other
    failure instead of a 422.
    """
    result = await service.handle(bus_stop_no)
    headers = {}
    if result.ok:
        headers["X-Cache"] = "HIT" if result.cached else "MISS"
    return Response(
        content=result.body,
        media_type="application/json",
        status_code=200 if result.ok else STATUS_CODES[result.error],
        headers=headers,
    )

#!/usr/bin/env python3
"""
Trajectory API - FastAPI HTTP service.

HTTP Endpoints:
    /                 - Hello message
    /livez            - Liveness probe (is the process running?)
    /health           - DuckDB health, catalog size, cache status
    /partitions       - Partition catalog listing
    /tracks           - Trajectories of the default (or selected) partition
    /tracks/{id}      - One trajectory by number
    /origin           - Where particles found in an area originated
    /destination      - Where particles released in an area ended up

All query endpoints return application/geo+json FeatureCollections. Errors
are JSON objects {"error": "..."}: 400 for validation and data availability,
500 for engine failures, 504 when the request deadline expires.

Usage:
    # Start the server
    uvicorn api_service:app --host 0.0.0.0 --port 3002

    # Or
    python api_service.py

    # Test endpoints
    curl http://localhost:3002/livez
    curl "http://localhost:3002/tracks?limit=10"
    curl "http://localhost:3002/destination?bbox=-10,30,10,50&datetime=2010-01-08"
"""

import logging
import sys
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import get_config
from exceptions import BusinessLogicError, DatabaseError
from trajectories import TrajectoryService, build_service
from util_logger import JSONFormatter, LoggerFactory, ComponentType

GEOJSON_MEDIA_TYPE = "application/geo+json"


# ============================================================================
# LOGGING SETUP
# ============================================================================

def configure_logging():
    """Route uvicorn loggers through the JSON stdout handler."""
    if hasattr(sys.stdout, 'reconfigure'):
        sys.stdout.reconfigure(line_buffering=True)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logging.INFO)
    handler.setFormatter(JSONFormatter())

    for logger_name in ['uvicorn', 'uvicorn.error', 'uvicorn.access']:
        uvi_logger = logging.getLogger(logger_name)
        uvi_logger.handlers = []
        uvi_logger.addHandler(handler)
        uvi_logger.propagate = False

    logging.getLogger("httpx").setLevel(logging.WARNING)


configure_logging()

logger = LoggerFactory.create_logger(ComponentType.TRIGGER, "api_service")


# ============================================================================
# APPLICATION
# ============================================================================

def create_app(service: Optional[TrajectoryService] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        service: Preconfigured service (tests); built from get_config() at startup when omitted

    Returns:
        FastAPI app
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """FastAPI lifespan - build the catalog and open DuckDB once per process."""
        owned = service is None
        app.state.service = service or build_service(get_config())
        app.state.started_at = datetime.now(timezone.utc).isoformat()
        logger.info(f"Trajectory API started with {len(app.state.service.catalog)} partitions")
        try:
            yield
        finally:
            if owned:
                app.state.service.close()
            logger.info("Trajectory API stopped")

    app = FastAPI(
        title="Drift Trajectory API",
        description="Spatial and temporal queries over ocean-drift trajectory GeoParquet partitions",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["Origin", "X-Requested-With", "Content-Type", "Accept"],
    )

    # ------------------------------------------------------------------------
    # Error handlers
    # ------------------------------------------------------------------------

    @app.exception_handler(BusinessLogicError)
    async def business_error_handler(request: Request, exc: BusinessLogicError):
        expose = app.state.service.config.expose_error_details
        body = exc.to_dict()
        level = logging.ERROR if exc.http_status >= 500 else logging.WARNING
        logger.log(
            level,
            f"{request.url.path} failed: {exc.message}",
            extra={"custom_dimensions": {
                "error_code": exc.error_code.value,
                "http_status": exc.http_status,
                **exc.details,
            }},
        )
        if isinstance(exc, DatabaseError) and not expose:
            body = {"error": "Query engine failure" if exc.http_status == 500 else "Query timed out"}
        elif isinstance(exc, DatabaseError):
            body["type"] = type(exc).__name__
        return JSONResponse(status_code=exc.http_status, content=body)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error(f"{request.url.path} raised {type(exc).__name__}: {exc}", exc_info=exc)
        body = {"error": "Internal server error"}
        if app.state.service.config.expose_error_details:
            body["type"] = type(exc).__name__
            body["detail"] = str(exc)
        return JSONResponse(status_code=500, content=body)

    # ------------------------------------------------------------------------
    # Probes
    # ------------------------------------------------------------------------

    @app.get("/")
    def hello():
        return {"message": "hello"}

    @app.get("/livez")
    def liveness_probe():
        """
        Liveness probe.

        Returns 200 if the process is running.
        """
        return {"status": "alive", "started_at": app.state.started_at}

    @app.get("/health")
    def health_check():
        """DuckDB health, catalog size and cache status; 503 when the engine is down."""
        health = app.state.service.health()
        status_code = 200 if health["status"] == "healthy" else 503
        return JSONResponse(status_code=status_code, content=health)

    @app.get("/partitions")
    def list_partitions():
        return app.state.service.list_partitions()

    # ------------------------------------------------------------------------
    # Query endpoints
    # ------------------------------------------------------------------------

    def _geojson(body: dict) -> JSONResponse:
        return JSONResponse(content=body, media_type=GEOJSON_MEDIA_TYPE)

    def _request_id(request: Request) -> str:
        return request.headers.get("x-request-id") or uuid.uuid4().hex[:12]

    @app.get("/tracks")
    async def get_tracks(request: Request):
        body = await run_in_threadpool(
            app.state.service.tracks, request.query_params, _request_id(request)
        )
        return _geojson(body)

    @app.get("/tracks/{track_id}")
    async def get_track(track_id: str, request: Request):
        body = await run_in_threadpool(
            app.state.service.track_by_id, track_id, request.query_params, _request_id(request)
        )
        return _geojson(body)

    @app.get("/origin")
    async def get_origin(request: Request):
        body = await run_in_threadpool(
            app.state.service.origin, request.query_params, _request_id(request)
        )
        return _geojson(body)

    @app.get("/destination")
    async def get_destination(request: Request):
        body = await run_in_threadpool(
            app.state.service.destination, request.query_params, _request_id(request)
        )
        return _geojson(body)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("api_service:app", host="0.0.0.0", port=get_config().service.port)

"""
Metrics Ingest API.

Receives metric updates from agents, keeps them in the in-memory store
and serves current values back as plain text, JSON and an HTML dashboard.
"""

import gzip
import logging
import math
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse, Response
from pydantic import BaseModel, ValidationError

from .. import __version__
from ..config import settings
from ..metrics import MetricJSON, MetricType, format_counter, format_gauge
from .config import ServerConfig
from .dashboard import render_dashboard
from .store import MetricStore
from .validation import (
    MetricValidationError,
    validate_metric_name,
    validate_metric_request,
    validate_metric_type,
)

logger = logging.getLogger(__name__)


class MetricQuery(BaseModel):
    id: str
    type: str


def _bad_request(err: MetricValidationError) -> HTTPException:
    return HTTPException(status_code=err.status_code, detail=str(err))


async def _read_metric_json(request: Request, model: type[BaseModel]) -> BaseModel:
    """Decode a JSON body, gunzipping it first when the client compressed it."""
    if "application/json" not in request.headers.get("content-type", "").lower():
        raise HTTPException(status_code=400, detail="Content-Type must be application/json")

    body = await request.body()
    if "gzip" in request.headers.get("content-encoding", "").lower():
        try:
            body = gzip.decompress(body)
        except (OSError, EOFError):
            raise HTTPException(status_code=400, detail="invalid gzip body") from None

    try:
        return model.model_validate_json(body)
    except ValidationError:
        raise HTTPException(status_code=400, detail="invalid JSON format") from None


# Create FastAPI app
def create_app(store: Optional[MetricStore] = None) -> FastAPI:
    """Create the FastAPI application around ``store`` (a fresh one by default)."""

    store = store if store is not None else MetricStore()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Metrics server started")
        yield
        stats = store.stats()
        logger.info(
            f"Metrics server stopped ({stats['gauges']} gauges, {stats['counters']} counters in memory)"
        )

    app = FastAPI(
        title="runmetrics server",
        description="Receives runtime metrics from agents and serves current values",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.store = store

    app.add_middleware(GZipMiddleware, minimum_size=1024)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        path = request.scope["path"]
        if path != "/" and path.endswith("/"):
            request.scope["path"] = path.rstrip("/") or "/"

        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} ({duration_ms:.1f} ms)"
        )
        return response

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"detail": "invalid request"})

    @app.exception_handler(Exception)
    async def internal_error(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
        return PlainTextResponse("Internal Server Error", status_code=500)

    @app.get("/ping", response_class=PlainTextResponse)
    def ping():
        return "pong"

    @app.get("/health")
    def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "timestamp": time.time(),
            "metrics": store.stats(),
        }

    @app.get("/", response_class=HTMLResponse)
    def dashboard():
        """Bulk view of every stored metric."""
        gauges = store.list_gauges()
        counters = store.list_counters()
        return HTMLResponse(render_dashboard(gauges, counters))

    @app.post("/update/{metric_type}/{name}/{value}")
    def update_metric(metric_type: str, name: str, value: str):
        """Apply one path-style update."""
        try:
            req = validate_metric_request(metric_type, name, value)
        except MetricValidationError as e:
            logger.warning(f"Metric validation failed: {e}")
            raise _bad_request(e)

        if req.type is MetricType.GAUGE:
            store.update_gauge(req.name, req.value)
        else:
            store.update_counter(req.name, req.value)

        return Response(status_code=200, media_type="text/plain")

    @app.post("/update/{metric_type}//{value}")
    def update_metric_without_name(metric_type: str, value: str):
        """Update with an empty name; the type is still checked first."""
        return update_metric(metric_type, "", value)

    @app.get("/value/{metric_type}/{name}", response_class=PlainTextResponse)
    def get_metric_value(metric_type: str, name: str):
        """Current value of one metric as plain text."""
        try:
            kind = validate_metric_type(metric_type)
            validate_metric_name(name)
        except MetricValidationError as e:
            raise _bad_request(e)

        if kind is MetricType.GAUGE:
            value, present = store.get_gauge(name)
            text = format_gauge(value)
        else:
            value, present = store.get_counter(name)
            text = format_counter(value)

        if not present:
            raise HTTPException(status_code=404, detail="metric not found")
        return PlainTextResponse(text)

    @app.post("/update")
    async def update_metric_json(request: Request):
        """Apply one JSON update and return the stored result."""
        metric = await _read_metric_json(request, MetricJSON)

        try:
            kind = validate_metric_type(metric.type)
            validate_metric_name(metric.id)
        except MetricValidationError as e:
            raise HTTPException(status_code=400, detail=str(e))

        if kind is MetricType.GAUGE:
            if metric.value is None or not math.isfinite(metric.value):
                raise HTTPException(status_code=400, detail="value is required for gauge metric")
            store.update_gauge(metric.id, metric.value)
            result = MetricJSON(id=metric.id, type=kind.value, value=metric.value)
        else:
            if metric.delta is None:
                raise HTTPException(status_code=400, detail="delta is required for counter metric")
            total = store.update_counter(metric.id, metric.delta)
            result = MetricJSON(id=metric.id, type=kind.value, delta=total)

        return JSONResponse(result.model_dump(exclude_none=True))

    @app.post("/value")
    async def get_metric_json(request: Request):
        """Current value of one metric as JSON."""
        query = await _read_metric_json(request, MetricQuery)

        try:
            kind = validate_metric_type(query.type)
            validate_metric_name(query.id)
        except MetricValidationError as e:
            raise HTTPException(status_code=400, detail=str(e))

        if kind is MetricType.GAUGE:
            value, present = store.get_gauge(query.id)
            result = MetricJSON(id=query.id, type=kind.value, value=value)
        else:
            value, present = store.get_counter(query.id)
            result = MetricJSON(id=query.id, type=kind.value, delta=value)

        if not present:
            raise HTTPException(status_code=404, detail="metric not found")
        return JSONResponse(result.model_dump(exclude_none=True))

    return app


def run_server(config: ServerConfig) -> None:
    """Serve until SIGINT/SIGTERM, then shut down gracefully."""
    import uvicorn

    host, port = config.host, config.port
    logger.info(f"Starting metrics server on {host}:{port}")
    uvicorn.run(
        create_app(),
        host=host,
        port=port,
        log_config=None,
        timeout_graceful_shutdown=settings.shutdown_timeout,
    )
    logger.info("Server shutdown complete")

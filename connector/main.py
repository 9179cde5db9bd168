"""
BBVA Connector Service

A FastAPI service that logs into the BBVA mobile banking API with a user's
credentials and returns their accounts and transactions.

Each request opens its own driver: the login happens when the driver is
built, and its cookies live only for that request. Nothing is cached or
stored between requests.
"""
import json
import time
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from pydantic import ValidationError
from starlette.responses import Response

from connector.api import router
from connector.config import settings
from connector.logging import (
    configure_logging,
    get_logger,
    set_request_context,
    clear_request_context,
    generate_request_id,
)
from connector.pagination import PaginationLimitExceeded
from connector import metrics

# Configure structured logging
configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info(
        "service_starting",
        service_name=settings.service_name,
        bank_api_base=settings.bank_api_base,
    )

    yield

    logger.info("service_stopping", service_name=settings.service_name)


app = FastAPI(
    title="BBVA Connector",
    description="Accounts and transactions from the BBVA mobile banking API",
    version="0.1.0",
    lifespan=lifespan,
)


@app.middleware("http")
async def request_logging_middleware(request: Request, call_next):
    """
    Middleware for request tracing, logging, and metrics.

    Sets up request context with:
    - request_id: Unique identifier for tracing
    - Timing for duration_ms calculation
    - Prometheus metrics collection
    """
    method = request.method
    path = request.url.path

    # Skip logging/metrics for health and metrics endpoints
    if path in ("/health", "/metrics"):
        return await call_next(request)

    request_id = request.headers.get("X-Request-ID") or generate_request_id()
    set_request_context(request_id)
    request.state.request_id = request_id

    start_time = time.perf_counter()

    logger.info("request_received", method=method, path=path)

    try:
        response = await call_next(request)

        duration_seconds = time.perf_counter() - start_time

        logger.info(
            "request_completed",
            method=method,
            path=path,
            status_code=response.status_code,
            duration_ms=round(duration_seconds * 1000, 2),
        )

        metrics.record_http_request(method, path, response.status_code, duration_seconds)

        response.headers["X-Request-ID"] = request_id

        return response

    except Exception as e:
        duration_seconds = time.perf_counter() - start_time

        logger.error(
            "request_failed",
            method=method,
            path=path,
            duration_ms=round(duration_seconds * 1000, 2),
            error=str(e),
        )

        metrics.record_http_request(method, path, 500, duration_seconds)

        raise

    finally:
        clear_request_context()


def _error_response(request: Request, status_code: int, detail: str) -> JSONResponse:
    request_id = getattr(request.state, "request_id", "unknown")
    return JSONResponse(
        status_code=status_code,
        content={"detail": detail},
        headers={"X-Request-ID": request_id},
    )


@app.exception_handler(httpx.HTTPStatusError)
async def bank_status_error_handler(request: Request, exc: httpx.HTTPStatusError):
    """The bank answered with a non-2xx status."""
    logger.error(
        "bank_api_error",
        status_code=exc.response.status_code,
        path=exc.request.url.path,
    )
    return _error_response(
        request, 502, f"Bank API error: status {exc.response.status_code}"
    )


@app.exception_handler(httpx.RequestError)
async def bank_request_error_handler(request: Request, exc: httpx.RequestError):
    """The bank could not be reached."""
    logger.error("bank_api_unreachable", error=str(exc))
    if isinstance(exc, httpx.TimeoutException):
        return _error_response(request, 504, "Bank API timeout")
    return _error_response(request, 502, f"Bank API request failed: {exc}")


@app.exception_handler(json.JSONDecodeError)
@app.exception_handler(ValidationError)
async def bank_payload_error_handler(request: Request, exc: ValueError):
    """The bank answered with a body the connector cannot read."""
    logger.error("bank_api_malformed_response", error=str(exc))
    return _error_response(request, 502, "Malformed bank response")


@app.exception_handler(PaginationLimitExceeded)
async def pagination_limit_handler(request: Request, exc: PaginationLimitExceeded):
    logger.error(
        "bank_api_pagination_runaway",
        account_id=exc.account_id,
        max_pages=exc.max_pages,
    )
    return _error_response(request, 502, str(exc))


# Include API routes
app.include_router(router)


@app.get("/health")
async def health_check():
    """Health check endpoint for container orchestration."""
    return {"status": "ok", "service": settings.service_name}


@app.get("/metrics")
async def metrics_endpoint():
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)

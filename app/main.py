"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from app.config import settings
from app.jobs.scheduler import job_summary, register_jobs, scheduler
from app.routers import crowns, triggers
from app.utils.errors import AppError, InvalidInputError, TriggerUnauthorizedError
from app.utils.http_client import get_push_http_client

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Run the event lifecycle jobs in-process while the app is up.

    Deployments driven by an external cron set ENABLE_SCHEDULER=false and
    call the trigger endpoints instead.
    """
    if settings.enable_scheduler:
        added = register_jobs()
        scheduler.start()
        logger.info("Scheduler started in %s with jobs: %s", settings.timezone, ", ".join(added))
    else:
        logger.info("Scheduler disabled; lifecycle runs only through trigger endpoints")
    yield
    if settings.enable_scheduler and scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
    if get_push_http_client.cache_info().currsize:
        get_push_http_client().close()
        get_push_http_client.cache_clear()


app = FastAPI(
    title=settings.app_name,
    description="Squad Game - daily events and crown ledger",
    version=settings.app_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_timing_middleware(request: Request, call_next):
    """Add per-request processing time and optionally log slow requests."""
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    response.headers["X-Process-Time-Ms"] = f"{elapsed_ms:.1f}"

    threshold_ms = settings.slow_request_log_threshold_ms
    if threshold_ms > 0 and elapsed_ms >= threshold_ms:
        logger.warning(
            "Slow request %s %s %.1fms",
            request.method,
            request.url.path,
            elapsed_ms,
        )

    return response


@app.exception_handler(TriggerUnauthorizedError)
async def trigger_unauthorized_handler(_: Request, exc: TriggerUnauthorizedError):
    """Cron callers get the bare text body the edge runtime used to send."""
    return PlainTextResponse("Unauthorized", status_code=exc.status_code)


@app.exception_handler(AppError)
async def app_error_handler(_: Request, exc: AppError) -> JSONResponse:
    """Convert domain exceptions into structured API responses."""
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(
    _: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Normalize FastAPI validation responses."""
    detail = exc.errors()
    message = detail[0].get("msg", "Invalid request") if detail else "Invalid request"
    api_error = InvalidInputError(message)
    return JSONResponse(status_code=api_error.status_code, content=api_error.to_dict())


@app.exception_handler(Exception)
async def unhandled_error_handler(_: Request, exc: Exception) -> JSONResponse:
    """Catch unexpected errors without leaking internals."""
    logger.exception("Unhandled exception", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "code": "INTERNAL_ERROR"},
    )


app.include_router(triggers.router, tags=["triggers"])
app.include_router(crowns.router, tags=["crowns"])


@app.get("/health")
async def health() -> dict:
    """Health check with the in-process scheduler state."""
    return {"status": "ok", "version": settings.app_version, "scheduler": job_summary()}

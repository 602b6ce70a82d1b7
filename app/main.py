import asyncio
import os
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.logging_config import get_logger, setup_logging
from app.routers import realtime, system, webhook
from app.services.metrics_service import MetricsCollector
from app.services.rate_limiter import RateLimiter

setup_logging(settings.log_level)

app = FastAPI(
    title="Shwe Oo Pharmacy API",
    description="Viber bot backend and admin realtime channel for ရွှေအိုး Pharmacy",
    version=system.API_VERSION,
)

cors_env = os.environ.get("CORS_ALLOW_ORIGINS", "*")
cors_origins = [origin.strip() for origin in cors_env.split(",") if origin.strip()]
if not cors_origins:
    cors_origins = ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.state.metrics = MetricsCollector()
app.state.rate_limiter = RateLimiter(
    max_requests=settings.rate_limit_max_requests,
    window_seconds=settings.rate_limit_window_seconds,
)

app.include_router(system.router)
app.include_router(webhook.router)
app.include_router(realtime.router)

maintenance_logger = get_logger("maintenance_worker")
_maintenance_task: asyncio.Task | None = None


@app.middleware("http")
async def record_webhook_timing(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    if request.url.path == "/webhook":
        request.app.state.metrics.record_webhook_request((time.perf_counter() - started) * 1000)
    return response


def _is_env_enabled(value: str | None, default: bool = True) -> bool:
    if value is None:
        return default
    return value.strip().lower() not in {"0", "false", "no", "off"}


def _is_maintenance_enabled() -> bool:
    if os.environ.get("PYTEST_CURRENT_TEST"):
        return False
    return _is_env_enabled(os.environ.get("MAINTENANCE_WORKER_ENABLED"), default=True)


def run_maintenance(rate_limiter: RateLimiter, metrics: MetricsCollector) -> int:
    removed = rate_limiter.cleanup()
    if not settings.is_production:
        metrics.log_metrics()
    return removed


async def _maintenance_loop() -> None:
    interval_seconds = max(settings.cleanup_interval_seconds, 1.0)
    while True:
        try:
            await asyncio.sleep(interval_seconds)
            run_maintenance(app.state.rate_limiter, app.state.metrics)
        except asyncio.CancelledError:
            break
        except Exception as exc:
            maintenance_logger.error(
                "Maintenance loop failed",
                extra={"context": {"error": str(exc)}},
            )


@app.on_event("startup")
async def start_maintenance_worker() -> None:
    global _maintenance_task
    maintenance_logger.info(
        "Pharmacy backend starting",
        extra={"context": {"environment": settings.environment, "version": system.API_VERSION}},
    )
    if not _is_maintenance_enabled():
        return
    if _maintenance_task is None or _maintenance_task.done():
        _maintenance_task = asyncio.create_task(_maintenance_loop())
        maintenance_logger.info("Maintenance worker started")


@app.on_event("shutdown")
async def stop_maintenance_worker() -> None:
    global _maintenance_task
    if _maintenance_task is None:
        return
    _maintenance_task.cancel()
    try:
        await _maintenance_task
    except asyncio.CancelledError:
        pass
    _maintenance_task = None

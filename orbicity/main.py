from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from contextlib import asynccontextmanager
from slowapi.errors import RateLimitExceeded
import asyncio
import logging
import time
import uuid

from .config import settings
from .database import create_tables, SessionLocal
from .services.channel_sync import sync_all_active
from .utils.logging_config import setup_logging, get_logger, set_request_context, clear_request_context
from .utils.rate_limiter import limiter

from .routers import apartments, availability, bookings, blocks, pricing, integrations, notifications, health

setup_logging(level=settings.log_level, json_format=settings.log_json)
logger = logging.getLogger("orbicity.main")
request_logger = get_logger("orbicity.requests")


def run_periodic_sync() -> dict:
    """One pass over every active integration, in its own session"""
    db = SessionLocal()
    try:
        outcomes = sync_all_active(db)
    finally:
        db.close()

    failed = sum(1 for outcome in outcomes.values() if isinstance(outcome, str))
    if outcomes:
        logger.info(f"Periodic channel sync: {len(outcomes) - failed} ok, {failed} failed")
    return outcomes


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    logger.info(f"Starting orbicity-backend ({settings.environment})")
    logger.info(f"CORS origins: {settings.cors_origins}")

    if settings.is_production and settings.is_sqlite:
        logger.warning("Running production on SQLite: booking writes are only serialized within this process")

    create_tables()

    # ==========================================
    # PERIODIC CHANNEL SYNC
    # ==========================================
    sync_task = None
    sync_running = True

    async def run_sync_worker():
        interval = settings.channel_sync_interval_seconds
        logger.info(f"Channel sync worker started (interval: {interval}s)")

        while sync_running:
            try:
                # Fetch and DB work are blocking; keep them off the event loop
                await asyncio.to_thread(run_periodic_sync)
            except Exception as e:
                logger.exception(f"Channel sync worker error: {e}")
            await asyncio.sleep(interval)

    if settings.channel_sync_enabled:
        sync_task = asyncio.create_task(run_sync_worker())
    else:
        logger.info("Periodic channel sync disabled")

    yield

    logger.info("Shutting down orbicity-backend")
    sync_running = False
    if sync_task:
        sync_task.cancel()
        try:
            await sync_task
        except asyncio.CancelledError:
            pass


app = FastAPI(
    title="Orbi City Batumi - Booking API",
    description="Availability, rates and channel calendar sync for serviced apartments",
    version="1.0.0",
    lifespan=lifespan
)

# Rate limiter state
app.state.limiter = limiter


# ================================
# CORS MIDDLEWARE - MUST BE FIRST!
# ================================
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)


class RequestIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4())[:8])
        request.state.request_id = request_id
        set_request_context(request_id)
        started = time.monotonic()
        try:
            response = await call_next(request)
        finally:
            clear_request_context()
        response.headers["X-Request-ID"] = request_id
        if request.url.path.startswith("/api"):
            request_logger.api_request(
                request.method,
                request.url.path,
                response.status_code,
                round((time.monotonic() - started) * 1000, 1)
            )
        return response


app.add_middleware(RequestIdMiddleware)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(
        status_code=429,
        content={"detail": "Too many requests, please try again later"}
    )


# Include routers
app.include_router(apartments.router)
app.include_router(availability.router)
app.include_router(bookings.router)
app.include_router(blocks.router)
app.include_router(pricing.router)
app.include_router(integrations.router)
app.include_router(notifications.router)
app.include_router(health.router)


@app.get("/")
async def root():
    return {
        "message": "Orbi City Batumi booking API",
        "version": "1.0.0",
        "docs": "/docs",
        "status": "running"
    }

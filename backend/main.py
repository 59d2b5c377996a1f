"""
Legal Intake Orchestrator
FastAPI backend: conversation turns in, replies and matters out
"""

from contextlib import asynccontextmanager
from dataclasses import dataclass
import logging
import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from config import runtime_config
from errors import ConfigurationError, IntakeError, error_response, log_error
from logging_config import setup_logging
from routers import intake

setup_logging()
logger = logging.getLogger(__name__)


@dataclass
class StartupHealth:
    """Tracks component health through startup phases."""

    phase: str = "initializing"
    redis: str = "pending"
    llm: str = "pending"
    startup_complete: bool = False


_startup_health = StartupHealth()

# Instance ID - changes on every startup
INSTANCE_ID = str(uuid.uuid4())


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown events"""
    # Validate configuration and wiring; a critical issue aborts startup
    _startup_health.phase = "validating"
    from validation import validate_startup

    try:
        validation_result = validate_startup()
    except ConfigurationError as e:
        e.log(logger, level=logging.CRITICAL)
        raise
    logger.info(f"Startup validation passed ({validation_result['warning_count']} warnings)")

    # Context store backend
    _startup_health.phase = "connecting"
    if runtime_config.context_backend == "redis":
        from services.redis_client import get_redis

        redis = await get_redis()
        redis_health = await redis.health_check()
        _startup_health.redis = redis_health.get("status", "unknown")
        if redis_health.get("status") == "connected":
            logger.info(f"Redis connected ({redis_health.get('latency_ms')}ms)")
        else:
            logger.warning(f"Redis unavailable, contexts kept in memory: {redis_health}")
    else:
        _startup_health.redis = "disabled"
        logger.info("Context backend: in-memory")

    # AI collaborator reachability is informational; turns degrade gracefully
    from services.llm_client import get_llm_client

    llm = get_llm_client()
    _startup_health.llm = "ok" if await llm.is_healthy() else "unreachable"
    if _startup_health.llm != "ok":
        logger.warning(f"AI collaborator not reachable at {runtime_config.llm_base_url}")

    _startup_health.phase = "ready"
    _startup_health.startup_complete = True
    logger.info("Intake service ready")

    yield

    # Shutdown
    try:
        from services.redis_client import close_redis

        await close_redis()
        logger.info("Redis connection closed")
    except Exception as e:
        logger.debug(f"Redis close error: {e}")

    try:
        await llm.close()
    except Exception as e:
        logger.debug(f"LLM client close error: {e}")

    logger.info("Intake service signing off")


app = FastAPI(
    title="Legal Intake Orchestrator",
    description="Conversational legal intake with matter creation",
    version="1.0.0",
    lifespan=lifespan,
)


# Security Headers Middleware
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response


MAX_BODY_SIZE_API = 1 * 1024 * 1024  # 1MB


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """Reject requests with bodies exceeding the size limit."""

    async def dispatch(self, request: Request, call_next):
        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit():
            size = int(content_length)
            if size > MAX_BODY_SIZE_API:
                return JSONResponse(
                    status_code=413,
                    content={"detail": f"Request body too large ({size} bytes, limit {MAX_BODY_SIZE_API} bytes)"},
                )
        return await call_next(request)


app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestSizeLimitMiddleware)

# CORS - restrict to localhost and private network IPs on port 3000
app.add_middleware(
    CORSMiddleware,
    allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1|192\.168\.\d+\.\d+|[a-zA-Z][a-zA-Z0-9\-]*):3000$",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API Routers (intake router already has /api/intake prefix)
app.include_router(intake.router)


@app.exception_handler(IntakeError)
async def intake_error_handler(request: Request, exc: IntakeError):
    """Errors that escape a turn become a standard error body, never a traceback."""
    log_error(logger, exc, context=request.url.path, include_traceback=False)
    status = 503 if exc.retryable else 500
    return JSONResponse(status_code=status, content=error_response(exc, include_context=False))


@app.get("/health")
async def health():
    """Health check - pings the context store backend."""
    checks = {}

    if runtime_config.context_backend == "redis":
        try:
            from services.redis_client import get_redis

            redis = await get_redis()
            redis_health = await redis.health_check()
            checks["redis"] = "ok" if redis_health.get("status") in ("connected", "fallback") else "down"
        except Exception as e:
            logger.debug(f"Redis health check failed: {e}")
            checks["redis"] = "down"
    else:
        checks["redis"] = "disabled"

    all_ok = all(v in ("ok", "disabled") for v in checks.values())
    return {
        "status": "healthy" if all_ok else "degraded",
        "checks": checks,
        "startup_phase": _startup_health.phase,
        "startup_complete": _startup_health.startup_complete,
        "components": {"redis": _startup_health.redis, "llm": _startup_health.llm},
    }


@app.get("/api/instance")
async def get_instance():
    """Return instance ID - changes on each startup."""
    return {"instance_id": INSTANCE_ID}


@app.get("/api/config")
async def get_runtime_config():
    """Current runtime configuration (secrets masked)."""
    return runtime_config.to_dict()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000)

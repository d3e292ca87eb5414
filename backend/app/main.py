"""
Moodwave API
============
FastAPI application entry point. Mount routers here.
"""

import logging
import time
import uuid

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import get_settings
from app.errors import AppError
from app.routers import analytics, auth, crisis, journal, profile, reflections
from app.services.rate_limit import rate_limit

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("app")

app = FastAPI(
    title="Moodwave API",
    description="Mood journaling, derived wellbeing scores and recovery reports",
    version="0.1.0",
    docs_url="/api/docs" if not settings.is_production else None,
    redoc_url="/api/redoc" if not settings.is_production else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Request logging
# ---------------------------------------------------------------------------

@app.middleware("http")
async def log_requests(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    started = time.perf_counter()

    response = await call_next(request)

    elapsed_ms = (time.perf_counter() - started) * 1000
    response.headers["X-Request-ID"] = request_id
    logger.info(
        "%s %s -> %d (%.1fms) [%s]",
        request.method, request.url.path, response.status_code, elapsed_ms, request_id,
    )
    return response


# ---------------------------------------------------------------------------
# Error envelopes
# ---------------------------------------------------------------------------

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.to_detail()},
        headers=exc.headers,
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"field": ".".join(str(part) for part in err.get("loc", ())), "message": err.get("msg", "")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={"detail": {"message": "Invalid request", "code": "validation_error", "errors": errors}},
    )


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------

default_limit = [Depends(rate_limit("api", "rate_limit_default"))]

app.include_router(auth.router, dependencies=default_limit)
app.include_router(journal.router, dependencies=default_limit)
app.include_router(reflections.router, dependencies=default_limit)
app.include_router(crisis.router, dependencies=default_limit)
app.include_router(profile.router, dependencies=default_limit)
app.include_router(profile.privacy_router, dependencies=default_limit)
app.include_router(analytics.router, dependencies=default_limit)


@app.get("/health")
async def health_check() -> dict:
    return {"status": "ok", "service": "moodwave-api"}

"""
Student Request Manager API - Main Application Entry Point

This module initializes and configures the FastAPI application including:
- Database and Redis connections
- Background job scheduler (daily digests)
- CORS middleware
- API routing
- Health check endpoints
"""

from contextlib import asynccontextmanager

from fastapi import APIRouter, Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from request_manager.api import api_router
from request_manager.core import redis as redis_state
from request_manager.core.config import settings
from request_manager.core.database import async_session_maker, close_db, init_db
from request_manager.core.redis import close_redis, init_redis
from request_manager.core.scheduler import (
    hourly_schedule,
    list_registered_jobs,
    pause_job,
    resume_job,
    start_scheduler,
    stop_scheduler,
    trigger_job_manually,
)
from request_manager.modules.digest import register_digest_jobs


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events including:
    - Redis connection
    - Database connection
    - Background job scheduler
    """
    # Startup
    print(f"Starting Request Manager API in {settings.python_env} mode...")

    # Initialize Redis
    try:
        await init_redis()
        print("[OK] Redis connected")
    except Exception as e:
        print(f"[FAIL] Redis connection failed: {e}")
        if settings.is_production:
            raise

    # Initialize Database
    try:
        await init_db()
        print("[OK] Database connected")
    except Exception as e:
        print(f"[FAIL] Database connection failed: {e}")
        if settings.is_production:
            raise

    # Initialize Background Job Scheduler
    if settings.digest_scheduler_enabled:
        try:
            # Register jobs before starting the scheduler
            register_digest_jobs(hourly_schedule)

            await start_scheduler()
            print("[OK] Background scheduler started")
        except Exception as e:
            print(f"[FAIL] Background scheduler failed to start: {e}")
            if settings.is_production:
                raise
    else:
        print("[SKIP] Digest scheduler disabled")

    yield  # Application runs here

    # Shutdown
    print("Shutting down Request Manager API...")

    # Stop the scheduler first (wait for running jobs)
    await stop_scheduler()
    print("[OK] Background scheduler stopped")

    await close_redis()
    await close_db()
    print("[OK] Cleanup complete")


app = FastAPI(
    title="Request Manager API",
    description="Academic request ticketing for course staff",
    version="0.1.0",
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    lifespan=lifespan,
)

app.include_router(api_router, prefix="/api/v1")

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """Root endpoint - API welcome message."""
    return {
        "message": "Welcome to Request Manager API",
        "status": "running",
        "environment": settings.python_env,
    }


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint for container orchestration."""
    return {"status": "healthy"}


@app.get("/ready", tags=["Health"])
async def readiness_check() -> dict[str, str]:
    """Readiness check endpoint."""
    return {"status": "ready"}


# ============================================
# Debug Endpoints
# ============================================
# Development only: outside development every /debug route answers 404.
# In production, jobs run automatically on schedule.


def require_development() -> None:
    """Hide debug endpoints unless running in development."""
    if not settings.is_development:
        raise HTTPException(status_code=404, detail="Not Found")


debug_router = APIRouter(
    prefix="/debug",
    tags=["Debug"],
    dependencies=[Depends(require_development)],
)


@debug_router.get("/db")
async def debug_db():
    """Test database connection."""
    try:
        async with async_session_maker() as session:
            result = await session.execute(text("SELECT 1"))
            return {"database": "connected", "result": result.scalar()}
    except Exception as e:
        return {"database": "error", "message": str(e)}


@debug_router.get("/redis")
async def debug_redis():
    """Test Redis connection."""
    try:
        if redis_state.redis_client:
            await redis_state.redis_client.ping()
            return {"redis": "connected"}
        return {"redis": "not initialized"}
    except Exception as e:
        return {"redis": "error", "message": str(e)}


@debug_router.get("/jobs")
async def list_jobs():
    """
    List all registered background jobs and their status.

    Returns:
        List of job information including next run time and pause status.
    """
    return {"jobs": list_registered_jobs()}


@debug_router.post("/jobs/{job_id}/trigger")
async def trigger_job(job_id: str):
    """
    Manually trigger a background job.

    Runs the job immediately, bypassing the normal schedule. The digest
    policy (local hour, one-hour guard) still applies per staff member.

    Args:
        job_id: The ID of the job to trigger. Available jobs:
            - digest_send_daily_digests

    Raises:
        HTTPException 400: If job_id is not found.
    """
    try:
        return await trigger_job_manually(job_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


@debug_router.post("/jobs/{job_id}/pause")
async def pause_job_endpoint(job_id: str):
    """Pause a scheduled background job. It stays registered."""
    success = pause_job(job_id)
    return {"job_id": job_id, "paused": success}


@debug_router.post("/jobs/{job_id}/resume")
async def resume_job_endpoint(job_id: str):
    """Resume a paused background job."""
    success = resume_job(job_id)
    return {"job_id": job_id, "resumed": success}


app.include_router(debug_router)

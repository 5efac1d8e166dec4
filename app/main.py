# /smart-lms-backend/app/main.py

import logging

# --- Core FastAPI Imports ---
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager

# --- Application-specific Imports ---
from .core import config
from .core.logging_config import setup_logging
from .db.base import Base
from .db.database import engine
from .routers import (
    auth_router,
    meetings_router,
    attendance_router,
    emotions_router,
    realtime_router,
)

logger = logging.getLogger(__name__)


# --- Application Lifecycle Management ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    # This code runs ONCE when the application starts up.
    setup_logging()
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ensured")
    yield
    # This code runs ONCE when the application shuts down.
    logger.info("Smart LMS backend shutting down")


# --- FastAPI Application Instance Creation ---
app = FastAPI(
    title="Smart LMS Backend API",
    description="Live meetings, attendance accounting and engagement analytics for the Smart LMS platform.",
    version="1.0.0",
    lifespan=lifespan
)

# --- Middleware Configuration ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Global Error Handling ---
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "message": str(exc)},
    )


# --- API Router Inclusion ---
app.include_router(auth_router.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(meetings_router.router, prefix="/api/meetings", tags=["Meetings"])
app.include_router(attendance_router.router, prefix="/api/attendance", tags=["Attendance"])
app.include_router(emotions_router.router, prefix="/api/emotions", tags=["Engagement"])
app.include_router(realtime_router.router, prefix="/ws", tags=["Real-time"])


# --- Root / Health Check Endpoint ---
@app.get("/", tags=["Health Check"])
async def read_root():
    """A simple health check endpoint to confirm the API is online."""
    return {"status": "Smart LMS Backend is running!", "version": app.version}

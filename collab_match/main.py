from datetime import datetime
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from collab_match.routers import collaboration_models, matching

# Import logging and middleware
from collab_match.utils.logging_config import configure_for_environment, get_logger
from collab_match.middleware.error_handlers import (
    ExceptionHandlerMiddleware,
    RequestLoggingMiddleware,
    PerformanceMiddleware,
)

# Configure logging first
configure_for_environment()
logger = get_logger(__name__)

API_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager"""
    logger.info("Collaboration Matching API starting up...")

    try:
        from collab_match.services.db import init_indexes
        await init_indexes()
        logger.info("Database indexes initialized successfully")
    except Exception as e:
        logger.warning(f"Database index initialization had issues: {e}")
        logger.info("Application will continue - candidate lookups may be slower without indexes")

    yield

    logger.info("Collaboration Matching API shutting down...")


app = FastAPI(title="Collaboration Matching API", version=API_VERSION, lifespan=lifespan)

# Middleware runs LIFO; the exception handler must stay outermost
app.add_middleware(PerformanceMiddleware, slow_request_threshold=2.0)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(ExceptionHandlerMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
@app.head("/")
async def root():
    """Root endpoint - handles both GET and HEAD requests for health checks"""
    return {"message": "Welcome to the Collaboration Matching API", "version": API_VERSION, "status": "ok"}


@app.get("/health")
@app.head("/health")
async def health_check():
    return {"status": "healthy", "timestamp": datetime.utcnow().isoformat()}


app.include_router(
    collaboration_models.router, prefix="/api/collaboration-models", tags=["collaboration-models"]
)
app.include_router(matching.router, prefix="/api/matching", tags=["matching"])

logger.info("Collaboration Matching API initialized successfully")

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from reward_points import __version__
from reward_points.api.v1.api import api_router
from reward_points.core.config import settings
from reward_points.core.logging_config import setup_logging
from reward_points.middleware.logging import LoggingMiddleware

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info(f"Reward Points API {__version__} starting ({settings.ENVIRONMENT})")
    yield
    logger.info("Reward Points API shutting down")

# Create FastAPI app
app_config = {
    "title": "Reward Points",
    "description": "Recognition entries, two-stage approvals and fiscal-year leaderboards",
    "version": __version__,
    "docs_url": "/api/docs",
    "lifespan": lifespan,
}

app = FastAPI(**app_config)

# Add middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=settings.ALLOWED_METHODS,
    allow_headers=settings.ALLOWED_HEADERS
)
app.add_middleware(LoggingMiddleware)

# Include routers
app.include_router(api_router, prefix="/api/v1")

@app.get("/")
async def root():
    return {
        "message": "Welcome to Reward Points",
        "status": "active",
        "version": __version__,
        "docs": "/api/docs"
    }

@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.ENVIRONMENT
    }

def run():
    """Console entry point"""
    import uvicorn
    uvicorn.run(
        "reward_points.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )

if __name__ == "__main__":
    run()

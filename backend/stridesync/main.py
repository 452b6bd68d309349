"""FastAPI application entry point."""
from contextlib import asynccontextmanager
import logging
import sys

from fastapi import FastAPI

from stridesync.config import settings
from stridesync.database import init_db
from stridesync.routers import activities, auth

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize application on startup."""
    if settings.STORAGE_ENABLED:
        init_db()
        logger.info("Database initialized")
    else:
        logger.info("Storage disabled, activities will not be persisted")
    logger.info("Running in %s mode", settings.ENVIRONMENT)
    yield


# Create FastAPI application
app = FastAPI(
    title="StrideSync",
    description="Strava activity sync with weekly distance stats",
    version="0.1.0",
    lifespan=lifespan,
)

# Register routers
app.include_router(auth.router)
app.include_router(activities.router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "environment": settings.ENVIRONMENT}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("stridesync.main:app", host="0.0.0.0", port=8080, reload=settings.is_development)

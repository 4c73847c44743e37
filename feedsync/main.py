from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional
import logging
from feedsync.config import Settings, settings as default_settings
from feedsync.context import AppContext
from feedsync.exceptions import FeedSyncError
from feedsync.api import admin, auth, posts, preferences, profiles, realtime
from feedsync.services.redis_service import RedisService
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

# Configure logging
logging.basicConfig(
    level=default_settings.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

async def feed_sync_error_handler(request: Request, exc: FeedSyncError) -> JSONResponse:
    """Map classified failures onto HTTP status codes"""
    logger.warning(f"{request.method} {request.url.path} failed: {exc.__class__.__name__}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "detail": exc.message,
            "error": exc.__class__.__name__,
            "field": getattr(exc, "field", None),
        },
    )

def create_app(settings: Optional[Settings] = None, redis: Optional[RedisService] = None) -> FastAPI:
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifespan context manager for startup and shutdown events"""
        # Startup
        logger.info("Starting up...")
        app.state.context = await AppContext.create(settings, redis=redis)

        yield

        # Shutdown
        logger.info("Shutting down...")
        await app.state.context.close()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description="Realtime-synchronized community feed",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
        lifespan=lifespan
    )

    # Rate limiter
    limiter = Limiter(key_func=get_remote_address)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(FeedSyncError, feed_sync_error_handler)

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    prefix = settings.API_V1_PREFIX
    app.include_router(auth.router, prefix=f"{prefix}/auth", tags=["Authentication"])
    app.include_router(posts.router, prefix=f"{prefix}/posts", tags=["Posts"])
    app.include_router(profiles.router, prefix=f"{prefix}/profiles", tags=["Profiles"])
    app.include_router(admin.router, prefix=f"{prefix}/admin", tags=["Moderation"])
    app.include_router(preferences.router, prefix=f"{prefix}/preferences", tags=["Preferences"])
    app.include_router(realtime.router, tags=["Realtime"])

    @app.get("/")
    async def root():
        """Root endpoint with API information"""
        return {
            "message": f"Welcome to {settings.PROJECT_NAME}",
            "version": settings.VERSION,
            "docs": "/api/docs",
        }

    @app.get("/health")
    @limiter.limit(settings.HEALTH_RATE_LIMIT)
    async def health_check(request: Request):
        """Health check endpoint"""
        context: AppContext = request.app.state.context
        return {
            "status": "healthy",
            "realtime": context.transport.__class__.__name__,
            "views": await context.views.get_total_views_count(),
            "timestamp": datetime.now().isoformat()
        }

    return app

app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "feedsync.main:app",
        host=default_settings.HOST,
        port=default_settings.PORT,
        reload=default_settings.DEBUG,
        log_level="info"
    )

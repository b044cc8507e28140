from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.routers import search, workspace
from app.core.logging import setup_logging
from fastapi_limiter import FastAPILimiter
from redis.asyncio import Redis
from app.config import settings
from sqlalchemy import text
from app.database import AsyncSessionFactory, engine
from app.models import Base
from structlog import get_logger

logger = get_logger()

app = FastAPI(title="Property Search Service")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(search.router)
app.include_router(workspace.router)

@app.on_event("startup")
async def startup_event():
    setup_logging()
    # Local SQLite has no migration step; create the storage table if missing
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    # Initialize rate limiter only if Redis is available; skip gracefully on failure
    if settings.REDIS_URL:
        try:
            redis = Redis.from_url(settings.REDIS_URL)
            await redis.ping()
            await FastAPILimiter.init(redis)
        except Exception as e:
            logger.warning("Rate limiter disabled, Redis unavailable", error=str(e))
    logger.info("Property search service started", marketplace=settings.MARKETPLACE_API_URL)


@app.on_event("shutdown")
async def shutdown_event():
    await engine.dispose()


@app.get("/health", tags=["health"])
async def health():
    details = {"status": "ok"}
    # Check storage connectivity
    try:
        async with AsyncSessionFactory() as session:
            await session.execute(text("SELECT 1"))
        details["storage"] = "up"
    except Exception as e:
        details["status"] = "degraded"
        details["storage"] = f"down: {str(e)}"
    details["config"] = {
        "marketplace_api_url": settings.MARKETPLACE_API_URL,
        "rate_limiting": FastAPILimiter.redis is not None,
        "demo_coordinates": settings.DEMO_COORDINATES,
    }
    return details

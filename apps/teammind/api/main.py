"""
TeamMind API Server

FastAPI server for pickup-game discovery, team auto-placement, the community
feed and team chat.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
import logging
import os
import uvicorn
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler  # type: ignore
from slowapi.errors import RateLimitExceeded  # type: ignore

from teammind.api.routes import router, limiter as routes_limiter
from teammind.database import db
from teammind.services import field_service
from teammind.services.realtime_manager import ConnectionSweeper
from teammind.utils.constants import PlacementWeights
from teammind.utils.datetime_utils import get_local_timezone

# Set up logging
# Allow log level to be configured via environment variable (default: INFO)
log_level = os.getenv("LOG_LEVEL", "INFO").upper()
numeric_level = getattr(logging, log_level, logging.INFO)
logging.basicConfig(
    level=numeric_level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

connection_sweeper = ConnectionSweeper()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan handler for startup and shutdown events."""
    logger.info("Starting up TeamMind API...")

    # Bad scoring or timezone settings stop startup
    weights = PlacementWeights.from_env()
    logger.info(f"Placement weights: {weights!r}")
    logger.info(f"Venue timezone: {get_local_timezone().zone}")

    # Create tables that migrations haven't created yet
    try:
        await db.init_database()
        logger.info("Database initialized")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}", exc_info=True)

    try:
        async with db.AsyncSessionLocal() as session:
            created = await field_service.seed_default_fields(session)
            await session.commit()
        logger.info(f"✓ Field seed data initialized ({created} new)")
    except Exception as e:
        logger.error(f"Failed to seed fields: {e}", exc_info=True)

    try:
        connection_sweeper.start()
    except Exception as e:
        logger.error(f"Failed to start realtime connection sweeper: {e}", exc_info=True)

    yield  # App is running

    logger.info("Shutting down TeamMind API...")
    connection_sweeper.stop()
    await db.engine.dispose()


app = FastAPI(
    title="TeamMind API",
    description="API for finding pickup soccer games and getting placed on a team",
    version="1.0.0",
    lifespan=lifespan,
)

# Setup rate limiter
app.state.limiter = routes_limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Add CORS middleware, origins configured via ALLOWED_ORIGINS env var
allowed_origins = os.getenv("ALLOWED_ORIGINS", "http://localhost:3000").split(",")
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(router)


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8000")))

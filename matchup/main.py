# matchup/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError

from matchup.api.v1.api import api_router
from matchup.api.v1.endpoints import realtime
from matchup.core.config import settings
from matchup.core.errors import (
    AppError,
    app_error_handler,
    database_error_handler,
    validation_error_handler,
)
from matchup.core.kafka_producer import close_kafka_singleton
from matchup.core.limiter import limiter
from matchup.db.base_class import Base
from matchup.db.session import engine
from matchup.realtime.hub import channel_hub

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    logger.info("Starting MatchUp games service...")

    if settings.AUTO_CREATE_TABLES:
        import matchup.models  # noqa: F401  registers every table on Base

        Base.metadata.create_all(bind=engine)
        logger.info("Database tables checked and created if necessary.")

    relay = None
    if settings.REALTIME_BACKEND == "redis":
        from matchup.db.redis import redis_client
        from matchup.realtime.redis_bridge import RedisRelay

        relay = RedisRelay(redis_client, channel_hub)
        relay.start()

    yield

    logger.info("Shutting down MatchUp games service...")
    if relay is not None:
        relay.stop()
    close_kafka_singleton()


app = FastAPI(
    title="MatchUp Games Service",
    version="1.0.0",
    description="""
        Pickup games: hosting, joining, waitlists and realtime roster updates.

        Most endpoints require JWT authentication via the `Authorization: Bearer <token>` header.
        """,
    lifespan=lifespan,
)

app.state.limiter = limiter

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

# Register exception handlers
app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(RequestValidationError, validation_error_handler)
app.add_exception_handler(SQLAlchemyError, database_error_handler)
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.include_router(api_router, prefix="/api/v1")
app.include_router(realtime.router)


@app.get("/")
def read_root():
    return {"status": "MatchUp games service is running"}

import logging
from contextlib import asynccontextmanager
from typing import Any
from fastapi import Depends, FastAPI, Response, status
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from forum.core.config import settings
from forum.core.database import async_session_factory, get_session, init_db
from forum.api.auth import router as auth_router
from forum.api.reactions import router as reactions_router
from forum.api.users import router as users_router
from forum.services.auth.sessions import SessionManager, SqlSessionStore

logger = logging.getLogger(__name__)


async def purge_expired_sessions() -> int:
    async with async_session_factory() as db:
        purged = await SessionManager(SqlSessionStore(db)).purge_expired()
        await db.commit()
    return purged


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup; an unreachable database aborts here
    if settings.auto_create_tables:
        await init_db()
    purged = await purge_expired_sessions()
    logger.info(f"Purged {purged} expired sessions")
    yield


app = FastAPI(
    title=settings.app_name,
    description="Literary Lions discussion forum API",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth_router, prefix="/api")
app.include_router(reactions_router, prefix="/api")
app.include_router(users_router, prefix="/api")


@app.get("/health")
async def health_check(
    response: Response,
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """Liveness plus a round trip to the forum database."""
    try:
        await db.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError:
        logger.exception("Health check could not reach the database")
        database = "unavailable"
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return {
        "status": "healthy" if database == "ok" else "degraded",
        "database": database,
        "environment": settings.environment,
    }

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
import logging

from leave_api.core.database import get_db
from leave_api.core.exceptions import UnexpectedError
from leave_api.schemas.common import Envelope

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health", response_model=Envelope[dict])
async def health_check():
    logger.debug("Health check requested")
    return Envelope(data={"status": "healthy"})


@router.get("/health/db", response_model=Envelope[dict])
async def database_health_check(db: AsyncSession = Depends(get_db)):
    """Check that the database answers a trivial query."""
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error("Database health check failed", exc_info=True)
        raise UnexpectedError("Database unavailable", detail=str(e)) from e
    return Envelope(data={"status": "healthy", "database": "connected"})

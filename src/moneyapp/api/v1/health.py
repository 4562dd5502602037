from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from moneyapp.config import settings
from moneyapp.db.session import get_db

router = APIRouter(tags=["health"])


@router.get("/health")
async def health():
    return {"status": "ok"}


@router.get("/health/ready")
async def health_ready(db: AsyncSession = Depends(get_db)):
    """Ready when the database answers.

    Missing provider credentials are reported but do not fail readiness;
    stored data can still be browsed, only syncs are impossible.
    """
    provider = "configured" if settings.plaid_client_id and settings.plaid_secret else "missing"
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not ready",
                "database": "disconnected",
                "provider": provider,
                "error": type(e).__name__,
            },
        )
    return {
        "status": "ready",
        "database": "connected",
        "provider": provider,
        "provider_environment": settings.plaid_env,
    }

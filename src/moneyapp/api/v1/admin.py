"""Operator endpoints, guarded by the admin key header."""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from moneyapp.api.deps import get_session_factory, get_sync_orchestrator, require_admin_key
from moneyapp.models.base import utcnow
from moneyapp.scheduler import run_full_sweep
from moneyapp.schemas.sync import SyncAllResponse
from moneyapp.services.sync import SyncOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin_key)])


@router.post(
    "/sync-all",
    response_model=SyncAllResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Start a full sync sweep",
    description="Returns immediately; the sweep runs after the response is sent.",
)
async def sync_all(
    background_tasks: BackgroundTasks,
    orchestrator: SyncOrchestrator = Depends(get_sync_orchestrator),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> SyncAllResponse:
    started_at = utcnow()
    background_tasks.add_task(run_full_sweep, orchestrator, session_factory)
    logger.info("Full sync sweep scheduled")
    return SyncAllResponse(message="Full sync sweep started", started_at=started_at)

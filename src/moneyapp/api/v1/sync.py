"""Provider connection and sync endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from moneyapp.api.deps import get_current_user, get_provider, get_sync_orchestrator
from moneyapp.db.session import get_db
from moneyapp.models.user import SyncStatus, User
from moneyapp.providers.base import AccountDataProvider
from moneyapp.schemas.sync import (
    ConnectRequest,
    ConnectResponse,
    DisconnectResponse,
    SyncStartedResponse,
    SyncStatusResponse,
)
from moneyapp.services.connection import ConnectionService
from moneyapp.services.sync import SyncOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sync", tags=["sync"])


@router.post(
    "",
    response_model=SyncStartedResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Sync the current user's accounts and transactions",
    description="""
    Queues one sync cycle against the linked institution and returns at once.

    The outcome, including provider failures, is read from `GET /sync/status`.

    - **force**: forget the last sync time and re-read the full lookback window
    - 404 if no institution is linked, 409 if a sync is already running
    """,
)
async def trigger_sync(
    background_tasks: BackgroundTasks,
    force: Annotated[bool, Query(description="Full resync")] = False,
    current_user: User = Depends(get_current_user),
    orchestrator: SyncOrchestrator = Depends(get_sync_orchestrator),
) -> SyncStartedResponse:
    await orchestrator.ensure_can_sync(current_user.id)

    if force:
        background_tasks.add_task(orchestrator.full_resync, current_user.id)
    else:
        background_tasks.add_task(orchestrator.sync_user, current_user.id)
    logger.info("Sync queued", extra={"user_id": str(current_user.id)})
    return SyncStartedResponse(message="Sync started", status=SyncStatus.SYNCING, force=force)


@router.get(
    "/status",
    response_model=SyncStatusResponse,
    summary="Connection and sync status",
)
async def get_sync_status(
    current_user: User = Depends(get_current_user),
    orchestrator: SyncOrchestrator = Depends(get_sync_orchestrator),
) -> SyncStatusResponse:
    info = await orchestrator.get_sync_status(current_user.id)
    return SyncStatusResponse.model_validate(info)


@router.post(
    "/connect",
    response_model=ConnectResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Link an institution",
    description="""
    Exchanges a Plaid Link public token for a long-lived credential and
    queues the first sync in the background.
    """,
)
async def connect(
    body: ConnectRequest,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    provider: AccountDataProvider = Depends(get_provider),
    orchestrator: SyncOrchestrator = Depends(get_sync_orchestrator),
) -> ConnectResponse:
    user = await ConnectionService(db, provider).connect(current_user, body.public_token)
    background_tasks.add_task(orchestrator.sync_user, user.id)
    return ConnectResponse(
        institution_id=user.institution_id,
        institution_name=user.institution_name,
        sync_scheduled=True,
    )


@router.delete(
    "/connection",
    response_model=DisconnectResponse,
    summary="Unlink the institution and delete synced data",
)
async def disconnect(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    provider: AccountDataProvider = Depends(get_provider),
) -> DisconnectResponse:
    removed = await ConnectionService(db, provider).disconnect(current_user)
    return DisconnectResponse(**removed)

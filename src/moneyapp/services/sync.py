"""Sync orchestrator: one provider sync cycle per user.

State machine (``User.sync_status``)::

    NEVER_SYNCED -> SYNCING -> SYNCED | ERROR | TOKEN_EXPIRED
    SYNCED / ERROR -> SYNCING (next cycle)

The ``SYNCING`` check is advisory (read, then write). Two triggers landing
at the same instant can both pass it; reconciliation is idempotent, so the
cost is a duplicate fetch.

``sync_user`` never raises: every outcome comes back as a ``SyncResult``.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Awaitable, Callable
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from moneyapp.config import settings
from moneyapp.core.errors import get_error
from moneyapp.core.exceptions import (
    ConflictError,
    MoneyAppError,
    NotConnectedError,
    ProviderAuthError,
)
from moneyapp.models.base import utcnow
from moneyapp.models.user import SyncStatus, User
from moneyapp.providers.base import AccountDataProvider
from moneyapp.repositories.transaction import TransactionRepository
from moneyapp.repositories.user import UserRepository
from moneyapp.services.budget import BudgetService
from moneyapp.services.reconciliation import ReconciliationEngine

logger = logging.getLogger(__name__)

BudgetRecompute = Callable[[AsyncSession, UUID], Awaitable[object]]


async def recompute_budgets(db: AsyncSession, user_id: UUID):
    return await BudgetService(db).sync_user_budgets(user_id)


@dataclass
class SyncResult:
    success: bool
    status: SyncStatus
    new_accounts: int = 0
    updated_accounts: int = 0
    new_transactions: int = 0
    updated_transactions: int = 0
    skipped_transactions: int = 0
    record_errors: int = 0
    error_code: str | None = None
    error: str | None = None
    window: tuple[date, date] | None = None

    @property
    def already_syncing(self) -> bool:
        return self.error_code == "SYNC_001"


@dataclass
class SyncStatusInfo:
    connected: bool
    status: SyncStatus
    last_sync_at: datetime | None = None
    transaction_count: int = 0
    institution_name: str | None = None
    error: str | None = None
    retry_allowed: bool = field(default=True)


def compute_fetch_window(
    last_sync_at: datetime | None,
    now: datetime,
    overlap_days: int | None = None,
    initial_lookback_days: int | None = None,
) -> tuple[date, date]:
    """[start, end] dates for the next transaction fetch.

    Incremental syncs re-read ``overlap_days`` before the last success to pick
    up late-posting and pending transactions; first syncs go back
    ``initial_lookback_days``.
    """
    if overlap_days is None:
        overlap_days = settings.sync_overlap_days
    if initial_lookback_days is None:
        initial_lookback_days = settings.sync_initial_lookback_days

    if last_sync_at is not None:
        start = last_sync_at - timedelta(days=overlap_days)
    else:
        start = now - timedelta(days=initial_lookback_days)
    return start.date(), now.date()


def describe_failure(exc: Exception) -> tuple[str, str]:
    """(error_code, message) safe to store and show; never the raw exception text."""
    if isinstance(exc, MoneyAppError):
        return exc.error_code, get_error(exc.error_code)["message"]
    return "SYNC_003", f"{get_error('SYNC_003')['message']} ({type(exc).__name__})"


class SyncOrchestrator:
    """Coordinates fetch -> reconcile -> budget recompute for one user at a time.

    Each call opens its own session from ``session_factory`` so it can run
    from a request handler, a background task or the scheduler alike.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        provider: AccountDataProvider,
        budget_recompute: BudgetRecompute | None = recompute_budgets,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.session_factory = session_factory
        self.provider = provider
        self.budget_recompute = budget_recompute
        self.clock = clock

    async def _set_status(self, db: AsyncSession, user_id: UUID, status: SyncStatus, **values) -> None:
        await db.execute(
            update(User)
            .where(User.id == user_id)
            .values(sync_status=status, **values)
            .execution_options(synchronize_session=False)
        )
        await db.commit()

    async def sync_user(self, user_id: UUID) -> SyncResult:
        """Run one sync cycle; always returns a result, never raises."""
        try:
            async with self.session_factory() as db:
                return await self._sync(db, user_id)
        except Exception as exc:
            # Only reached if recording the failure itself failed.
            logger.error(
                "Sync cycle aborted",
                extra={"user_id": str(user_id), "error_type": type(exc).__name__},
            )
            code, message = describe_failure(exc)
            return SyncResult(success=False, status=SyncStatus.ERROR, error_code=code, error=message)

    async def _sync(self, db: AsyncSession, user_id: UUID) -> SyncResult:
        user = await UserRepository(db).get_by_id(user_id)
        if user is None or not user.provider_access_token:
            return SyncResult(
                success=False,
                status=user.sync_status if user else SyncStatus.NEVER_SYNCED,
                error_code="SYNC_002",
                error=get_error("SYNC_002")["message"],
            )
        if user.sync_status == SyncStatus.SYNCING:
            logger.info("Sync already in progress, skipping", extra={"user_id": str(user_id)})
            return SyncResult(
                success=False,
                status=SyncStatus.SYNCING,
                error_code="SYNC_001",
                error=get_error("SYNC_001")["message"],
            )

        access_token = user.provider_access_token
        now = self.clock()
        window = compute_fetch_window(user.last_sync_at, now)
        await self._set_status(db, user_id, SyncStatus.SYNCING)
        logger.info(
            "Sync started",
            extra={"user_id": str(user_id), "start_date": str(window[0]), "end_date": str(window[1])},
        )

        try:
            accounts = await self.provider.get_accounts(access_token)
            transactions = await self.provider.get_transactions(access_token, *window)
            reconciled = await ReconciliationEngine(db).reconcile(
                user_id, accounts, transactions, now=now
            )
            await db.commit()
        except Exception as exc:
            await db.rollback()
            status = (
                SyncStatus.TOKEN_EXPIRED if isinstance(exc, ProviderAuthError) else SyncStatus.ERROR
            )
            code, message = describe_failure(exc)
            await self._set_status(db, user_id, status, last_sync_error=message)
            log_extra = {"user_id": str(user_id), "status": status.value, "error_code": code}
            if settings.debug:
                logger.exception("Sync failed", extra=log_extra)
            else:
                logger.error("Sync failed", extra=log_extra)
            return SyncResult(
                success=False, status=status, error_code=code, error=message, window=window
            )

        await self._set_status(db, user_id, SyncStatus.SYNCED, last_sync_at=now, last_sync_error=None)

        if self.budget_recompute is not None:
            try:
                await self.budget_recompute(db, user_id)
            except Exception as exc:
                logger.error(
                    "Budget recompute after sync failed",
                    extra={"user_id": str(user_id), "error_type": type(exc).__name__},
                )

        logger.info(
            "Sync completed",
            extra={"user_id": str(user_id), **reconciled.as_counts(), "errors": len(reconciled.errors)},
        )
        return SyncResult(
            success=True,
            status=SyncStatus.SYNCED,
            new_accounts=reconciled.new_accounts,
            updated_accounts=reconciled.updated_accounts,
            new_transactions=reconciled.new_transactions,
            updated_transactions=reconciled.updated_transactions,
            skipped_transactions=reconciled.skipped_transactions,
            record_errors=len(reconciled.errors),
            window=window,
        )

    async def ensure_can_sync(self, user_id: UUID) -> None:
        """Raise if a sync for ``user_id`` cannot start right now.

        Same advisory check ``sync_user`` makes, for callers that queue the
        cycle and need to reject the request up front.

        Raises:
            NotConnectedError: No provider link (SYNC_002)
            ConflictError: A sync is already running (SYNC_001)
        """
        async with self.session_factory() as db:
            user = await UserRepository(db).get_by_id(user_id)
            if user is None or not user.provider_access_token:
                raise NotConnectedError("SYNC_002", details={"user_id": str(user_id)})
            if user.sync_status == SyncStatus.SYNCING:
                raise ConflictError("SYNC_001", details={"user_id": str(user_id)})

    async def full_resync(self, user_id: UUID) -> SyncResult:
        """Forget the last sync time so the next cycle uses the initial lookback."""
        async with self.session_factory() as db:
            status = await UserRepository(db).get_sync_status(user_id)
            if status is not None and status != SyncStatus.SYNCING:
                await db.execute(
                    update(User)
                    .where(User.id == user_id)
                    .values(last_sync_at=None)
                    .execution_options(synchronize_session=False)
                )
                await db.commit()
                logger.info("Full resync requested", extra={"user_id": str(user_id)})
        return await self.sync_user(user_id)

    async def get_sync_status(self, user_id: UUID) -> SyncStatusInfo:
        async with self.session_factory() as db:
            user = await UserRepository(db).get_by_id(user_id)
            if user is None or not user.provider_item_id:
                return SyncStatusInfo(connected=False, status=SyncStatus.NEVER_SYNCED)
            count = await TransactionRepository(db).count_by_user(user_id)
            return SyncStatusInfo(
                connected=True,
                status=user.sync_status,
                last_sync_at=user.last_sync_at,
                transaction_count=count,
                institution_name=user.institution_name,
                error=user.last_sync_error,
                retry_allowed=user.sync_status != SyncStatus.TOKEN_EXPIRED,
            )

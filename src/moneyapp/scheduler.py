"""Periodic sync sweeps and the ``moneyapp-sync`` command.

The orchestrator owns a single user's cycle; this module only picks
eligible users and paces calls to stay under the provider's rate limit.
The inter-user delay is throttling, not a correctness requirement.

Usage::

    moneyapp-sync full
    moneyapp-sync hourly
    moneyapp-sync user <user-id> [--force]
"""

import argparse
import asyncio
import logging
import sys
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Awaitable, Callable
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from moneyapp.config import settings
from moneyapp.core.logging import setup_logging
from moneyapp.models.base import utcnow
from moneyapp.models.user import SyncStatus
from moneyapp.repositories.user import UserRepository
from moneyapp.services.sync import SyncOrchestrator

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


@dataclass
class SweepSummary:
    kind: str
    selected: int = 0
    succeeded: int = 0
    failed: int = 0
    token_expired: int = 0
    skipped: int = 0
    failures: list[UUID] = field(default_factory=list)


async def _run_sweep(
    kind: str,
    user_ids: list[UUID],
    orchestrator: SyncOrchestrator,
    delay: float,
    sleep: Sleep,
) -> SweepSummary:
    summary = SweepSummary(kind=kind, selected=len(user_ids))
    logger.info("Sync sweep started", extra={"sweep": kind, "users": len(user_ids)})

    for i, user_id in enumerate(user_ids):
        result = await orchestrator.sync_user(user_id)
        if result.success:
            summary.succeeded += 1
        elif result.already_syncing:
            summary.skipped += 1
        else:
            summary.failed += 1
            summary.failures.append(user_id)
            if result.status == SyncStatus.TOKEN_EXPIRED:
                summary.token_expired += 1
        if delay and i < len(user_ids) - 1:
            await sleep(delay)

    logger.info(
        "Sync sweep finished",
        extra={
            "sweep": kind,
            "succeeded": summary.succeeded,
            "failed": summary.failed,
            "token_expired": summary.token_expired,
            "skipped": summary.skipped,
        },
    )
    return summary


async def run_full_sweep(
    orchestrator: SyncOrchestrator,
    session_factory: async_sessionmaker[AsyncSession],
    now: datetime | None = None,
    delay: float | None = None,
    sleep: Sleep = asyncio.sleep,
) -> SweepSummary:
    """Sync every connected user that has never synced or has gone stale."""
    now = now or utcnow()
    stale_before = now - timedelta(hours=settings.sync_full_sweep_stale_hours)
    async with session_factory() as db:
        user_ids = await UserRepository(db).get_due_for_full_sweep(stale_before)
    return await _run_sweep(
        "full",
        user_ids,
        orchestrator,
        settings.sync_full_sweep_delay_seconds if delay is None else delay,
        sleep,
    )


async def run_hourly_sweep(
    orchestrator: SyncOrchestrator,
    session_factory: async_sessionmaker[AsyncSession],
    now: datetime | None = None,
    delay: float | None = None,
    sleep: Sleep = asyncio.sleep,
) -> SweepSummary:
    """Lightweight refresh for users active recently whose data is over an hour old."""
    now = now or utcnow()
    synced_before = now - timedelta(hours=settings.sync_hourly_stale_hours)
    active_since = now - timedelta(hours=settings.sync_hourly_active_window_hours)
    async with session_factory() as db:
        user_ids = await UserRepository(db).get_due_for_hourly_sweep(synced_before, active_since)
    return await _run_sweep(
        "hourly",
        user_ids,
        orchestrator,
        settings.sync_hourly_delay_seconds if delay is None else delay,
        sleep,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="moneyapp-sync",
        description="Run provider sync sweeps",
    )
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("full", help="Sync all connected users that are due")
    sub.add_parser("hourly", help="Refresh recently active users")
    user_parser = sub.add_parser("user", help="Sync a single user")
    user_parser.add_argument("user_id", type=UUID)
    user_parser.add_argument(
        "--force", action="store_true", help="Full resync (ignore the last sync time)"
    )
    parser.add_argument("--log-level", default=settings.log_level)
    return parser


async def _main(args: argparse.Namespace) -> int:
    from moneyapp.db.session import AsyncSessionLocal, async_engine
    from moneyapp.providers.plaid import PlaidClient

    provider = PlaidClient()
    orchestrator = SyncOrchestrator(AsyncSessionLocal, provider)
    try:
        if args.command == "full":
            summary = await run_full_sweep(orchestrator, AsyncSessionLocal)
            return 1 if summary.failed else 0
        if args.command == "hourly":
            summary = await run_hourly_sweep(orchestrator, AsyncSessionLocal)
            return 1 if summary.failed else 0

        if args.force:
            result = await orchestrator.full_resync(args.user_id)
        else:
            result = await orchestrator.sync_user(args.user_id)
        if result.success:
            print(
                f"Synced: {result.new_accounts} new / {result.updated_accounts} updated accounts, "
                f"{result.new_transactions} new / {result.updated_transactions} updated transactions"
            )
            return 0
        print(f"Sync failed ({result.status.value}): {result.error}", file=sys.stderr)
        return 1
    finally:
        await provider.close()
        await async_engine.dispose()


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level, json_output=settings.log_json)
    return asyncio.run(_main(args))


if __name__ == "__main__":
    sys.exit(main())

"""Integration tests for the per-user sync cycle."""

from datetime import date, datetime, timedelta, timezone

import pytest
from sqlalchemy import update

from moneyapp.core.errors import get_error
from moneyapp.core.exceptions import (
    ConflictError,
    NotConnectedError,
    ProviderAuthError,
    ProviderError,
)
from moneyapp.models.user import SyncStatus, User
from moneyapp.repositories.transaction import TransactionRepository
from moneyapp.repositories.user import UserRepository
from moneyapp.services.sync import SyncOrchestrator

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


async def load_user(session_factory, user_id) -> User:
    async with session_factory() as db:
        return await UserRepository(db).get_by_id(user_id)


@pytest.fixture
def fixed_orchestrator(session_factory, fake_provider):
    clock = {"now": NOW}
    orchestrator = SyncOrchestrator(session_factory, fake_provider, clock=lambda: clock["now"])
    orchestrator.test_clock = clock
    return orchestrator


async def test_successful_first_sync(
    fixed_orchestrator, fake_provider, session_factory, connected_user, make_account, make_transaction
):
    fake_provider.accounts = [make_account()]
    fake_provider.transactions = [make_transaction()]

    result = await fixed_orchestrator.sync_user(connected_user.id)

    assert result.success is True
    assert result.status == SyncStatus.SYNCED
    assert result.new_accounts == 1
    assert result.new_transactions == 1
    assert result.window == (date(2023, 6, 16), date(2024, 6, 15))
    assert fake_provider.transaction_windows == [(date(2023, 6, 16), date(2024, 6, 15))]

    user = await load_user(session_factory, connected_user.id)
    assert user.sync_status == SyncStatus.SYNCED
    assert user.last_sync_at == NOW
    assert user.last_sync_error is None

    status = await fixed_orchestrator.get_sync_status(connected_user.id)
    assert status.connected is True
    assert status.status == SyncStatus.SYNCED
    assert status.transaction_count == 1
    assert status.institution_name == "First Platypus Bank"


async def test_second_sync_is_incremental(
    fixed_orchestrator, fake_provider, connected_user, make_account, make_transaction
):
    fake_provider.accounts = [make_account()]
    fake_provider.transactions = [make_transaction()]
    await fixed_orchestrator.sync_user(connected_user.id)

    fixed_orchestrator.test_clock["now"] = NOW + timedelta(hours=2)
    result = await fixed_orchestrator.sync_user(connected_user.id)

    assert result.success is True
    assert result.new_transactions == 0
    assert result.updated_transactions == 0
    assert fake_provider.transaction_windows[-1] == (date(2024, 6, 14), date(2024, 6, 15))


async def test_full_resync_uses_initial_lookback(
    fixed_orchestrator, fake_provider, connected_user, make_account
):
    fake_provider.accounts = [make_account()]
    await fixed_orchestrator.sync_user(connected_user.id)

    fixed_orchestrator.test_clock["now"] = NOW + timedelta(days=3)
    result = await fixed_orchestrator.full_resync(connected_user.id)

    assert result.success is True
    assert fake_provider.transaction_windows[-1] == (date(2023, 6, 19), date(2024, 6, 18))


async def test_expired_credential_marks_token_expired(
    fixed_orchestrator, fake_provider, session_factory, connected_user
):
    fake_provider.error = ProviderAuthError("PROV_002", provider_code="ITEM_LOGIN_REQUIRED")

    result = await fixed_orchestrator.sync_user(connected_user.id)

    assert result.success is False
    assert result.status == SyncStatus.TOKEN_EXPIRED
    assert result.error_code == "PROV_002"

    user = await load_user(session_factory, connected_user.id)
    assert user.sync_status == SyncStatus.TOKEN_EXPIRED
    assert user.last_sync_error == get_error("PROV_002")["message"]
    assert user.last_sync_at is None

    status = await fixed_orchestrator.get_sync_status(connected_user.id)
    assert status.retry_allowed is False


async def test_transient_failure_marks_error_and_keeps_data(
    fixed_orchestrator, fake_provider, session_factory, connected_user, make_account, make_transaction
):
    fake_provider.accounts = [make_account()]
    fake_provider.transactions = [make_transaction()]
    await fixed_orchestrator.sync_user(connected_user.id)

    fake_provider.error = ProviderError("PROV_001", provider_code="RATE_LIMIT_EXCEEDED")
    fixed_orchestrator.test_clock["now"] = NOW + timedelta(hours=3)
    result = await fixed_orchestrator.sync_user(connected_user.id)

    assert result.status == SyncStatus.ERROR
    assert result.error_code == "PROV_001"
    user = await load_user(session_factory, connected_user.id)
    assert user.sync_status == SyncStatus.ERROR
    # The last successful sync time is kept so the next window still overlaps it.
    assert user.last_sync_at == NOW

    async with session_factory() as db:
        assert await TransactionRepository(db).count_by_user(connected_user.id) == 1


async def test_error_state_recovers_on_next_cycle(
    fixed_orchestrator, fake_provider, session_factory, connected_user
):
    fake_provider.error = ProviderError("PROV_001")
    await fixed_orchestrator.sync_user(connected_user.id)

    fake_provider.error = None
    result = await fixed_orchestrator.sync_user(connected_user.id)

    assert result.success is True
    user = await load_user(session_factory, connected_user.id)
    assert user.sync_status == SyncStatus.SYNCED
    assert user.last_sync_error is None


async def test_unexpected_failure_hides_exception_text(
    fixed_orchestrator, fake_provider, session_factory, connected_user
):
    fake_provider.error = RuntimeError("db password=hunter2")

    result = await fixed_orchestrator.sync_user(connected_user.id)

    assert result.status == SyncStatus.ERROR
    assert result.error_code == "SYNC_003"
    assert "RuntimeError" in result.error
    assert "hunter2" not in result.error
    user = await load_user(session_factory, connected_user.id)
    assert "hunter2" not in user.last_sync_error


async def test_already_syncing_is_skipped(
    fixed_orchestrator, fake_provider, session_factory, connected_user
):
    async with session_factory() as db:
        await db.execute(
            update(User).where(User.id == connected_user.id).values(sync_status=SyncStatus.SYNCING)
        )
        await db.commit()

    result = await fixed_orchestrator.sync_user(connected_user.id)

    assert result.already_syncing is True
    assert result.error_code == "SYNC_001"
    assert fake_provider.transaction_windows == []


async def test_not_connected_user(fixed_orchestrator, fake_provider, test_user):
    result = await fixed_orchestrator.sync_user(test_user.id)

    assert result.success is False
    assert result.error_code == "SYNC_002"
    assert fake_provider.transaction_windows == []

    status = await fixed_orchestrator.get_sync_status(test_user.id)
    assert status.connected is False


async def test_ensure_can_sync_rejects_unlinked_and_running_users(
    fixed_orchestrator, session_factory, connected_user, test_user
):
    await fixed_orchestrator.ensure_can_sync(connected_user.id)

    with pytest.raises(NotConnectedError) as exc_info:
        await fixed_orchestrator.ensure_can_sync(test_user.id)
    assert exc_info.value.error_code == "SYNC_002"

    async with session_factory() as db:
        await db.execute(
            update(User).where(User.id == connected_user.id).values(sync_status=SyncStatus.SYNCING)
        )
        await db.commit()

    with pytest.raises(ConflictError) as exc_info:
        await fixed_orchestrator.ensure_can_sync(connected_user.id)
    assert exc_info.value.error_code == "SYNC_001"


async def test_budget_recompute_failure_does_not_fail_sync(
    session_factory, fake_provider, connected_user, make_account
):
    async def broken_recompute(db, user_id):
        raise RuntimeError("budget maths failed")

    fake_provider.accounts = [make_account()]
    orchestrator = SyncOrchestrator(
        session_factory, fake_provider, budget_recompute=broken_recompute, clock=lambda: NOW
    )

    result = await orchestrator.sync_user(connected_user.id)

    assert result.success is True
    assert result.status == SyncStatus.SYNCED


async def test_budget_recompute_runs_after_sync(
    session_factory, fake_provider, connected_user, make_account
):
    calls = []

    async def recompute(db, user_id):
        calls.append(user_id)

    fake_provider.accounts = [make_account()]
    orchestrator = SyncOrchestrator(
        session_factory, fake_provider, budget_recompute=recompute, clock=lambda: NOW
    )

    await orchestrator.sync_user(connected_user.id)

    assert calls == [connected_user.id]

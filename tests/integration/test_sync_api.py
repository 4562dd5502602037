"""API tests for linking, syncing and unlinking an institution."""

from sqlalchemy import update

from moneyapp.core.exceptions import ProviderAuthError
from moneyapp.models.user import SyncStatus, User
from moneyapp.repositories.transaction import TransactionRepository
from moneyapp.repositories.user import UserRepository


async def test_requires_authentication(client):
    response = await client.post("/api/v1/sync")
    assert response.status_code in (401, 403)


async def test_sync_not_connected_returns_404(client, auth_headers):
    response = await client.post("/api/v1/sync", headers=auth_headers)

    assert response.status_code == 404
    assert response.json()["error_code"] == "SYNC_002"


async def test_sync_connected_user(
    client, connected_user, auth_headers_for, fake_provider, make_account, make_transaction
):
    fake_provider.accounts = [make_account()]
    fake_provider.transactions = [make_transaction()]
    headers = auth_headers_for(connected_user)

    response = await client.post("/api/v1/sync", headers=headers)

    assert response.status_code == 202
    assert response.json() == {"message": "Sync started", "status": "SYNCING", "force": False}

    # The queued cycle has run by the time the test client returns.
    status = await client.get("/api/v1/sync/status", headers=headers)
    assert status.status_code == 200
    assert status.json()["status"] == "SYNCED"
    assert status.json()["transaction_count"] == 1
    assert status.json()["connected"] is True
    assert status.json()["last_sync_at"] is not None


async def test_provider_failure_is_reported_through_status(
    client, connected_user, auth_headers_for, fake_provider
):
    fake_provider.error = ProviderAuthError("PROV_002")
    headers = auth_headers_for(connected_user)

    response = await client.post("/api/v1/sync", headers=headers)

    assert response.status_code == 202
    assert response.json()["status"] == "SYNCING"

    status = await client.get("/api/v1/sync/status", headers=headers)
    data = status.json()
    assert data["status"] == "TOKEN_EXPIRED"
    assert data["error"] == "Provider access credential invalid or expired"
    assert data["retry_allowed"] is False


async def test_sync_already_running_returns_409(
    client, connected_user, auth_headers_for, session_factory
):
    async with session_factory() as db:
        await db.execute(
            update(User).where(User.id == connected_user.id).values(sync_status=SyncStatus.SYNCING)
        )
        await db.commit()

    response = await client.post("/api/v1/sync", headers=auth_headers_for(connected_user))

    assert response.status_code == 409
    assert response.json()["error_code"] == "SYNC_001"


async def test_forced_sync_rereads_full_window(
    client, connected_user, auth_headers_for, fake_provider, make_account
):
    fake_provider.accounts = [make_account()]
    headers = auth_headers_for(connected_user)
    await client.post("/api/v1/sync", headers=headers)

    response = await client.post("/api/v1/sync", params={"force": "true"}, headers=headers)

    assert response.status_code == 202
    assert response.json()["force"] is True
    first, forced = fake_provider.transaction_windows
    assert forced[0] == first[0]


async def test_connect_stores_link_and_runs_first_sync(
    client, test_user, auth_headers, fake_provider, session_factory, make_account, make_transaction
):
    fake_provider.accounts = [make_account()]
    fake_provider.transactions = [make_transaction()]

    response = await client.post(
        "/api/v1/sync/connect", json={"public_token": "public-sandbox-abc"}, headers=auth_headers
    )

    assert response.status_code == 201
    data = response.json()
    assert data["connected"] is True
    assert data["institution_name"] == "First Platypus Bank"
    assert data["sync_scheduled"] is True
    assert fake_provider.exchanged == ["public-sandbox-abc"]

    async with session_factory() as db:
        user = await UserRepository(db).get_by_id(test_user.id)
        assert user.provider_item_id == "item-1"
        assert user.provider_access_token == "access-sandbox-token-1"
        # The background sync has run by the time the test client returns.
        assert user.sync_status == SyncStatus.SYNCED
        assert await TransactionRepository(db).count_by_user(test_user.id) == 1


async def test_connect_requires_public_token(client, auth_headers):
    response = await client.post("/api/v1/sync/connect", json={}, headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["error_code"] == "VAL_001"


async def test_disconnect_removes_data(
    client, connected_user, auth_headers_for, fake_provider, seed, make_transaction
):
    await seed(connected_user, [make_transaction(), make_transaction("tx_2")])

    response = await client.delete("/api/v1/sync/connection", headers=auth_headers_for(connected_user))

    assert response.status_code == 200
    assert response.json() == {"accounts_removed": 1, "transactions_removed": 2}
    assert fake_provider.removed == ["access-sandbox-existing"]

    status = await client.get("/api/v1/sync/status", headers=auth_headers_for(connected_user))
    assert status.json()["connected"] is False


async def test_disconnect_when_not_connected(client, auth_headers):
    response = await client.delete("/api/v1/sync/connection", headers=auth_headers)

    assert response.status_code == 404
    assert response.json()["error_code"] == "SYNC_002"


async def test_list_accounts(client, connected_user, auth_headers_for, seed, make_account):
    await seed(connected_user, [], accounts=[make_account(), make_account("acc_2", balance=2500)])

    response = await client.get("/api/v1/accounts", headers=auth_headers_for(connected_user))

    assert response.status_code == 200
    data = response.json()
    assert len(data["accounts"]) == 2
    assert data["total_balance"] == 12500
    assert data["money"]["minor_unit"] == 2

from moneyapp.config import settings
from moneyapp.repositories.user import UserRepository
from moneyapp.models.user import SyncStatus


async def test_sync_all_closed_without_configured_key(client, monkeypatch):
    monkeypatch.setattr(settings, "admin_api_key", None)

    response = await client.post("/api/v1/admin/sync-all", headers={"X-Admin-Key": "anything"})

    assert response.status_code == 403
    assert response.json()["error_code"] == "AUTH_001"


async def test_sync_all_rejects_wrong_key(client, monkeypatch):
    monkeypatch.setattr(settings, "admin_api_key", "s3cret")

    response = await client.post("/api/v1/admin/sync-all", headers={"X-Admin-Key": "wrong"})

    assert response.status_code == 403


async def test_sync_all_runs_sweep(
    client, monkeypatch, connected_user, fake_provider, session_factory, make_account
):
    monkeypatch.setattr(settings, "admin_api_key", "s3cret")
    monkeypatch.setattr(settings, "sync_full_sweep_delay_seconds", 0)
    fake_provider.accounts = [make_account()]

    response = await client.post("/api/v1/admin/sync-all", headers={"X-Admin-Key": "s3cret"})

    assert response.status_code == 202
    assert response.json()["message"] == "Full sync sweep started"
    async with session_factory() as db:
        user = await UserRepository(db).get_by_id(connected_user.id)
        assert user.sync_status == SyncStatus.SYNCED

async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


async def test_health_ready(client):
    response = await client.get("/health/ready")
    assert response.status_code == 200
    assert response.json()["database"] == "connected"


async def test_responses_carry_request_id(client):
    response = await client.get("/health")
    assert response.headers.get("X-Request-ID")


async def test_health_ready_reports_provider_configuration(client, monkeypatch):
    from moneyapp.config import settings

    monkeypatch.setattr(settings, "plaid_client_id", "")
    response = await client.get("/health/ready")
    assert response.status_code == 200
    assert response.json()["provider"] == "missing"

    monkeypatch.setattr(settings, "plaid_client_id", "client-id")
    monkeypatch.setattr(settings, "plaid_secret", "secret")
    response = await client.get("/health/ready")
    assert response.json()["provider"] == "configured"
    assert response.json()["provider_environment"] == settings.plaid_env

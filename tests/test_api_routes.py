import pytest
from unittest.mock import AsyncMock, patch
from app.core import config
from app.models.outbox import OutboxEvent
from app.models.user import User


class TestUserRoutes:
    @pytest.mark.asyncio
    async def test_create_user_returns_201(self, client):
        response = await client.post(
            "/api/v1/users/",
            params={"actor_id": "admin-1"},
            json={"name": "Ada", "email": "ada@example.com"},
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["email"] == "ada@example.com"
        assert data["role"] == "member"
        assert data["created_by"] == "admin-1"
        assert await OutboxEvent.filter(event_type="user.created").count() == 1

    @pytest.mark.asyncio
    async def test_duplicate_email_returns_400(self, client):
        body = {"name": "Ada", "email": "ada@example.com"}
        await client.post("/api/v1/users/", json=body)

        response = await client.post("/api/v1/users/", json=body)

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Email already exists"

    @pytest.mark.asyncio
    async def test_invalid_body_returns_422(self, client):
        response = await client.post("/api/v1/users/", json={"name": "Ada", "email": "not-an-email"})

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "validation_error"

    @pytest.mark.asyncio
    async def test_delete_then_list(self, client):
        created = await client.post("/api/v1/users/", json={"name": "Ada", "email": "ada@example.com"})
        user_id = created.json()["data"]["id"]

        deleted = await client.delete(f"/api/v1/users/{user_id}")
        assert deleted.status_code == 200
        assert deleted.json()["data"]["deleted_at"] is not None

        listed = await client.get("/api/v1/users/")
        assert listed.json()["data"] == []
        listed = await client.get("/api/v1/users/", params={"include_deleted": "true"})
        assert len(listed.json()["data"]) == 1

    @pytest.mark.asyncio
    async def test_update_unknown_user_returns_404(self, client):
        response = await client.patch(
            "/api/v1/users/00000000-0000-0000-0000-000000000000", json={"name": "Ghost"}
        )
        assert response.status_code == 404
        assert response.json()["error"]["message"] == "User not found"

    @pytest.mark.asyncio
    async def test_delete_unknown_user_returns_404(self, client):
        response = await client.delete("/api/v1/users/00000000-0000-0000-0000-000000000000")

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_update_value_error_returns_400(self, client):
        created = await client.post("/api/v1/users/", json={"name": "Ada", "email": "ada@example.com"})
        user_id = created.json()["data"]["id"]

        with patch("app.api.v1.users.update_user", AsyncMock(side_effect=ValueError("Invalid role change"))):
            response = await client.patch(f"/api/v1/users/{user_id}", json={"name": "Ada L."})

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Invalid role change"


class TestWeeklyDigestRoute:
    URL = "/api/v1/cron/weekly-digest"

    @pytest.fixture(autouse=True)
    def no_secret(self):
        with patch.object(config, "CRON_SECRET", ""), patch.object(config, "ENVIRONMENT", "development"):
            yield

    @pytest.mark.asyncio
    async def test_creates_events_for_active_users(self, client):
        await User.create(name="Ada", email="ada@example.com")
        await User.create(name="Ben", email="ben@example.com")

        response = await client.post(self.URL)

        assert response.status_code == 200
        assert response.json()["data"] == {
            "message": "Weekly digest events created successfully",
            "userCount": 2,
        }

    @pytest.mark.asyncio
    async def test_idempotency_key_header_replays(self, client):
        await User.create(name="Ada", email="ada@example.com")
        headers = {"Idempotency-Key": "2026-W07"}

        first = await client.post(self.URL, headers=headers)
        second = await client.post(self.URL, headers=headers)

        assert first.json()["data"]["idempotencyKey"] == "2026-W07"
        assert second.status_code == 200
        assert second.json()["data"]["idempotent"] is True
        assert second.json()["data"]["status"] == "completed"
        assert await OutboxEvent.filter(event_type="digest.weekly").count() == 1

    @pytest.mark.asyncio
    async def test_requires_secret_when_configured(self, client):
        with patch.object(config, "CRON_SECRET", "test-secret"):
            missing = await client.post(self.URL)
            wrong = await client.post(self.URL, headers={"Authorization": "Bearer nope"})
            ok = await client.post(self.URL, headers={"Authorization": "Bearer test-secret"})

        assert missing.status_code == 401
        assert missing.json()["error"]["message"] == "Unauthorized"
        assert wrong.status_code == 401
        assert ok.status_code == 200

    @pytest.mark.asyncio
    async def test_production_without_secret_is_misconfigured(self, client):
        with patch.object(config, "ENVIRONMENT", "production"):
            response = await client.post(self.URL)

        assert response.status_code == 500
        assert response.json()["error"]["message"] == "Server configuration error"

    @pytest.mark.asyncio
    async def test_storage_failure_returns_500(self, client):
        with patch('app.api.v1.cron.create_weekly_digest', new_callable=AsyncMock) as mock_digest:
            mock_digest.side_effect = RuntimeError("database unavailable")
            response = await client.post(self.URL)

        assert response.status_code == 500
        assert response.json()["error"]["message"] == "Internal server error"

    @pytest.mark.asyncio
    async def test_get_is_not_allowed(self, client):
        response = await client.get(self.URL)
        assert response.status_code == 405

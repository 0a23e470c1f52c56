import pytest
from app.core.config import PROJECT_NAME


@pytest.mark.asyncio
async def test_health_endpoint(client):
    """Test health endpoint"""
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "app_name": PROJECT_NAME}

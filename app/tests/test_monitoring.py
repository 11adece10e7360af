import pytest


@pytest.mark.integration
class TestMonitoring:

    @pytest.mark.asyncio
    async def test_health_reports_missing_redis(self, test_client, app_settings):
        response = await test_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["version"] == app_settings.API_VERSION
        assert body["dependencies"]["redis"] == "disconnected"

    @pytest.mark.asyncio
    async def test_readiness(self, test_client, fake_redis):
        assert (await test_client.get("/readiness")).json()["ready"] is True

    @pytest.mark.asyncio
    async def test_not_ready_without_redis(self, test_client):
        response = await test_client.get("/readiness")

        assert response.status_code == 503
        assert response.json()["ready"] is False

    @pytest.mark.asyncio
    async def test_metrics_label_route_templates(self, test_client, buyer, create_job_factory):
        job = await create_job_factory(buyer)
        await test_client.get(f"/jobs/{job['id']}", headers=buyer["headers"])

        response = await test_client.get("/metrics")

        assert response.status_code == 200
        assert 'endpoint="/jobs/{job_id}"' in response.text
        assert f'endpoint="/jobs/{job["id"]}"' not in response.text
        assert "job_transitions_total" in response.text

    @pytest.mark.asyncio
    async def test_root(self, test_client, app_settings):
        response = await test_client.get("/")

        assert response.json()["message"] == app_settings.API_TITLE

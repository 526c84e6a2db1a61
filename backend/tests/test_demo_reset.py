"""
Tests for demo reset endpoint. Demo reset is only available when DEMO_MODE=true.
"""
from fastapi.testclient import TestClient

from main import app
import store


client = TestClient(app)


class TestDemoResetEndpoint:
    """Test POST /demo/reset is gated by DEMO_MODE and restores the seed clients."""

    def test_demo_status_reflects_env(self, monkeypatch):
        monkeypatch.setenv("DEMO_MODE", "TRUE")
        assert client.get("/demo/status").json() == {"demoMode": True}
        monkeypatch.setenv("DEMO_MODE", "no")
        assert client.get("/demo/status").json() == {"demoMode": False}

    def test_demo_reset_endpoint_disabled_when_demo_mode_false(self, monkeypatch):
        """When DEMO_MODE is false, POST /demo/reset returns 404."""
        monkeypatch.setenv("DEMO_MODE", "false")

        resp = client.post("/demo/reset")
        assert resp.status_code == 404
        assert "detail" in resp.json()

    def test_demo_reset_endpoint_disabled_when_demo_mode_unset(self, monkeypatch):
        """When DEMO_MODE is unset, POST /demo/reset returns 404."""
        monkeypatch.delenv("DEMO_MODE", raising=False)

        resp = client.post("/demo/reset")
        assert resp.status_code == 404

    def test_demo_reset_restores_seed(self, monkeypatch, seeded_data):
        """When DEMO_MODE=true, reset drops added clients and reverts edits."""
        monkeypatch.setenv("DEMO_MODE", "true")

        created = client.post(
            "/clients",
            json={"name": "Temp", "phoneDigits": "0000", "enrollmentMonth": "2025-05", "enrollmentDay": 1},
        ).json()
        client.patch("/clients/c-ana/months/2025-03", json={"status": "CLOSED_CONTRACT"})
        assert store.get_client(created["id"]) is not None

        reset_resp = client.post("/demo/reset")
        assert reset_resp.status_code == 200
        assert reset_resp.json() == {"status": "ok"}

        assert store.get_client(created["id"]) is None
        ana = client.get("/clients/c-ana").json()
        assert ana["inactive"] is False
        assert "2025-03" not in ana["statusByMonth"]
        assert len(store.list_clients()) == 5

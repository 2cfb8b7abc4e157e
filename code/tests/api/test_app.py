"""Tests for app startup and shutdown wiring."""

import json

import pytest
from fastapi.testclient import TestClient

from meterline.api import deps
from meterline.api.app import create_app
from meterline.config import get_settings


@pytest.fixture
def configured_env(tmp_path, monkeypatch):
    tables = tmp_path / "tables.json"
    tables.write_text(json.dumps({
        "buffDefinitions": [{"baseId": 7, "name": "Swift", "spriteFile": "swift.png"}],
        "classDefaultBuffIds": {"wind_knight": [7]},
    }))
    monkeypatch.setenv("TABLES__PATH", str(tables))
    monkeypatch.setenv("BUFFS__MONITORED_IDS", "[3]")
    monkeypatch.setenv("API_KEY", "")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
    deps.set_dependencies()


class TestLifespan:
    def test_startup_wires_services(self, configured_env):
        with TestClient(create_app()) as client:
            resp = client.get("/health")
            assert resp.status_code == 200
            assert resp.json()["buffs"] == "ok"
            assert resp.json()["live"] == "waiting"

            service = deps.get_buff_service()
            assert service.running is True
            assert service.profile.monitored_buff_ids == [3, 7]
            assert deps.get_tables().buff_name(7) == "Swift"

        assert service.running is False

    def test_end_to_end_push_and_read(self, configured_env):
        with TestClient(create_app()) as client:
            resp = client.post("/api/live-data", json={
                "elapsedMs": 10000,
                "totalDmg": 5000,
                "entities": [{"uid": 1, "name": "Aria", "damage": {"total": 5000}}],
            })
            assert resp.status_code == 204

            rows = client.get("/api/players").json()
            assert rows[0]["dps"] == pytest.approx(500)

    def test_dependencies_unset_raise(self):
        deps.set_dependencies()
        with pytest.raises(RuntimeError, match="not initialized"):
            deps.get_live_store()
        with pytest.raises(RuntimeError, match="not loaded"):
            deps.get_tables()

"""Shared fixtures for API route tests."""

from unittest.mock import MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from meterline.api.app import create_app
from meterline.api.deps import get_buff_service, get_live_store, get_tables, verify_api_key
from meterline.buffs.profiles import MonitorProfile
from meterline.buffs.service import BuffTimerService
from meterline.live.store import LiveStore
from meterline.tables import StaticTables

LIVE_PAYLOAD = {
    "elapsedMs": 60000,
    "totalDmg": 200000,
    "totalHeal": 1000,
    "totalDmgBossOnly": 0,
    "sceneName": "Dragon Lair",
    "entities": [
        {
            "uid": 1,
            "name": "Aria",
            "damage": {"total": 120000, "hits": 100, "critHits": 40, "critTotal": 80000},
            "dmgSkills": {
                "1001": {"totalValue": 70000, "hits": 60},
                "1002": {"totalValue": 30000, "hits": 30},
                "1003": {"totalValue": 20000, "hits": 10},
            },
            "dmgPerTarget": [
                {"targetUid": 900, "targetName": "Golem", "totalValue": 120000},
            ],
        },
        {
            "uid": 2,
            "name": "Bram",
            "damage": {"total": 80000, "hits": 40},
            "healing": {"total": 1000, "hits": 5},
        },
    ],
}


@pytest.fixture
def live_payload():
    return LIVE_PAYLOAD


@pytest.fixture
def tables():
    return StaticTables.model_validate({
        "skillNames": {"1001": "Gale Slash", "1002": "Gale Echo", "1003": "Tempest"},
        "recountGroups": [{"recountId": 1, "recountName": "Gale", "skillIds": [1001, 1002]}],
        "buffDefinitions": [{"baseId": 7, "name": "Swift", "spriteFile": "swift.png"}],
    })


@pytest.fixture
def live_store():
    return LiveStore()


@pytest.fixture
def buff_service(tables):
    settings = MagicMock()
    settings.buffs.tick_interval_ms = 16
    return BuffTimerService(
        settings, MonitorProfile(monitor_all_buffs=True), tables, clock=lambda: 2000,
    )


@pytest.fixture
async def client(live_store, buff_service, tables):
    """Test client with DI overrides for the engine state and auth."""
    app = create_app()
    app.dependency_overrides[get_live_store] = lambda: live_store
    app.dependency_overrides[get_buff_service] = lambda: buff_service
    app.dependency_overrides[get_tables] = lambda: tables
    app.dependency_overrides[verify_api_key] = lambda: None
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac
    app.dependency_overrides.clear()

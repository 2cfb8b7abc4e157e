"""Live and historical row derivation endpoints."""

import logging
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query

from meterline.api.deps import get_live_store, get_tables
from meterline.config import get_settings
from meterline.live.models import (
    HeaderInfo,
    HistoricalEncounter,
    PlayerRow,
    RawEntityData,
    SkillRow,
    Snapshot,
    TargetRow,
)
from meterline.live.store import LiveStore
from meterline.pipeline.grouping import DisplayRow, flatten_grouped_rows, group_skills
from meterline.pipeline.rows import (
    Metric,
    compute_entity_skill_rows,
    compute_header_info,
    compute_player_rows,
    compute_target_rows,
    find_entity,
    parse_metric,
    skills_for_metric,
    snapshot_from_history,
    stats_for_metric,
)
from meterline.tables import StaticTables

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["live"])

# camelCase sort keys from the UI map onto row attribute names
_SORT_FIELDS = {
    "totalDmg": "total_dmg",
    "dps": "dps",
    "dmgPct": "dmg_pct",
    "critRate": "crit_rate",
    "critDmgRate": "crit_dmg_rate",
    "luckyRate": "lucky_rate",
    "luckyDmgRate": "lucky_dmg_rate",
    "hits": "hits",
    "hitsPerMinute": "hits_per_minute",
}


def _metric(metric: str) -> Metric:
    try:
        return parse_metric(metric)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def _snapshot(store: LiveStore) -> Snapshot:
    snapshot = store.latest
    if snapshot is None:
        raise HTTPException(status_code=404, detail="No live data received yet")
    return snapshot


def _entity(snapshot: Snapshot, uid: int) -> RawEntityData:
    entity = find_entity(snapshot, uid)
    if entity is None:
        raise HTTPException(status_code=404, detail=f"Player {uid} not found")
    return entity


@router.post("/live-data", status_code=204)
async def push_live_data(snapshot: Snapshot, store: LiveStore = Depends(get_live_store)):
    """Receive a live snapshot from the collector."""
    store.update(snapshot)


@router.delete("/live-data", status_code=204)
async def reset_live_data(store: LiveStore = Depends(get_live_store)):
    store.reset()


@router.get("/header", response_model=HeaderInfo)
async def get_header(store: LiveStore = Depends(get_live_store)):
    return compute_header_info(_snapshot(store))


@router.get("/players", response_model=list[PlayerRow])
async def get_players(
    metric: str = "damage",
    store: LiveStore = Depends(get_live_store),
):
    return compute_player_rows(_snapshot(store), _metric(metric))


@router.get("/players/{uid}/skills", response_model=list[SkillRow])
async def get_player_skills(
    uid: int,
    metric: str = "damage",
    store: LiveStore = Depends(get_live_store),
    tables: StaticTables = Depends(get_tables),
):
    selected = _metric(metric)
    snapshot = _snapshot(store)
    return compute_entity_skill_rows(
        _entity(snapshot, uid), snapshot.elapsed_ms, selected, tables.skill_name,
    )


@router.get("/players/{uid}/skills/grouped", response_model=list[DisplayRow])
async def get_player_skill_groups(
    uid: int,
    metric: str = "damage",
    expanded: list[int] = Query([]),
    sort: str = "totalDmg",
    order: Literal["desc", "asc"] = "desc",
    store: LiveStore = Depends(get_live_store),
    tables: StaticTables = Depends(get_tables),
):
    """Skill breakdown rolled up by recount group, flattened for display."""
    selected = _metric(metric)
    snapshot = _snapshot(store)
    entity = _entity(snapshot, uid)

    sort_key = _SORT_FIELDS.get(sort)
    if sort_key is None:
        raise HTTPException(status_code=400, detail=f"Unknown sort field {sort!r}")
    result = group_skills(
        skills_for_metric(entity, selected),
        snapshot.elapsed_ms,
        stats_for_metric(entity, selected).total,
        tables.recount.group_for,
        tables.skill_name,
    )
    return flatten_grouped_rows(
        result,
        expanded=set(expanded),
        sort_key=sort_key,
        descending=order == "desc",
        groups_first=get_settings().grouping.groups_first,
    )


@router.get("/players/{uid}/targets", response_model=list[TargetRow])
async def get_player_targets(
    uid: int,
    metric: str = "damage",
    store: LiveStore = Depends(get_live_store),
    tables: StaticTables = Depends(get_tables),
):
    selected = _metric(metric)
    snapshot = _snapshot(store)
    return compute_target_rows(
        _entity(snapshot, uid), snapshot.elapsed_ms, selected, tables.skill_name,
    )


@router.post("/history/rows", response_model=list[PlayerRow])
async def get_history_rows(encounter: HistoricalEncounter, metric: str = "damage"):
    """Player rows for a stored encounter, timed by its recorded duration."""
    selected = _metric(metric)
    logger.debug(
        "Deriving %s rows for historical encounter %s", selected, encounter.encounter_id,
    )
    return compute_player_rows(snapshot_from_history(encounter), selected)

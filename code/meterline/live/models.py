"""Collector payload models and the rows derived from them.

Incoming payloads use camelCase keys. Counter fields are coalesced
defensively: a missing, null or non-numeric counter reads as 0, a missing
channel reads as an all-zero channel, and a missing skill map is empty.
"""

import math
from typing import Annotated, Any, Literal

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel


def _coerce_count(value: Any) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else 0
    if isinstance(value, str):
        try:
            parsed = float(value.strip())
        except ValueError:
            return 0
        return int(parsed) if math.isfinite(parsed) else 0
    return 0


def _coerce_seconds(value: Any) -> float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value) if math.isfinite(value) else 0.0
    if isinstance(value, str):
        try:
            parsed = float(value.strip())
        except ValueError:
            return 0.0
        return parsed if math.isfinite(parsed) else 0.0
    return 0.0


def _mapping_or_empty(value: Any) -> Any:
    if isinstance(value, (dict, BaseModel)):
        return value
    return {}


def _list_or_empty(value: Any) -> Any:
    return value if isinstance(value, list) else []


def _skill_map(value: Any) -> dict:
    """Drop entries with a non-integer skill id or a null body."""
    if not isinstance(value, dict):
        return {}
    cleaned = {}
    for key, stats in value.items():
        if stats is None:
            continue
        try:
            skill_id = int(key)
        except (TypeError, ValueError):
            continue
        cleaned[skill_id] = stats
    return cleaned


Count = Annotated[int, BeforeValidator(_coerce_count)]
Seconds = Annotated[float, BeforeValidator(_coerce_seconds)]


class LiveBaseModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class RawCombatStats(LiveBaseModel):
    """Cumulative totals for one metric channel of one entity."""

    total: Count = 0
    hits: Count = 0
    crit_hits: Count = 0
    crit_total: Count = 0
    lucky_hits: Count = 0
    lucky_total: Count = 0


class RawSkillStats(LiveBaseModel):
    """Cumulative totals for one skill within one channel."""

    total_value: Count = 0
    hits: Count = 0
    crit_hits: Count = 0
    crit_total_value: Count = 0
    lucky_hits: Count = 0
    lucky_total_value: Count = 0


Channel = Annotated[RawCombatStats, BeforeValidator(_mapping_or_empty)]
SkillMap = Annotated[dict[int, RawSkillStats], BeforeValidator(_skill_map)]


class PerTargetStats(LiveBaseModel):
    target_uid: Count = 0
    target_name: str = ""
    total_value: Count = 0
    damage: Channel = Field(default_factory=RawCombatStats)
    skills: SkillMap = Field(default_factory=dict)


TargetList = Annotated[list[PerTargetStats], BeforeValidator(_list_or_empty)]


class RawEntityData(LiveBaseModel):
    uid: int
    name: str = ""
    class_name: str = ""
    class_spec_name: str = ""
    ability_score: Count = 0
    season_strength: Count = 0
    damage: Channel = Field(default_factory=RawCombatStats)
    damage_boss_only: Channel = Field(default_factory=RawCombatStats)
    healing: Channel = Field(default_factory=RawCombatStats)
    taken: Channel = Field(default_factory=RawCombatStats)
    active_dmg_time_ms: Count = 0
    dmg_skills: SkillMap = Field(default_factory=dict)
    heal_skills: SkillMap = Field(default_factory=dict)
    taken_skills: SkillMap = Field(default_factory=dict)
    dmg_per_target: TargetList = Field(default_factory=list)
    heal_per_target: TargetList = Field(default_factory=list)


class BossHealth(LiveBaseModel):
    uid: int
    name: str = ""
    current_hp: int | None = None
    max_hp: int | None = None


class Snapshot(LiveBaseModel):
    """One point-in-time view of an encounter (the collector's live-data payload)."""

    elapsed_ms: Count = 0
    total_dmg: Count = 0
    total_heal: Count = 0
    total_dmg_boss_only: Count = 0
    entities: list[RawEntityData] = []
    fight_start_timestamp_ms: Count = 0
    local_player_uid: int = 0
    scene_id: int | None = None
    scene_name: str | None = None
    is_paused: bool = False
    bosses: list[BossHealth] = []
    current_segment_type: Literal["boss", "trash"] | None = None
    current_segment_name: str | None = None

    @property
    def total_taken(self) -> int:
        """The collector sends no damage-taken total; sum it across entities."""
        return sum(entity.taken.total for entity in self.entities)


class HistoricalEncounter(LiveBaseModel):
    """Terminal snapshot of a stored encounter with its authoritative duration."""

    encounter_id: int | None = None
    duration: Seconds = 0.0  # seconds
    scene_name: str | None = None
    entities: list[RawEntityData] = []


class BuffUpdateState(LiveBaseModel):
    buff_uuid: int
    base_id: int
    layer: int = 1
    duration_ms: Count = 0
    create_time_ms: Count = 0
    source_config_id: int = 0


class BuffUpdatePayload(LiveBaseModel):
    buffs: list[BuffUpdateState] = []


class BuffDefinition(LiveBaseModel):
    base_id: int
    name: str
    sprite_file: str = ""
    search_keywords: list[str] = []

    @property
    def has_sprite_file(self) -> bool:
        return bool(self.sprite_file)


# Derived rows


class PlayerRow(LiveBaseModel):
    uid: int
    name: str
    class_name: str
    class_spec_name: str
    ability_score: int
    season_strength: int
    total_dmg: int
    dps: float
    tdps: float
    active_time_ms: int
    boss_dps: float
    dmg_pct: float
    crit_rate: float
    crit_dmg_rate: float
    lucky_rate: float
    lucky_dmg_rate: float
    hits: int
    hits_per_minute: float
    boss_dmg: int
    boss_dmg_pct: float


class SkillRow(LiveBaseModel):
    skill_id: int
    name: str
    total_dmg: int
    dps: float
    dmg_pct: float
    crit_rate: float
    crit_dmg_rate: float
    lucky_rate: float
    lucky_dmg_rate: float
    hits: int
    hits_per_minute: float


class TargetRow(LiveBaseModel):
    target_uid: int
    target_name: str
    total_dmg: int
    dps: float
    dmg_pct: float
    crit_rate: float
    crit_dmg_rate: float
    lucky_rate: float
    lucky_dmg_rate: float
    hits: int
    hits_per_minute: float
    skills: list[SkillRow] = []


class HeaderInfo(LiveBaseModel):
    total_dps: float
    total_dmg: int
    elapsed_ms: int
    fight_start_timestamp_ms: int
    bosses: list[BossHealth] = []
    scene_id: int | None = None
    scene_name: str | None = None
    current_segment_type: Literal["boss", "trash"] | None = None
    current_segment_name: str | None = None

"""Derive ranked player, skill and target rows from a snapshot.

All functions here are pure: they never mutate their inputs and build fresh
rows on every call, so callers simply re-invoke them whenever the snapshot
reference changes.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any, Literal

from meterline.live.models import (
    HeaderInfo,
    HistoricalEncounter,
    PlayerRow,
    RawCombatStats,
    RawEntityData,
    RawSkillStats,
    SkillRow,
    Snapshot,
    TargetRow,
)
from meterline.pipeline.normalize import per_minute, per_second, percent

logger = logging.getLogger(__name__)

Metric = Literal["damage", "heal", "tanked"]
METRICS: tuple[Metric, ...] = ("damage", "heal", "tanked")

# The collector historically calls the damage channel "dps".
_METRIC_ALIASES: dict[str, Metric] = {
    "dps": "damage",
    "damage": "damage",
    "heal": "heal",
    "healing": "heal",
    "tanked": "tanked",
    "taken": "tanked",
}

NameResolver = Callable[[int], str]


def parse_metric(value: str) -> Metric:
    metric = _METRIC_ALIASES.get(value.strip().lower())
    if metric is None:
        raise ValueError(f"Unknown metric {value!r}, expected one of {METRICS}")
    return metric


def default_skill_name(skill_id: int) -> str:
    return f"#{skill_id}"


def stats_for_metric(entity: RawEntityData, metric: Metric) -> RawCombatStats:
    if metric == "heal":
        return entity.healing
    if metric == "tanked":
        return entity.taken
    return entity.damage


def skills_for_metric(entity: RawEntityData, metric: Metric) -> dict[int, RawSkillStats]:
    if metric == "heal":
        return entity.heal_skills
    if metric == "tanked":
        return entity.taken_skills
    return entity.dmg_skills


def metric_total(snapshot: Snapshot, metric: Metric) -> int:
    """Cross-entity denominator for dmgPct."""
    if metric == "heal":
        return snapshot.total_heal
    if metric == "tanked":
        return snapshot.total_taken
    return snapshot.total_dmg


def derive_rate_fields(
    total: int,
    hits: int,
    crit_hits: int,
    crit_total: int,
    lucky_hits: int,
    lucky_total: int,
    *,
    elapsed_ms: int,
    parent_total: int,
) -> dict[str, Any]:
    """The shared row arithmetic used by players, skills, groups and targets."""
    return {
        "total_dmg": total,
        "dps": per_second(total, elapsed_ms),
        "dmg_pct": percent(total, parent_total),
        "crit_rate": percent(crit_hits, hits),
        "crit_dmg_rate": percent(crit_total, total),
        "lucky_rate": percent(lucky_hits, hits),
        "lucky_dmg_rate": percent(lucky_total, total),
        "hits": hits,
        "hits_per_minute": per_minute(hits, elapsed_ms),
    }


def skill_rate_fields(
    stats: RawSkillStats, elapsed_ms: int, parent_total: int,
) -> dict[str, Any]:
    return derive_rate_fields(
        stats.total_value,
        stats.hits,
        stats.crit_hits,
        stats.crit_total_value,
        stats.lucky_hits,
        stats.lucky_total_value,
        elapsed_ms=elapsed_ms,
        parent_total=parent_total,
    )


def compute_player_rows(snapshot: Snapshot, metric: Metric) -> list[PlayerRow]:
    """One row per entity with a positive total for ``metric``, ranked by total."""
    total_metric = metric_total(snapshot, metric)
    is_damage = metric == "damage"
    # no throughput at all before the clock starts
    has_tdps = is_damage and snapshot.elapsed_ms > 0

    rows = []
    for entity in snapshot.entities:
        stats = stats_for_metric(entity, metric)
        if stats.total <= 0:
            continue

        fields = derive_rate_fields(
            stats.total,
            stats.hits,
            stats.crit_hits,
            stats.crit_total,
            stats.lucky_hits,
            stats.lucky_total,
            elapsed_ms=snapshot.elapsed_ms,
            parent_total=total_metric,
        )
        boss_dmg = entity.damage_boss_only.total if is_damage else 0

        rows.append(PlayerRow(
            uid=entity.uid,
            name=entity.name or f"#{entity.uid}",
            class_name=entity.class_name,
            class_spec_name=entity.class_spec_name,
            ability_score=entity.ability_score,
            season_strength=entity.season_strength,
            tdps=per_second(stats.total, entity.active_dmg_time_ms) if has_tdps else 0.0,
            active_time_ms=entity.active_dmg_time_ms if is_damage else 0,
            boss_dmg=boss_dmg,
            boss_dps=per_second(boss_dmg, snapshot.elapsed_ms),
            boss_dmg_pct=percent(boss_dmg, snapshot.total_dmg_boss_only),
            **fields,
        ))

    rows.sort(key=lambda r: r.total_dmg, reverse=True)
    return rows


def compute_skill_rows(
    skills: Mapping[int, RawSkillStats],
    elapsed_ms: int,
    parent_total: int,
    name_resolver: NameResolver | None = None,
) -> list[SkillRow]:
    """One row per skill with a positive total, ranked by total."""
    resolve = name_resolver or default_skill_name
    rows = [
        SkillRow(
            skill_id=skill_id,
            name=resolve(skill_id),
            **skill_rate_fields(stats, elapsed_ms, parent_total),
        )
        for skill_id, stats in skills.items()
        if stats.total_value > 0
    ]
    rows.sort(key=lambda r: r.total_dmg, reverse=True)
    return rows


def compute_entity_skill_rows(
    entity: RawEntityData,
    elapsed_ms: int,
    metric: Metric,
    name_resolver: NameResolver | None = None,
) -> list[SkillRow]:
    """Skill breakdown for one entity's channel; percentages are of the channel total."""
    return compute_skill_rows(
        skills_for_metric(entity, metric),
        elapsed_ms,
        stats_for_metric(entity, metric).total,
        name_resolver,
    )


def compute_target_rows(
    entity: RawEntityData,
    elapsed_ms: int,
    metric: Metric,
    name_resolver: NameResolver | None = None,
) -> list[TargetRow]:
    """Per-target breakdown. Damage taken has no per-target data."""
    if metric == "damage":
        targets = entity.dmg_per_target
    elif metric == "heal":
        targets = entity.heal_per_target
    else:
        return []

    parent_total = stats_for_metric(entity, metric).total
    rows = []
    for target in targets:
        if target.total_value <= 0:
            continue
        fields = derive_rate_fields(
            target.total_value,
            target.damage.hits,
            target.damage.crit_hits,
            target.damage.crit_total,
            target.damage.lucky_hits,
            target.damage.lucky_total,
            elapsed_ms=elapsed_ms,
            parent_total=parent_total,
        )
        rows.append(TargetRow(
            target_uid=target.target_uid,
            target_name=target.target_name or f"#{target.target_uid}",
            skills=compute_skill_rows(
                target.skills, elapsed_ms, target.total_value, name_resolver,
            ),
            **fields,
        ))

    rows.sort(key=lambda r: r.total_dmg, reverse=True)
    return rows


def compute_header_info(snapshot: Snapshot) -> HeaderInfo:
    return HeaderInfo(
        total_dps=per_second(snapshot.total_dmg, snapshot.elapsed_ms),
        total_dmg=snapshot.total_dmg,
        elapsed_ms=snapshot.elapsed_ms,
        fight_start_timestamp_ms=snapshot.fight_start_timestamp_ms,
        bosses=snapshot.bosses,
        scene_id=snapshot.scene_id,
        scene_name=snapshot.scene_name,
        current_segment_type=snapshot.current_segment_type,
        current_segment_name=snapshot.current_segment_name,
    )


def find_entity(snapshot: Snapshot, uid: int) -> RawEntityData | None:
    for entity in snapshot.entities:
        if entity.uid == uid:
            return entity
    return None


def snapshot_from_history(encounter: HistoricalEncounter) -> Snapshot:
    """Rebuild a snapshot from a stored encounter for historical replay.

    Elapsed time comes from the stored duration rather than the wall clock,
    and the denominators are recomputed as cross-entity sums.
    """
    elapsed_ms = int(round(encounter.duration * 1000)) if encounter.duration > 0 else 0
    if elapsed_ms == 0 and encounter.entities:
        logger.warning(
            "Historical encounter %s has no duration, throughput will be 0",
            encounter.encounter_id,
        )
    return Snapshot(
        elapsed_ms=elapsed_ms,
        total_dmg=sum(e.damage.total for e in encounter.entities),
        total_heal=sum(e.healing.total for e in encounter.entities),
        total_dmg_boss_only=sum(e.damage_boss_only.total for e in encounter.entities),
        entities=encounter.entities,
        scene_name=encounter.scene_name,
    )

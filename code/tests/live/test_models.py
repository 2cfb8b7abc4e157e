"""Tests for collector payload parsing and counter coercion."""

from meterline.live.models import (
    BuffDefinition,
    BuffUpdateState,
    HistoricalEncounter,
    RawCombatStats,
    RawEntityData,
    Snapshot,
)


class TestCounterCoercion:
    def test_camel_case_payload(self):
        stats = RawCombatStats.model_validate(
            {"total": 10000, "hits": 50, "critHits": 20, "critTotal": 6000},
        )
        assert stats.total == 10000
        assert stats.crit_hits == 20
        assert stats.crit_total == 6000
        assert stats.lucky_hits == 0

    def test_snake_case_accepted(self):
        stats = RawCombatStats(total=5, crit_hits=1)
        assert stats.crit_hits == 1

    def test_null_counter_reads_as_zero(self):
        stats = RawCombatStats.model_validate({"total": None, "hits": 3})
        assert stats.total == 0
        assert stats.hits == 3

    def test_non_numeric_string_reads_as_zero(self):
        stats = RawCombatStats.model_validate({"total": "lots", "hits": "12"})
        assert stats.total == 0
        assert stats.hits == 12

    def test_non_finite_reads_as_zero(self):
        stats = RawCombatStats.model_validate(
            {"total": float("nan"), "hits": float("inf")},
        )
        assert stats.total == 0
        assert stats.hits == 0

    def test_float_counter_truncated(self):
        stats = RawCombatStats.model_validate({"total": 1234.9})
        assert stats.total == 1234


class TestEntityParsing:
    def test_missing_channels_are_zero(self):
        entity = RawEntityData.model_validate({"uid": 1})
        assert entity.damage.total == 0
        assert entity.healing.hits == 0
        assert entity.taken.total == 0
        assert entity.dmg_skills == {}
        assert entity.dmg_per_target == []

    def test_null_channel_is_zero(self):
        entity = RawEntityData.model_validate({"uid": 1, "damage": None, "dmgSkills": None})
        assert entity.damage.total == 0
        assert entity.dmg_skills == {}

    def test_skill_map_string_keys(self):
        entity = RawEntityData.model_validate({
            "uid": 1,
            "dmgSkills": {"1001": {"totalValue": 500, "hits": 5}},
        })
        assert entity.dmg_skills[1001].total_value == 500

    def test_skill_map_drops_bad_entries(self):
        entity = RawEntityData.model_validate({
            "uid": 1,
            "dmgSkills": {
                "1001": {"totalValue": 500},
                "oops": {"totalValue": 1},
                "1002": None,
            },
        })
        assert list(entity.dmg_skills) == [1001]

    def test_per_target_list(self):
        entity = RawEntityData.model_validate({
            "uid": 1,
            "dmgPerTarget": [{
                "targetUid": 900,
                "targetName": "Golem",
                "totalValue": 300,
                "damage": {"total": 300, "hits": 3},
                "skills": {"1001": {"totalValue": 300}},
            }],
        })
        target = entity.dmg_per_target[0]
        assert target.target_uid == 900
        assert target.damage.hits == 3
        assert target.skills[1001].total_value == 300


class TestSnapshot:
    def test_total_taken_is_cross_entity_sum(self):
        snapshot = Snapshot.model_validate({
            "elapsedMs": 1000,
            "entities": [
                {"uid": 1, "taken": {"total": 300}},
                {"uid": 2, "taken": {"total": 700}},
                {"uid": 3},
            ],
        })
        assert snapshot.total_taken == 1000

    def test_header_fields(self):
        snapshot = Snapshot.model_validate({
            "sceneName": "Dragon Lair",
            "currentSegmentType": "boss",
            "bosses": [{"uid": 50, "name": "Drake", "currentHp": 10, "maxHp": 100}],
        })
        assert snapshot.scene_name == "Dragon Lair"
        assert snapshot.current_segment_type == "boss"
        assert snapshot.bosses[0].max_hp == 100

    def test_historical_duration_coercion(self):
        encounter = HistoricalEncounter.model_validate({"duration": "12.5"})
        assert encounter.duration == 12.5
        assert HistoricalEncounter.model_validate({"duration": None}).duration == 0.0


class TestBuffModels:
    def test_buff_update_state_defaults(self):
        state = BuffUpdateState.model_validate(
            {"buffUuid": 1, "baseId": 7, "durationMs": 5000, "createTimeMs": 1000},
        )
        assert state.layer == 1
        assert state.source_config_id == 0

    def test_definition_without_sprite(self):
        assert BuffDefinition(base_id=7, name="Swift").has_sprite_file is False
        assert BuffDefinition(base_id=7, name="Swift", sprite_file="s.png").has_sprite_file

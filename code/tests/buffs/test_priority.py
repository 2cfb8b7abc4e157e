"""Tests for monitor filtering, priority ordering and text truncation."""

import pytest
from pydantic import ValidationError

from meterline.buffs.priority import (
    BuffDisplayGroup,
    clamp_max_visible,
    filter_monitored,
    group_text_buffs,
    order_by_priority,
    truncate_text_buffs,
)
from meterline.buffs.timer import ActiveBuff


def _active(base_id, source_config_id=0):
    return ActiveBuff(
        buff_uuid=base_id,
        base_id=base_id,
        layer=1,
        duration_ms=5000,
        create_time_ms=0,
        source_config_id=source_config_id,
        expires_at_ms=5000,
        remaining_ms=3000,
    )


def _ids(buffs):
    return [b.base_id for b in buffs]


class TestFilterMonitored:
    def test_monitored_ids(self):
        buffs = [_active(1), _active(2), _active(3)]
        assert _ids(filter_monitored(buffs, [1, 3])) == [1, 3]

    def test_empty_set_yields_nothing(self):
        assert filter_monitored([_active(1)], []) == []

    def test_monitor_all(self):
        buffs = [_active(1), _active(2)]
        assert _ids(filter_monitored(buffs, [], monitor_all=True)) == [1, 2]

    def test_related_source_config(self):
        related = {4400: [7]}.get
        buffs = [_active(50, source_config_id=4400), _active(51, source_config_id=4401)]
        result = filter_monitored(buffs, [7], related_base_ids=lambda cid: related(cid, []))
        assert _ids(result) == [50]

    def test_zero_source_config_ignored(self):
        result = filter_monitored([_active(50)], [7], related_base_ids=lambda cid: [7])
        assert result == []


class TestOrderByPriority:
    def test_priority_first_then_observed_order(self):
        buffs = [_active(1), _active(2), _active(3), _active(4)]
        assert _ids(order_by_priority(buffs, [3, 1])) == [3, 1, 2, 4]

    def test_no_priority_keeps_order(self):
        buffs = [_active(4), _active(2), _active(9)]
        assert _ids(order_by_priority(buffs, [])) == [4, 2, 9]

    def test_secondary_priority_list(self):
        buffs = [_active(1), _active(2), _active(3)]
        assert _ids(order_by_priority(buffs, [3], [2])) == [3, 2, 1]

    def test_duplicate_priority_uses_first_position(self):
        buffs = [_active(1), _active(2)]
        assert _ids(order_by_priority(buffs, [2, 1, 2])) == [2, 1]

    def test_unlisted_after_listed_with_duplicates(self):
        buffs = [_active(9), _active(3)]
        assert _ids(order_by_priority(buffs, [1, 1, 3])) == [3, 9]


class TestTruncateTextBuffs:
    def test_truncates_to_max_visible(self):
        buffs = [_active(i) for i in range(1, 8)]
        result = truncate_text_buffs(buffs, [6, 7], 3)
        assert _ids(result) == [6, 7, 1]

    def test_listed_buff_kept_over_unlisted_with_duplicates(self):
        result = truncate_text_buffs([_active(9), _active(3)], [1, 1, 3], 1)
        assert _ids(result) == [3]

    def test_fewer_than_max(self):
        assert len(truncate_text_buffs([_active(1)], [], 5)) == 1

    def test_limit_clamped(self):
        buffs = [_active(i) for i in range(1, 30)]
        assert len(truncate_text_buffs(buffs, [], 0)) == 1
        assert len(truncate_text_buffs(buffs, [], 99)) == 20

    def test_clamp_max_visible(self):
        assert clamp_max_visible(-3) == 1
        assert clamp_max_visible(7) == 7
        assert clamp_max_visible(21) == 20


class TestGroupTextBuffs:
    def test_groups_with_own_priority_and_limit(self):
        groups = [
            BuffDisplayGroup(name="Offense", buff_ids=[1, 2, 3], priority_ids=[3], max_visible=2),
            BuffDisplayGroup(name="Defense", buff_ids=[4, 5]),
        ]
        buffs = [_active(i) for i in range(1, 7)]
        views = group_text_buffs(buffs, groups, global_priority=[5, 2], default_max_visible=5)

        assert [v.name for v in views] == ["Offense", "Defense", ""]
        assert _ids(views[0].buffs) == [3, 2]
        assert _ids(views[1].buffs) == [5, 4]
        assert _ids(views[2].buffs) == [6]

    def test_buff_in_first_listing_group_only(self):
        groups = [
            BuffDisplayGroup(name="A", buff_ids=[1]),
            BuffDisplayGroup(name="B", buff_ids=[1, 2]),
        ]
        views = group_text_buffs([_active(1), _active(2)], groups, [], 5)
        assert _ids(views[0].buffs) == [1]
        assert _ids(views[1].buffs) == [2]
        assert len(views) == 2

    def test_group_limit_bounds(self):
        with pytest.raises(ValidationError):
            BuffDisplayGroup(name="A", max_visible=21)

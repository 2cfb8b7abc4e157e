from meterline.buffs.timer import is_active, project_active_buffs, remaining_ms
from meterline.live.models import BuffUpdateState

SWIFT = BuffUpdateState(buff_uuid=1, base_id=7, duration_ms=5000, create_time_ms=1000)


class TestRemaining:
    def test_remaining_before_expiry(self):
        assert remaining_ms(SWIFT, 5999) == 1

    def test_remaining_clamped_at_zero(self):
        assert remaining_ms(SWIFT, 9000) == 0

    def test_non_positive_duration_never_active(self):
        instant = SWIFT.model_copy(update={"duration_ms": 0})
        assert is_active(instant, 1000) is False
        negative = SWIFT.model_copy(update={"duration_ms": -5})
        assert is_active(negative, 0) is False


class TestProjectActiveBuffs:
    def test_visible_one_ms_before_expiry(self):
        active = project_active_buffs({7: SWIFT}, 5999)
        assert len(active) == 1
        assert active[0].remaining_ms == 1
        assert active[0].expires_at_ms == 6000

    def test_excluded_at_expiry(self):
        assert project_active_buffs({7: SWIFT}, 6000) == []

    def test_keeps_map_order(self):
        other = BuffUpdateState(buff_uuid=2, base_id=9, duration_ms=10000, create_time_ms=0)
        active = project_active_buffs({9: other, 7: SWIFT}, 2000)
        assert [b.base_id for b in active] == [9, 7]

    def test_accepts_iterable(self):
        active = project_active_buffs([SWIFT], 2000)
        assert active[0].remaining_ms == 4000

    def test_recomputed_per_call(self):
        buffs = {7: SWIFT}
        assert project_active_buffs(buffs, 2000)[0].remaining_ms == 4000
        assert project_active_buffs(buffs, 3000)[0].remaining_ms == 3000

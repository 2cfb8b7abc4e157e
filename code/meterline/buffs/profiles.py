"""Skill-monitor profiles: which buffs to watch and how to show them."""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import Field, ValidationError

from meterline.buffs.merge import merge_buff_ids
from meterline.buffs.priority import (
    TEXT_MAX_VISIBLE_MAX,
    TEXT_MAX_VISIBLE_MIN,
    BuffDisplayGroup,
)
from meterline.config import BuffsConfig
from meterline.live.models import LiveBaseModel
from meterline.tables import StaticTables

logger = logging.getLogger(__name__)

DEFAULT_CLASS_KEY = "wind_knight"
MAX_MONITORED_SKILLS = 10


class MonitorProfile(LiveBaseModel):
    selected_class: str = ""
    monitored_skill_ids: list[int] = Field([], max_length=MAX_MONITORED_SKILLS)
    monitored_buff_ids: list[int] = []
    priority_buff_ids: list[int] = []
    monitor_all_buffs: bool = False
    text_max_visible: int = Field(5, ge=TEXT_MAX_VISIBLE_MIN, le=TEXT_MAX_VISIBLE_MAX)
    grouped_display: bool = False
    display_groups: list[BuffDisplayGroup] = []

    @property
    def class_key(self) -> str:
        return self.selected_class.strip() or DEFAULT_CLASS_KEY


class SkillMonitorSettings(LiveBaseModel):
    enabled: bool = False
    active_profile_index: int = 0
    profiles: list[MonitorProfile] = []


def resolve_active_profile(settings: SkillMonitorSettings) -> MonitorProfile | None:
    """The active profile, with an out-of-range index clamped to the last one."""
    if not settings.profiles:
        return None
    idx = max(0, min(settings.active_profile_index, len(settings.profiles) - 1))
    return settings.profiles[idx]


def with_class_defaults(profile: MonitorProfile, tables: StaticTables) -> MonitorProfile:
    merged = merge_buff_ids(profile.monitored_buff_ids, tables.class_defaults(profile.class_key))
    return profile.model_copy(update={"monitored_buff_ids": merged})


def profile_from_config(config: BuffsConfig) -> MonitorProfile:
    return MonitorProfile(
        monitored_buff_ids=config.monitored_ids,
        priority_buff_ids=config.priority_ids,
        monitor_all_buffs=config.monitor_all,
        text_max_visible=config.text_max_visible,
    )


def load_monitor_settings(path: str | Path) -> SkillMonitorSettings | None:
    file = Path(path)
    try:
        content = file.read_text(encoding="utf-8")
    except OSError:
        logger.info("Skill monitor settings not found at %s", file)
        return None
    try:
        return SkillMonitorSettings.model_validate_json(content)
    except ValidationError as exc:
        logger.warning(
            "Skill monitor settings at %s are invalid (%d errors), ignoring",
            file, exc.error_count(),
        )
        return None


def resolve_startup_profile(
    config: BuffsConfig,
    tables: StaticTables,
    profiles_path: str | Path | None = None,
) -> MonitorProfile:
    """Pick the profile to run with at startup.

    The saved skill-monitor settings win when present and enabled; otherwise
    the BUFFS__* configuration is used. Either way the class defaults from the
    static tables are merged into the monitored ids.
    """
    profile = None
    if profiles_path:
        saved = load_monitor_settings(profiles_path)
        if saved is not None and not saved.enabled:
            logger.info("Skill monitor settings disabled, using configured buffs")
        elif saved is not None:
            profile = resolve_active_profile(saved)
            if profile is None:
                logger.info("Skill monitor settings have no profiles, using configured buffs")

    if profile is None:
        profile = profile_from_config(config)

    profile = with_class_defaults(profile, tables)
    logger.info(
        "Monitor profile: class=%s, skills=%d, buffs=%d, monitor_all=%s",
        profile.class_key, len(profile.monitored_skill_ids),
        len(profile.monitored_buff_ids), profile.monitor_all_buffs,
    )
    return profile

from functools import lru_cache

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LiveConfig(BaseModel):
    event_update_rate_ms: int = 200  # collector push cadence, informational


class BuffsConfig(BaseModel):
    tick_interval_ms: int = 16  # ~60 Hz display refresh
    monitor_all: bool = False
    monitored_ids: list[int] = []
    priority_ids: list[int] = []
    text_max_visible: int = Field(5, ge=1, le=20)


class GroupingConfig(BaseModel):
    groups_first: bool = True


class TablesConfig(BaseModel):
    path: str = ""  # static lookup JSON; empty = no tables
    profiles_path: str = ""  # skill-monitor settings JSON; empty = use BUFFS__*


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    debug: bool = False
    log_level: str = "INFO"
    api_key: str = ""  # empty = auth disabled
    live: LiveConfig = LiveConfig()
    buffs: BuffsConfig = BuffsConfig()
    grouping: GroupingConfig = GroupingConfig()
    tables: TablesConfig = TablesConfig()

    @model_validator(mode="after")
    def _check_cross_field_deps(self):
        if self.buffs.tick_interval_ms < 1:
            raise ValueError("BUFFS__TICK_INTERVAL_MS must be >= 1")
        if self.live.event_update_rate_ms < 1:
            raise ValueError("LIVE__EVENT_UPDATE_RATE_MS must be >= 1")
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()

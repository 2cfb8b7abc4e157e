"""Static lookup tables: skill names, recount groups, buff metadata.

The tables ship as one camelCase JSON document, e.g.::

    {
      "skillNames": {"1001": "Gale Slash"},
      "recountGroups": [{"recountId": 1, "recountName": "Gale", "skillIds": [1001, 1002]}],
      "buffDefinitions": [{"baseId": 7, "name": "Swift", "spriteFile": "swift.png"}],
      "layeredBuffs": [{"baseId": 9, "images": ["s1.png", "s2.png", "s3.png"]}],
      "classDefaultBuffIds": {"wind_knight": [7, 9]},
      "relatedBaseIds": {"4400": [7]}
    }
"""

import logging
from pathlib import Path

from pydantic import BaseModel, ConfigDict, PrivateAttr, ValidationError
from pydantic.alias_generators import to_camel

from meterline.buffs.layered import LayeredBuffSpec
from meterline.live.models import BuffDefinition
from meterline.pipeline.grouping import RecountGroup, RecountTable

logger = logging.getLogger(__name__)


class StaticTables(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    skill_names: dict[int, str] = {}
    recount_groups: list[RecountGroup] = []
    buff_definitions: list[BuffDefinition] = []
    layered_buffs: list[LayeredBuffSpec] = []
    class_default_buff_ids: dict[str, list[int]] = {}
    related_base_ids: dict[int, list[int]] = {}

    _recount: RecountTable = PrivateAttr()
    _definitions: dict[int, BuffDefinition] = PrivateAttr()
    _layered: dict[int, LayeredBuffSpec] = PrivateAttr()

    def model_post_init(self, __context) -> None:
        self._recount = RecountTable(self.recount_groups)
        self._definitions = {d.base_id: d for d in self.buff_definitions}
        self._layered = {spec.base_id: spec for spec in self.layered_buffs}

    @property
    def recount(self) -> RecountTable:
        return self._recount

    @property
    def definitions(self) -> dict[int, BuffDefinition]:
        return self._definitions

    @property
    def layered(self) -> dict[int, LayeredBuffSpec]:
        return self._layered

    def skill_name(self, skill_id: int) -> str:
        return self.skill_names.get(skill_id, f"#{skill_id}")

    def buff_name(self, base_id: int) -> str:
        definition = self._definitions.get(base_id)
        return definition.name if definition else f"#{base_id}"

    def related(self, source_config_id: int) -> list[int]:
        return self.related_base_ids.get(source_config_id, [])

    def class_defaults(self, class_key: str) -> list[int]:
        return self.class_default_buff_ids.get(class_key, [])


def load_tables(path: str | Path | None) -> StaticTables:
    """Load tables from ``path``; a blank or missing path yields empty tables."""
    if not path:
        return StaticTables()
    file = Path(path)
    if not file.is_file():
        logger.warning("Static tables not found at %s, using empty tables", file)
        return StaticTables()
    try:
        tables = StaticTables.model_validate_json(file.read_text(encoding="utf-8"))
    except ValidationError:
        logger.exception("Invalid static tables in %s", file)
        raise
    logger.info(
        "Loaded static tables from %s: %d skills, %d recount groups, %d buffs",
        file, len(tables.skill_names), len(tables.recount_groups),
        len(tables.buff_definitions),
    )
    return tables

"""CLI script to replay a stored encounter through the row derivation engine."""

import argparse
import logging
from pathlib import Path

from meterline.config import get_settings
from meterline.live.models import HistoricalEncounter, PlayerRow, SkillRow
from meterline.pipeline.rows import (
    compute_entity_skill_rows,
    compute_player_rows,
    find_entity,
    parse_metric,
    snapshot_from_history,
)
from meterline.tables import load_tables

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Replay a stored encounter and print rows")
    parser.add_argument("path", help="Historical encounter JSON file")
    parser.add_argument(
        "--metric",
        default="damage",
        help="damage, heal or tanked (dps is accepted for damage)",
    )
    parser.add_argument(
        "--tables",
        default=None,
        help="Static tables JSON for skill names (default: TABLES__PATH)",
    )
    parser.add_argument(
        "--player",
        type=int,
        default=None,
        help="Print the skill breakdown of this player uid instead of player rows",
    )
    return parser.parse_args(argv)


def load_encounter(path: str | Path) -> HistoricalEncounter:
    return HistoricalEncounter.model_validate_json(Path(path).read_text(encoding="utf-8"))


def format_player_rows(rows: list[PlayerRow]) -> list[str]:
    lines = [f"  {'Player':20s} {'Total':>12s} {'DPS':>10s} {'%':>6s} {'Crit%':>6s}"]
    for row in rows:
        lines.append(
            f"  {row.name[:20]:20s} {row.total_dmg:>12d} {row.dps:>10.1f}"
            f" {row.dmg_pct:>6.1f} {row.crit_rate:>6.1f}"
        )
    return lines


def format_skill_rows(rows: list[SkillRow]) -> list[str]:
    lines = [f"  {'Skill':24s} {'Total':>12s} {'DPS':>10s} {'%':>6s} {'Hits':>6s}"]
    for row in rows:
        lines.append(
            f"  {row.name[:24]:24s} {row.total_dmg:>12d} {row.dps:>10.1f}"
            f" {row.dmg_pct:>6.1f} {row.hits:>6d}"
        )
    return lines


def run(
    path: str | Path,
    metric: str = "damage",
    tables_path: str | None = None,
    player: int | None = None,
) -> list[str]:
    """Derive rows for the encounter at ``path``; returns the printable lines."""
    selected = parse_metric(metric)
    if tables_path is None:
        tables_path = get_settings().tables.path
    tables = load_tables(tables_path)

    encounter = load_encounter(path)
    snapshot = snapshot_from_history(encounter)
    logger.info(
        "Replaying %s: %d entities over %.1fs",
        encounter.scene_name or path, len(snapshot.entities), snapshot.elapsed_ms / 1000,
    )

    if player is None:
        return format_player_rows(compute_player_rows(snapshot, selected))

    entity = find_entity(snapshot, player)
    if entity is None:
        logger.error("Player %d is not part of this encounter", player)
        return []
    rows = compute_entity_skill_rows(entity, snapshot.elapsed_ms, selected, tables.skill_name)
    return format_skill_rows(rows)


def main() -> None:
    args = parse_args()
    logging.basicConfig(level=get_settings().log_level.upper())
    try:
        lines = run(args.path, metric=args.metric, tables_path=args.tables, player=args.player)
    except (OSError, ValueError) as exc:
        logger.error("Replay failed: %s", exc)
        raise SystemExit(1) from exc
    for line in lines:
        print(line)


if __name__ == "__main__":
    main()

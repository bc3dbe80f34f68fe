"""Generate a solvable puzzle and write it as JSON.

Usage:
    uv run python scripts/generate_puzzle.py --difficulty medium --enemy goblin:2:spread
        [--characters knight archer] [--tiles lava teleporter] [--seed 1234]
        [--attempts 10] [--out puzzle.json] [--custom my_defs.json] [--verbose]
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from grid_tactics.ir.puzzle import WinCondition
from grid_tactics.sim.content.registry import ContentRegistry
from grid_tactics.solver import (
    DifficultyLevel,
    EnemyConfig,
    GenerationParameters,
    GenerationProgress,
    generate_puzzle,
    get_difficulty_preset,
)


def _enemy(text: str) -> EnemyConfig:
    """Parse ``id[:count[:placement]]``."""
    enemy_id, *rest = text.split(":")
    fields: dict = {"enemy_id": enemy_id}
    if rest:
        fields["count"] = int(rest[0])
    if len(rest) > 1:
        fields["placement"] = rest[1]
    return EnemyConfig(**fields)


def _progress(info: GenerationProgress) -> None:
    print(f"  ... {info.message}", file=sys.stderr)


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate a solvable grid-tactics puzzle")
    parser.add_argument("--difficulty", choices=[d.value for d in DifficultyLevel], default="easy")
    parser.add_argument("--characters", nargs="+", default=["knight", "archer"])
    parser.add_argument("--enemy", action="append", type=_enemy, default=None,
                        help="Enemy as id[:count[:random|clustered|spread]]; repeatable")
    parser.add_argument("--tiles", nargs="*", default=[], help="Custom tile type ids to scatter")
    parser.add_argument("--width", type=int, default=None)
    parser.add_argument("--height", type=int, default=None)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--attempts", type=int, default=10)
    parser.add_argument("--out", type=str, default=None, help="Output file (stdout when omitted)")
    parser.add_argument("--custom", type=str, default=None, help="Custom definitions bundle")
    parser.add_argument("--verbose", "-v", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    registry = ContentRegistry()
    registry.load_official_content()
    if args.custom:
        registry.load_custom_content(args.custom)

    preset = get_difficulty_preset(args.difficulty)
    if args.width is not None:
        preset["width"] = args.width
    if args.height is not None:
        preset["height"] = args.height
    preset["enabled_tile_types"] = args.tiles
    params = GenerationParameters(
        **preset,
        difficulty=args.difficulty,
        available_characters=args.characters,
        enemy_types=args.enemy or [EnemyConfig(enemy_id="goblin")],
        win_conditions=[WinCondition(type="defeat_all_enemies")],
    )

    result = asyncio.run(generate_puzzle(
        params, registry, seed=args.seed, max_attempts=args.attempts, progress_callback=_progress,
    ))

    print("=" * 50, file=sys.stderr)
    if not result.success or result.puzzle is None:
        print(f"FAILED (seed {result.seed}): {result.error}", file=sys.stderr)
        print("=" * 50, file=sys.stderr)
        sys.exit(1)
    puzzle = result.puzzle
    print(f"Generated {puzzle.id} in {result.attempts_used} attempt(s), "
          f"{result.generation_time_ms / 1000:.2f}s", file=sys.stderr)
    print(f"Par: {puzzle.par_characters} character(s), {puzzle.par_turns} turns", file=sys.stderr)
    print("=" * 50, file=sys.stderr)

    text = puzzle.model_dump_json(by_alias=True, indent=2)
    if args.out:
        Path(args.out).write_text(text + "\n")
    else:
        print(text)


if __name__ == "__main__":
    main()

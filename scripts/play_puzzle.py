"""Replay a placement turn by turn and print the score.

Usage:
    uv run python scripts/play_puzzle.py crossroads.json --place knight:1:1
        [--place archer:0:2] [--custom my_defs.json] [--lives 3] [--verbose]
"""

from __future__ import annotations

import argparse
import logging
import sys

from grid_tactics.scoring import calculate_score, format_score_for_sharing
from grid_tactics.sim.content.registry import ContentRegistry, load_puzzle
from grid_tactics.sim.core.game_state import GameState, GameStatus
from grid_tactics.sim.runner import (
    execute_turn,
    initialize_game_state,
    place_character,
    start_simulation,
)


def _parse_placement(raw: str) -> tuple[str, int, int]:
    try:
        character_id, x, y = raw.rsplit(":", 2)
        return character_id, int(x), int(y)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected CHARACTER:X:Y, got {raw!r}")


def _describe(state: GameState) -> str:
    parts = []
    for c in state.characters:
        status = "dead" if c.dead else f"{c.current_health}hp"
        parts.append(f"{c.character_id}@({c.x},{c.y}) {c.facing.value} {status}")
    for e in state.enemies:
        if e.dormant:
            continue
        status = "dead" if e.dead else f"{e.current_health}hp"
        parts.append(f"{e.enemy_id}@({e.x},{e.y}) {status}")
    return " | ".join(parts)


def main() -> None:
    parser = argparse.ArgumentParser(description="Replay a grid-tactics placement")
    parser.add_argument("puzzle", help="Puzzle JSON file")
    parser.add_argument(
        "--place", type=_parse_placement, action="append", required=True,
        metavar="CHARACTER:X:Y", help="Place a character (repeatable)",
    )
    parser.add_argument("--custom", type=str, default=None, help="Custom definitions bundle")
    parser.add_argument("--lives", type=int, default=None, help="Lives (defaults to the puzzle's)")
    parser.add_argument("--max-turns", type=int, default=200)
    parser.add_argument("--verbose", "-v", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    registry = ContentRegistry()
    registry.load_official_content()
    if args.custom:
        registry.load_custom_content(args.custom)

    puzzle = load_puzzle(args.puzzle)
    state = initialize_game_state(puzzle, registry)
    try:
        for character_id, x, y in args.place:
            place_character(state, character_id, x, y)
    except ValueError as exc:
        print(f"Invalid placement: {exc}")
        sys.exit(1)
    start_simulation(state)
    state.headless_mode = True

    print(f"Turn 0: {_describe(state)}")
    while state.game_status is GameStatus.RUNNING and state.current_turn < args.max_turns:
        execute_turn(state)
        print(f"Turn {state.current_turn}: {_describe(state)}")

    print()
    print(f"Result: {state.game_status.value} after {state.current_turn} turns")
    if state.game_status is GameStatus.VICTORY:
        lives = args.lives if args.lives is not None else (puzzle.lives or 3)
        score = calculate_score(state, lives, lives)
        print(format_score_for_sharing(score, puzzle.name or puzzle.id))
        b = score.breakdown
        print(
            f"  base={b.base_points} chars={b.character_bonus:+d} turns={b.turn_bonus:+d}"
            f" lives={b.lives_bonus:+d} quests={b.side_quest_points:+d}"
        )


if __name__ == "__main__":
    main()

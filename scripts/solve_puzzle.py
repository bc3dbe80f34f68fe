"""Check a puzzle for solvability.

Usage:
    uv run python scripts/solve_puzzle.py crossroads.json [--custom my_defs.json]
        [--max-combinations 100000] [--max-turns 200] [--first] [--verbose]
"""

from __future__ import annotations

import argparse
import logging
import sys
import time

from grid_tactics.sim.content.registry import ContentRegistry, load_puzzle
from grid_tactics.solver import ProgressInfo, SolverOptions, quick_validate, solve_puzzle


def _progress(info: ProgressInfo) -> None:
    marker = " (solution found)" if info.found else ""
    print(f"  ... {info.tested:,} combinations tested{marker}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Solve a grid-tactics puzzle")
    parser.add_argument("puzzle", help="Puzzle JSON file (bare names are looked up in data/puzzles/)")
    parser.add_argument("--custom", type=str, default=None, help="Custom definitions bundle")
    parser.add_argument("--max-combinations", type=int, default=100_000)
    parser.add_argument("--max-turns", type=int, default=200, help="Turns simulated per candidate")
    parser.add_argument("--first", action="store_true", help="Stop at the first solution")
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
    print(f"Puzzle: {puzzle.name or puzzle.id} ({puzzle.width}x{puzzle.height})")

    validation = quick_validate(puzzle, registry)
    if not validation.valid:
        print("Puzzle has structural issues:")
        for issue in validation.issues:
            print(f"  - {issue}")
        sys.exit(1)

    options = SolverOptions(
        max_simulation_turns=args.max_turns,
        max_combinations=args.max_combinations,
        find_fastest=not args.first,
    )
    t0 = time.perf_counter()
    result = solve_puzzle(puzzle, registry, options, progress_callback=_progress)
    elapsed = time.perf_counter() - t0

    print()
    print("=" * 50)
    if result.solvable and result.solution_found is not None:
        print(f"SOLVABLE with {result.min_characters_needed} character(s)")
        print(f"Turns to win: {result.solution_found.turns_to_win}")
        for p in result.solution_found.placements:
            print(f"  {p.character_id:20s} at ({p.x}, {p.y}) facing {p.facing.value}")
    else:
        print("NOT SOLVABLE")
    if result.error:
        print(f"Note: {result.error}")
    print(f"Combinations tested: {result.total_combinations_tested:,}")
    print(f"Search time: {elapsed:.2f}s")
    print("=" * 50)


if __name__ == "__main__":
    main()

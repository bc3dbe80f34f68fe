"""Random puzzle generation, validated by the solver.

Each attempt lays out a board (holes, walls, a connectivity repair),
scatters enemies and special tiles, then asks the async solver whether
the result can be won.  The first solvable board is returned with its
par values filled in from the solution.

All randomness comes from a :class:`~grid_tactics.solver.rng.PuzzleRNG`;
attempt *n* of a given seed always produces the same board.
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
from collections import deque
from typing import TYPE_CHECKING, Callable, NamedTuple

from grid_tactics.ir.puzzle import EnemyPlacement, Puzzle, WinConditionType
from grid_tactics.ir.tiles import TeleportBehavior, Tile, TileType
from grid_tactics.sim.mechanics.board import distance
from grid_tactics.solver.models import (
    DifficultyLevel,
    EnemyPlacementStrategy,
    GenerationParameters,
    GenerationProgress,
    GenerationResult,
    SolverOptions,
)
from grid_tactics.solver.rng import PuzzleRNG
from grid_tactics.solver.search import quick_validate, solve_puzzle_async

if TYPE_CHECKING:
    from grid_tactics.sim.content.registry import DefinitionRepository

logger = logging.getLogger(__name__)

Grid = list[list[Tile | None]]
Coord = tuple[int, int]
GenerationProgressCallback = Callable[[GenerationProgress], None]

MAX_GENERATED_TURNS = 100
MAX_VALIDATION_TURNS = 50

_BASE_COMBINATIONS = {
    DifficultyLevel.EASY: 2000,
    DifficultyLevel.MEDIUM: 3000,
    DifficultyLevel.HARD: 4000,
    DifficultyLevel.EXPERT: 5000,
}

_WALL_DENSITY = {
    DifficultyLevel.EASY: 0.05,
    DifficultyLevel.MEDIUM: 0.12,
    DifficultyLevel.HARD: 0.18,
    DifficultyLevel.EXPERT: 0.25,
}

# Inclusive (low, high) ranges.
_SPECIAL_TILE_COUNTS = {
    DifficultyLevel.EASY: (0, 0),
    DifficultyLevel.MEDIUM: (1, 2),
    DifficultyLevel.HARD: (2, 4),
    DifficultyLevel.EXPERT: (3, 6),
}

_VOID_COUNTS = {
    DifficultyLevel.EASY: (0, 0),
    DifficultyLevel.MEDIUM: (0, 0),
    DifficultyLevel.HARD: (1, 2),
    DifficultyLevel.EXPERT: (1, 3),
}

_TELEPORTER_PAIRS = {
    DifficultyLevel.EASY: 0,
    DifficultyLevel.MEDIUM: 1,
    DifficultyLevel.HARD: 1,
    DifficultyLevel.EXPERT: 2,
}

_PRESETS: dict[DifficultyLevel, dict] = {
    DifficultyLevel.EASY: {"width": 6, "height": 6, "max_characters": 2, "enable_void_tiles": False},
    DifficultyLevel.MEDIUM: {"width": 8, "height": 8, "max_characters": 3, "enable_void_tiles": False},
    DifficultyLevel.HARD: {"width": 10, "height": 10, "max_characters": 3, "enable_void_tiles": True},
    DifficultyLevel.EXPERT: {"width": 12, "height": 10, "max_characters": 4, "enable_void_tiles": True},
}

_NEIGHBOURS = ((0, -1), (0, 1), (-1, 0), (1, 0))


def get_max_combinations(difficulty: DifficultyLevel, enemy_count: int) -> int:
    """Solver budget for one attempt: lower for crowded boards."""
    multiplier = max(0.5, 1 - (enemy_count - 1) * 0.15)
    return int(_BASE_COMBINATIONS[DifficultyLevel(difficulty)] * multiplier)


def get_difficulty_preset(difficulty: DifficultyLevel | str) -> dict:
    """Recommended board size and options for *difficulty*.

    Returns a fresh dict of :class:`GenerationParameters` fields; the
    caller supplies characters, enemies and win conditions.
    """
    preset = dict(_PRESETS[DifficultyLevel(difficulty)])
    preset["enabled_tile_types"] = []
    preset["max_turns"] = MAX_GENERATED_TURNS
    return preset


def validate_generation_params(params: GenerationParameters) -> list[str]:
    """Every problem with *params*; empty when generation may start."""
    errors: list[str] = []

    if not 4 <= params.width <= 20:
        errors.append("Width must be between 4 and 20")
    if not 4 <= params.height <= 20:
        errors.append("Height must be between 4 and 20")

    if not params.available_characters:
        errors.append("At least one character must be selected")
    if not 1 <= params.max_characters <= 4:
        errors.append("Max characters must be between 1 and 4")

    total_enemies = sum(config.count for config in params.enemy_types)
    if total_enemies == 0 and any(
        c.type is WinConditionType.DEFEAT_ALL_ENEMIES for c in params.win_conditions
    ):
        errors.append('Need at least one enemy for "defeat enemies" win condition')

    if params.width * params.height < total_enemies + params.max_characters + 5:
        errors.append("Grid too small for the number of enemies and characters")

    if not params.win_conditions:
        errors.append("At least one win condition must be specified")

    return errors


# ---------------------------------------------------------------------------
# Grid helpers
# ---------------------------------------------------------------------------

def empty_grid(width: int, height: int) -> Grid:
    return [[Tile(x=x, y=y) for x in range(width)] for y in range(height)]


def _copy_grid(grid: Grid) -> Grid:
    return [list(row) for row in grid]


def _is_open(grid: Grid, x: int, y: int) -> bool:
    if not (0 <= y < len(grid) and 0 <= x < len(grid[0])):
        return False
    tile = grid[y][x]
    return tile is not None and tile.type is not TileType.WALL


def _set_type(grid: Grid, x: int, y: int, tile_type: TileType) -> None:
    grid[y][x] = Tile(x=x, y=y, type=tile_type)


# ---------------------------------------------------------------------------
# Holes
# ---------------------------------------------------------------------------

class _Region(NamedTuple):
    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height


def _bad_adjacency(a: _Region, b: _Region) -> bool:
    """Corner-only contact, or a shared edge overlapping by a single tile."""
    if (a.right == b.x or a.x == b.right) and (a.bottom == b.y or a.y == b.bottom):
        return True
    if a.right == b.x or b.right == a.x:
        overlap = min(a.bottom, b.bottom) - max(a.y, b.y)
        if 0 < overlap < 2:
            return True
    if a.bottom == b.y or b.bottom == a.y:
        overlap = min(a.right, b.right) - max(a.x, b.x)
        if 0 < overlap < 2:
            return True
    return False


def _conflicts(region: _Region, existing: list[_Region]) -> bool:
    for other in existing:
        overlaps = (
            region.x < other.right and region.right > other.x
            and region.y < other.bottom and region.bottom > other.y
        )
        if overlaps or _bad_adjacency(region, other):
            return True
    return False


def _interior_void(rng: PuzzleRNG, width: int, height: int, existing: list[_Region]) -> _Region | None:
    """A hole at least 2x2 with a one-tile border all round."""
    max_w = min(4, width // 3)
    max_h = min(4, height // 3)
    if max_w < 2 or max_h < 2:
        return None
    w = rng.randint(2, max_w)
    h = rng.randint(2, max_h)
    max_x = width - w - 1
    max_y = height - h - 1
    if max_x < 1 or max_y < 1:
        return None
    for _ in range(10):
        candidate = _Region(rng.randint(1, max_x), rng.randint(1, max_y), w, h)
        if not _conflicts(candidate, existing):
            return candidate
    return None


def _edge_void(rng: PuzzleRNG, width: int, height: int, existing: list[_Region]) -> _Region | None:
    """A bite out of one edge of the board."""
    edge = rng.randint(0, 3)
    if edge == 0:
        region = _Region(rng.randint(0, max(0, width - 3)), 0,
                         rng.randint(2, min(4, width - 1)), rng.randint(1, 2))
    elif edge == 1:
        region = _Region(width - rng.randint(1, 2), rng.randint(0, max(0, height - 3)),
                         rng.randint(1, 2), rng.randint(2, min(4, height - 1)))
    elif edge == 2:
        region = _Region(rng.randint(0, max(0, width - 3)), height - rng.randint(1, 2),
                         rng.randint(2, min(4, width - 1)), rng.randint(1, 2))
    else:
        region = _Region(0, rng.randint(0, max(0, height - 3)),
                         rng.randint(1, 2), rng.randint(2, min(4, height - 1)))
    region = region._replace(
        width=min(region.width, width - region.x),
        height=min(region.height, height - region.y),
    )
    if _conflicts(region, existing):
        return None
    return region


def add_void_regions(grid: Grid, difficulty: DifficultyLevel, rng: PuzzleRNG, force: bool = False) -> Grid:
    """Punch rectangular holes into the board; harder levels get more."""
    low, high = _VOID_COUNTS[difficulty]
    count = rng.randint(low, high) if high else 0
    if force and count == 0:
        count = 1
    if count == 0:
        return grid

    height, width = len(grid), len(grid[0])
    result = _copy_grid(grid)
    regions: list[_Region] = []
    for _ in range(count):
        make = _edge_void if rng.chance(0.6) else _interior_void
        region = make(rng, width, height, regions)
        if region is None:
            continue
        for y in range(region.y, min(region.bottom, height)):
            for x in range(region.x, min(region.right, width)):
                result[y][x] = None
        regions.append(region)
    return result


# ---------------------------------------------------------------------------
# Walls
# ---------------------------------------------------------------------------

def _place_random_walls(grid: Grid, count: int, candidates: list[Coord], rng: PuzzleRNG) -> int:
    placed = 0
    for x, y in rng.shuffled(candidates)[:count]:
        if grid[y][x] is not None:
            _set_type(grid, x, y, TileType.WALL)
            placed += 1
    return placed


def _try_wall(grid: Grid, x: int, y: int) -> bool:
    if _is_open(grid, x, y):
        _set_type(grid, x, y, TileType.WALL)
        return True
    return False


def _fill_remaining(grid: Grid, count: int, rng: PuzzleRNG) -> None:
    if count <= 0:
        return
    remaining = [
        (x, y)
        for y, row in enumerate(grid)
        for x, tile in enumerate(row)
        if tile is not None and tile.type is not TileType.WALL
    ]
    _place_random_walls(grid, count, remaining, rng)


def _place_corridor_walls(grid: Grid, count: int, rng: PuzzleRNG) -> None:
    """One or two straight segments, topped up with scattered walls."""
    height, width = len(grid), len(grid[0])
    placed = 0
    for _ in range(rng.randint(1, 2)):
        if placed >= count:
            break
        if rng.chance(0.5):
            y = rng.randint(1, height - 2)
            start = rng.randint(0, width // 2)
            cells = [(x, y) for x in range(start, start + rng.randint(2, min(4, width - start)))]
        else:
            x = rng.randint(1, width - 2)
            start = rng.randint(0, height // 2)
            cells = [(x, y) for y in range(start, start + rng.randint(2, min(4, height - start)))]
        for cx, cy in cells:
            if placed < count and _try_wall(grid, cx, cy):
                placed += 1
    _fill_remaining(grid, count - placed, rng)


def _place_maze_walls(grid: Grid, count: int, rng: PuzzleRNG) -> None:
    """Two or three L and T shapes, topped up with scattered walls."""
    height, width = len(grid), len(grid[0])
    placed = 0
    for _ in range(rng.randint(2, 3)):
        if placed >= count:
            break
        cx = rng.randint(2, width - 3)
        cy = rng.randint(2, height - 3)
        cells: list[Coord] = []
        if rng.randint(0, 1) == 0:
            arm = rng.randint(2, 3)
            sign = 1 if rng.chance(0.5) else -1
            for i in range(arm):
                cells.append((cx + sign * i, cy))
                cells.append((cx, cy + sign * i))
        else:
            cells.extend([(cx, cy), (cx - 1, cy), (cx + 1, cy), (cx, cy + 1), (cx, cy + 2)])
        for x, y in cells:
            if placed < count and _try_wall(grid, x, y):
                placed += 1
    _fill_remaining(grid, count - placed, rng)


def add_walls(grid: Grid, difficulty: DifficultyLevel, rng: PuzzleRNG) -> Grid:
    """Wall off a share of the board; the pattern depends on difficulty."""
    difficulty = DifficultyLevel(difficulty)
    result = _copy_grid(grid)
    existing = [(x, y) for y, row in enumerate(result) for x, tile in enumerate(row) if tile is not None]
    count = int(len(existing) * _WALL_DENSITY[difficulty])

    if difficulty is DifficultyLevel.EASY:
        _place_random_walls(result, count, existing, rng)
    elif difficulty is DifficultyLevel.MEDIUM:
        _place_corridor_walls(result, count, rng)
    else:
        _place_maze_walls(result, count, rng)
    return result


# ---------------------------------------------------------------------------
# Connectivity
# ---------------------------------------------------------------------------

def find_connected_regions(grid: Grid) -> list[set[Coord]]:
    """Groups of walkable tiles joined orthogonally, discovered row-major."""
    seen: set[Coord] = set()
    regions: list[set[Coord]] = []
    for y, row in enumerate(grid):
        for x in range(len(row)):
            if (x, y) in seen or not _is_open(grid, x, y):
                continue
            region: set[Coord] = set()
            stack = [(x, y)]
            while stack:
                px, py = stack.pop()
                if (px, py) in seen or not _is_open(grid, px, py):
                    continue
                seen.add((px, py))
                region.add((px, py))
                stack.extend((px + dx, py + dy) for dx, dy in _NEIGHBOURS)
            regions.append(region)
    return regions


def _carve_path(grid: Grid, region: set[Coord], main: set[Coord]) -> bool:
    """Clear the walls on a shortest route from *region* into *main*.

    Walls are crossed freely; holes are not.
    """
    came_from: dict[Coord, Coord | None] = {tile: None for tile in sorted(region)}
    queue = deque(came_from)
    height, width = len(grid), len(grid[0])
    while queue:
        x, y = queue.popleft()
        for dx, dy in _NEIGHBOURS:
            nxt = (x + dx, y + dy)
            if nxt in came_from or not (0 <= nxt[0] < width and 0 <= nxt[1] < height):
                continue
            if grid[nxt[1]][nxt[0]] is None:
                continue
            came_from[nxt] = (x, y)
            if nxt in main:
                step = came_from[nxt]
                while step is not None:
                    tile = grid[step[1]][step[0]]
                    if tile is not None and tile.type is TileType.WALL:
                        _set_type(grid, step[0], step[1], TileType.EMPTY)
                    step = came_from[step]
                return True
            queue.append(nxt)
    return False


def ensure_connectivity(grid: Grid) -> Grid:
    """Join every walkable region to the largest one."""
    result = _copy_grid(grid)
    regions = find_connected_regions(result)
    if len(regions) <= 1:
        return result

    main = max(regions, key=len)
    for region in regions:
        if region is main:
            continue
        if not _carve_path(result, region, main):
            logger.debug("Region of %d tiles is walled in by holes", len(region))
        main |= region
    return result


# ---------------------------------------------------------------------------
# Enemies
# ---------------------------------------------------------------------------

def _placeable(grid: Grid, repository: DefinitionRepository | None) -> list[Coord]:
    coords: list[Coord] = []
    for y, row in enumerate(grid):
        for x, tile in enumerate(row):
            if tile is None or tile.type is not TileType.EMPTY:
                continue
            if tile.custom_tile_type_id and repository is not None:
                tile_type = repository.get_tile_type(tile.custom_tile_type_id)
                if tile_type is not None and tile_type.prevent_placement:
                    continue
            coords.append((x, y))
    return coords


def _select_enemy_position(
    available: list[Coord],
    strategy: EnemyPlacementStrategy,
    placed: list[EnemyPlacement],
    rng: PuzzleRNG,
) -> Coord:
    if placed and strategy is EnemyPlacementStrategy.CLUSTERED:
        last = placed[-1]
        nearest = sorted(available, key=lambda c: distance(c[0], c[1], last.x, last.y))
        return nearest[rng.randint(0, max(1, len(nearest) // 3) - 1)]
    if placed and strategy is EnemyPlacementStrategy.SPREAD:
        best, best_gap = available[0], 0.0
        for x, y in available:
            gap = min(distance(x, y, e.x, e.y) for e in placed)
            if gap > best_gap:
                best, best_gap = (x, y), gap
        return best
    return rng.choice(available)


def place_enemies(
    grid: Grid,
    params: GenerationParameters,
    rng: PuzzleRNG,
    repository: DefinitionRepository | None = None,
) -> list[EnemyPlacement]:
    """Place each configured enemy; stops quietly when the board is full."""
    candidates = _placeable(grid, repository)
    occupied: set[Coord] = set()
    enemies: list[EnemyPlacement] = []
    for config in params.enemy_types:
        for _ in range(config.count):
            available = [c for c in candidates if c not in occupied]
            if not available:
                logger.debug("No room left for enemy %s", config.enemy_id)
                break
            x, y = _select_enemy_position(available, config.placement, enemies, rng)
            enemies.append(EnemyPlacement(enemy_id=config.enemy_id, x=x, y=y))
            occupied.add((x, y))
    return enemies


# ---------------------------------------------------------------------------
# Special tiles
# ---------------------------------------------------------------------------

def _walking_distances(grid: Grid, start: Coord, blocked: set[Coord]) -> dict[Coord, int]:
    """Orthogonal BFS step counts from *start*, treating enemies as blockers."""
    distances = {start: 0}
    queue = deque([start])
    while queue:
        x, y = queue.popleft()
        for dx, dy in _NEIGHBOURS:
            nxt = (x + dx, y + dy)
            if nxt in distances or nxt in blocked or not _is_open(grid, *nxt):
                continue
            distances[nxt] = distances[(x, y)] + 1
            queue.append(nxt)
    return distances


def _near_enemy(pos: Coord, enemies: list[EnemyPlacement], reach: float) -> bool:
    return any(distance(pos[0], pos[1], e.x, e.y) <= reach for e in enemies)


def _tucked_away(grid: Grid, pos: Coord) -> bool:
    """Blocked on at least two sides."""
    x, y = pos
    return sum(not _is_open(grid, x + dx, y + dy) for dx, dy in _NEIGHBOURS) >= 2


def _teleporter_pairs(
    grid: Grid,
    enemies: list[EnemyPlacement],
    candidates: list[Coord],
    max_pairs: int,
    rng: PuzzleRNG,
) -> list[tuple[Coord, Coord]]:
    """Pick tile pairs a teleporter would make interesting.

    Pairs score higher the more walking they save (unreachable pairs
    most of all), when they sit near but not next to enemies, and when
    they are tucked into corners.  A random bonus and occasional skips
    of top picks keep boards from repeating.
    """
    if len(candidates) < 4:
        return []
    span = max(len(grid), len(grid[0]))
    sample = rng.shuffled(candidates)[:20] if len(candidates) > 20 else list(candidates)
    blocked = {(e.x, e.y) for e in enemies}
    walks = {tile: _walking_distances(grid, tile, blocked) for tile in sample}

    scored: list[tuple[float, Coord, Coord]] = []
    for i, a in enumerate(sample):
        for b in sample[i + 1:]:
            direct = distance(a[0], a[1], b[0], b[1])
            if direct < 3:
                continue
            walk = walks[a].get(b)
            strategic = 100.0 if walk is None else (walk - 1) * 5.0
            for tile in (a, b):
                if _near_enemy(tile, enemies, 2):
                    strategic += 8
                elif _near_enemy(tile, enemies, 4):
                    strategic += 15
                if _tucked_away(grid, tile):
                    strategic += 10
            if 0.3 < direct / span < 0.7:
                strategic += 5
            score = strategic + rng.random() * max(strategic * 0.4, 30)
            if strategic > 5 or (strategic > 0 and rng.chance(0.3)):
                scored.append((score, a, b))

    scored.sort(key=lambda entry: entry[0], reverse=True)
    chosen: list[tuple[Coord, Coord]] = []
    used: set[Coord] = set()
    skips_left = rng.randint(0, 2)
    for _, a, b in scored:
        if a in used or b in used:
            continue
        if skips_left and rng.chance(0.4):
            skips_left -= 1
            continue
        chosen.append((a, b))
        used.update((a, b))
        if len(chosen) >= max_pairs:
            break
    return chosen


def place_special_tiles(
    grid: Grid,
    enemies: list[EnemyPlacement],
    params: GenerationParameters,
    rng: PuzzleRNG,
    repository: DefinitionRepository | None,
) -> Grid:
    """Scatter enabled custom tile types; teleporters go down in pairs first."""
    if not params.enabled_tile_types:
        return grid

    low, high = _SPECIAL_TILE_COUNTS[params.difficulty]
    count = rng.randint(low, high) if high else 0
    if params.force_special_tiles and count == 0:
        count = 2
    if count == 0:
        return grid

    result = _copy_grid(grid)
    occupied = {(e.x, e.y) for e in enemies}
    candidates = [
        (x, y)
        for y, row in enumerate(result)
        for x, tile in enumerate(row)
        if tile is not None and tile.type is TileType.EMPTY and (x, y) not in occupied
    ]

    teleport_types: list[str] = []
    other_types: list[str] = []
    for type_id in params.enabled_tile_types:
        tile_type = repository.get_tile_type(type_id) if repository is not None else None
        if tile_type is None:
            logger.warning("Skipping unknown tile type %r", type_id)
            continue
        if any(isinstance(b, TeleportBehavior) for b in tile_type.behaviors):
            teleport_types.append(type_id)
        else:
            other_types.append(type_id)

    used: set[Coord] = set()
    pair_count = min(_TELEPORTER_PAIRS[params.difficulty], len(teleport_types), count // 2)
    if pair_count > 0:
        pairs = _teleporter_pairs(result, enemies, candidates, pair_count, rng)
        for i, (pair, type_id) in enumerate(zip(pairs, rng.shuffled(teleport_types))):
            group = f"gen_teleport_{i}"
            for x, y in pair:
                result[y][x] = result[y][x].model_copy(
                    update={"custom_tile_type_id": type_id, "teleport_group_id": group}
                )
                used.add((x, y))

    if other_types:
        types = rng.shuffled(other_types)
        free = rng.shuffled(c for c in candidates if c not in used)
        for i, (x, y) in enumerate(free[: count - len(used)]):
            result[y][x] = result[y][x].model_copy(
                update={"custom_tile_type_id": types[i % len(types)]}
            )
    return result


# ---------------------------------------------------------------------------
# Assembly
# ---------------------------------------------------------------------------

def generate_layout(params: GenerationParameters, rng: PuzzleRNG) -> Grid:
    """Holes, then walls, then a connectivity repair."""
    grid = empty_grid(params.width, params.height)
    if params.enable_void_tiles:
        grid = add_void_regions(grid, params.difficulty, rng, params.force_void_tiles)
    grid = add_walls(grid, params.difficulty, rng)
    return ensure_connectivity(grid)


def build_puzzle(
    grid: Grid,
    enemies: list[EnemyPlacement],
    params: GenerationParameters,
    *,
    seed: int,
    attempt: int,
) -> Puzzle:
    return Puzzle(
        id=f"generated-{seed}-{attempt}",
        name=f"Generated {params.difficulty.value.title()} Puzzle",
        width=params.width,
        height=params.height,
        tiles=grid,
        enemies=enemies,
        win_conditions=params.win_conditions,
        available_characters=params.available_characters,
        max_characters=params.max_characters,
        max_turns=min(params.max_turns or MAX_GENERATED_TURNS, MAX_GENERATED_TURNS),
        lives=3 if params.lives is None else params.lives,
    )


def _report(
    callback: GenerationProgressCallback | None,
    attempt: int,
    max_attempts: int,
    phase: str,
    message: str,
) -> None:
    if callback is not None:
        callback(GenerationProgress(attempt=attempt, max_attempts=max_attempts, phase=phase, message=message))


async def generate_puzzle(
    params: GenerationParameters,
    repository: DefinitionRepository | None,
    *,
    seed: int | None = None,
    max_attempts: int = 10,
    progress_callback: GenerationProgressCallback | None = None,
) -> GenerationResult:
    """Generate a solvable puzzle matching *params*.

    Parameters
    ----------
    params:
        Board size, roster, enemies and win conditions to build around.
    repository:
        Definitions used for tile types and by the solver.
    seed:
        Reproduces a previous run.  A fresh seed is drawn and logged
        when omitted.
    max_attempts:
        Boards tried before giving up.
    progress_callback:
        Called at the start of each attempt and before its solver run.

    Returns
    -------
    GenerationResult
        On success ``puzzle`` carries par values from the solution found.
    """
    started = time.perf_counter()

    def elapsed_ms() -> float:
        return (time.perf_counter() - started) * 1000.0

    if seed is None:
        seed = random.randrange(1 << 32)
        logger.info("Generating puzzle with seed %d", seed)

    errors = validate_generation_params(params)
    if errors:
        return GenerationResult(
            success=False, seed=seed, generation_time_ms=elapsed_ms(), error="; ".join(errors),
        )

    root = PuzzleRNG(seed)
    for attempt in range(1, max_attempts + 1):
        await asyncio.sleep(0)
        _report(progress_callback, attempt, max_attempts, "generating",
                f"Generating layout (attempt {attempt}/{max_attempts})...")

        rng = root.fork(f"attempt-{attempt}")
        grid = generate_layout(params, rng)
        enemies = place_enemies(grid, params, rng, repository)
        grid = place_special_tiles(grid, enemies, params, rng, repository)
        puzzle = build_puzzle(grid, enemies, params, seed=seed, attempt=attempt)

        quick = quick_validate(puzzle, repository)
        if not quick.valid:
            logger.debug("Attempt %d rejected: %s", attempt, "; ".join(quick.issues))
            continue

        _report(progress_callback, attempt, max_attempts, "validating",
                f"Validating solvability (attempt {attempt}/{max_attempts})...")
        options = SolverOptions(
            max_simulation_turns=min(params.max_turns or MAX_GENERATED_TURNS, MAX_VALIDATION_TURNS),
            max_combinations=get_max_combinations(params.difficulty, len(enemies)),
            find_fastest=False,
            yield_every=20,
        )
        validation = await solve_puzzle_async(puzzle, repository, options)
        if not validation.solvable:
            logger.debug("Attempt %d not solvable (%d candidates)", attempt,
                         validation.total_combinations_tested)
            continue

        solution = validation.solution_found
        puzzle = puzzle.model_copy(update={
            "par_characters": validation.min_characters_needed,
            "par_turns": solution.turns_to_win if solution is not None else None,
        })
        logger.info("Generated %s on attempt %d", puzzle.id, attempt)
        return GenerationResult(
            success=True,
            puzzle=puzzle,
            validation_result=validation,
            seed=seed,
            generation_time_ms=elapsed_ms(),
            attempts_used=attempt,
        )

    return GenerationResult(
        success=False,
        seed=seed,
        generation_time_ms=elapsed_ms(),
        attempts_used=max_attempts,
        error=(
            f"Could not generate solvable puzzle after {max_attempts} attempts. "
            "Try adjusting parameters (fewer enemies, more characters, or larger map)."
        ),
    )

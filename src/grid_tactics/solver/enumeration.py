"""Lazy enumeration of placement candidates.

A candidate assigns each character of a roster subset to its own valid
tile.  :class:`PlacementSpace` is a finite, restartable iterable: every
``iter()`` call starts a fresh walk in the same deterministic order, so
a search can be re-run or sized without materialising the candidates.
"""

from __future__ import annotations

from itertools import combinations, permutations
from math import comb, perm
from typing import Iterator, Sequence

from grid_tactics.ir.directions import Direction
from grid_tactics.solver.models import CharacterPlacement


class PlacementSpace:
    """All placements of *count* distinct characters on distinct tiles.

    Order: roster combinations in roster order (``itertools.combinations``),
    then for each combination every ordered choice of tiles
    (``itertools.permutations``) over *tiles* in the given order.

    Parameters
    ----------
    roster:
        Available character ids.
    tiles:
        Valid placement tiles, usually in row-major order.
    count:
        Characters per placement.
    facings:
        Facing for each character id; missing ids face south.
    """

    def __init__(
        self,
        roster: Sequence[str],
        tiles: Sequence[tuple[int, int]],
        count: int,
        facings: dict[str, Direction] | None = None,
    ) -> None:
        if count < 1:
            raise ValueError(f"count must be >= 1, got {count}")
        self.roster = list(roster)
        self.tiles = list(tiles)
        self.count = count
        self.facings = dict(facings or {})

    def __len__(self) -> int:
        return comb(len(self.roster), self.count) * perm(len(self.tiles), self.count)

    def __iter__(self) -> Iterator[list[CharacterPlacement]]:
        for characters in combinations(self.roster, self.count):
            for chosen in permutations(self.tiles, self.count):
                yield [
                    CharacterPlacement(
                        character_id=character_id,
                        x=x,
                        y=y,
                        facing=self.facings.get(character_id, Direction.SOUTH),
                    )
                    for character_id, (x, y) in zip(characters, chosen)
                ]

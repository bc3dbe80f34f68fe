"""Seeded random source for puzzle generation.

Every random decision the generator makes is drawn from a
:class:`PuzzleRNG`, so a seed reproduces a layout exactly.  Each
generation attempt draws from its own fork, which keeps attempt *n*
identical no matter how much randomness earlier attempts consumed.
"""

from __future__ import annotations

import hashlib
import random
from typing import Iterable, Sequence, TypeVar

T = TypeVar("T")


class PuzzleRNG:
    """Deterministic RNG with named, independent sub-streams.

    Parameters
    ----------
    seed:
        Integer seed for the underlying Mersenne Twister.
    """

    def __init__(self, seed: int) -> None:
        self._seed = seed
        self._rng = random.Random(seed)

    @property
    def seed(self) -> int:
        return self._seed

    def randint(self, low: int, high: int) -> int:
        """Integer in ``[low, high]``; ``low`` when the range is empty."""
        if high < low:
            return low
        return self._rng.randint(low, high)

    def random(self) -> float:
        return self._rng.random()

    def chance(self, probability: float) -> bool:
        return self._rng.random() < probability

    def choice(self, seq: Sequence[T]) -> T:
        return self._rng.choice(seq)

    def shuffled(self, items: Iterable[T]) -> list[T]:
        """Return a shuffled copy of *items*."""
        result = list(items)
        self._rng.shuffle(result)
        return result

    def fork(self, name: str) -> PuzzleRNG:
        """Child RNG seeded from ``(seed, name)``.

        The child depends only on this RNG's seed and *name*, never on how
        many values have been drawn so far.
        """
        digest = hashlib.sha256(f"{self._seed}:{name}".encode()).digest()
        return PuzzleRNG(int.from_bytes(digest[:8], "big"))

    def __repr__(self) -> str:
        return f"PuzzleRNG(seed={self._seed})"

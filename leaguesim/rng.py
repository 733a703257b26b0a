"""Seeded random source shared by every simulation component.

All randomness in the engine flows through :class:`RandomStream`.  A stream
is a :class:`random.Random` seeded with an integer, so ``create(seed)``
followed by the same sequence of calls always reproduces the same values.
The helper draws below are built on :meth:`RandomStream.next` only; nothing
in the engine reads the clock, the OS entropy pool or the global ``random``
module state.

The schedule shuffle uses the small 32-bit LCG in :class:`Lcg32` so its
output is fixed independently of any simulation seed.
"""
from __future__ import annotations

from typing import Mapping, Sequence, TypeVar
import math
import random

T = TypeVar("T")

# Multiplicative hashing constant (2^32 / golden ratio) used to spread game
# ids across the seed space.
_GOLDEN_GAMMA = 2654435761
_MASK32 = 0xFFFFFFFF


class RandomStream(random.Random):
    """Deterministic uniform stream with a few derived distributions."""

    def __init__(self, seed: int) -> None:
        if isinstance(seed, bool) or not isinstance(seed, int):
            raise ValueError(f"seed must be an int, got {type(seed).__name__}")
        if seed < 0:
            raise ValueError("seed must be non-negative")
        self.initial_seed = seed
        super().__init__(seed)

    def next(self) -> float:
        """Return the next uniform draw in ``[0, 1)``."""
        return self.random()

    def uniform(self, low: float, high: float) -> float:
        return low + (high - low) * self.random()

    def randint(self, low: int, high: int) -> int:
        """Return an integer in the inclusive range ``low``..``high``."""
        if high < low:
            raise ValueError("high must be >= low")
        return low + int(self.random() * (high - low + 1))

    def choice(self, items: Sequence[T]) -> T:
        if not items:
            raise ValueError("cannot choose from an empty sequence")
        return items[int(self.random() * len(items))]

    def gaussian(self, mean: float = 0.0, sigma: float = 1.0) -> float:
        """Box–Muller normal draw consuming two uniforms."""
        u1 = self.random()
        u2 = self.random()
        # ``1 - u1`` keeps the logarithm argument in (0, 1].
        z = math.sqrt(-2.0 * math.log(1.0 - u1)) * math.cos(2.0 * math.pi * u2)
        return mean + sigma * z

    def clamped_gaussian(
        self, mean: float, sigma: float, low: float, high: float, *, integer: bool = True
    ) -> float:
        value = min(high, max(low, self.gaussian(mean, sigma)))
        return round(value) if integer else value

    def weighted_pick(self, weights: Mapping[T, float]) -> T:
        """Select a key of ``weights`` proportionally to its value."""
        total = sum(weights.values())
        if total <= 0:
            raise ValueError("weights must sum to a positive value")
        r = self.random() * total
        upto = 0.0
        last = None
        for item, weight in weights.items():
            upto += weight
            last = item
            if r < upto:
                return item
        # Floating point rounding can leave ``r`` just past the last bucket.
        return last  # type: ignore[return-value]


def create(seed: int) -> RandomStream:
    """Return a new stream seeded with ``seed``."""
    return RandomStream(seed)


def derive_seed(base_seed: int, game_id: int) -> int:
    """Return the per-game seed for ``game_id`` within a season seeded ``base_seed``.

    Each game gets an independent, reproducible seed that depends only on the
    season seed and the game's id, not on execution order.
    """
    return (base_seed ^ (game_id * _GOLDEN_GAMMA)) & _MASK32


class Lcg32:
    """32-bit linear congruential generator (Numerical Recipes constants)."""

    def __init__(self, seed: int) -> None:
        self.state = seed & _MASK32

    def next(self) -> float:
        self.state = (self.state * 1664525 + 1013904223) & _MASK32
        return self.state / 4294967296.0

    def shuffle(self, items: list) -> list:
        """Fisher–Yates shuffle of ``items`` in place, returning the list."""
        for i in range(len(items) - 1, 0, -1):
            j = int(self.next() * (i + 1))
            items[i], items[j] = items[j], items[i]
        return items


__all__ = ["RandomStream", "create", "derive_seed", "Lcg32"]

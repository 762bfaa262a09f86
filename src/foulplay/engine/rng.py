"""String-seeded deterministic randomness.

Everything downstream (deck mixes, reshuffles, replaying a room from its
seed) depends on this module having no hidden entropy source. Bump
RNG_VERSION whenever the algorithm changes, since that changes every
historical replay.
"""

from __future__ import annotations

import random
from collections.abc import Callable
from typing import MutableSequence, TypeVar

RNG_VERSION = 1

T = TypeVar("T")


def create_rng(seed: str) -> Callable[[], float]:
    """Return a generator of floats in [0, 1) that depends only on `seed`.

    `random.Random` hashes str seeds with SHA-512 and the Mersenne Twister
    output is identical on every platform, so the stream is reproducible.
    """
    rng = random.Random(f"foulplay-v{RNG_VERSION}:{seed}")
    return rng.random


def shuffle(items: MutableSequence[T], seed: str) -> MutableSequence[T]:
    """Fisher-Yates shuffle of `items` in place; returns the same object."""
    if len(items) < 2:
        return items
    rng = create_rng(seed)
    for i in range(len(items) - 1, 0, -1):
        j = int(rng() * (i + 1))
        items[i], items[j] = items[j], items[i]
    return items


def sample_with_replacement(pool: list[T], count: int, seed: str) -> list[T]:
    if not pool or count <= 0:
        return []
    rng = create_rng(seed)
    return [pool[int(rng() * len(pool))] for _ in range(count)]

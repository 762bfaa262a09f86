from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import dataclass

from .rng import sample_with_replacement, shuffle
from .types import Severity

DEFAULT_MODE = "party"


@dataclass(frozen=True)
class SeverityMix:
    mild: float
    moderate: float
    severe: float


# Single source of truth for difficulty.
MODE_MIX: dict[str, SeverityMix] = {
    "casual": SeverityMix(mild=0.70, moderate=0.25, severe=0.05),
    "party": SeverityMix(mild=0.50, moderate=0.35, severe=0.15),
    "lit": SeverityMix(mild=0.40, moderate=0.35, severe=0.25),
    "non-drinking": SeverityMix(mild=0.70, moderate=0.25, severe=0.05),
}

# Pool order is also the top-up order for shortfalls.
_POOL_SEED_SUFFIX: dict[Severity, str] = {"mild": "m", "moderate": "mod", "severe": "s"}


def resolve_mode(mode: str | None) -> str:
    if mode in MODE_MIX:
        return mode  # type: ignore[return-value]
    return DEFAULT_MODE


def build_plain_deck(seed: str, card_count: int) -> list[int]:
    return list(shuffle(list(range(max(0, card_count))), seed))


def target_counts(card_count: int, pool_sizes: dict[Severity, int], mode: str | None) -> dict[Severity, int]:
    """How many cards of each severity a deck of `card_count` should hold.

    Targets come from the mode mix, are capped at each pool's size and any
    shortfall is topped up mild first, then moderate, then severe.
    """
    mix = MODE_MIX[resolve_mode(mode)]
    mild = math.floor(card_count * mix.mild)
    moderate = math.floor(card_count * mix.moderate)
    severe = card_count - mild - moderate
    if severe < 0:
        moderate = card_count - mild
        severe = 0

    targets: dict[Severity, int] = {
        "mild": min(mild, pool_sizes.get("mild", 0)),
        "moderate": min(moderate, pool_sizes.get("moderate", 0)),
        "severe": min(severe, pool_sizes.get("severe", 0)),
    }

    shortfall = card_count - sum(targets.values())
    for sev in _POOL_SEED_SUFFIX:
        if shortfall <= 0:
            break
        headroom = pool_sizes.get(sev, 0) - targets[sev]
        add = min(headroom, shortfall)
        if add > 0:
            targets[sev] += add
            shortfall -= add
    return targets


def build_mode_weighted_deck(
    seed: str,
    card_count: int,
    severity_of: Callable[[int], Severity],
    mode: str | None,
) -> list[int]:
    """Build a deck of `card_count` indices whose severity mix follows `mode`.

    Each pool is sampled with replacement from its own derived seed, so the
    same index may appear more than once.
    """
    if card_count <= 0:
        return []

    pools: dict[Severity, list[int]] = {sev: [] for sev in _POOL_SEED_SUFFIX}
    for index in range(card_count):
        pools[severity_of(index)].append(index)

    targets = target_counts(card_count, {sev: len(p) for sev, p in pools.items()}, mode)

    deck: list[int] = []
    for sev, suffix in _POOL_SEED_SUFFIX.items():
        deck.extend(sample_with_replacement(pools[sev], targets[sev], f"{seed}-{suffix}"))
    return list(shuffle(deck, seed))

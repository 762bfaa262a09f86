"""Display helpers: what a card's penalty text reads like in a given mode."""

from __future__ import annotations

import re

from .types import Penalties

NON_DRINKING_TEXT = "Earn points when this event occurs."

# Severe fixed penalties keep their wording in every drinking mode.
FIXED_PENALTIES = frozenset(
    {Penalties.SHOT, Penalties.SHOTGUN, Penalties.FINISH, Penalties.FINISH_HALF}
)

_DRINKS_RE = re.compile(r"^Take (a|\d+) drinks?$")


def is_non_drinking_mode(mode: str | None) -> bool:
    return mode == "non-drinking"


def _drinks_text(count: int) -> str:
    if count == 1:
        return Penalties.DRINK
    return f"Take {count} drinks"


def scale_drinks(count: int, mode: str | None) -> int:
    if mode == "party":
        return count + 1
    if mode == "lit":
        return count * 2
    return count


def describe_for_mode(penalty_text: str, mode: str | None) -> str:
    if is_non_drinking_mode(mode):
        return NON_DRINKING_TEXT
    if penalty_text in FIXED_PENALTIES:
        return penalty_text
    m = _DRINKS_RE.match(penalty_text.strip())
    if m is None:
        return penalty_text
    raw = m.group(1)
    count = 1 if raw == "a" else int(raw)
    scaled = scale_drinks(count, mode)
    if scaled == count:
        return penalty_text
    return _drinks_text(scaled)

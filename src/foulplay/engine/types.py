from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Literal

Sport = Literal["football", "basketball"]
Severity = Literal["mild", "moderate", "severe"]
CardType = Literal["action", "challenge", "penalty"]
Mode = Literal["casual", "party", "lit", "non-drinking"]

Resolution = Literal["approved", "rejected", "pending"]
CardStatus = Literal["drawn", "submitted", "resolved", "discarded"]

SPORTS: tuple[Sport, ...] = ("football", "basketball")
SEVERITIES: tuple[Severity, ...] = ("mild", "moderate", "severe")
MODES: tuple[Mode, ...] = ("casual", "party", "lit", "non-drinking")


class Penalties:
    """Centralized penalty strings, so difficulty can be tuned in one place."""

    DRINK = "Take a drink"
    TWO_DRINKS = "Take 2 drinks"
    THREE_DRINKS = "Take 3 drinks"
    SHOT = "Take a shot"
    SHOTGUN = "Shotgun a beer"
    FINISH = "Finish your drink"
    FINISH_HALF = "Finish your drink + 1/2 another"


@dataclass(frozen=True)
class CardDefinition:
    sport: Sport
    title: str
    description: str
    severity: Severity
    type: CardType
    points: int

    @property
    def card_id(self) -> str:
        return f"{self.sport}:{self.title}"


@dataclass(frozen=True)
class CardCatalog:
    """Immutable per-sport card lists.

    List order is the index space decks refer to, so it must stay stable for
    the lifetime of a room.
    """

    cards: dict[str, tuple[CardDefinition, ...]] = field(default_factory=dict)

    def for_sport(self, sport: str) -> tuple[CardDefinition, ...]:
        return self.cards.get(sport, ())

    def get(self, sport: str, index: int) -> CardDefinition:
        return self.cards[sport][index]

    def severity_of(self, sport: str) -> Callable[[int], Severity]:
        defs = self.for_sport(sport)
        return lambda index: defs[index].severity

    def sports(self) -> Sequence[str]:
        return list(self.cards.keys())

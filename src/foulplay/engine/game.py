from __future__ import annotations

import time
from dataclasses import dataclass, replace
from typing import Sequence

from .deck import build_mode_weighted_deck, build_plain_deck
from .rng import shuffle
from .types import CardCatalog


@dataclass(frozen=True)
class GameConfig:
    hand_size: int = 5
    min_players: int = 2
    max_hand_size: int = 10

    def __post_init__(self) -> None:
        if not 1 <= self.hand_size <= self.max_hand_size:
            raise ValueError(f"hand_size must be between 1 and {self.max_hand_size}.")
        if self.min_players < 1:
            raise ValueError("min_players must be at least 1.")


@dataclass(frozen=True)
class GameState:
    room_id: str
    current_turn_player_id: str
    deck_seed: str
    deck: tuple[int, ...] = ()
    drawn_cards: tuple[int, ...] = ()
    active_card_instance_id: str | None = None
    mode: str | None = None


def initialize_game_state(
    room_id: str,
    player_ids: Sequence[str],
    sport: str,
    seed: str | None = None,
    mode: str | None = None,
    catalog: CardCatalog | None = None,
) -> GameState:
    """Create the state for a new game; the first player holds the first turn.

    Without a catalog the deck is left empty for the caller to build.
    """
    if not player_ids:
        raise ValueError("Cannot initialize game with no players")

    deck_seed = seed or f"{room_id}-{int(time.time() * 1000)}"
    deck: list[int] = []
    if catalog is not None:
        card_count = len(catalog.for_sport(sport))
        if mode is None:
            deck = build_plain_deck(deck_seed, card_count)
        else:
            deck = build_mode_weighted_deck(deck_seed, card_count, catalog.severity_of(sport), mode)

    return GameState(
        room_id=room_id,
        current_turn_player_id=player_ids[0],
        deck_seed=deck_seed,
        deck=tuple(deck),
        drawn_cards=(),
        active_card_instance_id=None,
        mode=mode,
    )


def reshuffle_seed(deck_seed: str, drawn_count: int) -> str:
    return f"{deck_seed}-r{drawn_count}"


def reshuffle(state: GameState) -> GameState:
    """Start a new epoch: same index multiset, new order, nothing drawn."""
    new_seed = reshuffle_seed(state.deck_seed, len(state.drawn_cards))
    deck = shuffle(list(state.deck), new_seed)
    return replace(state, deck_seed=new_seed, deck=tuple(deck), drawn_cards=())


def _first_undrawn(state: GameState) -> int | None:
    drawn = set(state.drawn_cards)
    for index in state.deck:
        if index not in drawn:
            return index
    return None


def draw_next_card(state: GameState) -> tuple[int | None, GameState]:
    """Draw the next card index.

    `drawn_cards` tracks index values, not deck positions: a value that
    appears several times in a weighted deck is dealt once per epoch. Once
    every distinct value is drawn the deck is reshuffled and drawing resumes.
    Returns (None, state) only for an empty deck.
    """
    if not state.deck:
        return None, state

    index = _first_undrawn(state)
    if index is None:
        state = reshuffle(state)
        index = _first_undrawn(state)
        assert index is not None

    return index, replace(state, drawn_cards=state.drawn_cards + (index,))


def draw_cards(state: GameState, count: int) -> tuple[list[int], GameState]:
    drawn: list[int] = []
    for _ in range(max(0, count)):
        index, state = draw_next_card(state)
        if index is None:
            break
        drawn.append(index)
    return drawn, state


def next_turn_player(current_player_id: str, player_ids: Sequence[str]) -> str:
    if not player_ids:
        return current_player_id
    try:
        current = list(player_ids).index(current_player_id)
    except ValueError:
        current = -1
    return player_ids[(current + 1) % len(player_ids)]


def advance_turn(state: GameState, player_ids: Sequence[str]) -> GameState:
    if not player_ids:
        return state
    return replace(state, current_turn_player_id=next_turn_player(state.current_turn_player_id, player_ids))

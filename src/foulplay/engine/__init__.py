"""Deterministic, headless game engine for FoulPlay.

IMPORTANT: This package does no I/O. Storage and event fan-out belong to the
caller (see foulplay.services).
"""

from .approval import SelectionMap, VoteCounts, count_votes, required_approvals, resolve_submission
from .deck import MODE_MIX, build_mode_weighted_deck, build_plain_deck, resolve_mode
from .display import describe_for_mode, is_non_drinking_mode
from .game import (
    GameConfig,
    GameState,
    advance_turn,
    draw_cards,
    draw_next_card,
    initialize_game_state,
    next_turn_player,
)
from .rng import create_rng, shuffle
from .types import CardCatalog, CardDefinition, Mode, Severity, Sport

__all__ = [
    "MODE_MIX",
    "CardCatalog",
    "CardDefinition",
    "GameConfig",
    "GameState",
    "Mode",
    "SelectionMap",
    "Severity",
    "Sport",
    "VoteCounts",
    "advance_turn",
    "build_mode_weighted_deck",
    "build_plain_deck",
    "count_votes",
    "create_rng",
    "describe_for_mode",
    "draw_cards",
    "draw_next_card",
    "initialize_game_state",
    "is_non_drinking_mode",
    "next_turn_player",
    "required_approvals",
    "resolve_mode",
    "resolve_submission",
    "shuffle",
]

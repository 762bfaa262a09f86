from __future__ import annotations

from typing import Mapping

from .game import GameState


def _int_tuple(raw: object) -> tuple[int, ...]:
    if not isinstance(raw, (list, tuple)):
        return ()
    return tuple(int(v) for v in raw if isinstance(v, int))


def snapshot(state: GameState) -> dict[str, object]:
    """Return a JSON-serializable canonical snapshot of the game state."""
    return {
        "room_id": state.room_id,
        "current_turn_player_id": state.current_turn_player_id,
        "active_card_instance_id": state.active_card_instance_id,
        "deck_seed": state.deck_seed,
        "deck": list(state.deck),
        "drawn_cards": list(state.drawn_cards),
        "mode": state.mode,
    }


def restore(data: Mapping[str, object]) -> GameState:
    room_id = data.get("room_id")
    turn = data.get("current_turn_player_id")
    seed = data.get("deck_seed")
    if not isinstance(room_id, str) or not isinstance(turn, str) or not isinstance(seed, str):
        raise ValueError("Game state snapshot is missing room_id, current_turn_player_id or deck_seed")
    active = data.get("active_card_instance_id")
    mode = data.get("mode")
    return GameState(
        room_id=room_id,
        current_turn_player_id=turn,
        deck_seed=seed,
        deck=_int_tuple(data.get("deck")),
        drawn_cards=_int_tuple(data.get("drawn_cards")),
        active_card_instance_id=active if isinstance(active, str) else None,
        mode=mode if isinstance(mode, str) else None,
    )

from __future__ import annotations

import pytest

from foulplay.engine.game import (
    GameConfig,
    GameState,
    advance_turn,
    draw_cards,
    draw_next_card,
    initialize_game_state,
    next_turn_player,
    reshuffle_seed,
)
from foulplay.engine.serialize import restore, snapshot
from foulplay.paths import get_paths
from foulplay.services.content import ContentService


def _load_catalog():
    paths = get_paths()
    return ContentService(paths.data_dir, paths.schema_dir).load_catalog()


def _state(deck: tuple[int, ...], drawn: tuple[int, ...] = (), turn: str = "player1") -> GameState:
    return GameState(room_id="room1", current_turn_player_id=turn, deck_seed="test-seed", deck=deck, drawn_cards=drawn)


# -------- initialize --------
def test_initialize_game_state_structure() -> None:
    state = initialize_game_state("room1", ["player1", "player2"], "football")
    assert state.room_id == "room1"
    assert state.current_turn_player_id == "player1"
    assert state.deck_seed.startswith("room1-")
    assert state.deck == ()
    assert state.drawn_cards == ()
    assert state.active_card_instance_id is None


def test_initialize_uses_provided_seed() -> None:
    state = initialize_game_state("room1", ["player1"], "football", seed="custom-seed")
    assert state.deck_seed == "custom-seed"


def test_initialize_without_players_fails_fast() -> None:
    with pytest.raises(ValueError, match="no players"):
        initialize_game_state("room1", [], "football")


def test_initialize_builds_deck_from_catalog() -> None:
    catalog = _load_catalog()
    plain = initialize_game_state("room1", ["a", "b"], "basketball", seed="s", catalog=catalog)
    assert sorted(plain.deck) == list(range(49))
    weighted = initialize_game_state("room1", ["a", "b"], "basketball", seed="s", mode="party", catalog=catalog)
    assert len(weighted.deck) == 49
    assert weighted.mode == "party"


def test_game_config_bounds() -> None:
    assert GameConfig().hand_size == 5
    with pytest.raises(ValueError):
        GameConfig(hand_size=0)
    with pytest.raises(ValueError):
        GameConfig(hand_size=11)


# -------- draw / reshuffle --------
def test_draw_returns_first_undrawn_value() -> None:
    state = _state((3, 1, 2))
    index, state = draw_next_card(state)
    assert index == 3
    index, state = draw_next_card(state)
    assert index == 1
    assert state.drawn_cards == (3, 1)


def test_draw_does_not_mutate_input() -> None:
    before = _state((0, 1, 2))
    _, after = draw_next_card(before)
    assert before.drawn_cards == ()
    assert after.drawn_cards == (0,)


def test_exhausted_deck_reshuffles_instead_of_returning_nothing() -> None:
    state = _state((0, 1, 2), drawn=(0, 1, 2))
    index, state = draw_next_card(state)
    assert index in (0, 1, 2)
    assert len(state.drawn_cards) == 1
    assert sorted(state.deck) == [0, 1, 2]
    assert state.deck_seed == reshuffle_seed("test-seed", 3)


def test_no_duplicate_values_within_an_epoch() -> None:
    state = _state(tuple(range(10)))
    drawn, state = draw_cards(state, 10)
    assert sorted(drawn) == list(range(10))
    assert state.deck_seed == "test-seed"
    # the eleventh draw starts a new epoch
    _, state = draw_next_card(state)
    assert len(state.drawn_cards) == 1
    assert state.deck_seed != "test-seed"


def test_duplicate_values_shorten_an_epoch() -> None:
    state = _state((4, 4, 2))
    first, state = draw_next_card(state)
    second, state = draw_next_card(state)
    assert (first, second) == (4, 2)
    third, state = draw_next_card(state)
    assert third in (2, 4)
    assert len(state.drawn_cards) == 1
    assert sorted(state.deck) == [2, 4, 4]


def test_mix_is_preserved_across_reshuffles() -> None:
    catalog = _load_catalog()
    state = initialize_game_state("room1", ["a"], "football", seed="mix", mode="lit", catalog=catalog)
    original = sorted(state.deck)
    seeds = {state.deck_seed}
    for _ in range(200):
        _, state = draw_next_card(state)
        seeds.add(state.deck_seed)
        assert sorted(state.deck) == original
    assert len(seeds) > 1


def test_empty_deck_draws_nothing() -> None:
    state = _state(())
    index, after = draw_next_card(state)
    assert index is None
    assert after == state
    drawn, _ = draw_cards(state, 3)
    assert drawn == []


def test_draw_cards_returns_requested_count() -> None:
    drawn, state = draw_cards(_state((5, 6, 7, 8)), 3)
    assert drawn == [5, 6, 7]
    assert state.drawn_cards == (5, 6, 7)


# -------- turns --------
def test_advance_to_next_player() -> None:
    state = advance_turn(_state(()), ["player1", "player2", "player3"])
    assert state.current_turn_player_id == "player2"


def test_advance_wraps_around() -> None:
    state = advance_turn(_state((), turn="player3"), ["player1", "player2", "player3"])
    assert state.current_turn_player_id == "player1"


def test_single_player_keeps_turn() -> None:
    assert advance_turn(_state(()), ["player1"]).current_turn_player_id == "player1"


def test_no_players_is_a_no_op() -> None:
    state = _state(())
    assert advance_turn(state, []) == state
    assert next_turn_player("player1", []) == "player1"


def test_absent_current_player_hands_turn_to_first() -> None:
    assert next_turn_player("gone", ["player1", "player2"]) == "player1"


def test_turn_cycle_closes() -> None:
    players = ["a", "b", "c", "d", "e"]
    state = _state((), turn="c")
    for _ in range(len(players)):
        state = advance_turn(state, players)
    assert state.current_turn_player_id == "c"


# -------- serialize --------
def test_snapshot_round_trip() -> None:
    state = GameState(
        room_id="room1",
        current_turn_player_id="p2",
        deck_seed="s-r4",
        deck=(1, 1, 3),
        drawn_cards=(1,),
        active_card_instance_id="ci-3",
        mode="lit",
    )
    assert restore(snapshot(state)) == state


def test_restore_requires_identity_fields() -> None:
    with pytest.raises(ValueError):
        restore({"room_id": "room1"})

from __future__ import annotations

from collections import Counter

from foulplay.engine.deck import MODE_MIX, build_mode_weighted_deck, build_plain_deck, resolve_mode, target_counts
from foulplay.paths import get_paths
from foulplay.services.content import ContentService


def _load_catalog():
    paths = get_paths()
    return ContentService(paths.data_dir, paths.schema_dir).load_catalog()


def _roomy_pools() -> dict:
    return {"mild": 100, "moderate": 100, "severe": 100}


def test_mode_table_fractions_sum_to_one() -> None:
    for mix in MODE_MIX.values():
        assert abs(mix.mild + mix.moderate + mix.severe - 1.0) < 1e-9
    assert MODE_MIX["non-drinking"] == MODE_MIX["casual"]


def test_unknown_mode_falls_back_to_party() -> None:
    assert resolve_mode("chaos") == "party"
    assert resolve_mode(None) == "party"
    assert resolve_mode("lit") == "lit"
    assert target_counts(100, _roomy_pools(), "chaos") == target_counts(100, _roomy_pools(), "party")


def test_targets_follow_mode_mix_when_pools_are_large() -> None:
    assert target_counts(100, _roomy_pools(), "casual") == {"mild": 70, "moderate": 25, "severe": 5}
    assert target_counts(100, _roomy_pools(), "party") == {"mild": 50, "moderate": 35, "severe": 15}
    assert target_counts(100, _roomy_pools(), "lit") == {"mild": 40, "moderate": 35, "severe": 25}


def test_shortfall_is_redistributed_mild_then_moderate_then_severe() -> None:
    pools = {"mild": 10, "moderate": 60, "severe": 30}
    assert target_counts(100, pools, "casual") == {"mild": 10, "moderate": 60, "severe": 30}


def test_empty_pool_share_is_redistributed() -> None:
    pools = {"mild": 50, "moderate": 50, "severe": 0}
    assert target_counts(100, pools, "lit") == {"mild": 50, "moderate": 50, "severe": 0}


def test_zero_cards_yields_empty_deck() -> None:
    assert build_mode_weighted_deck("s", 0, lambda i: "mild", "party") == []
    assert build_plain_deck("s", 0) == []


def test_plain_deck_is_a_permutation() -> None:
    deck = build_plain_deck("room1-123", 58)
    assert sorted(deck) == list(range(58))
    assert deck != list(range(58))


def test_weighted_deck_severity_mix_matches_targets() -> None:
    catalog = _load_catalog()
    cards = catalog.for_sport("football")
    pools = Counter(c.severity for c in cards)
    for mode in MODE_MIX:
        deck = build_mode_weighted_deck("room1-123", len(cards), catalog.severity_of("football"), mode)
        assert len(deck) == len(cards)
        mix = Counter(cards[i].severity for i in deck)
        assert dict(mix) == {k: v for k, v in target_counts(len(cards), dict(pools), mode).items() if v}


def test_weighted_deck_only_uses_indices_from_matching_pool() -> None:
    severities = ["mild"] * 6 + ["severe"] * 4
    deck = build_mode_weighted_deck("pool-seed", len(severities), lambda i: severities[i], "lit")
    assert len(deck) == 10
    assert all(0 <= i < 10 for i in deck)
    counts = Counter(severities[i] for i in deck)
    assert counts == Counter({"mild": 6, "severe": 4})


def test_scenario_a_casual_football_deal_is_stable() -> None:
    catalog = _load_catalog()
    cards = catalog.for_sport("football")
    deck1 = build_mode_weighted_deck("room1-123", len(cards), catalog.severity_of("football"), "casual")
    deck2 = build_mode_weighted_deck("room1-123", len(cards), catalog.severity_of("football"), "casual")
    assert deck1[:5] == deck2[:5]
    mild_share = sum(1 for i in deck1 if cards[i].severity == "mild") / len(deck1)
    assert mild_share >= 0.6

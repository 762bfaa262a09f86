from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from .types import Resolution


def required_approvals(total_players: int) -> int:
    """Majority rule: ceil(n / 2), never below 1."""
    if total_players < 2:
        return 1
    return math.ceil(total_players / 2)


def rejection_threshold(total_players: int) -> int:
    return math.ceil(total_players / 2)


def resolve_submission(total_players: int, approvals: int, rejections: int) -> Resolution:
    """Decide a submission from its current tally.

    Approval is checked first, so a tally meeting both thresholds approves.
    When everyone has voted without crossing either threshold, the majority
    of cast votes decides and an exact tie rejects.
    """
    if approvals >= required_approvals(total_players):
        return "approved"
    if rejections >= rejection_threshold(total_players):
        return "rejected"
    if approvals + rejections >= total_players:
        return "approved" if approvals > rejections else "rejected"
    return "pending"


@dataclass(frozen=True)
class VoteCounts:
    approvals: int
    rejections: int
    total: int


def _vote_value(v: object) -> object:
    if isinstance(v, bool):
        return v
    if isinstance(v, Mapping):
        return v.get("vote")
    return getattr(v, "vote", None)


def count_votes(votes: Iterable[object]) -> VoteCounts:
    """Only a literal True approves and only False rejects; anything else still counts toward `total`."""
    approvals = 0
    rejections = 0
    total = 0
    for v in votes:
        total += 1
        value = _vote_value(v)
        if value is True:
            approvals += 1
        elif value is False:
            rejections += 1
    return VoteCounts(approvals=approvals, rejections=rejections, total=total)


@dataclass
class SelectionMap:
    """Per-player sets of selected card instance ids.

    Selecting replaces the player's previous selection; selecting nothing
    removes the player's entry.
    """

    selections: dict[str, set[str]] = field(default_factory=dict)

    def select(self, player_id: str, card_instance_ids: Iterable[str]) -> None:
        ids = set(card_instance_ids)
        if ids:
            self.selections[player_id] = ids
        else:
            self.selections.pop(player_id, None)

    def clear(self) -> None:
        self.selections.clear()

    def selected_for(self, player_id: str) -> frozenset[str]:
        return frozenset(self.selections.get(player_id, ()))

    def remove_player(self, player_id: str) -> None:
        self.selections.pop(player_id, None)

    def discard_instance(self, card_instance_id: str) -> None:
        for player_id in list(self.selections):
            ids = self.selections[player_id]
            ids.discard(card_instance_id)
            if not ids:
                del self.selections[player_id]

    def to_dict(self) -> dict[str, list[str]]:
        return {pid: sorted(ids) for pid, ids in sorted(self.selections.items())}

    @staticmethod
    def from_dict(d: Mapping[str, object]) -> "SelectionMap":
        out = SelectionMap()
        for pid, ids in d.items():
            if isinstance(pid, str) and isinstance(ids, list):
                out.select(pid, [i for i in ids if isinstance(i, str)])
        return out

"""Room-level orchestration around the engine.

Every operation follows the same shape: load a fresh room record, run the
business-rule checks, apply engine computations to the private copy, save it
once, and only then publish the resulting room events. A rule failure or a
failed save leaves nothing behind.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Callable, Sequence

from foulplay.engine.approval import count_votes, required_approvals, resolve_submission
from foulplay.engine.display import describe_for_mode
from foulplay.engine.game import GameConfig, GameState, advance_turn, draw_next_card, initialize_game_state
from foulplay.engine.types import CardCatalog

from . import publisher as ev
from .publisher import EventPublisher, safe_publish
from .store import CardInstance, GameStore, PlayerRecord, RoomRecord, StoreError, Submission

logger = logging.getLogger(__name__)

Event = dict[str, object]


@dataclass
class ActionResult:
    ok: bool
    events: list[Event] = field(default_factory=list)
    error: str | None = None
    data: dict[str, object] = field(default_factory=dict)


def _fail(msg: str) -> ActionResult:
    return ActionResult(ok=False, events=[], error=msg)


class GameSession:
    def __init__(
        self,
        store: GameStore,
        publisher: EventPublisher,
        catalog: CardCatalog,
        config: GameConfig | None = None,
    ) -> None:
        self.store = store
        self.publisher = publisher
        self.catalog = catalog
        self.config = config or GameConfig()

    # -------- helpers --------
    def _card_payload(self, room: RoomRecord, ci: CardInstance) -> dict[str, object]:
        card = self.catalog.get(room.sport, ci.card_index)
        return {
            "id": card.card_id,
            "title": card.title,
            "description": describe_for_mode(card.description, room.game.mode),
            "severity": card.severity,
            "type": card.type,
            "points": card.points,
        }

    def _player_payload(self, room: RoomRecord, player_id: str) -> dict[str, object]:
        p = room.player(player_id)
        return {"id": player_id, "name": p.name if p is not None else None}

    def _deal(self, room: RoomRecord, player_id: str, count: int, events: list[Event], auto: bool) -> list[str]:
        dealt: list[str] = []
        for _ in range(max(0, count)):
            index, room.game = draw_next_card(room.game)
            if index is None:
                break
            ci = CardInstance(id=room.new_id("ci"), card_index=index, owner_id=player_id)
            room.instances[ci.id] = ci
            dealt.append(ci.id)
            events.append(
                {
                    "type": ev.CARD_DRAWN,
                    "cardInstanceId": ci.id,
                    "card": self._card_payload(room, ci),
                    "drawnBy": self._player_payload(room, player_id),
                    "autoDrawn": auto,
                }
            )
        return dealt

    def _refill(self, room: RoomRecord, player_id: str, events: list[Event]) -> list[str]:
        missing = self.config.hand_size - room.held(player_id)
        return self._deal(room, player_id, missing, events, auto=True)

    def _commit(self, room: RoomRecord, events: list[Event], data: dict[str, object] | None = None) -> ActionResult:
        try:
            self.store.save(room)
        except StoreError as e:
            logger.warning("Could not save room %s: %s", room.room_id, e)
            return _fail(str(e))
        for event in events:
            payload = {k: v for k, v in event.items() if k != "type"}
            payload["roomId"] = room.room_id
            safe_publish(self.publisher, room.room_id, str(event["type"]), payload)
        return ActionResult(ok=True, events=events, data=data or {})

    def _with_room(
        self, room_id: str, action: Callable[[RoomRecord, list[Event]], ActionResult | dict[str, object]]
    ) -> ActionResult:
        room = self.store.load(room_id)
        if room is None:
            return _fail("Room not found.")
        events: list[Event] = []
        out = action(room, events)
        if isinstance(out, ActionResult):
            return out
        return self._commit(room, events, out)

    def _hand_instances(self, room: RoomRecord, player_id: str, ids: Sequence[str]) -> list[CardInstance] | None:
        picked: list[CardInstance] = []
        for cid in ids:
            ci = room.instances.get(cid)
            if ci is None or ci.owner_id != player_id or ci.status != "drawn":
                return None
            picked.append(ci)
        return picked

    # -------- operations --------
    def start_game(
        self,
        room_id: str,
        sport: str,
        players: Sequence[tuple[str, str]],
        mode: str | None = None,
        seed: str | None = None,
    ) -> ActionResult:
        """Start (or restart) a room's game and deal every player a full hand."""
        if len(players) < self.config.min_players:
            return _fail(f"Need at least {self.config.min_players} players to start.")
        ids = [pid for pid, _ in players]
        if len(set(ids)) != len(ids):
            return _fail("Duplicate player ids.")
        if not self.catalog.for_sport(sport):
            return _fail("No cards found for this sport.")

        existing = self.store.load(room_id)
        game = initialize_game_state(room_id, ids, sport, seed=seed, mode=mode, catalog=self.catalog)
        room = RoomRecord(
            room_id=room_id,
            sport=sport,
            players=[PlayerRecord(id=pid, name=name) for pid, name in players],
            game=game,
            version=existing.version if existing is not None else 0,
        )
        events: list[Event] = [
            {
                "type": ev.GAME_STARTED,
                "currentTurnPlayerId": game.current_turn_player_id,
                "sport": sport,
                "mode": mode,
                "deckSeed": game.deck_seed,
            }
        ]
        for pid in ids:
            self._deal(room, pid, self.config.hand_size, events, auto=False)
        return self._commit(room, events, {"currentTurnPlayerId": game.current_turn_player_id})

    def draw(self, room_id: str, player_id: str) -> ActionResult:
        def action(room: RoomRecord, events: list[Event]) -> ActionResult | dict[str, object]:
            if room.player(player_id) is None:
                return _fail("You are not a player in this room.")
            held = room.held(player_id)
            if held >= self.config.hand_size:
                return _fail(
                    f"You already hold {held} cards, including any awaiting a vote. "
                    f"Maximum hand size is {self.config.hand_size}."
                )
            dealt = self._deal(room, player_id, 1, events, auto=False)
            if not dealt:
                return _fail("Failed to draw card.")
            return {"cardInstanceId": dealt[0]}

        return self._with_room(room_id, action)

    def submit(self, room_id: str, player_id: str, card_instance_ids: Sequence[str]) -> ActionResult:
        def action(room: RoomRecord, events: list[Event]) -> ActionResult | dict[str, object]:
            if room.player(player_id) is None:
                return _fail("You are not a player in this room.")
            if not card_instance_ids or len(set(card_instance_ids)) != len(card_instance_ids):
                return _fail("Select one or more distinct cards to submit.")
            picked = self._hand_instances(room, player_id, card_instance_ids)
            if picked is None:
                return _fail("You can only submit cards in your hand.")

            sub = Submission(
                id=room.new_id("sub"),
                submitted_by_id=player_id,
                card_instance_ids=[ci.id for ci in picked],
            )
            room.submissions[sub.id] = sub
            for ci in picked:
                ci.status = "submitted"
            room.game = _with_active(room, picked[0].id)
            events.append(
                {
                    "type": ev.CARD_SUBMITTED,
                    "submissionId": sub.id,
                    "cards": [self._card_payload(room, ci) for ci in picked],
                    "submittedBy": self._player_payload(room, player_id),
                    "required": required_approvals(len(room.players)),
                }
            )
            return {"submissionId": sub.id}

        return self._with_room(room_id, action)

    def vote(self, room_id: str, submission_id: str, voter_id: str, approve: bool) -> ActionResult:
        def action(room: RoomRecord, events: list[Event]) -> ActionResult | dict[str, object]:
            sub = room.submissions.get(submission_id)
            if sub is None:
                return _fail("Submission not found.")
            if sub.status != "pending":
                return _fail("Submission has already been resolved.")
            if room.player(voter_id) is None:
                return _fail("You are not a player in this room.")
            if voter_id in sub.votes:
                return _fail("You have already voted on this submission.")
            if sub.submitted_by_id == voter_id:
                return _fail("You cannot vote on your own submission.")

            sub.votes[voter_id] = approve
            counts = count_votes(sub.votes.values())
            total_players = len(room.players)
            resolution = resolve_submission(total_players, counts.approvals, counts.rejections)
            events.append(
                {
                    "type": ev.VOTE_CAST,
                    "submissionId": sub.id,
                    "vote": approve,
                    "voter": self._player_payload(room, voter_id),
                    "voteCounts": {
                        "approvals": counts.approvals,
                        "rejections": counts.rejections,
                        "total": counts.total,
                        "required": required_approvals(total_players),
                    },
                    "resolved": resolution != "pending",
                    "resolution": resolution,
                }
            )
            if resolution != "pending":
                self._resolve(room, sub, resolution, events)
            return {"status": sub.status, "resolution": resolution}

        return self._with_room(room_id, action)

    def _resolve(self, room: RoomRecord, sub: Submission, resolution: str, events: list[Event]) -> None:
        logger.info("Submission %s in room %s %s", sub.id, room.room_id, resolution)
        sub.status = resolution  # type: ignore[assignment]
        cards = [room.instances[cid] for cid in sub.card_instance_ids]
        payloads = [self._card_payload(room, ci) for ci in cards]
        if room.game.active_card_instance_id in sub.card_instance_ids:
            room.game = _with_active(room, None)

        if resolution == "rejected":
            for ci in cards:
                ci.status = "drawn"
            events.append(
                {
                    "type": ev.SUBMISSION_REJECTED,
                    "submissionId": sub.id,
                    "cards": payloads,
                    "submittedBy": self._player_payload(room, sub.submitted_by_id),
                    "pointsAwarded": 0,
                }
            )
            return

        points = sum(self.catalog.get(room.sport, ci.card_index).points for ci in cards)
        for ci in cards:
            ci.status = "resolved"
        submitter = room.player(sub.submitted_by_id)
        if submitter is not None:
            submitter.points += points
        events.append(
            {
                "type": ev.SUBMISSION_APPROVED,
                "submissionId": sub.id,
                "cards": payloads,
                "submittedBy": self._player_payload(room, sub.submitted_by_id),
                "pointsAwarded": points,
            }
        )

        previous = room.game.current_turn_player_id
        room.game = advance_turn(room.game, room.player_ids())
        events.append(
            {
                "type": ev.TURN_CHANGED,
                "previousTurnPlayerId": previous,
                "currentTurnPlayerId": room.game.current_turn_player_id,
                "currentTurnPlayer": self._player_payload(room, room.game.current_turn_player_id),
            }
        )
        if submitter is not None:
            self._refill(room, submitter.id, events)

    def discard(self, room_id: str, player_id: str, card_instance_ids: Sequence[str]) -> ActionResult:
        def action(room: RoomRecord, events: list[Event]) -> ActionResult | dict[str, object]:
            if room.player(player_id) is None:
                return _fail("You are not a player in this room.")
            if not card_instance_ids:
                return _fail("Select at least one card to discard.")
            picked = self._hand_instances(room, player_id, list(dict.fromkeys(card_instance_ids)))
            if picked is None:
                return _fail("You can only discard cards in your hand.")
            self._discard(room, player_id, picked, events)
            return {"discarded": [ci.id for ci in picked]}

        return self._with_room(room_id, action)

    def _discard(
        self,
        room: RoomRecord,
        player_id: str,
        picked: list[CardInstance],
        events: list[Event],
        award: bool = False,
    ) -> int:
        for ci in picked:
            ci.status = "discarded"
            room.discard_selections.discard_instance(ci.id)
        points = 0
        if award:
            # turned in at quarter end: scored as if approved
            points = sum(self.catalog.get(room.sport, ci.card_index).points for ci in picked)
            player = room.player(player_id)
            if player is not None:
                player.points += points
        events.append(
            {
                "type": ev.CARD_DISCARDED,
                "cardInstanceIds": [ci.id for ci in picked],
                "player": self._player_payload(room, player_id),
                "pointsAwarded": points,
            }
        )
        self._refill(room, player_id, events)
        return points

    def select_for_discard(self, room_id: str, player_id: str, card_instance_ids: Sequence[str]) -> ActionResult:
        """Record which cards a player turns in when the quarter ends.

        An empty selection clears the player's entry.
        """

        def action(room: RoomRecord, events: list[Event]) -> ActionResult | dict[str, object]:
            if room.player(player_id) is None:
                return _fail("You are not a player in this room.")
            ids = list(dict.fromkeys(card_instance_ids))
            if len(ids) > self.config.hand_size:
                return _fail(f"You can select at most {self.config.hand_size} cards to turn in.")
            if self._hand_instances(room, player_id, ids) is None:
                return _fail("One or more selected cards are not in your hand.")
            room.discard_selections.select(player_id, ids)
            events.append({"type": ev.DISCARD_SELECTION_UPDATED, "playerId": player_id})
            return {"selectedCount": len(ids)}

        return self._with_room(room_id, action)

    def apply_discard_selections(self, room_id: str) -> ActionResult:
        """Quarter end: turn in every selected card and move to the next quarter.

        Turned-in cards score their points, as an approved submission would,
        and each hand is refilled without going over the hand size.
        """

        def action(room: RoomRecord, events: list[Event]) -> ActionResult | dict[str, object]:
            applied: dict[str, object] = {}
            awarded: dict[str, int] = {}
            for player_id, ids in room.discard_selections.to_dict().items():
                picked = [ci for ci in room.hand(player_id) if ci.id in ids]
                if picked:
                    awarded[player_id] = self._discard(room, player_id, picked, events, award=True)
                    applied[player_id] = [ci.id for ci in picked]
            room.discard_selections.clear()
            room.current_quarter += 1
            events.append({"type": ev.QUARTER_ADVANCED, "currentQuarter": room.current_quarter})
            return {"applied": applied, "pointsAwarded": awarded, "currentQuarter": room.current_quarter}

        return self._with_room(room_id, action)

    def hand(self, room_id: str, player_id: str) -> ActionResult:
        room = self.store.load(room_id)
        if room is None:
            return _fail("Room not found.")
        if room.player(player_id) is None:
            return _fail("You are not a player in this room.")
        cards = [{"cardInstanceId": ci.id, "card": self._card_payload(room, ci)} for ci in room.hand(player_id)]
        return ActionResult(ok=True, data={"hand": cards, "handSize": self.config.hand_size})


def _with_active(room: RoomRecord, card_instance_id: str | None) -> GameState:
    return replace(room.game, active_card_instance_id=card_instance_id)

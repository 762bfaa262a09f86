from __future__ import annotations

import argparse
import json
import logging
from collections import Counter
from pathlib import Path
from typing import Sequence

from foulplay.engine.deck import MODE_MIX, target_counts
from foulplay.engine.display import describe_for_mode
from foulplay.engine.game import GameConfig, draw_cards, initialize_game_state
from foulplay.engine.types import SPORTS, CardCatalog
from foulplay.paths import get_paths
from foulplay.services.content import ContentService
from foulplay.services.publisher import EventPublisher, RecordingPublisher
from foulplay.services.session import GameSession
from foulplay.services.store import InMemoryGameStore
from foulplay.services.telemetry import TelemetryService

logger = logging.getLogger("foulplay")


def _load_catalog() -> CardCatalog:
    paths = get_paths()
    return ContentService(paths.data_dir, paths.schema_dir).load_catalog()


def _hand_size(value: str) -> int:
    size = int(value)
    try:
        GameConfig(hand_size=size)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e
    return size


def _cmd_deal(args: argparse.Namespace) -> dict[str, object]:
    catalog = _load_catalog()
    state = initialize_game_state("cli", ["dealer"], args.sport, seed=args.seed, mode=args.mode, catalog=catalog)
    indices, state = draw_cards(state, args.count)
    cards = []
    for i in indices:
        card = catalog.get(args.sport, i)
        cards.append(
            {
                "index": i,
                "title": card.title,
                "severity": card.severity,
                "points": card.points,
                "description": describe_for_mode(card.description, args.mode),
            }
        )
    return {"seed": args.seed, "mode": args.mode, "cards": cards, "deckSeed": state.deck_seed}


def _cmd_simulate(args: argparse.Namespace) -> dict[str, object]:
    """Scripted game: the turn holder submits their first card and everyone approves."""
    catalog = _load_catalog()
    publisher: EventPublisher
    publisher = TelemetryService(Path(args.log)) if args.log else RecordingPublisher()
    session = GameSession(InMemoryGameStore(), publisher, catalog, GameConfig(hand_size=args.hand_size))
    players = [(f"p{i + 1}", f"Player {i + 1}") for i in range(args.players)]
    room_id = "sim"

    res = session.start_game(room_id, args.sport, players, mode=args.mode, seed=args.seed)
    if not res.ok:
        raise SystemExit(res.error)
    logger.debug("Started room %s with seed %s", room_id, args.seed)

    for _ in range(args.rounds):
        room = session.store.load(room_id)
        assert room is not None
        turn = room.game.current_turn_player_id
        hand = room.hand(turn)
        if not hand:
            break
        sub = session.submit(room_id, turn, [hand[0].id])
        sub_id = str(sub.data["submissionId"])
        for pid, _name in players:
            if pid == turn:
                continue
            vote = session.vote(room_id, sub_id, pid, True)
            if vote.data.get("resolution") != "pending":
                break

    room = session.store.load(room_id)
    assert room is not None
    return {
        "seed": room.game.deck_seed,
        "currentTurnPlayerId": room.game.current_turn_player_id,
        "scores": {p.id: p.points for p in room.players},
    }


def _cmd_catalog(args: argparse.Namespace) -> dict[str, object]:
    catalog = _load_catalog()
    cards = catalog.for_sport(args.sport)
    pools = Counter(c.severity for c in cards)
    return {
        "sport": args.sport,
        "cards": len(cards),
        "severities": dict(pools),
        "targets": {mode: target_counts(len(cards), dict(pools), mode) for mode in MODE_MIX},
    }


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="foulplay")
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)

    deal = sub.add_parser("deal", help="deal cards from a seeded deck")
    deal.add_argument("--sport", choices=SPORTS, default="football")
    deal.add_argument("--mode", choices=sorted(MODE_MIX), default=None)
    deal.add_argument("--seed", required=True)
    deal.add_argument("--count", type=int, default=5)
    deal.set_defaults(func=_cmd_deal)

    sim = sub.add_parser("simulate", help="play a scripted game")
    sim.add_argument("--sport", choices=SPORTS, default="football")
    sim.add_argument("--mode", choices=sorted(MODE_MIX), default="party")
    sim.add_argument("--seed", required=True)
    sim.add_argument("--players", type=int, default=3)
    sim.add_argument("--rounds", type=int, default=10)
    sim.add_argument("--hand-size", type=_hand_size, default=5)
    sim.add_argument("--log", default=None, help="append room events to this JSONL file")
    sim.set_defaults(func=_cmd_simulate)

    cat = sub.add_parser("catalog", help="show severity pools and per-mode targets")
    cat.add_argument("--sport", choices=SPORTS, default="football")
    cat.set_defaults(func=_cmd_catalog)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    out = args.func(args)
    print(json.dumps(out, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

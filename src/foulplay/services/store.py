"""Room records and the storage seam the session writes through.

Stores keep rooms as plain dicts (the `to_dict` form), so a record handed to
the session is always a private copy and nothing is visible to other readers
until `save` succeeds. `save` is an optimistic version check: at most one
writer per room wins.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Protocol

from foulplay.engine.approval import SelectionMap
from foulplay.engine.game import GameState
from foulplay.engine.serialize import restore, snapshot
from foulplay.engine.types import CardStatus, Resolution


class StoreError(RuntimeError):
    pass


class StaleRecordError(StoreError):
    pass


@dataclass
class PlayerRecord:
    id: str
    name: str
    points: int = 0

    @staticmethod
    def from_dict(d: Mapping[str, object]) -> "PlayerRecord":
        pid = d.get("id")
        name = d.get("name")
        points = d.get("points", 0)
        if not isinstance(pid, str) or not isinstance(name, str):
            raise StoreError("Invalid player record")
        return PlayerRecord(id=pid, name=name, points=points if isinstance(points, int) else 0)

    def to_dict(self) -> dict[str, object]:
        return {"id": self.id, "name": self.name, "points": self.points}


@dataclass
class CardInstance:
    id: str
    card_index: int
    owner_id: str
    status: CardStatus = "drawn"

    @staticmethod
    def from_dict(d: Mapping[str, object]) -> "CardInstance":
        cid = d.get("id")
        index = d.get("card_index")
        owner = d.get("owner_id")
        status = d.get("status", "drawn")
        if not isinstance(cid, str) or not isinstance(index, int) or not isinstance(owner, str):
            raise StoreError("Invalid card instance")
        return CardInstance(id=cid, card_index=index, owner_id=owner, status=str(status))  # type: ignore[arg-type]

    def to_dict(self) -> dict[str, object]:
        return {"id": self.id, "card_index": self.card_index, "owner_id": self.owner_id, "status": self.status}


@dataclass
class Submission:
    id: str
    submitted_by_id: str
    card_instance_ids: list[str]
    votes: dict[str, bool] = field(default_factory=dict)
    status: Resolution = "pending"

    @staticmethod
    def from_dict(d: Mapping[str, object]) -> "Submission":
        sid = d.get("id")
        by = d.get("submitted_by_id")
        ids = d.get("card_instance_ids", [])
        votes_raw = d.get("votes", {})
        if not isinstance(sid, str) or not isinstance(by, str) or not isinstance(ids, list):
            raise StoreError("Invalid submission")
        votes: dict[str, bool] = {}
        if isinstance(votes_raw, dict):
            for k, v in votes_raw.items():
                if isinstance(k, str) and isinstance(v, bool):
                    votes[k] = v
        return Submission(
            id=sid,
            submitted_by_id=by,
            card_instance_ids=[str(i) for i in ids],
            votes=votes,
            status=str(d.get("status", "pending")),  # type: ignore[arg-type]
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "submitted_by_id": self.submitted_by_id,
            "card_instance_ids": list(self.card_instance_ids),
            "votes": dict(self.votes),
            "status": self.status,
        }


@dataclass
class RoomRecord:
    room_id: str
    sport: str
    players: list[PlayerRecord]
    game: GameState
    instances: dict[str, CardInstance] = field(default_factory=dict)
    submissions: dict[str, Submission] = field(default_factory=dict)
    discard_selections: SelectionMap = field(default_factory=SelectionMap)
    current_quarter: int = 0
    next_id: int = 1
    version: int = 0

    def player(self, player_id: str) -> PlayerRecord | None:
        for p in self.players:
            if p.id == player_id:
                return p
        return None

    def player_ids(self) -> list[str]:
        return [p.id for p in self.players]

    def hand(self, player_id: str) -> list[CardInstance]:
        return [ci for ci in self.instances.values() if ci.owner_id == player_id and ci.status == "drawn"]

    def held(self, player_id: str) -> int:
        """Cards counting toward the hand limit: in hand plus awaiting a vote."""
        return sum(1 for ci in self.instances.values() if ci.owner_id == player_id and ci.status in ("drawn", "submitted"))

    def new_id(self, prefix: str) -> str:
        out = f"{prefix}-{self.next_id}"
        self.next_id += 1
        return out

    @staticmethod
    def from_dict(d: Mapping[str, object]) -> "RoomRecord":
        room_id = d.get("room_id")
        sport = d.get("sport")
        game_raw = d.get("game")
        if not isinstance(room_id, str) or not isinstance(sport, str) or not isinstance(game_raw, dict):
            raise StoreError("Invalid room record")
        players_raw = d.get("players", [])
        players = [PlayerRecord.from_dict(p) for p in players_raw if isinstance(p, dict)] if isinstance(players_raw, list) else []
        instances: dict[str, CardInstance] = {}
        inst_raw = d.get("instances", [])
        if isinstance(inst_raw, list):
            for item in inst_raw:
                if isinstance(item, dict):
                    ci = CardInstance.from_dict(item)
                    instances[ci.id] = ci
        submissions: dict[str, Submission] = {}
        subs_raw = d.get("submissions", [])
        if isinstance(subs_raw, list):
            for item in subs_raw:
                if isinstance(item, dict):
                    sub = Submission.from_dict(item)
                    submissions[sub.id] = sub
        sel_raw = d.get("discard_selections", {})
        quarter = d.get("current_quarter", 0)
        next_id = d.get("next_id", 1)
        version = d.get("version", 0)
        return RoomRecord(
            room_id=room_id,
            sport=sport,
            players=players,
            game=restore(game_raw),
            instances=instances,
            submissions=submissions,
            discard_selections=SelectionMap.from_dict(sel_raw) if isinstance(sel_raw, dict) else SelectionMap(),
            current_quarter=quarter if isinstance(quarter, int) else 0,
            next_id=next_id if isinstance(next_id, int) else 1,
            version=version if isinstance(version, int) else 0,
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "room_id": self.room_id,
            "sport": self.sport,
            "players": [p.to_dict() for p in self.players],
            "game": snapshot(self.game),
            "instances": [ci.to_dict() for ci in self.instances.values()],
            "submissions": [s.to_dict() for s in self.submissions.values()],
            "discard_selections": self.discard_selections.to_dict(),
            "current_quarter": self.current_quarter,
            "next_id": self.next_id,
            "version": self.version,
        }


class GameStore(Protocol):
    def load(self, room_id: str) -> RoomRecord | None: ...

    def save(self, record: RoomRecord) -> None: ...


def _check_version(current: Mapping[str, object] | None, record: RoomRecord) -> None:
    stored = current.get("version", 0) if current is not None else 0
    if current is not None and stored != record.version:
        raise StaleRecordError(
            f"Room {record.room_id} changed since it was read (stored v{stored}, got v{record.version})"
        )


class InMemoryGameStore:
    def __init__(self) -> None:
        self._rooms: dict[str, dict[str, object]] = {}

    def load(self, room_id: str) -> RoomRecord | None:
        raw = self._rooms.get(room_id)
        if raw is None:
            return None
        return RoomRecord.from_dict(json.loads(json.dumps(raw)))

    def save(self, record: RoomRecord) -> None:
        _check_version(self._rooms.get(record.room_id), record)
        data = record.to_dict()
        data["version"] = record.version + 1
        self._rooms[record.room_id] = json.loads(json.dumps(data))
        record.version += 1


class JsonFileGameStore:
    """One JSON file per room under `root`."""

    def __init__(self, root: Path) -> None:
        self._root = root

    def _path(self, room_id: str) -> Path:
        return self._root / f"{room_id}.json"

    def _read(self, room_id: str) -> dict[str, object] | None:
        path = self._path(room_id)
        if not path.exists():
            return None
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise StoreError(f"Invalid JSON in {path}: {e}") from e
        if not isinstance(raw, dict):
            raise StoreError(f"{path} must hold an object")
        return raw

    def load(self, room_id: str) -> RoomRecord | None:
        raw = self._read(room_id)
        return RoomRecord.from_dict(raw) if raw is not None else None

    def save(self, record: RoomRecord) -> None:
        _check_version(self._read(record.room_id), record)
        self._root.mkdir(parents=True, exist_ok=True)
        data = record.to_dict()
        data["version"] = record.version + 1
        path = self._path(record.room_id)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(json.dumps(data, indent=2), encoding="utf-8")
        tmp.replace(path)
        record.version += 1

from __future__ import annotations

import json
from pathlib import Path
from typing import Mapping

from jsonschema import Draft202012Validator

from foulplay.engine.types import SPORTS, CardCatalog, CardDefinition


class ContentError(RuntimeError):
    pass


def _load_json(path: Path) -> object:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ContentError(f"Missing content file: {path}") from e
    except json.JSONDecodeError as e:
        raise ContentError(f"Invalid JSON in {path}: {e}") from e


def validate_json(instance: object, schema: object, *, context: str) -> None:
    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(instance), key=lambda e: [str(p) for p in e.absolute_path])
    if errors:
        lines = [f"Schema validation failed for {context}:"]
        for err in errors[:10]:
            loc = "/".join(str(p) for p in err.absolute_path)
            lines.append(f"- {loc}: {err.message}")
        raise ContentError("\n".join(lines))


def _require_str(obj: Mapping[str, object], key: str) -> str:
    v = obj.get(key)
    if not isinstance(v, str):
        raise ContentError(f"Expected string for {key}")
    return v


def _require_int(obj: Mapping[str, object], key: str) -> int:
    v = obj.get(key)
    if not isinstance(v, int) or isinstance(v, bool):
        raise ContentError(f"Expected int for {key}")
    return v


def parse_catalog(raw: object) -> CardCatalog:
    """Build a catalog from already-validated JSON, keeping file order per sport."""
    if not isinstance(raw, dict):
        raise ContentError("cards.json must be an object")
    raw_cards = raw.get("cards")
    if not isinstance(raw_cards, list):
        raise ContentError("cards.json.cards must be a list")

    by_sport: dict[str, list[CardDefinition]] = {sport: [] for sport in SPORTS}
    seen: set[tuple[str, str]] = set()
    for item in raw_cards:
        if not isinstance(item, dict):
            continue
        card = CardDefinition(
            sport=_require_str(item, "sport"),  # type: ignore[arg-type]
            title=_require_str(item, "title"),
            description=_require_str(item, "description"),
            severity=_require_str(item, "severity"),  # type: ignore[arg-type]
            type=_require_str(item, "type"),  # type: ignore[arg-type]
            points=_require_int(item, "points"),
        )
        key = (card.sport, card.title)
        if key in seen:
            raise ContentError(f"Duplicate card: {card.sport} / {card.title}")
        seen.add(key)
        by_sport.setdefault(card.sport, []).append(card)

    return CardCatalog(cards={sport: tuple(cards) for sport, cards in by_sport.items()})


class ContentService:
    def __init__(self, data_dir: Path, schema_dir: Path) -> None:
        self._data_dir = data_dir
        self._schema_dir = schema_dir

    def load_catalog(self) -> CardCatalog:
        cards_path = self._data_dir / "cards.json"
        raw = _load_json(cards_path)
        schema = _load_json(self._schema_dir / "cards.schema.json")
        validate_json(raw, schema, context=str(cards_path))
        return parse_catalog(raw)

    def validate_all(self) -> None:
        # Load is validation (schema + parse)
        _ = self.load_catalog()

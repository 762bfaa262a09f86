from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Mapping, Protocol

logger = logging.getLogger(__name__)

# Room events the session emits.
GAME_STARTED = "game_started"
CARD_DRAWN = "card_drawn"
CARD_SUBMITTED = "card_submitted"
CARD_DISCARDED = "card_discarded"
VOTE_CAST = "vote_cast"
SUBMISSION_APPROVED = "submission_approved"
SUBMISSION_REJECTED = "submission_rejected"
TURN_CHANGED = "turn_changed"
DISCARD_SELECTION_UPDATED = "quarter_discard_selection_updated"
QUARTER_ADVANCED = "quarter_advanced"


class EventPublisher(Protocol):
    def publish(self, room_id: str, event_name: str, payload: Mapping[str, object]) -> None: ...


@dataclass(frozen=True)
class PublishedEvent:
    room_id: str
    name: str
    payload: dict[str, object]


@dataclass
class RecordingPublisher:
    """In-process publisher that keeps every event; used by tests and the CLI."""

    events: list[PublishedEvent] = field(default_factory=list)

    def publish(self, room_id: str, event_name: str, payload: Mapping[str, object]) -> None:
        self.events.append(PublishedEvent(room_id=room_id, name=event_name, payload=dict(payload)))

    def names(self) -> list[str]:
        return [e.name for e in self.events]


def safe_publish(
    publisher: EventPublisher, room_id: str, event_name: str, payload: Mapping[str, object]
) -> bool:
    """Publish best-effort. Delivery failures are logged and never raised."""
    try:
        publisher.publish(room_id, event_name, payload)
    except Exception:
        logger.warning("Failed to publish %s to room %s", event_name, room_id, exc_info=True)
        return False
    return True

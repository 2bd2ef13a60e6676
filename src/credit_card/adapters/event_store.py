from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from uuid import UUID

from credit_card.domain.events import DomainEvent
from credit_card.ports.event_store import EventStore


@dataclass
class InMemoryEventStore(EventStore):
    # Reference adapter; a database-backed store would implement the same port.
    _streams: dict[UUID, list[DomainEvent]] = field(default_factory=dict)

    def load_events(self, card_id: UUID) -> list[DomainEvent]:
        # Callers get a copy so that replaying never mutates the stored stream.
        return list(self._streams.get(card_id, ()))

    def save(self, card_id: UUID, events: Sequence[DomainEvent]) -> None:
        self._streams[card_id] = list(events)

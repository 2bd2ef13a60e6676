from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable
from uuid import UUID

from credit_card.domain.events import DomainEvent


# EventStore isolates persistence of card event streams.
@runtime_checkable
class EventStore(Protocol):
    def load_events(self, card_id: UUID) -> list[DomainEvent]:
        """Return the full event stream of a card, oldest first."""
        raise NotImplementedError("EventStore is a port; use a concrete adapter.")

    def save(self, card_id: UUID, events: Sequence[DomainEvent]) -> None:
        """Replace the stored stream of a card."""
        raise NotImplementedError("EventStore is a port; use a concrete adapter.")

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID


@dataclass(frozen=True, slots=True)
class DomainEvent:
    # Every event belongs to one card stream and is immutable once published.
    card_id: UUID
    occurred_at: datetime


@dataclass(frozen=True, slots=True)
class LimitAssigned(DomainEvent):
    amount: Decimal


@dataclass(frozen=True, slots=True)
class CardWithdrawn(DomainEvent):
    amount: Decimal


@dataclass(frozen=True, slots=True)
class CardRepaid(DomainEvent):
    amount: Decimal


@dataclass(frozen=True, slots=True)
class CycleClosed(DomainEvent):
    pass

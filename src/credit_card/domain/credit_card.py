from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal
from uuid import UUID

from .events import CardRepaid, CardWithdrawn, CycleClosed, DomainEvent, LimitAssigned

# Withdrawals allowed per billing cycle before further ones are rejected.
MAX_WITHDRAWALS_IN_CYCLE = 45


class CreditCardError(RuntimeError):
    # Business rule violation; raised by reactions and propagated to the caller.
    pass


class CreditCard:
    """Event-sourced credit card state.

    The card is rebuilt by replaying its stream. Events applied afterwards
    are kept as pending until the aggregate root saves them.
    """

    def __init__(self, card_id: UUID, events: Iterable[DomainEvent] = ()) -> None:
        self.card_id = card_id
        self._limit: Decimal | None = None
        self._used = Decimal("0")
        self._withdrawals_in_cycle = 0
        self._latest_event: DomainEvent | None = None
        self._pending: list[DomainEvent] = []
        for event in events:
            self._mutate(event)

    @property
    def available_limit(self) -> Decimal:
        if self._limit is None:
            return Decimal("0")
        return self._limit - self._used

    @property
    def latest_event(self) -> DomainEvent | None:
        return self._latest_event

    @property
    def pending_events(self) -> tuple[DomainEvent, ...]:
        return tuple(self._pending)

    def flush_events(self) -> None:
        self._pending.clear()

    def apply(self, event: DomainEvent) -> None:
        self._mutate(event)
        self._pending.append(event)

    def is_limit_already_assigned(self) -> bool:
        return self._limit is not None

    def not_enough_money_to_withdraw(self, amount: Decimal) -> bool:
        return self.available_limit < amount

    def too_many_withdrawals_in_cycle(self) -> bool:
        return self._withdrawals_in_cycle >= MAX_WITHDRAWALS_IN_CYCLE

    def is_account_open(self) -> bool:
        # There is no closing event yet, so an account stays open.
        return True

    def _mutate(self, event: DomainEvent) -> None:
        if isinstance(event, LimitAssigned):
            self._limit = event.amount
        elif isinstance(event, CardWithdrawn):
            self._used += event.amount
            self._withdrawals_in_cycle += 1
        elif isinstance(event, CardRepaid):
            self._used -= event.amount
        elif isinstance(event, CycleClosed):
            self._withdrawals_in_cycle = 0
        else:
            raise TypeError(f"Unknown credit card event: {type(event).__name__}")
        self._latest_event = event

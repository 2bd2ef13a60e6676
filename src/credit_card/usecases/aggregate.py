from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from decimal import Decimal
from uuid import UUID

from credit_card.domain.commands import RequestRepay, RequestToAssignLimit, RequestToCloseCycle, RequestWithdrawal
from credit_card.domain.credit_card import CreditCard, CreditCardError
from credit_card.domain.events import CardRepaid, CardWithdrawn, CycleClosed, DomainEvent, LimitAssigned
from credit_card.ports.event_store import EventStore
from usecase_kernel.config.models import RunnerConfig
from usecase_kernel.kernel.builder import ModelBuilder
from usecase_kernel.kernel.composition_root import build_runner
from usecase_kernel.kernel.model import Model
from usecase_kernel.kernel.runner import Runner

USE_CREDIT_CARD = "Use credit card"

ASSIGNING_LIMIT = "Assigning limit"
WITHDRAWING_CARD = "Withdrawing card"
REPAYING = "Repaying"
WITHDRAWING_CARD_AGAIN = "Withdrawing card again"
REPEATING = "Repeating"
CLOSING_CYCLE = "Closing cycle"
ASSIGNING_LIMIT_TWICE = "Assigning limit twice"
WITHDRAWING_CARD_TOO_OFTEN = "Withdrawing card too often"

# The latest event of a stream tells where the runner stood when it was published.
STEP_OF_EVENT: dict[type[DomainEvent], str] = {
    LimitAssigned: ASSIGNING_LIMIT,
    CardWithdrawn: WITHDRAWING_CARD,
    CardRepaid: REPAYING,
    CycleClosed: CLOSING_CYCLE,
}


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


class CreditCardAggregateRoot:
    """Handles credit card commands with a use case model.

    Each command gets a fresh runner whose position is restored from the
    card's latest event. Steps publish events to the runner's output sink;
    accepted events are applied to the card and appended to its stream.
    Business rule violations surface as CreditCardError.
    """

    def __init__(
        self,
        card_id: UUID,
        event_store: EventStore,
        *,
        runner_config: RunnerConfig | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.card_id = card_id
        self._event_store = event_store
        self._runner_config = runner_config
        self._clock = clock
        self.model = self._build_model()
        self._credit_card = self.load_credit_card()

    @property
    def available_limit(self) -> Decimal:
        return self._credit_card.available_limit

    def accept(self, command: object) -> DomainEvent | None:
        # Returns the event the command produced, or None if no step reacted.
        self._credit_card = self.load_credit_card()
        published: list[DomainEvent] = []
        runner = build_runner(self._runner_config, output_sink=published.append)
        try:
            runner.run(self.model)
            self._restore_position(runner)
            runner.react_to(command)
        finally:
            runner.close()
        for event in published:
            self._credit_card.apply(event)
        self._save()
        return published[-1] if published else None

    def load_credit_card(self) -> CreditCard:
        return CreditCard(self.card_id, self._event_store.load_events(self.card_id))

    def _build_model(self) -> Model:
        return (
            ModelBuilder()
            .use_case(USE_CREDIT_CARD)
            .basic_flow()
            .step(ASSIGNING_LIMIT).user(RequestToAssignLimit).system_publish(self._assigned_limit)
            .step(WITHDRAWING_CARD).user(RequestWithdrawal).system_publish(self._withdrawn_card)
            .react_while(self._account_is_open)
            .step(REPAYING).user(RequestRepay).system_publish(self._repaid).react_while(self._account_is_open)
            .flow("Withdraw again").after(REPAYING)
            .step(WITHDRAWING_CARD_AGAIN).user(RequestWithdrawal).system_publish(self._withdrawn_card)
            .step(REPEATING).continues_at(WITHDRAWING_CARD)
            .flow("Cycle is over").anytime()
            .step(CLOSING_CYCLE).on(RequestToCloseCycle).system_publish(self._closed_cycle)
            .flow("Limit can only be assigned once").condition(self._limit_already_assigned)
            .step(ASSIGNING_LIMIT_TWICE).user(RequestToAssignLimit).system(self._reject_second_limit)
            .flow("Too many withdrawals").condition(self._too_many_withdrawals_in_cycle)
            .step(WITHDRAWING_CARD_TOO_OFTEN).user(RequestWithdrawal).system(self._reject_withdrawal)
            .build()
        )

    def _restore_position(self, runner: Runner) -> None:
        latest = self._credit_card.latest_event
        if latest is None:
            return
        use_case = self.model.find_use_case(USE_CREDIT_CARD)
        runner.set_latest_step(use_case.find_step(STEP_OF_EVENT[type(latest)]))

    def _save(self) -> None:
        stream = self._event_store.load_events(self.card_id)
        stream.extend(self._credit_card.pending_events)
        self._event_store.save(self.card_id, stream)
        self._credit_card.flush_events()

    # Command handlers

    def _assigned_limit(self, request: RequestToAssignLimit) -> DomainEvent:
        return LimitAssigned(card_id=self.card_id, occurred_at=self._clock(), amount=request.amount)

    def _withdrawn_card(self, request: RequestWithdrawal) -> DomainEvent:
        if self._credit_card.not_enough_money_to_withdraw(request.amount):
            raise CreditCardError(f"Not enough money to withdraw {request.amount}")
        return CardWithdrawn(card_id=self.card_id, occurred_at=self._clock(), amount=request.amount)

    def _repaid(self, request: RequestRepay) -> DomainEvent:
        return CardRepaid(card_id=self.card_id, occurred_at=self._clock(), amount=request.amount)

    def _closed_cycle(self, request: RequestToCloseCycle) -> DomainEvent:
        return CycleClosed(card_id=self.card_id, occurred_at=self._clock())

    def _reject_second_limit(self, request: RequestToAssignLimit) -> None:
        raise CreditCardError("Limit can only be assigned once")

    def _reject_withdrawal(self, request: RequestWithdrawal) -> None:
        raise CreditCardError("Too many withdrawals in this cycle")

    # Conditions

    def _limit_already_assigned(self) -> bool:
        return self._credit_card.is_limit_already_assigned()

    def _too_many_withdrawals_in_cycle(self) -> bool:
        return self._credit_card.too_many_withdrawals_in_cycle()

    def _account_is_open(self) -> bool:
        return self._credit_card.is_account_open()

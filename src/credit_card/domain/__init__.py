from .commands import RequestRepay, RequestToAssignLimit, RequestToCloseCycle, RequestWithdrawal
from .credit_card import MAX_WITHDRAWALS_IN_CYCLE, CreditCard, CreditCardError
from .events import CardRepaid, CardWithdrawn, CycleClosed, DomainEvent, LimitAssigned

# Public domain exports keep imports explicit across layers.
__all__ = [
    "MAX_WITHDRAWALS_IN_CYCLE",
    "CardRepaid",
    "CardWithdrawn",
    "CreditCard",
    "CreditCardError",
    "CycleClosed",
    "DomainEvent",
    "LimitAssigned",
    "RequestRepay",
    "RequestToAssignLimit",
    "RequestToCloseCycle",
    "RequestWithdrawal",
]

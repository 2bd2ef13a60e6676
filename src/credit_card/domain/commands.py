from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


# Commands are requests sent to the credit card; the model decides which step accepts them.
@dataclass(frozen=True, slots=True)
class RequestToAssignLimit:
    amount: Decimal


@dataclass(frozen=True, slots=True)
class RequestWithdrawal:
    amount: Decimal


@dataclass(frozen=True, slots=True)
class RequestRepay:
    amount: Decimal


@dataclass(frozen=True, slots=True)
class RequestToCloseCycle:
    pass

from .aggregate import STEP_OF_EVENT, USE_CREDIT_CARD, CreditCardAggregateRoot

__all__ = ["STEP_OF_EVENT", "USE_CREDIT_CARD", "CreditCardAggregateRoot"]

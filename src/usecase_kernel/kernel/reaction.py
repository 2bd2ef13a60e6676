from __future__ import annotations

import inspect
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from usecase_kernel.kernel.errors import ReactionAlreadyTriggeredError

if TYPE_CHECKING:
    from usecase_kernel.kernel.model import Step
    from usecase_kernel.kernel.runner import Runner


def _accepts_argument(fn: Callable[..., Any]) -> bool:
    # Reaction functions may take the message (or the runner, for automatic steps) or nothing.
    try:
        parameters = inspect.signature(fn).parameters.values()
    except (TypeError, ValueError):
        # Builtins without an introspectable signature get the argument.
        return True
    for parameter in parameters:
        if parameter.kind is inspect.Parameter.VAR_POSITIONAL:
            return True
        if parameter.kind in (
            inspect.Parameter.POSITIONAL_ONLY,
            inspect.Parameter.POSITIONAL_OR_KEYWORD,
        ):
            return True
    return False


@dataclass(frozen=True, slots=True)
class Reaction:
    fn: Callable[..., Any]
    takes_argument: bool = field(default=False)

    @staticmethod
    def of(fn: Callable[..., Any]) -> Reaction:
        if not callable(fn):
            raise TypeError("Reaction must be callable")
        return Reaction(fn=fn, takes_argument=_accepts_argument(fn))

    def __call__(self, step: Step, message: object, runner: Runner) -> Any:
        if not self.takes_argument:
            return self.fn()
        if step.is_automatic:
            return self.fn(runner)
        return self.fn(message)


class ReactionTrigger:
    """Handle passed to a reaction adapter.

    The adapter decides when (and whether) the reaction runs by calling
    ``trigger()``. Whatever the reaction returned is kept in ``result`` so the
    runner can publish it afterwards.
    """

    __slots__ = ("step", "message", "_call", "_triggered", "result")

    def __init__(self, step: Step, message: object, call: Callable[[], Any]) -> None:
        self.step = step
        self.message = message
        self._call = call
        self._triggered = False
        self.result: Any = None

    @property
    def triggered(self) -> bool:
        return self._triggered

    def trigger(self) -> Any:
        if self._triggered:
            raise ReactionAlreadyTriggeredError(self.step.name)
        self._triggered = True
        self.result = self._call()
        return self.result


# Adapters wrap every reaction, e.g. to measure time or open a transaction.
ReactionAdapter = Callable[[ReactionTrigger], None]


def trigger_directly(trigger: ReactionTrigger) -> None:
    trigger.trigger()

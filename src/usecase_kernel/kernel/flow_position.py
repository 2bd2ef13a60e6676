from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from usecase_kernel.kernel.model import Condition, Step

if TYPE_CHECKING:
    from usecase_kernel.kernel.runner import Runner


class FlowPosition(Protocol):
    # A flow position is a boolean function of the runner's session state.
    def __call__(self, runner: Runner) -> bool:
        raise NotImplementedError("FlowPosition protocol has no implementation")


@dataclass(frozen=True, slots=True)
class Anytime:
    def __call__(self, runner: Runner) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class AtFirst:
    # True until the first step of the session has executed; jumps never clear the latest step.
    def __call__(self, runner: Runner) -> bool:
        return runner.latest_step is None


@dataclass(frozen=True, slots=True)
class After:
    # Same-named steps in other use cases are disambiguated by the builder, so identity is enough.
    step: Step

    def __call__(self, runner: Runner) -> bool:
        return runner.latest_step is self.step


@dataclass(frozen=True, slots=True)
class InsteadOf:
    # True where `step` would be the next one to fire: its predecessor just ran,
    # or, for the first step of a flow, nothing has run yet.
    step: Step

    def __call__(self, runner: Runner) -> bool:
        previous = self.step.previous
        if previous is None:
            return runner.latest_step is None
        return runner.latest_step is previous


@dataclass(frozen=True, slots=True)
class ConditionPosition:
    condition: Condition

    def __call__(self, runner: Runner) -> bool:
        return bool(self.condition())

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from usecase_kernel.kernel.model import Step
from usecase_kernel.kernel.position import Position


class Jump(Protocol):
    # A jump replaces the position the declaring step would normally leave behind.
    target: Step

    def position_after(self, step: Step) -> Position:
        raise NotImplementedError("Jump protocol has no implementation")


@dataclass(frozen=True, slots=True)
class ContinuesAfter:
    # The target's successor fires next; the jumping flow is recorded so it does not re-enter at once.
    target: Step

    def position_after(self, step: Step) -> Position:
        return Position(latest_step=self.target, latest_flow=step.flow)


@dataclass(frozen=True, slots=True)
class ContinuesAt:
    # The target fires next, following its normal predecessor semantics.
    target: Step

    def position_after(self, step: Step) -> Position:
        previous = self.target.previous
        if previous is None:
            # A first step has no predecessor to stand on: mark it due, keep the jump step as latest.
            return Position(latest_step=step, latest_flow=step.flow, continue_at=self.target)
        return Position(latest_step=previous, latest_flow=step.flow)


@dataclass(frozen=True, slots=True)
class Restart:
    # Degenerate ContinuesAt pointing at the first step of the basic flow.
    target: Step

    def position_after(self, step: Step) -> Position:
        return ContinuesAt(self.target).position_after(step)

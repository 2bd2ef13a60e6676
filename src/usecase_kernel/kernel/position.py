from __future__ import annotations

from dataclasses import dataclass

from usecase_kernel.kernel.model import Flow, Step


@dataclass(frozen=True, slots=True)
class Position:
    # Where the runner currently is: the sole mutable session data, held as an immutable value.
    latest_step: Step | None = None
    latest_flow: Flow | None = None
    # First step of a flow that a jump made due next, regardless of its flow's position.
    continue_at: Step | None = None

    @staticmethod
    def at(step: Step | None) -> Position:
        if step is None:
            return Position()
        return Position(latest_step=step, latest_flow=step.flow)

    def describe(self) -> str | None:
        return None if self.latest_step is None else self.latest_step.name

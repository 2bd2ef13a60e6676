from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from usecase_kernel.kernel.model import Step


# Build-time errors: the model is rejected before it reaches a runner.
class InvalidModelError(ValueError):
    pass


class ElementAlreadyInModelError(InvalidModelError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Element already in model: '{name}'")
        self.name = name


class NoSuchElementInModelError(InvalidModelError):
    def __init__(self, name: str) -> None:
        super().__init__(f"No such element in model: '{name}'")
        self.name = name


class MissingStepPartError(InvalidModelError):
    def __init__(self, step_name: str, part: str) -> None:
        super().__init__(f"Step '{step_name}' is missing its {part} part")
        self.step_name = step_name
        self.part = part


# Dispatch-time errors. They are never treated as failure messages, so a model
# cannot "handle" its own design or wiring defects.
class ReactionError(RuntimeError):
    pass


class MissingBehaviorError(ReactionError):
    def __init__(self, actor_name: str) -> None:
        super().__init__(f"Actor '{actor_name}' has no runner attached")
        self.actor_name = actor_name


class AmbiguousReactionError(ReactionError):
    def __init__(self, steps: Sequence[Step], reacting_to: object = None) -> None:
        self.steps = tuple(steps)
        self.reacting_to = reacting_to
        super().__init__(f"More than one step can react: {', '.join(step_labels(self.steps))}")


class ReentrantReactionError(ReactionError):
    def __init__(self) -> None:
        super().__init__("react_to() called while the same runner is already reacting")


class ReactionAlreadyTriggeredError(ReactionError):
    def __init__(self, step_name: str) -> None:
        super().__init__(f"Reaction of step '{step_name}' already triggered")
        self.step_name = step_name


class InfiniteRepetitionError(ReactionError):
    def __init__(self, step: Step) -> None:
        super().__init__(f"Step '{step.name}' would react again directly after itself")
        self.step = step


def step_labels(steps: Sequence[Step]) -> list[str]:
    # Qualify with the use case only when plain names collide.
    names = [step.name for step in steps]
    if len(set(names)) == len(names):
        return [f"'{name}'" for name in names]
    return [f"'{step.qualified_name}'" for step in steps]

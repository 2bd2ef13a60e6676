from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from usecase_kernel.kernel.errors import (
    ElementAlreadyInModelError,
    MissingBehaviorError,
    NoSuchElementInModelError,
)

if TYPE_CHECKING:
    from usecase_kernel.kernel.flow_position import FlowPosition
    from usecase_kernel.kernel.jumps import Jump
    from usecase_kernel.kernel.reaction import Reaction
    from usecase_kernel.kernel.runner import Runner

# Guards are zero-argument checks supplied by the embedding application.
Condition = Callable[[], bool]

BASIC_FLOW = "Basic flow"


class Actor:
    # Named identity; may own a runner so that other runners can publish to it.
    __slots__ = ("name", "_runner")

    def __init__(self, name: str) -> None:
        if not name:
            raise ValueError("Actor name must be non-empty")
        self.name = name
        self._runner: Runner | None = None

    @property
    def runner(self) -> Runner | None:
        return self._runner

    def attach(self, runner: Runner) -> Actor:
        # The runner becomes this actor's behavior; publish-to targets it.
        self._runner = runner
        return self

    def react_to(self, message: object) -> Step | None:
        if self._runner is None:
            raise MissingBehaviorError(self.name)
        return self._runner.react_to(message)

    def __repr__(self) -> str:
        return f"Actor({self.name!r})"


@dataclass(eq=False, slots=True)
class Step:
    # Atomic reactive unit. Identity semantics: two steps are equal only if they are the same object.
    name: str
    use_case: UseCase
    flow: Flow | None
    previous: Step | None = None
    actors: tuple[Actor, ...] = ()
    message_type: type | None = None
    reaction: Reaction | None = None
    publish: bool = False
    recipient: Actor | None = None
    repeat_while: Condition | None = None
    jump: Jump | None = None
    # Only used by flowless steps; flow steps are guarded by their flow.
    condition: Condition | None = None

    @property
    def is_automatic(self) -> bool:
        return self.message_type is None

    @property
    def is_flowless(self) -> bool:
        return self.flow is None

    @property
    def is_first_in_flow(self) -> bool:
        return self.flow is not None and self.previous is None

    @property
    def qualified_name(self) -> str:
        return f"{self.use_case.name}: {self.name}"

    @property
    def has_defined_predicate(self) -> bool:
        # Explicitly scoped steps interrupt default ones that could react to the same message.
        if self.flow is None:
            return self.condition is not None
        return self.previous is None and self.flow.has_defined_predicate

    def enabled(self, runner: Runner) -> bool:
        if self.repeat_while is not None:
            return bool(self.repeat_while())
        if self.flow is None:
            return self.condition is None or bool(self.condition())
        if self.previous is None:
            if runner.position.continue_at is self:
                # A jump made this step due: only the when-guard still applies.
                return self.flow.when is None or bool(self.flow.when())
            return self.flow.enables(runner)
        return runner.latest_step is self.previous

    def __repr__(self) -> str:
        return f"Step({self.qualified_name!r})"


@dataclass(eq=False, slots=True)
class Flow:
    # Ordered steps sharing one entry predicate (position modifier + when-guard).
    name: str
    use_case: UseCase
    steps: list[Step] = field(default_factory=list)
    position: FlowPosition | None = None
    when: Condition | None = None

    @property
    def first_step(self) -> Step | None:
        return self.steps[0] if self.steps else None

    @property
    def last_step(self) -> Step | None:
        return self.steps[-1] if self.steps else None

    @property
    def has_defined_predicate(self) -> bool:
        return self.position is not None or self.when is not None

    def enables(self, runner: Runner) -> bool:
        # Entry predicate of the first step: the runner is not already in this flow,
        # the position holds (Anytime by default) and so does the when-guard.
        if runner.latest_flow is self:
            return False
        if self.position is not None and not self.position(runner):
            return False
        return self.when is None or bool(self.when())

    def __repr__(self) -> str:
        return f"Flow({self.use_case.name!r}, {self.name!r})"


@dataclass(eq=False, slots=True)
class UseCase:
    name: str
    model: Model
    flows: dict[str, Flow] = field(default_factory=dict)
    flowless_steps: list[Step] = field(default_factory=list)

    @property
    def basic_flow(self) -> Flow | None:
        return self.flows.get(BASIC_FLOW)

    def ensure_basic_flow(self) -> Flow:
        # Basic flow is created on first declaration and always comes first.
        flow = self.flows.get(BASIC_FLOW)
        if flow is None:
            flow = Flow(name=BASIC_FLOW, use_case=self)
            self.flows = {BASIC_FLOW: flow, **self.flows}
        return flow

    def new_flow(self, name: str) -> Flow:
        if name in self.flows:
            raise ElementAlreadyInModelError(name)
        flow = Flow(name=name, use_case=self)
        self.flows[name] = flow
        return flow

    def find_flow(self, name: str) -> Flow:
        if name not in self.flows:
            raise NoSuchElementInModelError(name)
        return self.flows[name]

    def new_step(self, name: str, flow: Flow | None) -> Step:
        if self.has_step(name):
            raise ElementAlreadyInModelError(name)
        if flow is None:
            step = Step(name=name, use_case=self, flow=None)
            self.flowless_steps.append(step)
            return step
        step = Step(name=name, use_case=self, flow=flow, previous=flow.last_step)
        flow.steps.append(step)
        return step

    def has_step(self, name: str) -> bool:
        return any(step.name == name for step in self.steps)

    def find_step(self, name: str) -> Step:
        for step in self.steps:
            if step.name == name:
                return step
        raise NoSuchElementInModelError(name)

    @property
    def steps(self) -> list[Step]:
        out: list[Step] = []
        for flow in self.flows.values():
            out.extend(flow.steps)
        out.extend(self.flowless_steps)
        return out

    def __repr__(self) -> str:
        return f"UseCase({self.name!r})"


@dataclass(eq=False, slots=True)
class Model:
    # Structural container; immutable once handed to a runner.
    use_cases: dict[str, UseCase] = field(default_factory=dict)
    actors: dict[str, Actor] = field(default_factory=dict)

    def new_use_case(self, name: str) -> UseCase:
        if name in self.use_cases:
            raise ElementAlreadyInModelError(name)
        use_case = UseCase(name=name, model=self)
        self.use_cases[name] = use_case
        return use_case

    def has_use_case(self, name: str) -> bool:
        return name in self.use_cases

    def find_use_case(self, name: str) -> UseCase:
        if name not in self.use_cases:
            raise NoSuchElementInModelError(name)
        return self.use_cases[name]

    def new_actor(self, name: str) -> Actor:
        if name in self.actors:
            raise ElementAlreadyInModelError(name)
        actor = Actor(name)
        self.actors[name] = actor
        return actor

    def add_actor(self, actor: Actor) -> Actor:
        existing = self.actors.get(actor.name)
        if existing is not None and existing is not actor:
            raise ElementAlreadyInModelError(actor.name)
        self.actors[actor.name] = actor
        return actor

    def has_actor(self, name: str) -> bool:
        return name in self.actors

    def find_actor(self, name: str) -> Actor:
        if name not in self.actors:
            raise NoSuchElementInModelError(name)
        return self.actors[name]

    @property
    def steps(self) -> list[Step]:
        out: list[Step] = []
        for use_case in self.use_cases.values():
            out.extend(use_case.steps)
        return out

    def __iter__(self) -> Iterator[UseCase]:
        return iter(self.use_cases.values())

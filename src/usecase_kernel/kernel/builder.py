from __future__ import annotations

from collections.abc import Callable
from typing import Any

from usecase_kernel.kernel.errors import InvalidModelError, MissingStepPartError, NoSuchElementInModelError
from usecase_kernel.kernel.flow_position import After, Anytime, AtFirst, ConditionPosition, FlowPosition, InsteadOf
from usecase_kernel.kernel.jumps import ContinuesAfter, ContinuesAt, Restart
from usecase_kernel.kernel.model import BASIC_FLOW, Actor, Condition, Flow, Model, Step, UseCase
from usecase_kernel.kernel.reaction import Reaction

# Use case that receives steps declared directly on the ModelBuilder.
DEFAULT_USE_CASE = "Main use case"


class ModelBuilder:
    """Fluent construction API for models.

    Every cross-reference (after, instead_of, continues_at, ...) is resolved
    when the call is made, so a model that reaches ``build()`` has no dangling
    step names. ``build()`` then checks that each step knows what to do.

        model = (
            ModelBuilder()
            .use_case("Greet")
            .basic_flow()
            .step("S1").user(EnterText).system(greet)
            .step("S2").system(say_goodbye)
            .build()
        )
    """

    def __init__(self, model: Model | None = None) -> None:
        self._model = model if model is not None else Model()

    @property
    def model(self) -> Model:
        return self._model

    def actor(self, name: str) -> Actor:
        # Returns the existing actor of that name, or creates it.
        if self._model.has_actor(name):
            return self._model.find_actor(name)
        return self._model.new_actor(name)

    def use_case(self, name: str) -> UseCasePart:
        if self._model.has_use_case(name):
            return UseCasePart(self._model.find_use_case(name), self)
        return UseCasePart(self._model.new_use_case(name), self)

    # Shortcuts declaring flowless steps in the default use case.

    def on(self, message_type: type) -> StepPart:
        return self.use_case(DEFAULT_USE_CASE).on(message_type)

    def user(self, message_type: type) -> StepPart:
        return self.use_case(DEFAULT_USE_CASE).user(message_type)

    def condition(self, condition: Condition) -> StepPart:
        return self.use_case(DEFAULT_USE_CASE).condition(condition)

    def build(self) -> Model:
        for step in self._model.steps:
            if step.reaction is None and step.jump is None:
                raise MissingStepPartError(step.qualified_name, "reaction")
        return self._model


class UseCasePart:
    def __init__(self, use_case: UseCase, builder: ModelBuilder) -> None:
        self._use_case = use_case
        self._builder = builder

    @property
    def element(self) -> UseCase:
        return self._use_case

    @property
    def builder(self) -> ModelBuilder:
        return self._builder

    def basic_flow(self) -> FlowPart:
        return FlowPart(self._use_case.ensure_basic_flow(), self)

    def flow(self, name: str) -> FlowPart:
        if name == BASIC_FLOW:
            return self.basic_flow()
        return FlowPart(self._use_case.new_flow(name), self)

    def on(self, message_type: type) -> StepPart:
        return self._flowless_step().on(message_type)

    def user(self, message_type: type) -> StepPart:
        return self._flowless_step().user(message_type)

    def condition(self, condition: Condition) -> StepPart:
        step_part = self._flowless_step()
        step_part.element.condition = condition
        return step_part

    def when(self, condition: Condition) -> StepPart:
        # Flowless steps have a single guard; "when" reads better before on()/user().
        return self.condition(condition)

    def use_case(self, name: str) -> UseCasePart:
        return self._builder.use_case(name)

    def build(self) -> Model:
        return self._builder.build()

    def _flowless_step(self) -> StepPart:
        step = self._use_case.new_step(self._next_flowless_name(), None)
        return StepPart(step, self, None)

    def _next_flowless_name(self) -> str:
        index = len(self._use_case.flowless_steps) + 1
        while self._use_case.has_step(f"S{index}"):
            index += 1
        return f"S{index}"

    def find_step(self, step_name: str, use_case_name: str | None = None) -> Step:
        use_case = self._use_case
        if use_case_name is not None:
            use_case = self._builder.model.find_use_case(use_case_name)
        return use_case.find_step(step_name)


class FlowPart:
    def __init__(self, flow: Flow, use_case_part: UseCasePart) -> None:
        self._flow = flow
        self._use_case_part = use_case_part

    @property
    def element(self) -> Flow:
        return self._flow

    # Position modifiers: at most one per flow.

    def anytime(self) -> FlowPart:
        return self._position(Anytime())

    def at_first(self) -> FlowPart:
        return self._position(AtFirst())

    def after(self, step_name: str, use_case: str | None = None) -> FlowPart:
        return self._position(After(self._use_case_part.find_step(step_name, use_case)))

    def instead_of(self, step_name: str) -> FlowPart:
        return self._position(InsteadOf(self._use_case_part.find_step(step_name)))

    def condition(self, condition: Condition) -> FlowPart:
        return self._position(ConditionPosition(condition))

    def when(self, condition: Condition) -> FlowPart:
        if self._flow.when is not None:
            raise InvalidModelError(f"Flow '{self._flow.name}' already has a when condition")
        self._flow.when = condition
        return self

    def step(self, name: str) -> StepPart:
        step = self._flow.use_case.new_step(name, self._flow)
        return StepPart(step, self._use_case_part, self)

    def _position(self, position: FlowPosition) -> FlowPart:
        if self._flow.position is not None:
            raise InvalidModelError(f"Flow '{self._flow.name}' already has a position")
        self._flow.position = position
        return self


class StepPart:
    def __init__(self, step: Step, use_case_part: UseCasePart, flow_part: FlowPart | None) -> None:
        self._step = step
        self._use_case_part = use_case_part
        self._flow_part = flow_part

    @property
    def element(self) -> Step:
        return self._step

    # Trigger

    def actors(self, *actors: Actor | str) -> StepPart:
        resolved: list[Actor] = []
        for actor in actors:
            if isinstance(actor, str):
                actor = self._use_case_part.builder.actor(actor)
            else:
                self._use_case_part.builder.model.add_actor(actor)
            resolved.append(actor)
        self._step.actors = tuple(resolved)
        return self

    def on(self, message_type: type) -> StepPart:
        return self._trigger(message_type)

    def user(self, message_type: type) -> StepPart:
        # Same matching as on(); names a command coming from a user.
        return self._trigger(message_type)

    def handles(self, exception_type: type[Exception]) -> StepPart:
        if not (isinstance(exception_type, type) and issubclass(exception_type, Exception)):
            raise InvalidModelError(f"Step '{self._step.name}' can only handle exception types")
        return self._trigger(exception_type)

    # Reaction

    def system(self, fn: Callable[..., Any]) -> StepPart:
        self._react(fn, publish=False)
        return self

    def system_publish(self, fn: Callable[..., Any]) -> StepPart:
        self._react(fn, publish=True)
        return self

    def to(self, recipient: Actor | str) -> StepPart:
        if not self._step.publish:
            raise InvalidModelError(f"Step '{self._step.name}' must publish before naming a recipient")
        if isinstance(recipient, str):
            recipient = self._use_case_part.builder.actor(recipient)
        else:
            self._use_case_part.builder.model.add_actor(recipient)
        self._step.recipient = recipient
        return self

    # Control transfer

    def repeat_while(self, condition: Condition) -> StepPart:
        self._step.repeat_while = condition
        return self

    def react_while(self, condition: Condition) -> StepPart:
        return self.repeat_while(condition)

    def continues_at(self, step_name: str) -> StepPart:
        self._set_jump(ContinuesAt(self._use_case_part.find_step(step_name)))
        return self

    def continues_after(self, step_name: str) -> StepPart:
        self._set_jump(ContinuesAfter(self._use_case_part.find_step(step_name)))
        return self

    def restart(self) -> StepPart:
        basic_flow = self._step.use_case.basic_flow
        first = None if basic_flow is None else basic_flow.first_step
        if first is None:
            raise NoSuchElementInModelError(BASIC_FLOW)
        self._set_jump(Restart(first))
        return self

    # Navigation

    def step(self, name: str) -> StepPart:
        if self._flow_part is None:
            raise InvalidModelError(f"Flowless step '{self._step.name}' has no flow to continue")
        return self._flow_part.step(name)

    def flow(self, name: str) -> FlowPart:
        return self._use_case_part.flow(name)

    def basic_flow(self) -> FlowPart:
        return self._use_case_part.basic_flow()

    def use_case(self, name: str) -> UseCasePart:
        return self._use_case_part.use_case(name)

    def build(self) -> Model:
        return self._use_case_part.build()

    def _trigger(self, message_type: type) -> StepPart:
        if not isinstance(message_type, type):
            raise InvalidModelError(f"Step '{self._step.name}' needs a class as message type")
        if self._step.message_type is not None:
            raise InvalidModelError(f"Step '{self._step.name}' already reacts to {self._step.message_type.__name__}")
        self._step.message_type = message_type
        return self

    def _react(self, fn: Callable[..., Any], *, publish: bool) -> None:
        if self._step.reaction is not None:
            raise InvalidModelError(f"Step '{self._step.name}' already has a reaction")
        self._step.reaction = Reaction.of(fn)
        self._step.publish = publish

    def _set_jump(self, jump: ContinuesAt | ContinuesAfter | Restart) -> None:
        if self._step.jump is not None:
            raise InvalidModelError(f"Step '{self._step.name}' already continues elsewhere")
        self._step.jump = jump

from __future__ import annotations

import uuid
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any, Protocol

from usecase_kernel.kernel.errors import (
    AmbiguousReactionError,
    InfiniteRepetitionError,
    ReactionError,
    ReentrantReactionError,
)
from usecase_kernel.kernel.model import Actor, Flow, Model, Step
from usecase_kernel.kernel.position import Position
from usecase_kernel.kernel.reaction import ReactionAdapter, ReactionTrigger, trigger_directly
from usecase_kernel.kernel.trace import ReactionSpan, TraceRecorder, error_info
from usecase_kernel.observability.logging import LogLevel, LogMessage, is_enabled

if TYPE_CHECKING:
    from usecase_kernel.ports.log_sink import LogSink
    from usecase_kernel.ports.trace_sink import TraceSink


class OutputSink(Protocol):
    # Receives values published by steps that have no recipient actor.
    def __call__(self, msg: object) -> None:
        raise NotImplementedError("Runner output sink is a callback")


class Runner:
    """Runs a use case model: resolves which step reacts to each message.

    The runner owns the only mutable session data (current actor and
    position). Everything it executes is synchronous: ``react_to`` returns
    after the reacting step, any publish-to forwarding and all automatic
    follow-up steps have run. A runner is meant to be driven by one thread;
    several runners may share one model.
    """

    def __init__(
        self,
        *,
        name: str = "runner",
        output_sink: OutputSink | None = None,
        trace_recorder: TraceRecorder | None = None,
        trace_sink: TraceSink | None = None,
        log_sink: LogSink | None = None,
        log_level: LogLevel = "info",
    ) -> None:
        self.name = name
        self._output_sink = output_sink
        self._trace_recorder = trace_recorder
        self._trace_sink = trace_sink
        self._log_sink = log_sink
        self._log_level = log_level

        self._model: Model | None = None
        self._actor: Actor | None = None
        self._position = Position()
        self._running = False
        self._reacting = False
        self._trace_id: str | None = None
        self._adapter: ReactionAdapter = trigger_directly

        self._recording = False
        self._recorded_steps: list[Step] = []
        self._recorded_messages: list[object] = []

    # Session state

    @property
    def model(self) -> Model | None:
        return self._model

    @property
    def actor(self) -> Actor | None:
        return self._actor

    @property
    def position(self) -> Position:
        return self._position

    @property
    def latest_step(self) -> Step | None:
        return self._position.latest_step

    @property
    def latest_flow(self) -> Flow | None:
        return self._position.latest_flow

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def is_reacting(self) -> bool:
        return self._reacting

    def run(self, model: Model) -> Runner:
        # Attaching a model resets the position, then automatic steps run right away.
        if self._reacting:
            raise ReentrantReactionError()
        self._model = model
        self._position = Position()
        self._running = True
        self._log("info", "model attached", use_cases=[use_case.name for use_case in model])
        self._begin_dispatch()
        try:
            self._drain()
        finally:
            self._end_dispatch()
        return self

    def stop(self) -> None:
        # A stopped runner ignores messages until run() is called again.
        if self._running:
            self._log("info", "runner stopped", latest_step=self._position.describe())
        self._running = False

    def as_actor(self, actor: Actor | None) -> Runner:
        self._actor = actor
        return self

    def set_latest_step(self, step: Step | None) -> None:
        # Escape hatch for collaborators that persist and restore the position.
        self._position = Position.at(step)

    def restore(self, position: Position) -> None:
        self._position = position

    def adapt_reaction(self, adapter: ReactionAdapter) -> Runner:
        self._adapter = adapter
        return self

    # Recording

    def start_recording(self) -> Runner:
        self._recording = True
        self._recorded_steps = []
        self._recorded_messages = []
        return self

    def stop_recording(self) -> None:
        self._recording = False

    def recorded_step_names(self) -> list[str]:
        return [step.name for step in self._recorded_steps]

    def recorded_messages(self) -> list[object]:
        return list(self._recorded_messages)

    # Dispatch

    def react_to(self, message: object) -> Step | None:
        """React to one message; return the step that reacted, or None.

        Raises ReentrantReactionError when called from inside a reaction of
        this same runner, AmbiguousReactionError when several steps could
        react, and re-raises any failure of a reaction that no step handles.
        """
        if self._reacting:
            raise ReentrantReactionError()
        if not self._running or self._model is None:
            return None
        self._begin_dispatch()
        try:
            step = self._dispatch(message, automatic=False)
            if step is not None:
                self._drain()
            return step
        finally:
            self._end_dispatch()

    def react_to_each(self, messages: Iterable[object]) -> Step | None:
        # Messages are processed strictly in order; returns the last step that reacted.
        latest: Step | None = None
        for message in messages:
            step = self.react_to(message)
            if step is not None:
                latest = step
        return latest

    def steps_that_can_react(self, message: object) -> list[Step]:
        if self._model is None:
            return []
        return self._candidates(message, automatic=False)

    def close(self) -> None:
        if self._trace_sink is not None:
            self._trace_sink.flush()
            self._trace_sink.close()
        if self._log_sink is not None:
            self._log_sink.close()

    def _begin_dispatch(self) -> None:
        self._reacting = True
        self._trace_id = uuid.uuid4().hex

    def _end_dispatch(self) -> None:
        self._reacting = False
        self._trace_id = None

    def _drain(self) -> None:
        # Auto-dispatch: keep running automatic steps until none reacts.
        while self._running and self._dispatch(None, automatic=True) is not None:
            pass

    def _dispatch(self, message: object, *, automatic: bool) -> Step | None:
        candidates = self._candidates(message, automatic=automatic)
        if not candidates:
            return None
        if len(candidates) > 1:
            self._log(
                "warning",
                "ambiguous reaction",
                steps=[step.qualified_name for step in candidates],
                reacting_to=None if automatic else type(message).__name__,
            )
            raise AmbiguousReactionError(candidates, message)
        step = candidates[0]
        if automatic and step is self._position.latest_step and step.repeat_while is None:
            self._log("warning", "infinite repetition", step=step.qualified_name)
            raise InfiniteRepetitionError(step)
        return self._execute(step, message, handle_failures=True)

    def _candidates(self, message: object, *, automatic: bool) -> list[Step]:
        assert self._model is not None
        candidates = [step for step in self._model.steps if self._can_react(step, message, automatic)]
        # Explicitly scoped steps, and the target of a jump, interrupt catch-all ones.
        if any(self._is_explicit(step) for step in candidates):
            candidates = [step for step in candidates if self._is_explicit(step)]
        return [step for step in candidates if not _yields_to_repeat(step, candidates)]

    def _is_explicit(self, step: Step) -> bool:
        return step.has_defined_predicate or step is self._position.continue_at

    def _can_react(self, step: Step, message: object, automatic: bool) -> bool:
        # Cheap checks first; guards are application code and run last.
        if step.is_automatic != automatic:
            return False
        if not automatic and not isinstance(message, step.message_type):  # type: ignore[arg-type]
            return False
        if step.actors and self._actor not in step.actors:
            return False
        return step.enabled(self)

    def _execute(self, step: Step, message: object, *, handle_failures: bool) -> Step:
        before = self._position
        span = self._begin_trace(step, message)
        trigger = ReactionTrigger(step, message if not step.is_automatic else None, lambda: self._react(step, message))
        failure: Exception | None = None
        try:
            self._adapter(trigger)
            if step.publish and trigger.result is not None:
                self._publish(step, trigger.result)
        except ReactionError as exc:
            self._position = before
            self._finish_trace(span, None, "error", exc)
            raise
        except Exception as exc:  # noqa: BLE001 - failures become messages for handler steps
            self._position = before
            self._finish_trace(span, None, "error", exc)
            if not handle_failures:
                raise
            failure = exc
        if failure is not None:
            return self._handle_failure(step, failure)

        self._position = self._position_after(step, before)
        if self._recording:
            self._recorded_steps.append(step)
            self._recorded_messages.append(None if step.is_automatic else message)
        self._finish_trace(span, trigger.result if step.publish else None, "ok", None)
        self._log("debug", "step reacted", step=step.qualified_name, position=self._position.describe())
        return step

    def _react(self, step: Step, message: object) -> Any:
        if step.reaction is None:
            return None
        return step.reaction(step, message, self)

    def _publish(self, step: Step, value: object) -> None:
        # Single synchronous hop: a recipient's own runner, else the output sink.
        if step.recipient is not None:
            step.recipient.react_to(value)
        elif self._output_sink is not None:
            self._output_sink(value)

    def _position_after(self, step: Step, before: Position) -> Position:
        if step.jump is not None:
            return step.jump.position_after(step)
        if step.flow is None:
            # Flowless steps do not leave the flow the runner is in.
            return Position(latest_step=step, latest_flow=before.latest_flow)
        return Position.at(step)

    def _handle_failure(self, step: Step, failure: Exception) -> Step:
        # Handlers are resolved as if the failing step had just run; if none
        # reacts, the position stays as it was before the failing step.
        before = self._position
        self._position = self._position_after(step, before) if step.jump is None else Position.at(step)
        try:
            candidates = self._candidates(failure, automatic=False)
        except BaseException:
            self._position = before
            raise
        if not candidates:
            self._position = before
            self._log("error", "unhandled failure", step=step.qualified_name, error=type(failure).__name__)
            raise failure
        if len(candidates) > 1:
            self._position = before
            self._log(
                "warning",
                "ambiguous reaction",
                steps=[candidate.qualified_name for candidate in candidates],
                reacting_to=type(failure).__name__,
            )
            raise AmbiguousReactionError(candidates, failure) from failure
        handler = candidates[0]
        self._log("warning", "failure handled", step=step.qualified_name, handler=handler.qualified_name)
        try:
            return self._execute(handler, failure, handle_failures=False)
        except BaseException:
            self._position = before
            raise

    def _begin_trace(self, step: Step, message: object) -> ReactionSpan | None:
        if self._trace_recorder is None:
            return None
        return self._trace_recorder.begin(
            trace_id=self._trace_id or uuid.uuid4().hex,
            step=step,
            actor=self._actor,
            msg_in=message,
            position=self._position,
        )

    def _finish_trace(
        self,
        span: ReactionSpan | None,
        msg_out: object | None,
        status: str,
        exc: BaseException | None,
    ) -> None:
        if self._trace_recorder is None or span is None:
            return
        record = self._trace_recorder.finish(
            span=span,
            msg_out=msg_out,
            position=self._position,
            status="error" if status == "error" else "ok",
            error=None if exc is None else error_info(exc, span.step),
        )
        if self._trace_sink is not None:
            self._trace_sink.emit(record)

    def _log(self, level: LogLevel, text: str, /, **fields: object) -> None:
        if self._log_sink is None or not is_enabled(level, self._log_level):
            return
        self._log_sink.emit(LogMessage(level=level, message=text, fields={"runner": self.name, **fields}))


def _yields_to_repeat(step: Step, candidates: list[Step]) -> bool:
    # While a repeat step can still react, its own successor waits.
    previous = step.previous
    return previous is not None and previous.repeat_while is not None and previous in candidates

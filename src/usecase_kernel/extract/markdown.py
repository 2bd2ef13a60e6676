from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

from usecase_kernel.kernel.flow_position import After, Anytime, AtFirst, ConditionPosition, InsteadOf
from usecase_kernel.kernel.jumps import ContinuesAfter, ContinuesAt, Restart
from usecase_kernel.kernel.model import Flow, Model, Step, UseCase

MODEL_PLACEHOLDER = "{{MODEL}}"
USE_CASES_PLACEHOLDER = "{{USE_CASES}}"


def render_model(model: Model) -> str:
    """Render a model as Markdown: one section per use case, one list per flow."""

    if not model.use_cases:
        return "(no use cases)\n"
    parts = [render_use_case(use_case) for use_case in model]
    return "\n".join(part.rstrip() + "\n" for part in parts)


def render_use_case(use_case: UseCase) -> str:
    lines = [f"# Use case: {use_case.name}"]
    for flow in use_case.flows.values():
        lines.append("")
        lines.append(f"## {_flow_heading(flow)}")
        lines.append("")
        if not flow.steps:
            lines.append("(no steps)")
        for step in flow.steps:
            lines.append(f"1. {_step_sentence(step)}")
    if use_case.flowless_steps:
        lines.append("")
        lines.append("## Flowless steps")
        lines.append("")
        for step in use_case.flowless_steps:
            lines.append(f"- {_step_sentence(step)}")
    return "\n".join(lines) + "\n"


def render_template(template: str, model: Model) -> str:
    # Templates are plain Markdown with placeholders for the rendered model.
    return template.replace(MODEL_PLACEHOLDER, render_model(model).rstrip()).replace(
        USE_CASES_PLACEHOLDER, ", ".join(use_case.name for use_case in model)
    )


def write_model(model: Model, path: Path, *, template: str | None = None) -> Path:
    text = render_model(model) if template is None else render_template(template, model)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def _flow_heading(flow: Flow) -> str:
    predicates: list[str] = []
    if flow.position is not None:
        predicates.append(_describe_position(flow))
    if flow.when is not None:
        predicates.append(f"when {_callable_name(flow.when)}")
    if not predicates:
        return flow.name
    return f"{flow.name} ({', '.join(predicates)})"


def _describe_position(flow: Flow) -> str:
    position = flow.position
    if isinstance(position, Anytime):
        return "anytime"
    if isinstance(position, AtFirst):
        return "at first"
    if isinstance(position, After):
        return f"after {_step_reference(position.step, flow.use_case)}"
    if isinstance(position, InsteadOf):
        return f"instead of {_step_reference(position.step, flow.use_case)}"
    if isinstance(position, ConditionPosition):
        return f"if {_callable_name(position.condition)}"
    return type(position).__name__


def _step_sentence(step: Step) -> str:
    trigger = _describe_trigger(step)
    sentence = f"{step.name}. {trigger}"
    if step.reaction is not None:
        verb = "publishes" if step.publish else "reacts with"
        sentence += f" System {verb} {_callable_name(step.reaction.fn)}"
        if step.recipient is not None:
            sentence += f" to {step.recipient.name}"
        sentence += "."
    if step.repeat_while is not None:
        sentence += f" Repeats while {_callable_name(step.repeat_while)}."
    if step.jump is not None:
        sentence += f" {_describe_jump(step)}."
    return sentence


def _describe_trigger(step: Step) -> str:
    who = ", ".join(actor.name for actor in step.actors)
    if step.is_automatic:
        text = "Automatically:"
    elif isinstance(step.message_type, type) and issubclass(step.message_type, Exception):
        text = f"Handles {step.message_type.__name__}:"
    else:
        assert step.message_type is not None
        text = f"On {step.message_type.__name__}:"
    if step.condition is not None:
        text = f"When {_callable_name(step.condition)}, {text[0].lower()}{text[1:]}"
    if who:
        text = f"As {who}, {text[0].lower()}{text[1:]}"
    return text


def _describe_jump(step: Step) -> str:
    jump = step.jump
    if isinstance(jump, Restart):
        return "Restarts the basic flow"
    if isinstance(jump, ContinuesAt):
        return f"Continues at {_step_reference(jump.target, step.use_case)}"
    if isinstance(jump, ContinuesAfter):
        return f"Continues after {_step_reference(jump.target, step.use_case)}"
    return type(jump).__name__


def _step_reference(step: Step, use_case: UseCase) -> str:
    # Steps of other use cases need their use case to be unambiguous.
    if step.use_case is use_case:
        return step.name
    return step.qualified_name


def _callable_name(fn: Callable[..., Any]) -> str:
    name = getattr(fn, "__name__", None) or type(fn).__name__
    if name == "<lambda>":
        return "an inline function"
    return name

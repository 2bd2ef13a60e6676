from __future__ import annotations

from dataclasses import dataclass

import pytest

from usecase_kernel.adapters.log_sinks import MemoryLogSink
from usecase_kernel.kernel.builder import ModelBuilder
from usecase_kernel.kernel.errors import AmbiguousReactionError, ReactionAlreadyTriggeredError
from usecase_kernel.kernel.model import Model
from usecase_kernel.kernel.position import Position
from usecase_kernel.kernel.reaction import ReactionTrigger
from usecase_kernel.kernel.runner import Runner


@dataclass(frozen=True, slots=True)
class EnterText:
    text: str = "hello"


@dataclass(frozen=True, slots=True)
class EnterNumber:
    value: int = 1


def _three_steps(fired: list[str]) -> Model:
    return (
        ModelBuilder()
        .use_case("UC")
        .basic_flow()
        .step("S1").user(EnterText).system(lambda: fired.append("S1"))
        .step("S2").system(lambda: fired.append("S2"))
        .step("S3").user(EnterNumber).system(lambda: fired.append("S3"))
        .build()
    )


def test_actor_gating() -> None:
    builder = ModelBuilder()
    admin = builder.actor("Admin")
    guest = builder.actor("Guest")
    fired: list[str] = []
    model = (
        builder.use_case("UC")
        .basic_flow()
        .step("S1").actors(admin).user(EnterText).system(lambda: fired.append("admin"))
        .build()
    )

    assert Runner().run(model).react_to(EnterText()) is None
    assert Runner().as_actor(guest).run(model).react_to(EnterText()) is None
    assert Runner().as_actor(admin).run(model).react_to(EnterText()) is not None
    assert fired == ["admin"]


def test_actor_can_be_switched_between_messages() -> None:
    builder = ModelBuilder()
    model = (
        builder.use_case("UC")
        .basic_flow()
        .step("S1").actors("Clerk").user(EnterText).system(lambda: None)
        .step("S2").actors("Manager").user(EnterText).system(lambda: None)
        .build()
    )
    clerk = model.find_actor("Clerk")
    manager = model.find_actor("Manager")
    runner = Runner().as_actor(clerk).run(model)

    runner.react_to(EnterText())
    assert runner.react_to(EnterText()) is None
    runner.as_actor(manager)
    step = runner.react_to(EnterText())

    assert step is not None and step.name == "S2"
    assert runner.actor is manager


def test_set_latest_step_moves_the_position() -> None:
    fired: list[str] = []
    model = _three_steps(fired)
    runner = Runner().run(model)

    runner.set_latest_step(model.find_use_case("UC").find_step("S2"))
    runner.react_to(EnterNumber())

    assert fired == ["S3"]


def test_position_snapshot_can_be_restored() -> None:
    fired: list[str] = []
    runner = Runner().run(_three_steps(fired))
    runner.react_to(EnterText())
    snapshot = runner.position

    runner.react_to(EnterNumber())
    runner.restore(snapshot)
    runner.react_to(EnterNumber())

    assert fired == ["S1", "S2", "S3", "S3"]
    assert isinstance(snapshot, Position)


def test_recording_keeps_step_names_and_messages() -> None:
    fired: list[str] = []
    runner = Runner().run(_three_steps(fired)).start_recording()
    text = EnterText("a")
    number = EnterNumber(2)

    runner.react_to_each([text, number])
    runner.stop_recording()
    runner.run(_three_steps(fired)).react_to(EnterText())

    assert runner.recorded_step_names() == ["S1", "S2", "S3"]
    assert runner.recorded_messages() == [text, None, number]


def test_reaction_adapter_wraps_every_reaction() -> None:
    fired: list[str] = []
    calls: list[str] = []

    def around(trigger: ReactionTrigger) -> None:
        calls.append(f"before {trigger.step.name}")
        trigger.trigger()
        calls.append(f"after {trigger.step.name}")

    runner = Runner().adapt_reaction(around).run(_three_steps(fired))
    runner.react_to(EnterText())

    assert calls == ["before S1", "after S1", "before S2", "after S2"]
    assert fired == ["S1", "S2"]


def test_reaction_adapter_may_skip_the_reaction() -> None:
    fired: list[str] = []
    seen: list[object] = []

    def skip(trigger: ReactionTrigger) -> None:
        seen.append(trigger.message)

    runner = Runner().adapt_reaction(skip).run(_three_steps(fired))
    runner.react_to(EnterText("x"))

    assert fired == []
    assert seen == [EnterText("x"), None]
    assert runner.latest_step is not None and runner.latest_step.name == "S2"


def test_trigger_cannot_run_twice_and_is_never_handled_as_a_failure() -> None:
    handled: list[Exception] = []

    def twice(trigger: ReactionTrigger) -> None:
        trigger.trigger()
        trigger.trigger()

    builder = ModelBuilder()
    builder.use_case("UC").basic_flow().step("S1").user(EnterText).system(lambda: None)
    builder.on(Exception).system(handled.append)
    runner = Runner().adapt_reaction(twice).run(builder.build())

    with pytest.raises(ReactionAlreadyTriggeredError, match="already triggered"):
        runner.react_to(EnterText())

    assert handled == []
    assert runner.latest_step is None


def test_published_values_without_recipient_go_to_output_sink() -> None:
    published: list[object] = []
    model = (
        ModelBuilder()
        .use_case("UC")
        .basic_flow()
        .step("S1").user(EnterText).system_publish(lambda msg: EnterNumber(len(msg.text)))
        .step("S2").user(EnterText).system_publish(lambda: None)
        .build()
    )
    runner = Runner(output_sink=published.append).run(model)

    runner.react_to_each([EnterText("abc"), EnterText("ignored")])

    assert published == [EnterNumber(3)]


def test_runner_logs_lifecycle_reactions_and_ambiguity() -> None:
    sink = MemoryLogSink()
    model = (
        ModelBuilder()
        .use_case("UC")
        .flow("A").anytime().step("A1").user(EnterText).system(lambda: None)
        .flow("B").anytime().step("B1").user(EnterText).system(lambda: None)
        .flow("C").anytime().step("C1").user(EnterNumber).system(lambda: None)
        .build()
    )
    runner = Runner(name="logged", log_sink=sink, log_level="debug").run(model)

    runner.react_to(EnterNumber())
    with pytest.raises(AmbiguousReactionError):
        runner.react_to(EnterText())
    runner.stop()

    assert [(m.level, m.message) for m in sink.messages] == [
        ("info", "model attached"),
        ("debug", "step reacted"),
        ("warning", "ambiguous reaction"),
        ("info", "runner stopped"),
    ]
    assert sink.messages[1].fields == {"runner": "logged", "step": "UC: C1", "position": "C1"}
    assert sink.messages[2].fields == {"runner": "logged", "steps": ["UC: A1", "UC: B1"], "reacting_to": "EnterText"}


def test_runner_log_level_filters_messages() -> None:
    sink = MemoryLogSink()
    runner = Runner(log_sink=sink, log_level="warning").run(_three_steps([]))
    runner.react_to(EnterText())
    assert sink.messages == []

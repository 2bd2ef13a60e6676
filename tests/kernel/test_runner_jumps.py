from __future__ import annotations

from dataclasses import dataclass

from usecase_kernel.kernel.builder import ModelBuilder
from usecase_kernel.kernel.runner import Runner


@dataclass(frozen=True, slots=True)
class EnterText:
    text: str = "hello"


@dataclass(frozen=True, slots=True)
class EnterNumber:
    value: int = 1


@dataclass(frozen=True, slots=True)
class Skip:
    pass


@dataclass(frozen=True, slots=True)
class Confirm:
    pass


def test_repeat_step_refires_until_condition_fails_then_yields_to_successor() -> None:
    # Guard true for the first two messages: step, step (repeat), successor.
    fired: list[str] = []
    state = {"count": 0}

    def repeat() -> None:
        state["count"] += 1
        fired.append("S1")

    model = (
        ModelBuilder()
        .use_case("UC")
        .basic_flow()
        .step("S1").user(EnterNumber).system(repeat).repeat_while(lambda: state["count"] < 2)
        .step("S2").user(EnterNumber).system(lambda: fired.append("S2"))
        .build()
    )
    runner = Runner().run(model)

    runner.react_to_each([EnterNumber(), EnterNumber(), EnterNumber()])

    assert fired == ["S1", "S1", "S2"]


def test_automatic_repeat_step_drains_while_condition_holds() -> None:
    state = {"count": 0}

    def count() -> None:
        state["count"] += 1

    model = (
        ModelBuilder()
        .use_case("UC")
        .basic_flow()
        .step("S1").system(count).react_while(lambda: state["count"] < 3)
        .build()
    )
    Runner().run(model)
    assert state["count"] == 3


def test_continues_after_makes_the_targets_successor_fire_next() -> None:
    fired: list[str] = []
    model = (
        ModelBuilder()
        .use_case("UC")
        .basic_flow()
        .step("S1").user(EnterText).system(lambda: fired.append("S1"))
        .step("S2").user(EnterNumber).system(lambda: fired.append("S2"))
        .step("S3").user(Confirm).system(lambda: fired.append("S3"))
        .flow("Shortcut").at_first()
        .step("A1").user(Skip).system(lambda: fired.append("A1"))
        .step("A2").continues_after("S2")
        .build()
    )
    runner = Runner().run(model)

    runner.react_to(Skip())
    step = runner.react_to(Confirm())

    assert step is not None and step.name == "S3"
    assert fired == ["A1", "S3"]


def test_continues_at_makes_the_target_fire_next() -> None:
    fired: list[str] = []
    model = (
        ModelBuilder()
        .use_case("UC")
        .basic_flow()
        .step("S1").user(EnterText).system(lambda: fired.append("S1"))
        .step("S2").user(EnterNumber).system(lambda: fired.append("S2"))
        .step("S3").user(Confirm).system(lambda: fired.append("S3"))
        .flow("Shortcut").at_first()
        .step("A1").user(Skip).system(lambda: fired.append("A1"))
        .step("A2").continues_at("S2")
        .build()
    )
    runner = Runner().run(model)

    runner.react_to(Skip())
    assert runner.react_to(Confirm()) is None
    runner.react_to(EnterNumber())
    runner.react_to(Confirm())

    assert fired == ["A1", "S2", "S3"]


def test_jump_records_the_jumping_flow_so_it_does_not_reenter() -> None:
    # The alternative flow would qualify again at once if the basic flow were recorded instead.
    model = (
        ModelBuilder()
        .use_case("UC")
        .basic_flow()
        .step("S1").user(EnterText).system(lambda: None)
        .step("S2").user(EnterText).system(lambda: None)
        .flow("Alt").anytime()
        .step("A1").user(Skip).system(lambda: None)
        .step("A2").continues_at("S2")
        .build()
    )
    runner = Runner().run(model)
    runner.react_to(Skip())

    assert runner.latest_step is not None and runner.latest_step.name == "S1"
    assert runner.latest_flow is not None and runner.latest_flow.name == "Alt"
    assert runner.react_to(Skip()) is None


def test_restart_makes_the_basic_flow_start_again() -> None:
    fired: list[str] = []
    model = (
        ModelBuilder()
        .use_case("UC")
        .basic_flow()
        .step("S1").user(EnterText).system(lambda: fired.append("S1"))
        .step("S2").user(EnterText).system(lambda: fired.append("S2"))
        .flow("Start over").after("S2")
        .step("R1").user(Skip).restart()
        .build()
    )
    runner = Runner().run(model)

    runner.react_to_each([EnterText(), EnterText()])
    assert runner.react_to(EnterText()) is None
    runner.react_to(Skip())
    assert runner.latest_step is not None and runner.latest_step.name == "R1"
    assert runner.position.continue_at is model.find_use_case("UC").find_step("S1")
    runner.react_to_each([EnterText(), EnterText()])

    assert fired == ["S1", "S2", "S1", "S2"]


def test_continues_at_first_step_of_basic_flow_behaves_like_restart() -> None:
    fired: list[str] = []
    model = (
        ModelBuilder()
        .use_case("UC")
        .basic_flow()
        .step("S1").user(EnterText).system(lambda: fired.append("S1"))
        .step("S2").system(lambda: fired.append("S2"))
        .step("S3").user(EnterText).continues_at("S1")
        .build()
    )
    runner = Runner().run(model)

    runner.react_to_each([EnterText(), EnterText(), EnterText()])

    assert fired == ["S1", "S2", "S1", "S2"]
    assert runner.latest_step is not None and runner.latest_step.name == "S2"


def test_insteadof_flow_replaces_a_step() -> None:
    fired: list[str] = []
    state = {"replace": True}
    model = (
        ModelBuilder()
        .use_case("UC")
        .basic_flow()
        .step("S1").user(EnterText).system(lambda: fired.append("S1"))
        .step("S2").system(lambda: fired.append("S2"))
        .flow("Alternative").instead_of("S2").when(lambda: state["replace"])
        .step("A1").system(lambda: fired.append("A1"))
        .build()
    )
    Runner().run(model).react_to(EnterText())
    state["replace"] = False
    Runner().run(model).react_to(EnterText())

    assert fired == ["S1", "A1", "S1", "S2"]


def test_after_flow_is_qualified_by_use_case() -> None:
    fired: list[str] = []
    model = (
        ModelBuilder()
        .use_case("Login")
        .basic_flow().step("S1").user(EnterText).system(lambda: fired.append("login"))
        .use_case("Greet")
        .basic_flow().step("S1").user(EnterNumber).system(lambda: fired.append("greet"))
        .flow("After login").after("S1", "Login")
        .step("G1").system(lambda: fired.append("after login"))
        .build()
    )
    runner = Runner().run(model)

    runner.react_to(EnterText())

    assert fired == ["login", "after login"]


def test_continues_at_first_step_of_a_guarded_flow_fires_it() -> None:
    fired: list[str] = []
    model = (
        ModelBuilder()
        .use_case("UC")
        .basic_flow()
        .step("S1").user(EnterText).system(lambda: fired.append("S1"))
        .step("S2").user(EnterText).system(lambda: fired.append("S2"))
        .flow("Alt").after("S1")
        .step("A1").user(EnterNumber).system(lambda: fired.append("A1"))
        .flow("Jump").after("S2")
        .step("J1").continues_at("A1")
        .build()
    )
    runner = Runner().run(model)

    runner.react_to_each([EnterText(), EnterText(), EnterNumber()])

    assert fired == ["S1", "S2", "A1"]
    assert runner.latest_step is not None and runner.latest_step.name == "A1"


def test_restart_keeps_at_first_flows_of_other_use_cases_closed() -> None:
    fired: list[str] = []
    model = (
        ModelBuilder()
        .use_case("Main")
        .basic_flow()
        .step("M1").user(EnterText).system(lambda: fired.append("M1")).restart()
        .use_case("Onboarding")
        .flow("Welcome").at_first()
        .step("O1").user(EnterNumber).system(lambda: fired.append("O1"))
        .build()
    )
    runner = Runner().run(model)

    runner.react_to_each([EnterText(), EnterNumber(), EnterText()])

    assert fired == ["M1", "M1"]


def test_restart_still_checks_the_when_guard_of_the_basic_flow() -> None:
    fired: list[str] = []
    model = (
        ModelBuilder()
        .use_case("UC")
        .basic_flow().when(lambda: len(fired) < 2)
        .step("S1").user(EnterText).system(lambda: fired.append("S1")).restart()
        .build()
    )

    Runner().run(model).react_to_each([EnterText(), EnterText(), EnterText()])

    assert fired == ["S1", "S1"]


def test_restart_from_an_alternative_flow() -> None:
    fired: list[str] = []
    model = (
        ModelBuilder()
        .use_case("UC")
        .basic_flow().when(lambda: len(fired) < 4)
        .step("S1").user(EnterText).system(lambda: fired.append("S1"))
        .flow("Alt").after("S1")
        .step("A1").user(Skip).system(lambda: fired.append("A1")).restart()
        .build()
    )

    Runner().run(model).react_to_each([EnterText(), Skip(), EnterText(), Skip()])

    assert fired == ["S1", "A1", "S1", "A1"]

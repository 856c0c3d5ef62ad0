from pathlib import Path

import pytest

from editor_play.parser import ScenarioFileError, collect_all, collect_from_file
from editor_play.executor import ExecutionContext, StepFailed, run_steps
from editor_play.assertion import check
from editor_play.registry import get_action, registered, step


def test_parser_and_executor(tmp_path: Path):
    yaml_content = """
    test_name: demo
    steps:
      - type: action
        name: mark
        params:
          value: 3
        repeat: 2
    assertions: []
    """
    yaml_file = tmp_path / "case.yaml"
    yaml_file.write_text(yaml_content)

    @step("mark")
    def mark(ctx: ExecutionContext, value: int):
        ctx.setdefault("marks", []).append(value)

    case = collect_from_file(yaml_file)
    assert case.name == "demo"
    assert case.source == "case.yaml"
    ctx = ExecutionContext()
    run_steps(case.steps, ctx)
    assert ctx["marks"] == [3, 3]
    assert "mark" in registered()


def test_setup_steps_are_prepended(tmp_path: Path):
    (tmp_path / "many.yaml").write_text(
        "setup:\n"
        "  - {type: action, name: open_map}\n"
        "scenarios:\n"
        "  - test_name: a\n"
        "    steps: [{type: action, name: add_marker}]\n"
        "  - steps: []\n"
    )
    scenarios = collect_all(tmp_path)
    assert [s.name for s in scenarios] == ["a", "many-2"]
    assert [st["name"] for st in scenarios[0].steps] == ["open_map", "add_marker"]
    assert [st["name"] for st in scenarios[1].steps] == ["open_map"]


@pytest.mark.parametrize(
    "text",
    ["- 3\n", "test_name: x\nsteps: {name: a}\n", "test_name: x\nsteps: [{type: action}]\n"],
)
def test_malformed_scenario_files(tmp_path: Path, text):
    (tmp_path / "bad.yaml").write_text(text)
    with pytest.raises(ScenarioFileError):
        collect_all(tmp_path)


def test_unknown_step_and_step_type():
    with pytest.raises(KeyError):
        get_action("no-such-step")
    with pytest.raises(ValueError):
        run_steps([{"type": "sleep"}], ExecutionContext())


def test_failing_step_is_wrapped():
    @step("needs_value")
    def needs_value(ctx, value):
        ctx["v"] = value

    with pytest.raises(StepFailed) as exc:
        run_steps([{"type": "action", "name": "needs_value"}], ExecutionContext())
    assert (exc.value.index, exc.value.name) == (1, "needs_value")


def test_unknown_assertion_type():
    with pytest.raises(ValueError):
        check([{"type": "weather"}], ExecutionContext(session=object()))

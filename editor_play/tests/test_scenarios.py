import editor_play.steps  # noqa: F401  registers the editor steps
from editor_play import assertion, executor


def test_yaml_case(case, ctx):
    executor.run_steps(case.steps, ctx)
    assertion.check(case.assertions, ctx)

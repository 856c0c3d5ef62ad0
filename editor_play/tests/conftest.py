"""Parametrize ``case`` with every scenario under ``scenarios/``."""
from __future__ import annotations

import pytest
from pathlib import Path

from editor_play import executor, parser

SCENARIO_DIR = Path(__file__).parent / "scenarios"


def pytest_generate_tests(metafunc):
    if "case" not in metafunc.fixturenames:
        return
    cases = parser.collect_all(SCENARIO_DIR)
    ids = [c.name for c in cases]
    metafunc.parametrize("case", cases, ids=ids)


@pytest.fixture
def ctx():
    return executor.ExecutionContext()

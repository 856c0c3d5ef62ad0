"""Runs scenario steps in order against one :class:`ExecutionContext`."""
from __future__ import annotations

from typing import Any, Dict, List

from casemap.utils.logging import log

from .registry import get_action


class ExecutionContext(Dict[str, Any]):
    """Scenario state; ``open_map`` stores ``engine``, ``session`` and ``pointer`` here."""


class StepFailed(Exception):
    def __init__(self, index: int, name: str, cause: Exception) -> None:
        super().__init__(f"step {index} ({name}) failed: {cause}")
        self.index = index
        self.name = name


def run_steps(steps: List[dict], ctx: ExecutionContext) -> None:
    """
    执行步骤

    Each step is ``{type: action, name, params, repeat}``; ``repeat`` replays
    the same action (pointer-move replay). Assertion errors pass through
    unchanged, other failures are wrapped in :class:`StepFailed`.
    """
    for index, step in enumerate(steps, 1):
        if step.get("type") != "action":
            raise ValueError(f"unsupported step type: {step}")
        name = step["name"]
        action = get_action(name)
        params = step.get("params") or {}
        for _ in range(int(step.get("repeat", 1))):
            log.debug("step %d: %s %s", index, name, params)
            try:
                action(ctx, **params)
            except AssertionError:
                raise
            except (KeyError, TypeError, ValueError) as exc:
                raise StepFailed(index, name, exc) from exc

"""Editor scenario steps, registered by name."""
from __future__ import annotations

from typing import Callable, Dict, List

from casemap.utils.logging import log

Action = Callable[..., None]

_STEPS: Dict[str, Action] = {}


def step(name: str) -> Callable[[Action], Action]:
    """``@step("pointer_down")`` registers the decorated function; re-registering replaces it."""
    def wrapper(func: Action) -> Action:
        if name in _STEPS and _STEPS[name] is not func:
            log.debug("step %s re-registered by %s.%s", name, func.__module__, func.__name__)
        _STEPS[name] = func
        return func

    return wrapper


def get_action(name: str) -> Action:
    try:
        return _STEPS[name]
    except KeyError:
        raise KeyError(f"unknown step {name!r}; registered: {', '.join(registered())}") from None


def registered() -> List[str]:
    return sorted(_STEPS)

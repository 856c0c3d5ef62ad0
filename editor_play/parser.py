"""
场景文件解析

A scenario file is either a list of scenarios or a mapping with shared
``setup`` steps and a ``scenarios`` list; setup steps run before each
scenario's own steps::

    setup:
      - {type: action, name: open_map, params: {...}}
    scenarios:
      - test_name: drag
        steps: [...]
        assertions: [...]
"""

from __future__ import annotations

import yaml
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Union


class ScenarioFileError(ValueError):
    pass


@dataclass
class Scenario:
    name: str
    steps: List[Dict[str, Any]] = field(default_factory=list)
    assertions: List[Dict[str, Any]] = field(default_factory=list)
    source: str = ""


class Parser:
    def __init__(self, base: Union[str, Path]):
        self.base = Path(base)

    def collect_all(self) -> List[Scenario]:
        scenarios: List[Scenario] = []
        for p in sorted(self.base.glob("*.yaml")):
            scenarios.extend(self.parse_file(p))
        return scenarios

    def parse_file(self, path: Union[str, Path]) -> List[Scenario]:
        path = Path(path)
        content = yaml.safe_load(path.read_text("utf-8")) or []
        setup: List[Dict[str, Any]] = []
        if isinstance(content, dict) and "scenarios" in content:
            setup = self._steps(path, "setup", content.get("setup"))
            content = content["scenarios"]
        datas = content if isinstance(content, list) else [content]

        scenarios: List[Scenario] = []
        for i, data in enumerate(datas, 1):
            if not isinstance(data, dict):
                raise ScenarioFileError(f"{path.name}: scenario #{i} is not a mapping")
            name = str(data.get("test_name") or f"{path.stem}-{i}")
            scenarios.append(Scenario(
                name=name,
                steps=setup + self._steps(path, name, data.get("steps")),
                assertions=list(data.get("assertions") or []),
                source=path.name,
            ))
        return scenarios

    @staticmethod
    def _steps(path: Path, where: str, steps: Any) -> List[Dict[str, Any]]:
        steps = steps or []
        if not isinstance(steps, list):
            raise ScenarioFileError(f"{path.name}: {where}: steps must be a list")
        for s in steps:
            if not isinstance(s, dict) or "name" not in s:
                raise ScenarioFileError(f"{path.name}: {where}: step without a name: {s!r}")
        return list(steps)


def collect_all(base: Union[str, Path]) -> List[Scenario]:
    return Parser(base).collect_all()


def collect_from_file(path: Union[str, Path]) -> Scenario:
    """First scenario of a single file."""
    return Parser(Path(path).parent).parse_file(path)[0]

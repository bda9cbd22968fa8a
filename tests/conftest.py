"""Pytest configuration and shared fixtures for stackrunner tests."""

from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pytest
import yaml

from stackrunner import vars


class FakeStack:
    """Stack handle that records every call into the engine's shared call log."""

    def __init__(self, engine: "FakeEngine", name: str):
        self.engine = engine
        self.name = name
        self.config: Dict[str, Tuple[str, bool]] = {}

    def _call(self, operation: str, on_output=None):
        self.engine.calls.append((operation, self.name))
        if on_output is not None:
            on_output(f"{operation} {self.name}: 1 unchanged")
        if (operation, self.name) in self.engine.failures:
            raise RuntimeError(f"{operation} blew up")
        return f"{operation}-result-{self.name}"

    def set_all_config(self, entries) -> None:
        self._call("set_all_config")
        for key, value, secret in entries:
            self.config[key] = (value, secret)

    def refresh(self, on_output):
        return self._call("refresh", on_output)

    def up(self, on_output):
        return self._call("up", on_output)

    def destroy(self, on_output):
        return self._call("destroy", on_output)


class FakeEngine:
    """Engine double; failures holds (operation, project name) pairs that should raise."""

    def __init__(self, failures: Optional[List[Tuple[str, str]]] = None):
        self.calls: List[Tuple[str, str]] = []
        self.failures = set(failures or [])
        self.stacks: Dict[str, FakeStack] = {}
        self.closed = False

    def upsert(self, project):
        self.calls.append(("upsert", project.name))
        if ("upsert", project.name) in self.failures:
            raise RuntimeError("stack not reachable")
        stack = FakeStack(self, project.name)
        self.stacks[project.name] = stack
        return stack

    def close(self) -> None:
        self.closed = True

    def operations(self, operation: str) -> List[str]:
        return [name for op, name in self.calls if op == operation]


def sample_config(**overrides: Any) -> Dict[str, Any]:
    config = {
        "region": "us-east-2",
        "organization": "acme",
        "stackName": "dev",
        "baseProject": {"location": "./base", "name": "acme-base", "nickname": "base"},
        "platformProject": {
            "location": "https://github.com/acme/platform.git",
            "name": "acme-platform",
            "path": "infra",
            "branch": "release",
        },
        "dataProject": {"location": "./data", "name": "acme-data"},
        "appProject": {"location": "./app", "name": "acme-app", "nickname": "app"},
    }
    config.update(overrides)
    return config


@pytest.fixture
def config_dict() -> Dict[str, Any]:
    return sample_config()


@pytest.fixture
def write_config(tmp_path: Path):
    """Write a config mapping (or raw text) to a YAML file and return its path."""

    def _write(config, name: str = "config.yaml") -> Path:
        path = tmp_path / name
        if isinstance(config, str):
            path.write_text(config)
        else:
            path.write_text(yaml.safe_dump(config, sort_keys=False))
        return path

    return _write


@pytest.fixture
def fake_engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def log_dir(tmp_path: Path, monkeypatch) -> Path:
    directory = tmp_path / "logs"
    monkeypatch.setattr(vars, "LOG_DIR", str(directory))
    return directory

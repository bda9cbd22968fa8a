"""
Stack ordering and cross-stack wiring.

Stacks are applied base -> platform -> data -> app and destroyed in the
exact reverse order. Downstream stacks learn where their upstream stacks
live through plain config values (organization, project and stack names),
which their programs resolve with ``pulumi.StackReference``.
"""

import logging
from typing import Dict, List, NamedTuple, Optional

from stackrunner.config import Environment, Project
from stackrunner.lifecycle import (
    configure_stack,
    destroy_stack,
    refresh_stack,
    setup_stack,
    update_stack,
)
from stackrunner.logs import print_header, print_success

logger = logging.getLogger(__name__)

STACK_ORDER = ["base", "platform", "data", "app"]


class ConfigEntry(NamedTuple):
    key: str
    value: str
    secret: bool = False


class PlannedStack(NamedTuple):
    kind: str
    project: Project
    handle: object

    @property
    def name(self) -> str:
        return self.project.display_name


def _reference(prefix: str, env: Environment, project: Project) -> List[ConfigEntry]:
    return [
        ConfigEntry(f"{prefix}OrgName", env.organization),
        ConfigEntry(f"{prefix}ProjName", project.name),
        ConfigEntry(f"{prefix}StackName", env.stack_name),
    ]


def stack_config(env: Environment, kind: str) -> List[ConfigEntry]:
    """Config entries set on the stack of the given kind before it is refreshed."""
    region = ConfigEntry("aws:region", env.region)
    if kind == "base":
        return [region]
    if kind in ("platform", "data"):
        return [region] + _reference("base", env, env.base_project)
    if kind == "app":
        entries = _reference("platform", env, env.platform_project)
        if env.data_project is not None:
            entries += _reference("data", env, env.data_project)
        return entries
    raise ValueError(f"Unknown stack kind: {kind}")


def setup_stacks(env: Environment, engine) -> List[PlannedStack]:
    """Create or select every stack in dependency order."""
    stacks = []
    for kind, project in env.projects():
        handle = setup_stack(engine, project)
        stacks.append(PlannedStack(kind, project, handle))
    return stacks


def deploy(env: Environment, engine, log_dir: Optional[str] = None) -> Dict[str, object]:
    """Set up all stacks, then configure, refresh and update each one in order."""
    stacks = setup_stacks(env, engine)
    results = {}
    for planned in stacks:
        print_header(f"📦 {planned.name} ({planned.kind})")
        entries = stack_config(env, planned.kind)
        logger.info(f"Setting {len(entries)} config values on {planned.name} stack")
        configure_stack(planned.handle, planned.name, entries)
        refresh_stack(planned.handle, planned.name, log_dir)
        results[planned.kind] = update_stack(planned.handle, planned.name, log_dir)
    print_success(f"All {len(stacks)} stacks are up to date")
    return results


def teardown(env: Environment, engine, log_dir: Optional[str] = None) -> Dict[str, object]:
    """Set up all stacks, then destroy them in reverse dependency order."""
    stacks = setup_stacks(env, engine)
    results = {}
    for planned in reversed(stacks):
        print_header(f"🧨 {planned.name} ({planned.kind})")
        results[planned.kind] = destroy_stack(planned.handle, planned.name, log_dir)
    print_success(f"All {len(stacks)} stacks destroyed")
    return results

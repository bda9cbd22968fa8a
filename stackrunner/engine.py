"""
Pulumi Automation API adapter.

Everything that talks to ``pulumi.automation`` lives here. A project becomes
a stack handle in one of three ways:

- local: the project location is a directory holding Pulumi.yaml
- git: the location is a git URL; the branch is cloned into a temporary
  checkout and run as a local program
- remote: ``remoteDeployment`` is set; the stack runs on Pulumi Deployments
  straight from the git repository, with cloud credentials forwarded as
  deployment environment variables

Handles expose only what the lifecycle driver needs: set_all_config, refresh,
up and destroy.
"""

import logging
import shlex
import tempfile
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from pulumi import automation as auto

from stackrunner.config import Environment, Project
from stackrunner.credentials import remote_env_vars
from stackrunner.utils import get_git_repo, rmdir_if_exist, run_cmd
from stackrunner.vars import CHECKOUT_PREFIX, DEFAULT_NODE_SETUP

logger = logging.getLogger(__name__)

OutputCallback = Callable[[str], None]


def stack_id(env: Environment, project: Project) -> str:
    """Fully qualified organization/project/stack name for a project in this environment."""
    return auto.fully_qualified_stack_name(env.organization, project.name, env.stack_name)


def remote_branch(branch: str) -> str:
    """Pulumi Deployments expects a full ref; plain branch names are expanded."""
    if branch.startswith("refs/"):
        return branch
    return f"refs/heads/{branch}"


class StackHandle:
    """A stack backed by a local workspace (local directory or git checkout)."""

    def __init__(self, stack: auto.Stack):
        self._stack = stack

    @property
    def name(self) -> str:
        return self._stack.name

    def set_all_config(self, entries: Iterable[Tuple[str, str, bool]]) -> None:
        self._stack.set_all_config(
            {key: auto.ConfigValue(value=value, secret=secret) for key, value, secret in entries}
        )

    def refresh(self, on_output: OutputCallback):
        return self._stack.refresh(on_output=on_output)

    def up(self, on_output: OutputCallback):
        return self._stack.up(on_output=on_output)

    def destroy(self, on_output: OutputCallback):
        return self._stack.destroy(on_output=on_output)


class RemoteStackHandle:
    """
    A stack run through Pulumi Deployments.

    Remote stacks have no local config file to write to, so config entries are
    replayed inside the deployment as ``pulumi config set`` pre-run commands.
    Each value travels in its own deployment environment variable so secrets
    never appear on a command line.
    """

    ENV_PREFIX = "STACKRUNNER_CONFIG_"

    def __init__(self, stack_name: str, project: Project, env_vars: Mapping[str, Union[str, auto.Secret]]):
        self.stack_name = stack_name
        self.project = project
        self.env_vars: Dict[str, Union[str, auto.Secret]] = dict(env_vars)
        self.config: List[Tuple[str, str, bool]] = []
        self._stack = self._select()

    @property
    def name(self) -> str:
        return self.stack_name

    def pre_run_commands(self) -> List[str]:
        commands = []
        for index, (key, _, secret) in enumerate(self.config):
            flag = "--secret " if secret else ""
            commands.append(
                f'pulumi config set {flag}{shlex.quote(key)} "${self.ENV_PREFIX}{index}"'
            )
        return commands

    def deployment_env_vars(self) -> Dict[str, Union[str, auto.Secret]]:
        env_vars = dict(self.env_vars)
        for index, (_, value, secret) in enumerate(self.config):
            env_vars[f"{self.ENV_PREFIX}{index}"] = auto.Secret(value) if secret else value
        return env_vars

    def _select(self) -> auto.RemoteStack:
        return auto.create_or_select_remote_stack_git_source(
            stack_name=self.stack_name,
            url=self.project.location,
            branch=remote_branch(self.project.branch),
            project_path=self.project.path,
            opts=auto.RemoteWorkspaceOptions(
                env_vars=self.deployment_env_vars(),
                pre_run_commands=self.pre_run_commands(),
            ),
        )

    def set_all_config(self, entries: Iterable[Tuple[str, str, bool]]) -> None:
        # Rebinding selects the stack again, so do it once per batch
        for key, value, secret in entries:
            self.config = [entry for entry in self.config if entry[0] != key]
            self.config.append((key, value, secret))
        self._stack = self._select()

    def refresh(self, on_output: OutputCallback):
        return self._stack.refresh(on_output=on_output)

    def up(self, on_output: OutputCallback):
        return self._stack.up(on_output=on_output)

    def destroy(self, on_output: OutputCallback):
        return self._stack.destroy(on_output=on_output)


class LocalEngine:
    """Creates stacks from local directories or from temporary git checkouts."""

    def __init__(self, env: Environment, checkout_root: Optional[str] = None):
        self.env = env
        self.checkout_root = checkout_root
        self.checkouts: List[Path] = []

    def project_dir(self, project: Project) -> Path:
        if project.is_git:
            root = self.checkout(project)
        else:
            root = Path(project.location).expanduser()
        work_dir = root / project.path if project.path else root
        if not work_dir.is_dir():
            raise FileNotFoundError(f"Project directory not found: {work_dir}")
        return work_dir

    def checkout(self, project: Project) -> Path:
        checkout_dir = Path(tempfile.mkdtemp(prefix=f"{CHECKOUT_PREFIX}{project.name}-", dir=self.checkout_root))
        self.checkouts.append(checkout_dir)
        logger.info(f"📥 Cloning {project.location} ({project.branch}) into {checkout_dir}")
        return get_git_repo(project.location, checkout_dir, project.branch)

    def run_setup(self, project: Project, work_dir: Path) -> None:
        command = project.setup
        if command is None and (work_dir / "package.json").exists():
            command = DEFAULT_NODE_SETUP
        if command:
            run_cmd(command, cwd=work_dir)

    def upsert(self, project: Project) -> StackHandle:
        work_dir = self.project_dir(project)
        if project.is_git:
            self.run_setup(project, work_dir)
        stack = auto.create_or_select_stack(stack_name=stack_id(self.env, project), work_dir=str(work_dir))
        return StackHandle(stack)

    def close(self) -> None:
        for checkout_dir in self.checkouts:
            rmdir_if_exist(checkout_dir)
        self.checkouts = []


class RemoteEngine:
    """Creates stacks that run on Pulumi Deployments from their git source."""

    def __init__(self, env: Environment, environ: Optional[Mapping[str, str]] = None):
        self.env = env
        self.env_vars = remote_env_vars(env, environ)

    def upsert(self, project: Project) -> RemoteStackHandle:
        return RemoteStackHandle(stack_id(self.env, project), project, self.env_vars)

    def close(self) -> None:
        pass


def build_engine(env: Environment) -> Union[LocalEngine, RemoteEngine]:
    if env.remote_deployment:
        return RemoteEngine(env)
    return LocalEngine(env)

"""
Environment configuration for a stackrunner deployment.

The YAML file names the region, the Pulumi organization, the stack suffix
shared by every stack, and one block per project:

    region: us-east-2
    organization: acme
    stackName: dev
    remoteDeployment: false
    baseProject:
      location: ../base          # directory or git URL
      name: acme-base            # Pulumi project name
      nickname: base             # optional, used in console output
    platformProject:
      location: https://github.com/acme/platform.git
      name: acme-platform
      path: infra                # optional subdirectory in the repository
      branch: release            # optional, defaults to main
    dataProject: ...             # optional
    appProject: ...
"""

from pathlib import Path
from typing import Iterator, List, Optional, Tuple, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from stackrunner.errors import ConfigParseError, ConfigReadError
from stackrunner.vars import DEFAULT_BRANCH


def is_git_location(location: str) -> bool:
    """Return True when a project location points at a git repository rather than a directory."""
    if "://" in location or location.startswith("git@"):
        return True
    # A local checkout directory may be named "something.git"
    return location.endswith(".git") and not Path(location).expanduser().is_dir()


def _required_scalar(value):
    # Unquoted YAML such as `stackName: 2024` arrives as a number
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        value = str(value)
    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
    return value


class Project(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    location: str
    name: str
    path: Optional[str] = None
    branch: str = DEFAULT_BRANCH
    nickname: Optional[str] = None
    setup: Optional[List[str]] = None

    @field_validator("location", "name", mode="before")
    @classmethod
    def _required_text(cls, value):
        return _required_scalar(value)

    @field_validator("path", "nickname", mode="before")
    @classmethod
    def _blank_is_none(cls, value):
        if value is None or not str(value).strip():
            return None
        return str(value).strip()

    @field_validator("branch", mode="before")
    @classmethod
    def _default_branch(cls, value):
        if value is None or not str(value).strip():
            return DEFAULT_BRANCH
        return str(value).strip()

    @field_validator("setup", mode="before")
    @classmethod
    def _split_setup(cls, value):
        # Accept "npm ci" as well as ["npm", "ci"]
        if value is None or value == "":
            return None
        if isinstance(value, str):
            return value.split()
        return value

    @property
    def display_name(self) -> str:
        return self.nickname or self.name

    @property
    def is_git(self) -> bool:
        return is_git_location(self.location)


class Environment(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    region: str
    organization: str
    stack_name: str = Field(alias="stackName")
    remote_deployment: bool = Field(default=False, alias="remoteDeployment")
    base_project: Project = Field(alias="baseProject")
    platform_project: Project = Field(alias="platformProject")
    app_project: Project = Field(alias="appProject")
    data_project: Optional[Project] = Field(default=None, alias="dataProject")

    @field_validator("region", "organization", "stack_name", mode="before")
    @classmethod
    def _required_text(cls, value):
        return _required_scalar(value)

    @field_validator("data_project", mode="before")
    @classmethod
    def _empty_block_is_none(cls, value):
        return value or None

    @model_validator(mode="after")
    def _remote_needs_git(self) -> "Environment":
        if self.remote_deployment:
            local = [kind for kind, project in self.projects() if not project.is_git]
            if local:
                raise ValueError(
                    "remoteDeployment requires git locations, but these projects are local: "
                    + ", ".join(local)
                )
        return self

    def projects(self) -> Iterator[Tuple[str, Project]]:
        """Yield (kind, project) in dependency order, skipping an absent data project."""
        for kind, project in (
            ("base", self.base_project),
            ("platform", self.platform_project),
            ("data", self.data_project),
            ("app", self.app_project),
        ):
            if project is not None:
                yield kind, project

    @property
    def uses_git(self) -> bool:
        return any(project.is_git for _, project in self.projects())


def _describe_errors(exc: ValidationError) -> str:
    problems = []
    for error in exc.errors():
        where = ".".join(str(part) for part in error["loc"]) or "<root>"
        problems.append(f"{where}: {error['msg']}")
    return "; ".join(problems)


def parse_environment(text: str, source: str = "<string>") -> Environment:
    """Parse YAML text into an Environment, raising ConfigParseError on any problem."""
    try:
        raw = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigParseError(f"Error parsing configuration information in {source}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigParseError(f"Configuration in {source} must be a mapping")

    try:
        return Environment.model_validate(raw)
    except ValidationError as e:
        raise ConfigParseError(
            f"Error parsing configuration information in {source}: {_describe_errors(e)}"
        ) from e


def load_environment(path: Union[str, Path]) -> Environment:
    """Read and parse the configuration file at path."""
    config_path = Path(path)
    try:
        text = config_path.read_text()
    except OSError as e:
        raise ConfigReadError(f"Error reading configuration file {config_path}: {e}") from e
    return parse_environment(text, source=str(config_path))

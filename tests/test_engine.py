"""Tests for the Pulumi Automation API adapter, with the API itself patched out."""

from pathlib import Path

import pytest
import yaml
from conftest import sample_config
from pulumi import automation as auto

from stackrunner import engine as engine_module
from stackrunner.config import parse_environment
from stackrunner.credentials import remote_env_vars
from stackrunner.engine import (
    LocalEngine,
    RemoteEngine,
    RemoteStackHandle,
    StackHandle,
    build_engine,
    remote_branch,
    stack_id,
)


class RecordingStack:
    def __init__(self, name="acme/acme-base/dev"):
        self.name = name
        self.config = {}
        self.calls = []

    def set_all_config(self, config):
        self.calls.append("set_all_config")
        self.config.update(config)

    def refresh(self, on_output=None):
        self.calls.append("refresh")
        return "refreshed"

    def up(self, on_output=None):
        self.calls.append("up")
        return "updated"

    def destroy(self, on_output=None):
        self.calls.append("destroy")
        return "destroyed"


@pytest.fixture
def local_env(tmp_path):
    for name in ("base", "data", "app"):
        (tmp_path / name).mkdir()
    config = sample_config()
    for key, name in (("baseProject", "base"), ("dataProject", "data"), ("appProject", "app")):
        config[key]["location"] = str(tmp_path / name)
    return parse_environment(yaml.safe_dump(config))


@pytest.fixture
def remote_env():
    config = sample_config(remoteDeployment=True)
    for key in ("baseProject", "dataProject", "appProject"):
        config[key]["location"] = f"https://github.com/acme/{key}.git"
    return parse_environment(yaml.safe_dump(config))


@pytest.fixture
def created_stacks(monkeypatch):
    created = []

    def _create_or_select_stack(stack_name, work_dir=None, **kwargs):
        created.append({"stack_name": stack_name, "work_dir": work_dir})
        return RecordingStack(stack_name)

    monkeypatch.setattr(auto, "create_or_select_stack", _create_or_select_stack)
    return created


@pytest.fixture
def remote_calls(monkeypatch):
    calls = []

    def _create_or_select_remote(**kwargs):
        calls.append(kwargs)
        return RecordingStack(kwargs["stack_name"])

    monkeypatch.setattr(auto, "create_or_select_remote_stack_git_source", _create_or_select_remote)
    return calls


class TestNaming:
    def test_stack_id_is_fully_qualified(self, local_env):
        assert stack_id(local_env, local_env.base_project) == "acme/acme-base/dev"
        assert stack_id(local_env, local_env.app_project) == "acme/acme-app/dev"

    @pytest.mark.parametrize(
        "branch, expected",
        [("main", "refs/heads/main"), ("feature/x", "refs/heads/feature/x"), ("refs/tags/v1", "refs/tags/v1")],
    )
    def test_remote_branch(self, branch, expected):
        assert remote_branch(branch) == expected


class TestStackHandle:
    def test_set_all_config_wraps_values_in_one_call(self):
        stack = RecordingStack()
        StackHandle(stack).set_all_config([("aws:region", "us-east-2", False), ("dbPassword", "hunter2", True)])

        assert stack.calls == ["set_all_config"]
        region = stack.config["aws:region"]
        assert isinstance(region, auto.ConfigValue)
        assert region.value == "us-east-2"
        assert region.secret is False
        assert stack.config["dbPassword"].secret is True

    def test_operations_delegate(self):
        stack = RecordingStack()
        handle = StackHandle(stack)

        assert handle.refresh(on_output=print) == "refreshed"
        assert handle.up(on_output=print) == "updated"
        assert handle.destroy(on_output=print) == "destroyed"
        assert stack.calls == ["refresh", "up", "destroy"]


class TestLocalEngine:
    """Local directories and git checkouts."""

    def test_local_directory(self, local_env, created_stacks):
        handle = LocalEngine(local_env).upsert(local_env.base_project)

        assert handle.name == "acme/acme-base/dev"
        assert created_stacks == [
            {"stack_name": "acme/acme-base/dev", "work_dir": local_env.base_project.location}
        ]

    def test_missing_directory(self, tmp_path, created_stacks):
        config = sample_config()
        config["baseProject"]["location"] = str(tmp_path / "gone")
        env = parse_environment(yaml.safe_dump(config))

        with pytest.raises(FileNotFoundError):
            LocalEngine(env).upsert(env.base_project)
        assert created_stacks == []

    def test_git_checkout_runs_npm_install_and_is_cleaned_up(self, local_env, created_stacks, monkeypatch, tmp_path):
        clones, commands = [], []

        def _clone(url, output_dir, branch):
            clones.append((url, branch))
            project_dir = Path(output_dir) / "infra"
            project_dir.mkdir(parents=True)
            (project_dir / "package.json").write_text("{}")
            return Path(output_dir)

        monkeypatch.setattr(engine_module, "get_git_repo", _clone)
        monkeypatch.setattr(engine_module, "run_cmd", lambda cmd, cwd=None: commands.append((cmd, Path(cwd))))

        engine = LocalEngine(local_env, checkout_root=str(tmp_path))
        engine.upsert(local_env.platform_project)

        assert clones == [("https://github.com/acme/platform.git", "release")]
        work_dir = Path(created_stacks[0]["work_dir"])
        assert work_dir.name == "infra"
        assert commands == [(["npm", "install"], work_dir)]

        engine.close()
        assert not work_dir.exists()
        assert engine.checkouts == []

    def test_git_checkout_with_explicit_setup(self, local_env, created_stacks, monkeypatch, tmp_path):
        commands = []
        project = local_env.platform_project.model_copy(update={"setup": ["pip", "install", "-r", "requirements.txt"]})

        def _clone(url, output_dir, branch):
            (Path(output_dir) / "infra").mkdir(parents=True)
            return Path(output_dir)

        monkeypatch.setattr(engine_module, "get_git_repo", _clone)
        monkeypatch.setattr(engine_module, "run_cmd", lambda cmd, cwd=None: commands.append(cmd))

        LocalEngine(local_env, checkout_root=str(tmp_path)).upsert(project)

        assert commands == [["pip", "install", "-r", "requirements.txt"]]


class TestRemoteEngine:
    """Pulumi Deployments stacks."""

    ENVIRON = {"AWS_ACCESS_KEY_ID": "AKIA123", "AWS_SECRET_ACCESS_KEY": "shh"}

    def test_upsert_uses_git_source(self, remote_env, remote_calls):
        RemoteEngine(remote_env, environ=self.ENVIRON).upsert(remote_env.platform_project)

        call = remote_calls[0]
        assert call["stack_name"] == "acme/acme-platform/dev"
        assert call["url"] == "https://github.com/acme/platform.git"
        assert call["branch"] == "refs/heads/release"
        assert call["project_path"] == "infra"
        assert call["opts"].pre_run_commands == []
        assert call["opts"].env_vars["AWS_REGION"] == "us-east-2"
        assert call["opts"].env_vars["AWS_ACCESS_KEY_ID"] == "AKIA123"

    def test_config_replayed_as_pre_run_commands(self, remote_env, remote_calls):
        handle = RemoteStackHandle("acme/acme-app/dev", remote_env.app_project, {"AWS_REGION": "us-east-2"})
        handle.set_all_config([("platformProjName", "acme-platform", False), ("dbPassword", "hunter2", True)])

        opts = remote_calls[-1]["opts"]
        assert opts.pre_run_commands == [
            'pulumi config set platformProjName "$STACKRUNNER_CONFIG_0"',
            'pulumi config set --secret dbPassword "$STACKRUNNER_CONFIG_1"',
        ]
        assert opts.env_vars["STACKRUNNER_CONFIG_0"] == "acme-platform"
        assert isinstance(opts.env_vars["STACKRUNNER_CONFIG_1"], auto.Secret)

    def test_setting_a_key_twice_keeps_last_value(self, remote_env, remote_calls):
        handle = RemoteStackHandle("acme/acme-base/dev", remote_env.base_project, {})
        handle.set_all_config([("aws:region", "us-east-1", False)])
        handle.set_all_config([("aws:region", "us-east-2", False)])

        assert handle.config == [("aws:region", "us-east-2", False)]

    def test_operations_use_latest_binding(self, remote_env, remote_calls):
        handle = RemoteStackHandle("acme/acme-base/dev", remote_env.base_project, {})
        handle.set_all_config([("aws:region", "us-east-2", False)])

        assert handle.up(on_output=print) == "updated"
        assert len(remote_calls) == 2

    def test_batch_selects_stack_once(self, remote_env, remote_calls):
        handle = RemoteStackHandle("acme/acme-platform/dev", remote_env.platform_project, {})
        entries = [
            ("aws:region", "us-east-2", False),
            ("baseOrgName", "acme", False),
            ("baseProjName", "acme-base", False),
            ("baseStackName", "dev", False),
        ]
        handle.set_all_config(entries)

        # one select on creation, one for the whole batch
        assert len(remote_calls) == 2
        assert len(remote_calls[-1]["opts"].pre_run_commands) == 4

    def test_build_engine_picks_remote(self, remote_env, local_env, remote_calls):
        assert isinstance(build_engine(remote_env), RemoteEngine)
        assert isinstance(build_engine(local_env), LocalEngine)


class TestCredentials:
    def test_secrets_forwarded_and_unset_skipped(self, remote_env):
        env_vars = remote_env_vars(remote_env, environ={"AWS_ACCESS_KEY_ID": "AKIA123"})

        assert env_vars["AWS_REGION"] == "us-east-2"
        assert not isinstance(env_vars["AWS_REGION"], auto.Secret)
        assert isinstance(env_vars["AWS_ACCESS_KEY_ID"], auto.Secret)
        assert "AWS_SECRET_ACCESS_KEY" not in env_vars
        assert "AWS_SESSION_TOKEN" not in env_vars

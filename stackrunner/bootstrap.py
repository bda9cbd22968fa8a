"""
Interactive writer for config.yaml.

Usage:
    uv run stackrunner-init [path]

Prompts for the environment-wide settings and for each project block, then
writes a configuration file that ``stackrunner`` can load.
"""

import sys
from pathlib import Path
from typing import Any, Dict, Optional

import inquirer
import yaml
from inquirer.themes import GreenPassion

from stackrunner import vars
from stackrunner.config import parse_environment
from stackrunner.errors import ConfigParseError
from stackrunner.logs import print_error, print_header, print_step, print_success, print_warning

PROJECTS = [
    ("baseProject", "base", True),
    ("platformProject", "platform", True),
    ("dataProject", "data", False),
    ("appProject", "app", True),
]


def _not_blank(_answers, value: str) -> bool:
    return bool(value.strip())


def prompt(questions) -> Dict[str, Any]:
    answers = inquirer.prompt(questions, theme=GreenPassion())
    if not answers:
        # inquirer returns None when the user hits Ctrl-C
        raise KeyboardInterrupt("Configuration cancelled")
    return answers


def prompt_environment() -> Dict[str, Any]:
    print_step("1️⃣  Environment")
    answers = prompt([
        inquirer.Text("region", message="AWS region", default="us-east-2", validate=_not_blank),
        inquirer.Text("organization", message="Pulumi organization", validate=_not_blank),
        inquirer.Text("stackName", message="Stack name shared by every project (e.g. dev)", default="dev",
                      validate=_not_blank),
        inquirer.Confirm("remoteDeployment", message="Run stacks on Pulumi Deployments?", default=False),
    ])
    return {
        "region": answers["region"].strip(),
        "organization": answers["organization"].strip(),
        "stackName": answers["stackName"].strip(),
        "remoteDeployment": answers["remoteDeployment"],
    }


def prompt_project(kind: str) -> Dict[str, Any]:
    answers = prompt([
        inquirer.Text("location", message=f"{kind}: directory or git URL", validate=_not_blank),
        inquirer.Text("name", message=f"{kind}: Pulumi project name", validate=_not_blank),
        inquirer.Text("nickname", message=f"{kind}: display name", default=kind),
        inquirer.Text("path", message=f"{kind}: subdirectory inside the repository (optional)", default=""),
        inquirer.Text("branch", message=f"{kind}: git branch", default=vars.DEFAULT_BRANCH),
    ])
    project = {"location": answers["location"].strip(), "name": answers["name"].strip()}
    for key in ("nickname", "path", "branch"):
        value = answers[key].strip()
        if value:
            project[key] = value
    return project


def collect_config() -> Dict[str, Any]:
    config = prompt_environment()
    print_step("2️⃣  Projects")
    for key, kind, required in PROJECTS:
        if not required:
            include = prompt([inquirer.Confirm("include", message=f"Include a {kind} stack?", default=True)])
            if not include["include"]:
                continue
        config[key] = prompt_project(kind)
    return config


def write_config(config: Dict[str, Any], path: Path) -> Path:
    """Validate config the same way stackrunner will, then write it as YAML."""
    text = yaml.safe_dump(config, sort_keys=False, default_flow_style=False)
    parse_environment(text, source=str(path))
    path.write_text(text)
    return path


def main(argv: Optional[list] = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    path = Path(argv[0] if argv else vars.CONFIG_PATH)

    print_header("🚀 stackrunner configuration")

    try:
        if path.exists():
            print_warning(f"{path} already exists")
            answer = prompt([inquirer.Confirm("overwrite", message=f"Overwrite {path}?", default=False)])
            if not answer["overwrite"]:
                print_warning("Keeping existing configuration")
                return 0

        config = collect_config()
        write_config(config, path)
    except KeyboardInterrupt:
        print_error("Cancelled by user")
        return 1
    except ConfigParseError as e:
        print_error(str(e))
        return 1

    print_success(f"Wrote {path}")
    print("\n🚀 Next steps:")
    print("  stackrunner            # refresh + update")
    print("  stackrunner destroy    # tear everything down")
    return 0


def run() -> None:
    sys.exit(main())

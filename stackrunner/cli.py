"""
Command line entry point.

    stackrunner            # refresh and update base, platform, data, app
    stackrunner destroy    # destroy app, data, platform, base
"""

import argparse
import logging
import sys
from typing import Callable, List, Optional

from stackrunner import vars
from stackrunner.config import Environment, load_environment
from stackrunner.engine import build_engine
from stackrunner.errors import PreflightError, StackRunnerError
from stackrunner.logs import configure_logging, print_error, print_header
from stackrunner.plan import deploy, teardown
from stackrunner.utils import check_command_exists

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stackrunner",
        description="Refresh and update (or destroy) the base, platform, data and app Pulumi stacks",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                        # refresh + update every stack in order
  %(prog)s destroy                # destroy every stack in reverse order
  %(prog)s --config prod.yaml     # use another configuration file
        """,
    )
    # Free-form so that anything other than "destroy" falls through to refresh+update
    parser.add_argument("mode", nargs="?", default=None, help='"destroy" to tear the stacks down')
    parser.add_argument("--config", default=None, help=f"configuration file (default: {vars.CONFIG_PATH})")
    parser.add_argument("--verbose", "-v", action="store_true", help="debug logging")
    return parser


def preflight(env: Environment) -> None:
    """Fail early when the tools the Automation API shells out to are missing."""
    if not check_command_exists("pulumi"):
        raise PreflightError("The pulumi CLI is required; install it from https://www.pulumi.com/docs/install/")
    if env.uses_git and not env.remote_deployment and not check_command_exists("git"):
        raise PreflightError("git is required to check out git-sourced projects")


def main(argv: Optional[List[str]] = None, engine_factory: Callable = build_engine) -> int:
    args = build_parser().parse_args(argv)
    configure_logging("DEBUG" if args.verbose else vars.LOG_LEVEL)
    destroy = args.mode == "destroy"

    try:
        config_path = args.config or vars.CONFIG_PATH
        env = load_environment(config_path)
        logger.debug(f"Loaded configuration from {config_path}")
        preflight(env)

        print_header(f"🏗️  {env.organization} / {env.stack_name} ({'destroy' if destroy else 'refresh + update'})")
        engine = engine_factory(env)
        try:
            if destroy:
                teardown(env, engine, vars.LOG_DIR)
            else:
                deploy(env, engine, vars.LOG_DIR)
        finally:
            engine.close()
    except StackRunnerError as e:
        print_error(str(e))
        return 1
    except KeyboardInterrupt:
        print_error("Cancelled by user")
        return 1
    return 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()

"""
Lifecycle operations for a single stack.

Each function announces the operation, delegates to the engine handle, and
turns any engine failure into the matching StackOperationError subclass so
the caller can stop the run on the first failure.
"""

import logging
from typing import Optional

from stackrunner.config import Project
from stackrunner.errors import (
    DestroyError,
    RefreshError,
    StackConfigError,
    StackSetupError,
    UpdateError,
)
from stackrunner.logs import ProgressLog, print_error, print_step, print_success

logger = logging.getLogger(__name__)


def setup_stack(engine, project: Project):
    """Create or select the stack for project."""
    name = project.display_name
    try:
        stack = engine.upsert(project)
    except Exception as e:
        print_error(f"Failed to create or select {name} stack: {e}")
        raise StackSetupError(name, e) from e
    print_success(f"Successfully created/selected {name} stack")
    return stack


def configure_stack(stack, name: str, entries) -> None:
    """Set every (key, value, secret) entry on stack in one call."""
    entries = list(entries)
    try:
        stack.set_all_config(entries)
    except Exception as e:
        keys = ", ".join(key for key, _, _ in entries)
        print_error(f"Failed to set {keys} on {name} stack: {e}")
        raise StackConfigError(name, e) from e
    logger.debug(f"Set {len(entries)} config values on {name} stack")


def refresh_stack(stack, name: str, log_dir: Optional[str] = None):
    print_step(f"🔄 Starting refresh of {name} stack")
    try:
        with ProgressLog("refresh", name, log_dir) as progress:
            result = stack.refresh(on_output=progress)
    except Exception as e:
        print_error(f"Failed to refresh {name} stack: {e}")
        raise RefreshError(name, e) from e
    print_success(f"Successfully refreshed {name} stack")
    return result


def update_stack(stack, name: str, log_dir: Optional[str] = None):
    print_step(f"🚀 Starting update of {name} stack")
    try:
        with ProgressLog("update", name, log_dir) as progress:
            result = stack.up(on_output=progress)
    except Exception as e:
        print_error(f"Failed to update {name} stack: {e}")
        raise UpdateError(name, e) from e
    print_success(f"Successfully updated {name} stack")
    return result


def destroy_stack(stack, name: str, log_dir: Optional[str] = None):
    print_step(f"🗑️  Destroying {name} stack")
    try:
        with ProgressLog("destroy", name, log_dir) as progress:
            result = stack.destroy(on_output=progress)
    except Exception as e:
        print_error(f"Error destroying {name} stack: {e}")
        raise DestroyError(name, e) from e
    print_success(f"Successfully destroyed {name} stack")
    return result

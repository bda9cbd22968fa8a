"""Exception types raised while loading configuration and driving stacks."""

from typing import Optional


class StackRunnerError(Exception):
    """Base class for every failure that should end the run with exit code 1."""


class ConfigError(StackRunnerError):
    pass


class ConfigReadError(ConfigError):
    pass


class ConfigParseError(ConfigError):
    pass


class PreflightError(StackRunnerError):
    pass


class StackOperationError(StackRunnerError):
    """A lifecycle call against a single stack failed."""

    action = "operating on"

    def __init__(self, stack: str, cause: Optional[BaseException] = None):
        self.stack = stack
        self.cause = cause
        message = f"Error encountered {self.action} {stack} stack"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class StackSetupError(StackOperationError):
    action = "setting up"


class StackConfigError(StackOperationError):
    action = "configuring"


class RefreshError(StackOperationError):
    action = "refreshing"


class UpdateError(StackOperationError):
    action = "updating"


class DestroyError(StackOperationError):
    action = "destroying"

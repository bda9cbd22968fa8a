"""Sequence the lifecycle of the base, platform, data and app Pulumi stacks."""

__version__ = "0.1.0"

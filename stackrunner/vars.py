"""Runtime settings for stackrunner, read from environment variables with fallbacks."""

import os
import tempfile

# Config file location - relative paths resolve against the working directory
CONFIG_PATH = os.environ.get("STACKRUNNER_CONFIG", "config.yaml")

# Per-operation progress logs are written here
LOG_DIR = os.environ.get("STACKRUNNER_LOG_DIR", tempfile.gettempdir())
LOG_LEVEL = os.environ.get("STACKRUNNER_LOG_LEVEL", "INFO").upper()

# Git checkouts for git-sourced stacks
CHECKOUT_PREFIX = "stackrunner-"
DEFAULT_BRANCH = "main"

# Command run in a fresh checkout when the project ships a package.json
DEFAULT_NODE_SETUP = ["npm", "install"]

# Cloud credentials forwarded into remote deployments as secrets
CREDENTIAL_ENV_VARS = [
    "AWS_ACCESS_KEY_ID",
    "AWS_SECRET_ACCESS_KEY",
    "AWS_SESSION_TOKEN",
]

"""Cloud credentials forwarded into Pulumi Deployments runs."""

import logging
import os
from typing import Dict, Mapping, Optional, Union

from pulumi import automation as auto

from stackrunner.config import Environment
from stackrunner.vars import CREDENTIAL_ENV_VARS

logger = logging.getLogger(__name__)


def remote_env_vars(
    env: Environment, environ: Optional[Mapping[str, str]] = None
) -> Dict[str, Union[str, auto.Secret]]:
    """
    Build the environment variables for a remote deployment.

    The region comes from the configuration file in plain text; the access
    keys come from the local environment and are marked secret. Unset keys are
    left out rather than forwarded empty.
    """
    environ = os.environ if environ is None else environ
    env_vars: Dict[str, Union[str, auto.Secret]] = {"AWS_REGION": env.region}
    for name in CREDENTIAL_ENV_VARS:
        value = environ.get(name)
        if value:
            env_vars[name] = auto.Secret(value)
        else:
            logger.warning(f"⚠️  {name} is not set - not forwarded to remote deployments")
    return env_vars

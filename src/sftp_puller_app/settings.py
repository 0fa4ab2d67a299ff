"""Process settings read from the environment.

The agent has no command-line surface; the few process-level knobs that are
not part of the agent configuration file are read from ``SFTP_PULLER_*``
environment variables.
"""

import os
from collections.abc import Mapping

import environ

from sftp_puller_core.config import DEFAULT_CONFIG_FILE


@environ.config(prefix="SFTP_PULLER")
class ProcessSettings:
    """Settings for running the agent."""

    config_file: str = environ.var(
        default=DEFAULT_CONFIG_FILE, help="Path of the agent configuration file"
    )
    log_level: str = environ.var(default="INFO", help="Log level")
    dev_mode: bool = environ.bool_var(
        default=False, help="Enable development mode console logging"
    )
    credentials_provider: str = environ.var(
        default="keyring",
        help="Credential provider to use (keyring, env or aws)",
    )
    credentials_env_prefix: str | None = environ.var(
        default=None,
        help="Environment variable prefix for the env credential provider",
    )
    credentials_aws_region: str | None = environ.var(
        default=None,
        help="AWS region for the aws credential provider",
    )
    credentials_aws_endpoint_url: str | None = environ.var(
        default=None,
        help="AWS endpoint URL for the aws credential provider (e.g., LocalStack)",
    )


def load_process_settings(env: Mapping[str, str] | None = None) -> ProcessSettings:
    """Read `ProcessSettings` from `env` (defaults to `os.environ`)."""
    return environ.to_config(ProcessSettings, environ=os.environ if env is None else env)

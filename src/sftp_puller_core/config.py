"""Agent configuration loaded once at startup.

The configuration file is a YAML (or JSON) mapping whose keys follow the
deployment convention (``HostName``, ``RemoteDirectory`` ...). Required string
fields must be present; numeric tuning fields that are missing or invalid fall
back to documented defaults and are reported back to the caller so a warning
can be logged once logging is configured.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, NamedTuple

import yaml

from sftp_puller_core.exceptions import ConfigurationError

DEFAULT_CONFIG_FILE = "config.yaml"
DEFAULT_LOG_FILE = "sftp_puller.log"

DEFAULT_POLLING_INTERVAL = 30
DEFAULT_LOG_SIZE_LIMIT_MB = 5
DEFAULT_MAX_LOG_ARCHIVES = 3
DEFAULT_PORT = 22

REQUIRED_KEYS = (
    "HostName",
    "RemoteDirectory",
    "LocalDirectory",
    "TransferClientLibraryPath",
    "CredentialName",
    "Fingerprint",
)


class ConfigDefault(NamedTuple):
    """A tuning field that was replaced by its default."""

    key: str
    value: object
    default: int


@dataclass(frozen=True)
class AgentConfig:
    """Immutable agent configuration."""

    host_name: str
    remote_directory: str
    local_directory: str
    transfer_client_library_path: str
    credential_name: str
    fingerprint: str
    polling_interval: int = DEFAULT_POLLING_INTERVAL
    log_file_size_limit_mb: int = DEFAULT_LOG_SIZE_LIMIT_MB
    max_log_archives: int = DEFAULT_MAX_LOG_ARCHIVES
    port: int = DEFAULT_PORT
    log_file_path: str = DEFAULT_LOG_FILE

    @property
    def log_file_size_limit_bytes(self) -> int:
        return self.log_file_size_limit_mb * 1024 * 1024


def normalize_local_directory(path: str) -> str:
    """Return `path` guaranteed to end with a path separator."""
    if path.endswith(os.sep) or (os.altsep and path.endswith(os.altsep)):
        return path
    return path + os.sep


def _positive_int(
    data: dict[str, Any], key: str, default: int, defaults: list[ConfigDefault]
) -> int:
    raw = data.get(key)
    # bool is an int subclass but never a valid count
    if isinstance(raw, bool):
        value = None
    elif isinstance(raw, int):
        value = raw
    else:
        try:
            value = int(str(raw).strip())
        except (TypeError, ValueError):
            value = None

    if value is None or value <= 0:
        defaults.append(ConfigDefault(key=key, value=raw, default=default))
        return default
    return value


def _required_str(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None or not str(value).strip():
        msg = f"Missing required configuration value '{key}'"
        raise ConfigurationError(msg, key=key)
    return str(value).strip()


def parse_agent_config(data: object) -> tuple[AgentConfig, list[ConfigDefault]]:
    """Build an `AgentConfig` from an already-parsed mapping.

    Args:
        data: The parsed configuration document.

    Returns:
        The configuration and the list of fields that fell back to defaults.

    Raises:
        ConfigurationError: When the document is not a mapping, a required
            value is missing, or the transfer client library path does not exist.
    """
    if not isinstance(data, dict):
        msg = "Configuration document must be a mapping of settings"
        raise ConfigurationError(msg)

    defaults: list[ConfigDefault] = []

    values = {key: _required_str(data, key) for key in REQUIRED_KEYS}

    library_path = values["TransferClientLibraryPath"]
    if not Path(library_path).exists():
        msg = f"Transfer client library not found at '{library_path}'"
        raise ConfigurationError(msg, key="TransferClientLibraryPath")

    log_file_path = str(data.get("LogFilePath") or DEFAULT_LOG_FILE).strip()

    config = AgentConfig(
        host_name=values["HostName"],
        remote_directory=values["RemoteDirectory"],
        local_directory=normalize_local_directory(values["LocalDirectory"]),
        transfer_client_library_path=library_path,
        credential_name=values["CredentialName"],
        fingerprint=values["Fingerprint"],
        polling_interval=_positive_int(
            data, "PollingInterval", DEFAULT_POLLING_INTERVAL, defaults
        ),
        log_file_size_limit_mb=_positive_int(
            data, "LogFileSizeLimitMB", DEFAULT_LOG_SIZE_LIMIT_MB, defaults
        ),
        max_log_archives=_positive_int(
            data, "MaxLogArchives", DEFAULT_MAX_LOG_ARCHIVES, defaults
        ),
        port=_positive_int(data, "PortNumber", DEFAULT_PORT, defaults)
        if "PortNumber" in data
        else DEFAULT_PORT,
        log_file_path=log_file_path,
    )
    return config, defaults


def load_agent_config(
    path: str | os.PathLike[str] = DEFAULT_CONFIG_FILE,
) -> tuple[AgentConfig, list[ConfigDefault]]:
    """Load and validate the agent configuration file.

    Args:
        path: Location of the YAML or JSON configuration file.

    Returns:
        The configuration and the list of fields that fell back to defaults.

    Raises:
        ConfigurationError: When the file cannot be read or parsed, or its
            content is invalid.
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError as e:
        msg = f"Configuration file '{path}' not found"
        raise ConfigurationError(msg) from e
    except (OSError, yaml.YAMLError) as e:
        msg = f"Failed to read configuration file '{path}': {e}"
        raise ConfigurationError(msg) from e

    return parse_agent_config(data)

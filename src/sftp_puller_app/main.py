"""Process entry point.

Loads the configuration, sets up logging and credentials, builds the
components and runs the polling loop. Fatal conditions map to distinct exit
codes.
"""

import sys
from enum import IntEnum
from pathlib import Path

import structlog

from sftp_puller_app.polling import PollingLoop
from sftp_puller_app.settings import ProcessSettings, load_process_settings
from sftp_puller_core.cancellation import ShutdownToken, install_signal_handlers
from sftp_puller_core.config import AgentConfig, ConfigDefault, load_agent_config
from sftp_puller_core.credentials import (
    SftpCredentialsWrapper,
    UnknownProviderTypeError,
    create_credential_provider,
)
from sftp_puller_core.exceptions import (
    ConfigurationError,
    ConnectionRetriesExhaustedError,
    CredentialNotFoundError,
    describe_error,
)
from sftp_puller_core.observability import configure_logging
from sftp_puller_sftp.sequencer import TransferSequencer
from sftp_puller_sftp.supervisor import ConnectionSupervisor
from sftp_puller_sftp.transport import ParamikoTransport, SftpTransport

logger = structlog.get_logger(__name__)


class ExitCode(IntEnum):
    """Process exit codes."""

    OK = 0
    UNEXPECTED_ERROR = 1
    CONFIGURATION_ERROR = 2
    CREDENTIAL_ERROR = 3
    CONNECTION_RETRIES_EXHAUSTED = 4


def log_config_defaults(defaults: list[ConfigDefault]) -> None:
    """Warn once for every tuning field that fell back to its default."""
    for item in defaults:
        logger.warning(
            "CONFIG_VALUE_DEFAULTED",
            key=item.key,
            value=item.value,
            default=item.default,
        )


def build_polling_loop(
    config: AgentConfig,
    credentials: SftpCredentialsWrapper,
    shutdown: ShutdownToken,
    transport: SftpTransport | None = None,
) -> PollingLoop:
    """Wire the supervisor, sequencer and loop for `config`."""
    supervisor = ConnectionSupervisor.from_credentials(
        transport if transport is not None else ParamikoTransport(),
        host=config.host_name,
        port=config.port,
        fingerprint=config.fingerprint,
        credentials=credentials,
    )
    return PollingLoop(config, supervisor, TransferSequencer(), shutdown)


def run(settings: ProcessSettings, transport: SftpTransport | None = None) -> ExitCode:
    """Run the agent until shutdown or a fatal error.

    Args:
        settings: Process settings from the environment.
        transport: Optional transfer client; paramiko is used when omitted.

    Returns:
        The exit code for the process.
    """
    configure_logging(settings.log_level, dev_mode=settings.dev_mode)

    try:
        config, defaults = load_agent_config(settings.config_file)
    except ConfigurationError as e:
        logger.critical("CONFIGURATION_INVALID", **describe_error(e).as_log_fields())
        return ExitCode.CONFIGURATION_ERROR

    configure_logging(
        settings.log_level,
        dev_mode=settings.dev_mode,
        log_file=config.log_file_path,
        max_bytes=config.log_file_size_limit_bytes,
        max_archives=config.max_log_archives,
    )
    log_config_defaults(defaults)
    logger.info(
        "AGENT_STARTING",
        config_file=settings.config_file,
        host=config.host_name,
        transfer_client_library=config.transfer_client_library_path,
        credentials_provider=settings.credentials_provider,
    )

    try:
        Path(config.local_directory).mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.critical(
            "LOCAL_DIRECTORY_UNAVAILABLE",
            **describe_error(e, config.local_directory).as_log_fields(),
        )
        return ExitCode.CONFIGURATION_ERROR

    try:
        provider = create_credential_provider(
            settings.credentials_provider,
            aws_region=settings.credentials_aws_region,
            aws_endpoint_url=settings.credentials_aws_endpoint_url,
            env_prefix=settings.credentials_env_prefix,
        )
    except UnknownProviderTypeError as e:
        logger.critical(
            "CREDENTIAL_PROVIDER_UNKNOWN", provider_type=e.provider_type, error=str(e)
        )
        return ExitCode.CONFIGURATION_ERROR

    credentials = SftpCredentialsWrapper(config.credential_name, provider)
    try:
        credentials.get_credentials()
    except CredentialNotFoundError as e:
        logger.critical("CREDENTIAL_NOT_FOUND", **describe_error(e).as_log_fields())
        return ExitCode.CREDENTIAL_ERROR

    shutdown = ShutdownToken()
    install_signal_handlers(shutdown)
    loop = build_polling_loop(config, credentials, shutdown, transport)

    try:
        loop.run()
    except ConnectionRetriesExhaustedError as e:
        logger.critical("AGENT_TERMINATED", **describe_error(e).as_log_fields())
        return ExitCode.CONNECTION_RETRIES_EXHAUSTED

    logger.info("AGENT_STOPPED")
    return ExitCode.OK


def main() -> None:
    """Main entry point for the agent."""
    try:
        code = run(load_process_settings())
    except Exception as e:
        logger.exception("AGENT_UNEXPECTED_ERROR", error=str(e))
        code = ExitCode.UNEXPECTED_ERROR
    sys.exit(int(code))


if __name__ == "__main__":
    main()

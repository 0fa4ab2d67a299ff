"""Top-level polling loop."""

from collections.abc import Callable

import structlog

from sftp_puller_core.cancellation import ShutdownToken
from sftp_puller_core.config import AgentConfig
from sftp_puller_core.exceptions import ConnectionRetriesExhaustedError
from sftp_puller_core.observability import log_bind
from sftp_puller_sftp.sequencer import TransferSequencer
from sftp_puller_sftp.supervisor import ConnectionSupervisor

logger = structlog.get_logger(__name__)

DEFAULT_MAX_CONNECTION_RETRIES = 5
DEFAULT_CONNECTION_BACKOFF = 10.0


class PollingLoop:
    """Drives poll cycles until shutdown or sustained connection failure.

    Each cycle opens (or reuses) the session, lists the remote directory and
    hands every regular file to the sequencer. Any error escaping the cycle,
    a failed open or a failed listing included, counts as a connection
    failure: the loop backs off and retries, and gives up by raising
    `ConnectionRetriesExhaustedError` once the failures reach the maximum.
    """

    def __init__(
        self,
        config: AgentConfig,
        supervisor: ConnectionSupervisor,
        sequencer: TransferSequencer,
        shutdown: ShutdownToken,
        max_connection_retries: int = DEFAULT_MAX_CONNECTION_RETRIES,
        connection_backoff: float = DEFAULT_CONNECTION_BACKOFF,
        sleep: Callable[[float], object] | None = None,
    ) -> None:
        """Initialize the loop.

        Args:
            config: Agent configuration.
            supervisor: Owner of the transfer session.
            sequencer: Per-file transfer sequence.
            shutdown: Token observed between cycles.
            max_connection_retries: Consecutive failures that end the process.
            connection_backoff: Seconds to wait after a connection failure.
            sleep: Blocking sleep for the backoff; defaults to the token's sleep.
        """
        self.config = config
        self.supervisor = supervisor
        self.sequencer = sequencer
        self.shutdown = shutdown
        self.max_connection_retries = max_connection_retries
        self.connection_backoff = connection_backoff
        self._sleep = sleep or shutdown.sleep
        self.cycles = 0

    def run(self) -> None:
        """Poll until shutdown is requested.

        Raises:
            ConnectionRetriesExhaustedError: After the maximum number of
                consecutive connection failures.
        """
        logger.info(
            "POLLING_STARTED",
            host=self.config.host_name,
            remote_directory=self.config.remote_directory,
            local_directory=self.config.local_directory,
            polling_interval=self.config.polling_interval,
        )
        try:
            while not self.shutdown.is_set:
                self.cycles += 1
                with log_bind(cycle=self.cycles):
                    try:
                        self.poll_once()
                    except Exception as e:  # noqa: BLE001
                        failures = self.supervisor.mark_failed(e)
                        if failures >= self.max_connection_retries:
                            logger.critical(
                                "CONNECTION_RETRIES_EXHAUSTED",
                                attempts=failures,
                                max_retries=self.max_connection_retries,
                            )
                            raise ConnectionRetriesExhaustedError(
                                failures, self.config.host_name
                            ) from e
                        logger.warning(
                            "CONNECTION_RETRY_SCHEDULED",
                            attempt=failures,
                            max_retries=self.max_connection_retries,
                            backoff_seconds=self.connection_backoff,
                        )
                        self._sleep(self.connection_backoff)
                        continue

                    self.supervisor.reset_retries()
                self.shutdown.sleep(self.config.polling_interval)
            logger.info("SHUTDOWN_REQUESTED", cycles=self.cycles)
        finally:
            self.supervisor.close()
            logger.info("POLLING_STOPPED", cycles=self.cycles)

    def poll_once(self) -> tuple[int, int]:
        """Run one poll cycle.

        Returns:
            The number of files transferred and the number left for a later cycle.
        """
        session = self.supervisor.ensure_open()
        entries = session.list_directory(self.config.remote_directory)

        files = [entry for entry in entries if not entry.is_directory]
        logger.debug("REMOTE_DIRECTORY_LISTED", entries=len(entries), files=len(files))

        transferred = 0
        failed = 0
        for entry in files:
            if self.sequencer.transfer(
                session,
                self.config.remote_directory,
                entry.name,
                self.config.local_directory,
            ):
                transferred += 1
            else:
                failed += 1

        if files:
            logger.info("POLL_CYCLE_COMPLETED", transferred=transferred, failed=failed)
        return transferred, failed

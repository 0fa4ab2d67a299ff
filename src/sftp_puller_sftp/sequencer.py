"""Per-file download, verify and delete sequence.

Each remote file is downloaded, given a short grace period, re-checked on the
remote side and then deleted there. The whole sequence is retried with a
fixed delay; a file that exhausts its attempts is left on the server so the
next poll cycle picks it up again.
"""

import os
import time
from collections.abc import Callable

import structlog

from sftp_puller_core.exceptions import describe_error
from sftp_puller_core.retry import RetryEngine, create_fixed_retry_engine
from sftp_puller_sftp.transport import SftpTransport, remote_join

logger = structlog.get_logger(__name__)

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_RETRY_DELAY = 10.0
DEFAULT_GRACE_PERIOD = 2.0


class TransferSequencer:
    """Moves one remote file to the local directory, then removes it remotely."""

    def __init__(
        self,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        grace_period: float = DEFAULT_GRACE_PERIOD,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the sequencer.

        Args:
            max_attempts: Attempts per file before giving up for this cycle.
            retry_delay: Seconds between attempts.
            grace_period: Seconds to wait after a download before re-checking.
            sleep: Blocking sleep, replaceable in tests.
        """
        self.grace_period = grace_period
        self._sleep = sleep
        self._retry_engine: RetryEngine = create_fixed_retry_engine(
            attempts=max_attempts, delay=retry_delay, sleep=sleep
        )

    @property
    def max_attempts(self) -> int:
        return self._retry_engine.config.max_attempts

    def transfer(
        self,
        session: SftpTransport,
        remote_dir: str,
        file_name: str,
        local_dir: str,
    ) -> bool:
        """Download, verify and delete one remote file.

        Args:
            session: The open transfer session.
            remote_dir: Remote directory holding the file.
            file_name: Name of the file inside `remote_dir`.
            local_dir: Local directory to download into.

        Returns:
            True once the file is downloaded and gone from the remote side,
            False after every attempt failed.
        """
        remote_path = remote_join(remote_dir, file_name)
        local_path = os.path.join(local_dir, file_name)
        file_logger = logger.bind(file=file_name, remote_path=remote_path)

        def _on_error(attempt: int, exc: Exception) -> None:
            file_logger.warning(
                "TRANSFER_ATTEMPT_FAILED",
                attempt=attempt,
                max_attempts=self.max_attempts,
                **describe_error(exc, remote_path).as_log_fields(),
            )

        try:
            self._retry_engine.execute_with_retry(
                self._transfer_once,
                session,
                remote_dir,
                file_name,
                remote_path,
                local_path,
                on_error=_on_error,
            )
        except Exception:  # noqa: BLE001
            file_logger.error(
                "TRANSFER_RETRIES_EXHAUSTED",
                attempts=self.max_attempts,
                left_on_remote=True,
            )
            return False
        return True

    def _transfer_once(
        self,
        session: SftpTransport,
        remote_dir: str,
        file_name: str,
        remote_path: str,
        local_path: str,
    ) -> None:
        session.get_file(remote_path, local_path)
        logger.info("FILE_DOWNLOADED", remote_path=remote_path, local_path=local_path)

        # Let the server finish any post-processing before re-checking
        self._sleep(self.grace_period)

        still_present = any(
            entry.name == file_name and not entry.is_directory
            for entry in session.list_directory(remote_dir)
        )
        if still_present:
            session.remove_file(remote_path)
            logger.info("REMOTE_FILE_DELETED", remote_path=remote_path)
        else:
            logger.info("REMOTE_FILE_ALREADY_REMOVED", remote_path=remote_path)

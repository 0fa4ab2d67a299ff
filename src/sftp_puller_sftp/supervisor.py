"""Connection supervision.

The supervisor owns the single transfer session: it is the only component
that opens or closes it, and it keeps the consecutive connection-failure
count. Whether to back off or give up is decided by the polling loop.
"""

from collections.abc import Callable
from enum import Enum

import structlog

from sftp_puller_core.credentials import SftpCredentialsWrapper
from sftp_puller_core.exceptions import SessionError, SftpPullerError, describe_error
from sftp_puller_sftp.transport import SessionOptions, SftpTransport

logger = structlog.get_logger(__name__)


class SessionState(str, Enum):
    """Lifecycle state of the supervised session."""

    CLOSED = "closed"
    OPENING = "opening"
    OPEN = "open"


class ConnectionSupervisor:
    """Owns the lifecycle of a single transfer session."""

    def __init__(
        self,
        transport: SftpTransport,
        options_factory: Callable[[], SessionOptions],
    ) -> None:
        """Initialize the supervisor.

        Args:
            transport: The transfer client the session runs on.
            options_factory: Builds the session options (host, credentials,
                fingerprint) each time a session is opened.
        """
        self._transport = transport
        self._options_factory = options_factory
        self._state = SessionState.CLOSED
        self._host: str | None = None
        self.retry_count = 0

    @classmethod
    def from_credentials(
        cls,
        transport: SftpTransport,
        host: str,
        port: int,
        fingerprint: str,
        credentials: SftpCredentialsWrapper,
    ) -> "ConnectionSupervisor":
        """Create a supervisor that resolves credentials at each open."""

        def _options() -> SessionOptions:
            resolved = credentials.get_credentials()
            return SessionOptions(
                host=host,
                port=port,
                username=resolved.username,
                password=resolved.password,
                fingerprint=fingerprint,
            )

        supervisor = cls(transport, _options)
        supervisor._host = host
        return supervisor

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state is SessionState.OPEN

    def ensure_open(self) -> SftpTransport:
        """Return the open session, opening a new one if needed.

        A session that was open but whose transport has died is treated as
        closed and reopened. Failures are not retried here.

        Raises:
            SessionError: When the session cannot be opened.
        """
        if self._state is SessionState.OPEN:
            if self._transport.is_open():
                return self._transport
            logger.warning("SESSION_LOST", host=self._host)
            self._discard()

        self._state = SessionState.OPENING
        try:
            options = self._options_factory()
            self._host = options.host
            self._transport.open(options)
        except SftpPullerError:
            self._discard()
            raise
        except Exception as e:
            self._discard()
            detail = describe_error(e, self._host)
            raise SessionError(detail.message, self._host, detail.code) from e

        self._state = SessionState.OPEN
        logger.info("SESSION_OPENED", host=self._host)
        return self._transport

    def mark_failed(self, exc: BaseException) -> int:
        """Record a connection-level failure and close the session.

        Args:
            exc: The error that ended the poll cycle.

        Returns:
            The consecutive failure count including this one.
        """
        self._discard()
        self.retry_count += 1
        logger.error(
            "CONNECTION_FAILED",
            attempt=self.retry_count,
            **describe_error(exc, self._host).as_log_fields(),
        )
        return self.retry_count

    def reset_retries(self) -> None:
        if self.retry_count:
            logger.info("CONNECTION_RECOVERED", previous_failures=self.retry_count)
        self.retry_count = 0

    def close(self) -> None:
        """Close the session if one is open and log the disconnection."""
        if self._state is SessionState.CLOSED:
            return
        self._discard()
        logger.info("SESSION_CLOSED", host=self._host)

    def _discard(self) -> None:
        try:
            self._transport.close()
        except Exception as e:  # noqa: BLE001
            logger.warning(
                "SESSION_CLOSE_FAILED", **describe_error(e, self._host).as_log_fields()
            )
        self._state = SessionState.CLOSED

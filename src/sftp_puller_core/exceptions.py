"""Standardized exceptions for the SFTP puller.

Every error the agent raises carries the same four fields (message, error code,
category and target) so that each catch site can log them uniformly. Foreign
exceptions (paramiko, OS errors) are normalized through `describe_error`.
"""

import errno
from dataclasses import dataclass
from enum import Enum

import paramiko


class ErrorCategory(str, Enum):
    """Classification of an error for post-mortem diagnosis."""

    CONFIGURATION = "configuration"
    CREDENTIAL = "credential"
    CONNECTION = "connection"
    TRANSFER = "transfer"
    UNKNOWN = "unknown"


class SftpPullerError(Exception):
    """Base exception for all SFTP puller errors."""

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        target: str | None = None,
    ) -> None:
        """Initialize the error.

        Args:
            message: Human-readable error message.
            error_code: Optional error code for programmatic handling.
            category: Classification of the failure.
            target: The object the failed operation acted on (path, host, key).
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.category = category
        self.target = target


class ConfigurationError(SftpPullerError):
    """Raised when the agent configuration is missing or invalid."""

    def __init__(self, message: str, key: str | None = None) -> None:
        """Initialize configuration error.

        Args:
            message: Error message describing the configuration issue.
            key: Optional configuration key that caused the error.
        """
        super().__init__(
            message, "CONFIG_ERROR", ErrorCategory.CONFIGURATION, target=key
        )
        self.key = key


class CredentialNotFoundError(SftpPullerError):
    """Raised when a credential cannot be resolved from the credential store."""

    def __init__(self, message: str, credential_name: str | None = None) -> None:
        super().__init__(
            message,
            "CREDENTIAL_NOT_FOUND",
            ErrorCategory.CREDENTIAL,
            target=credential_name,
        )
        self.credential_name = credential_name


class SessionError(SftpPullerError):
    """Raised when a transfer session cannot be opened or has been lost."""

    def __init__(
        self, message: str, host: str | None = None, error_code: str = "SESSION_ERROR"
    ) -> None:
        super().__init__(message, error_code, ErrorCategory.CONNECTION, target=host)
        self.host = host


class HostKeyMismatchError(SessionError):
    """Raised when the server host key does not match the pinned fingerprint."""

    def __init__(self, host: str, expected: str, actual: str) -> None:
        super().__init__(
            f"Host key fingerprint mismatch for {host}: "
            f"expected {expected}, got {actual}",
            host,
            "HOST_KEY_MISMATCH",
        )
        self.expected = expected
        self.actual = actual


class TransferError(SftpPullerError):
    """Raised when a remote file operation (list, get, remove) fails."""

    def __init__(
        self, message: str, remote_path: str | None = None, error_code: str = "TRANSFER_ERROR"
    ) -> None:
        super().__init__(message, error_code, ErrorCategory.TRANSFER, target=remote_path)
        self.remote_path = remote_path


class ConnectionRetriesExhaustedError(SftpPullerError):
    """Raised when consecutive connection failures reach the configured maximum."""

    def __init__(self, attempts: int, host: str | None = None) -> None:
        super().__init__(
            f"Connection failed {attempts} consecutive times; giving up",
            "CONNECTION_RETRIES_EXHAUSTED",
            ErrorCategory.CONNECTION,
            target=host,
        )
        self.attempts = attempts


@dataclass(frozen=True)
class ErrorDetail:
    """The four fields logged for every caught error."""

    message: str
    code: str
    category: ErrorCategory
    target: str | None

    def as_log_fields(self) -> dict[str, str | None]:
        """Return the detail as structlog key/value pairs."""
        return {
            "error": self.message,
            "error_code": self.code,
            "error_category": self.category.value,
            "error_target": self.target,
        }


def describe_error(exc: BaseException, target: str | None = None) -> ErrorDetail:
    """Normalize any exception into an `ErrorDetail`.

    Args:
        exc: The caught exception.
        target: Fallback target when the exception does not carry one.

    Returns:
        The message, code, category and target of the failure.
    """
    if isinstance(exc, SftpPullerError):
        return ErrorDetail(
            message=exc.message,
            code=exc.error_code or type(exc).__name__,
            category=exc.category,
            target=exc.target or target,
        )

    if isinstance(exc, paramiko.SSHException):
        return ErrorDetail(
            message=str(exc) or type(exc).__name__,
            code=type(exc).__name__,
            category=ErrorCategory.CONNECTION,
            target=target,
        )

    if isinstance(exc, OSError):
        code = type(exc).__name__
        if exc.errno:
            code = errno.errorcode.get(exc.errno, code)
        # Socket-level failures are connection errors, everything else is file I/O
        category = (
            ErrorCategory.CONNECTION
            if isinstance(exc, ConnectionError | TimeoutError)
            else ErrorCategory.TRANSFER
        )
        return ErrorDetail(
            message=exc.strerror or str(exc) or type(exc).__name__,
            code=code,
            category=category,
            target=str(exc.filename) if exc.filename is not None else target,
        )

    return ErrorDetail(
        message=str(exc) or type(exc).__name__,
        code=type(exc).__name__,
        category=ErrorCategory.UNKNOWN,
        target=target,
    )

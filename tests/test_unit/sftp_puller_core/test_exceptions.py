"""Tests for error normalization."""

import errno

import paramiko
import pytest

from sftp_puller_core.exceptions import (
    ConfigurationError,
    ConnectionRetriesExhaustedError,
    CredentialNotFoundError,
    ErrorCategory,
    ErrorDetail,
    HostKeyMismatchError,
    SessionError,
    TransferError,
    describe_error,
)


class TestDescribeError:
    """Test that every error yields the same four fields."""

    @pytest.mark.parametrize(
        ("exc", "code", "category", "target"),
        [
            (ConfigurationError("bad", key="HostName"), "CONFIG_ERROR", ErrorCategory.CONFIGURATION, "HostName"),
            (CredentialNotFoundError("none", "cred"), "CREDENTIAL_NOT_FOUND", ErrorCategory.CREDENTIAL, "cred"),
            (SessionError("down", "host"), "SESSION_ERROR", ErrorCategory.CONNECTION, "host"),
            (TransferError("io", "/outbox/a.csv", "IOError"), "IOError", ErrorCategory.TRANSFER, "/outbox/a.csv"),
            (ConnectionRetriesExhaustedError(5, "host"), "CONNECTION_RETRIES_EXHAUSTED", ErrorCategory.CONNECTION, "host"),
        ],
    )
    def test_own_errors(
        self, exc: Exception, code: str, category: ErrorCategory, target: str
    ) -> None:
        detail = describe_error(exc)
        assert detail.code == code
        assert detail.category is category
        assert detail.target == target

    def test_host_key_mismatch(self) -> None:
        """Test the mismatch error names both fingerprints."""
        exc = HostKeyMismatchError("host", "SHA256:expected", "SHA256:actual")
        detail = describe_error(exc)
        assert detail.code == "HOST_KEY_MISMATCH"
        assert detail.category is ErrorCategory.CONNECTION
        assert "SHA256:expected" in detail.message
        assert "SHA256:actual" in detail.message

    def test_paramiko_error_is_connection(self) -> None:
        detail = describe_error(paramiko.SSHException("kex failed"), target="host")
        assert detail == ErrorDetail(
            message="kex failed",
            code="SSHException",
            category=ErrorCategory.CONNECTION,
            target="host",
        )

    def test_os_error_uses_errno_and_filename(self) -> None:
        exc = PermissionError(errno.EACCES, "Permission denied", "/outbox/a.csv")
        detail = describe_error(exc)
        assert detail.code == "EACCES"
        assert detail.message == "Permission denied"
        assert detail.category is ErrorCategory.TRANSFER
        assert detail.target == "/outbox/a.csv"

    def test_socket_error_is_connection(self) -> None:
        detail = describe_error(ConnectionResetError(errno.ECONNRESET, "reset"))
        assert detail.category is ErrorCategory.CONNECTION
        assert detail.code == "ECONNRESET"

    def test_foreign_error(self) -> None:
        detail = describe_error(RuntimeError("boom"), target="x")
        assert detail.code == "RuntimeError"
        assert detail.category is ErrorCategory.UNKNOWN
        assert detail.target == "x"

    def test_fallback_target(self) -> None:
        """Test the fallback target is used when the error has none."""
        detail = describe_error(SessionError("down"), target="sftp.example.com")
        assert detail.target == "sftp.example.com"

    def test_as_log_fields(self) -> None:
        fields = describe_error(TransferError("io", "/a")).as_log_fields()
        assert fields == {
            "error": "io",
            "error_code": "TRANSFER_ERROR",
            "error_category": "transfer",
            "error_target": "/a",
        }

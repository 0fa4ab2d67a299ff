"""Transfer-protocol collaborator.

`SftpTransport` is the narrow contract the supervisor and sequencer rely on;
`ParamikoTransport` implements it on top of paramiko with password
authentication and a pinned host-key fingerprint.
"""

import base64
import contextlib
import hashlib
import os
import posixpath
import stat
from dataclasses import dataclass, field
from typing import Protocol

import paramiko
import structlog

from sftp_puller_core.exceptions import (
    HostKeyMismatchError,
    SessionError,
    TransferError,
)

logger = structlog.get_logger(__name__)

DEFAULT_CONNECT_TIMEOUT = 30.0
PARTIAL_SUFFIX = ".filepart"


@dataclass(frozen=True)
class RemoteFileEntry:
    """One entry of a remote directory listing."""

    name: str
    is_directory: bool


@dataclass(frozen=True)
class SessionOptions:
    """Everything needed to open an authenticated session."""

    host: str
    username: str
    password: str = field(repr=False)
    fingerprint: str
    port: int = 22
    timeout: float = DEFAULT_CONNECT_TIMEOUT


class SftpTransport(Protocol):
    """Interface for the secure file-transfer client."""

    def open(self, options: SessionOptions) -> None:
        """Open an authenticated session; raise `SessionError` on failure."""
        ...

    def is_open(self) -> bool: ...

    def list_directory(self, path: str) -> list[RemoteFileEntry]: ...

    def get_file(self, remote_path: str, local_path: str) -> None: ...

    def remove_file(self, remote_path: str) -> None: ...

    def close(self) -> None: ...


def normalize_fingerprint(value: str) -> str:
    """Reduce a configured fingerprint to its comparable digest text.

    Accepts ``ssh-ed25519 255 SHA256:abc...``, ``SHA256:abc...``, bare base64
    and MD5 colon-hex (``MD5:aa:bb:...`` or ``aa:bb:...``).
    """
    token = value.strip().split()[-1] if value.strip() else ""
    for prefix in ("SHA256:", "MD5:"):
        if token.upper().startswith(prefix):
            token = token[len(prefix):]
            break
    if ":" in token:
        return token.lower()
    return token.rstrip("=")


def host_key_fingerprints(key: paramiko.PKey) -> tuple[str, str]:
    """Return the SHA-256 (unpadded base64) and MD5 (colon-hex) fingerprints of `key`."""
    blob = key.asbytes()
    sha256 = base64.b64encode(hashlib.sha256(blob).digest()).decode("ascii").rstrip("=")
    md5 = ":".join(f"{b:02x}" for b in hashlib.md5(blob).digest())  # noqa: S324
    return sha256, md5


class ParamikoTransport:
    """SFTP transport built on a paramiko `Transport` and `SFTPClient`."""

    def __init__(self) -> None:
        self._transport: paramiko.Transport | None = None
        self._client: paramiko.SFTPClient | None = None

    def open(self, options: SessionOptions) -> None:
        self.close()
        transport: paramiko.Transport | None = None
        try:
            transport = paramiko.Transport((options.host, options.port))
            transport.banner_timeout = options.timeout
            transport.auth_timeout = options.timeout
            transport.start_client(timeout=options.timeout)

            self._verify_host_key(transport, options)

            transport.auth_password(options.username, options.password)
            client = paramiko.SFTPClient.from_transport(transport)
            if client is None:
                msg = "Server refused the SFTP subsystem"
                raise SessionError(msg, options.host)
        except SessionError:
            if transport is not None:
                transport.close()
            raise
        except (paramiko.SSHException, OSError) as e:
            if transport is not None:
                transport.close()
            msg = f"Failed to open session to {options.host}:{options.port}: {e}"
            raise SessionError(msg, options.host, type(e).__name__) from e

        self._transport = transport
        self._client = client

    def _verify_host_key(
        self, transport: paramiko.Transport, options: SessionOptions
    ) -> None:
        key = transport.get_remote_server_key()
        sha256, md5 = host_key_fingerprints(key)
        expected = normalize_fingerprint(options.fingerprint)
        if expected not in (sha256, md5):
            raise HostKeyMismatchError(
                options.host, options.fingerprint, f"SHA256:{sha256}"
            )
        logger.debug(
            "HOST_KEY_VERIFIED",
            host=options.host,
            key_type=key.get_name(),
            fingerprint=f"SHA256:{sha256}",
        )

    def is_open(self) -> bool:
        return (
            self._transport is not None
            and self._client is not None
            and self._transport.is_active()
        )

    def _require_client(self) -> paramiko.SFTPClient:
        if self._client is None or not self.is_open():
            msg = "Session is not open"
            raise SessionError(msg)
        return self._client

    def list_directory(self, path: str) -> list[RemoteFileEntry]:
        client = self._require_client()
        try:
            attributes = client.listdir_attr(path)
        except (paramiko.SSHException, OSError) as e:
            msg = f"Failed to list {path}: {e}"
            raise TransferError(msg, path, type(e).__name__) from e
        return [
            RemoteFileEntry(
                name=attr.filename,
                is_directory=stat.S_ISDIR(attr.st_mode or 0),
            )
            for attr in attributes
        ]

    def get_file(self, remote_path: str, local_path: str) -> None:
        """Download `remote_path` to `local_path`.

        The data is written to a ``.filepart`` file next to `local_path` and
        only renamed into place once the download completes, so a failed
        download never leaves a truncated file under the final name.
        """
        client = self._require_client()
        partial_path = local_path + PARTIAL_SUFFIX
        try:
            client.get(remote_path, partial_path)
            os.replace(partial_path, local_path)
        except (paramiko.SSHException, OSError) as e:
            with contextlib.suppress(FileNotFoundError):
                os.remove(partial_path)
            msg = f"Failed to download {remote_path}: {e}"
            raise TransferError(msg, remote_path, type(e).__name__) from e

    def remove_file(self, remote_path: str) -> None:
        client = self._require_client()
        try:
            client.remove(remote_path)
        except (paramiko.SSHException, OSError) as e:
            msg = f"Failed to delete {remote_path}: {e}"
            raise TransferError(msg, remote_path, type(e).__name__) from e

    def close(self) -> None:
        try:
            if self._client is not None:
                self._client.close()
        finally:
            self._client = None
        try:
            if self._transport is not None:
                self._transport.close()
        finally:
            self._transport = None


def remote_join(directory: str, name: str) -> str:
    """Join a remote directory and entry name with POSIX separators."""
    return posixpath.join(directory, name) if directory else name

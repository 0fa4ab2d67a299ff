"""PyTest configuration and shared test fixtures.

This module provides an in-memory scripted transfer session, a recording
sleep and other fixtures shared by the unit tests. Nothing here touches the
network or really sleeps.
"""

import logging
import os
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest
import structlog

from sftp_puller_core.config import AgentConfig
from sftp_puller_core.exceptions import SessionError, TransferError
from sftp_puller_sftp.transport import RemoteFileEntry, SessionOptions


class RecordingSleep:
    """Callable standing in for `time.sleep` that only records durations."""

    def __init__(self, on_sleep: Callable[[float], None] | None = None) -> None:
        self.calls: list[float] = []
        self._on_sleep = on_sleep

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        if self._on_sleep is not None:
            self._on_sleep(seconds)


class FakeTransport:
    """Scripted in-memory implementation of the SftpTransport protocol.

    `remote_files` maps remote directory paths to the names they contain;
    `open_failures`, `list_failures`, `get_failures` and `remove_failures`
    hold exceptions raised (one per call) before the call succeeds.
    """

    def __init__(self, remote_files: dict[str, dict[str, bool]] | None = None) -> None:
        self.remote_files: dict[str, dict[str, bool]] = remote_files or {}
        self.open_failures: list[Exception] = []
        self.list_failures: list[Exception] = []
        self.get_failures: list[Exception] = []
        self.remove_failures: list[Exception] = []
        self.opened_with: list[SessionOptions] = []
        self.downloads: list[tuple[str, str]] = []
        self.removals: list[str] = []
        self.close_calls = 0
        self._open = False
        # Called after a successful download, e.g. to vanish the file
        self.after_get: Callable[[str], None] | None = None

    def _split(self, remote_path: str) -> tuple[str, str]:
        directory, _, name = remote_path.rpartition("/")
        return directory or "/", name

    def open(self, options: SessionOptions) -> None:
        self.opened_with.append(options)
        if self.open_failures:
            raise self.open_failures.pop(0)
        self._open = True

    def is_open(self) -> bool:
        return self._open

    def drop(self) -> None:
        """Simulate the server dropping the connection."""
        self._open = False

    def list_directory(self, path: str) -> list[RemoteFileEntry]:
        if not self._open:
            raise SessionError("Session is not open")
        if self.list_failures:
            raise self.list_failures.pop(0)
        entries = self.remote_files.get(path, {})
        return [RemoteFileEntry(name=n, is_directory=d) for n, d in sorted(entries.items())]

    def get_file(self, remote_path: str, local_path: str) -> None:
        if self.get_failures:
            raise self.get_failures.pop(0)
        directory, name = self._split(remote_path)
        if name not in self.remote_files.get(directory, {}):
            raise TransferError(f"No such file {remote_path}", remote_path, "ENOENT")
        Path(local_path).write_text(f"content of {name}", encoding="utf-8")
        self.downloads.append((remote_path, local_path))
        if self.after_get is not None:
            self.after_get(remote_path)

    def remove_file(self, remote_path: str) -> None:
        self.removals.append(remote_path)
        if self.remove_failures:
            raise self.remove_failures.pop(0)
        directory, name = self._split(remote_path)
        self.remote_files.get(directory, {}).pop(name, None)

    def close(self) -> None:
        self.close_calls += 1
        self._open = False


@pytest.fixture
def fake_transport() -> FakeTransport:
    """Create a fake transport serving /outbox with two files and a subdirectory."""
    return FakeTransport({"/outbox": {"a.csv": False, "b.csv": False, "archive": True}})


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def sleep_factory() -> Callable[..., RecordingSleep]:
    """Factory for recording sleeps with an optional side effect."""
    return RecordingSleep


@pytest.fixture
def transport_factory() -> Callable[..., FakeTransport]:
    return FakeTransport


@pytest.fixture
def local_dir(tmp_path: Path) -> str:
    path = tmp_path / "inbox"
    path.mkdir()
    return str(path) + os.sep


@pytest.fixture
def agent_config(tmp_path: Path, local_dir: str) -> AgentConfig:
    """Create a valid agent configuration rooted in a temporary directory."""
    library = tmp_path / "client-lib"
    library.mkdir()
    return AgentConfig(
        host_name="sftp.example.com",
        remote_directory="/outbox",
        local_directory=local_dir,
        transfer_client_library_path=str(library),
        credential_name="partner-sftp",
        fingerprint="SHA256:abc",
        polling_interval=30,
        log_file_path=str(tmp_path / "agent.log"),
    )


@pytest.fixture
def captured_logs() -> Generator[list[dict[str, Any]], None, None]:
    """Capture structlog events emitted during the test."""
    with structlog.testing.capture_logs() as logs:
        yield logs


@pytest.fixture(autouse=True)
def _reset_logging() -> Generator[None, None, None]:
    """Undo any logging configuration a test installed."""
    yield
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        if isinstance(handler.formatter, structlog.stdlib.ProcessorFormatter):
            root_logger.removeHandler(handler)
            handler.close()
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()

"""Tests for the per-file download, verify and delete sequence."""

from pathlib import Path
from typing import Any

import pytest

from sftp_puller_core.exceptions import TransferError
from sftp_puller_sftp.sequencer import TransferSequencer


@pytest.fixture
def session(fake_transport):  # noqa: ANN001, ANN201
    fake_transport.open(None)
    return fake_transport


@pytest.fixture
def sequencer(recording_sleep) -> TransferSequencer:  # noqa: ANN001
    return TransferSequencer(sleep=recording_sleep)


def _io_error(path: str = "/outbox/a.csv") -> TransferError:
    return TransferError("Connection reset by peer", path, "IOError")


class TestTransfer:
    """Test moving one file."""

    def test_download_then_delete(
        self,
        sequencer: TransferSequencer,
        session,  # noqa: ANN001
        local_dir: str,
        recording_sleep,  # noqa: ANN001
        captured_logs: list[dict[str, Any]],
    ) -> None:
        """Test the file lands locally and is removed remotely after the grace period."""
        assert sequencer.transfer(session, "/outbox", "a.csv", local_dir) is True

        assert (Path(local_dir) / "a.csv").read_text(encoding="utf-8") == "content of a.csv"
        assert session.removals == ["/outbox/a.csv"]
        assert "a.csv" not in session.remote_files["/outbox"]
        assert recording_sleep.calls == [2.0]
        events = [e["event"] for e in captured_logs]
        assert events == ["FILE_DOWNLOADED", "REMOTE_FILE_DELETED"]

    def test_succeeds_after_two_failures(
        self,
        sequencer: TransferSequencer,
        session,  # noqa: ANN001
        local_dir: str,
        recording_sleep,  # noqa: ANN001
        captured_logs: list[dict[str, Any]],
    ) -> None:
        """Test two failed downloads are retried and the file is deleted once."""
        session.get_failures.extend([_io_error(), _io_error()])

        assert sequencer.transfer(session, "/outbox", "a.csv", local_dir) is True

        assert session.removals == ["/outbox/a.csv"]
        assert recording_sleep.calls == [10.0, 10.0, 2.0]
        failures = [e for e in captured_logs if e["event"] == "TRANSFER_ATTEMPT_FAILED"]
        assert [f["attempt"] for f in failures] == [1, 2]
        assert failures[0]["error_code"] == "IOError"
        assert failures[0]["error_category"] == "transfer"
        assert failures[0]["error_target"] == "/outbox/a.csv"
        assert failures[0]["file"] == "a.csv"

    def test_exhausted_attempts_leave_file_on_remote(
        self,
        sequencer: TransferSequencer,
        session,  # noqa: ANN001
        local_dir: str,
        recording_sleep,  # noqa: ANN001
        captured_logs: list[dict[str, Any]],
    ) -> None:
        """Test three failures give up without deleting anything."""
        session.get_failures.extend([_io_error(), _io_error(), _io_error()])

        assert sequencer.transfer(session, "/outbox", "a.csv", local_dir) is False

        assert session.removals == []
        assert "a.csv" in session.remote_files["/outbox"]
        assert recording_sleep.calls == [10.0, 10.0]
        exhausted = captured_logs[-1]
        assert exhausted["event"] == "TRANSFER_RETRIES_EXHAUSTED"
        assert exhausted["attempts"] == 3
        assert exhausted["left_on_remote"] is True
        assert exhausted["log_level"] == "error"

    def test_file_already_gone_after_download(
        self,
        sequencer: TransferSequencer,
        session,  # noqa: ANN001
        local_dir: str,
        captured_logs: list[dict[str, Any]],
    ) -> None:
        """Test a file removed by the server during the grace period needs no delete."""
        session.after_get = lambda _path: session.remote_files["/outbox"].pop("a.csv")

        assert sequencer.transfer(session, "/outbox", "a.csv", local_dir) is True

        assert session.removals == []
        assert (Path(local_dir) / "a.csv").exists()
        assert "REMOTE_FILE_ALREADY_REMOVED" in [e["event"] for e in captured_logs]

    def test_delete_failure_counts_as_attempt(
        self,
        sequencer: TransferSequencer,
        session,  # noqa: ANN001
        local_dir: str,
        recording_sleep,  # noqa: ANN001
    ) -> None:
        """Test a failed delete retries the whole sequence, download included."""
        session.remove_failures.append(_io_error())

        assert sequencer.transfer(session, "/outbox", "a.csv", local_dir) is True

        assert len(session.downloads) == 2
        assert session.removals == ["/outbox/a.csv", "/outbox/a.csv"]
        assert recording_sleep.calls == [2.0, 10.0, 2.0]

    def test_verification_listing_failure_counts_as_attempt(
        self,
        sequencer: TransferSequencer,
        session,  # noqa: ANN001
        local_dir: str,
        recording_sleep,  # noqa: ANN001
    ) -> None:
        session.list_failures.append(_io_error("/outbox"))

        assert sequencer.transfer(session, "/outbox", "a.csv", local_dir) is True
        assert recording_sleep.calls == [2.0, 10.0, 2.0]

    def test_same_named_directory_is_not_deleted(
        self,
        sequencer: TransferSequencer,
        session,  # noqa: ANN001
        local_dir: str,
    ) -> None:
        """Test only a regular file with the name counts as still present."""
        session.after_get = lambda _path: session.remote_files["/outbox"].update(
            {"a.csv": True}
        )

        assert sequencer.transfer(session, "/outbox", "a.csv", local_dir) is True
        assert session.removals == []

    def test_custom_attempts_and_delay(
        self, session, local_dir: str, sleep_factory  # noqa: ANN001
    ) -> None:
        sleep = sleep_factory()
        sequencer = TransferSequencer(max_attempts=2, retry_delay=1.5, grace_period=0, sleep=sleep)
        session.get_failures.extend([_io_error(), _io_error()])

        assert sequencer.max_attempts == 2
        assert sequencer.transfer(session, "/outbox", "a.csv", local_dir) is False
        assert sleep.calls == [1.5]

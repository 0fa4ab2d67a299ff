"""Size-bounded log file with timestamped archives.

The active log file is checked before every append. Once it has reached the
size ceiling it is renamed to ``<stem>_<yyyyMMdd_HHmmss><ext>``, a fresh file is
started with a single marker line and the oldest archives are deleted until no
more than the retention limit remain. All of this happens before the write that
triggered the check, so that write always lands in the fresh file.
"""

import logging
import os
import re
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

ARCHIVE_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"
LINE_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_CREATED_MESSAGE = "Log file created"

BYTES_PER_MB = 1024 * 1024


class LogRotator(logging.FileHandler):
    """File handler enforcing a size ceiling and an archive retention limit."""

    def __init__(
        self,
        filename: str | os.PathLike[str],
        max_bytes: int,
        max_archives: int,
        encoding: str = "utf-8",
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        """Initialize the rotator.

        Args:
            filename: Path of the active log file.
            max_bytes: Size at or above which the file is rotated.
            max_archives: Maximum number of archived files kept on disk.
            encoding: Text encoding of the log file.
            clock: Source of the current local time.
        """
        if max_bytes <= 0:
            raise ValueError("max_bytes must be positive")  # noqa: TRY003
        if max_archives <= 0:
            raise ValueError("max_archives must be positive")  # noqa: TRY003

        self.path = Path(filename).absolute()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        super().__init__(self.path, mode="a", encoding=encoding, delay=True)
        self.max_bytes = max_bytes
        self.max_archives = max_archives
        self._clock = clock
        self._archive_pattern = re.compile(
            rf"^{re.escape(self.path.stem)}_(?P<stamp>\d{{8}}_\d{{6}})(?:_(?P<seq>\d+))?"
            rf"{re.escape(self.path.suffix)}$"
        )

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.append(self.format(record), record.levelname)
        except Exception:  # noqa: BLE001
            self.handleError(record)

    def append(self, message: str, level: str = "INFO") -> None:
        """Write one line to the active log file, rotating first if needed.

        Args:
            message: The rendered event text.
            level: Level name shown in brackets.
        """
        self.acquire()
        try:
            if self.should_rotate():
                self.rotate()
            self._write_line(message, level)
        finally:
            self.release()

    def current_size(self) -> int:
        """Return the size of the active log file in bytes (0 if absent)."""
        if self.stream is not None:
            self.stream.flush()
        try:
            return self.path.stat().st_size
        except FileNotFoundError:
            return 0

    def should_rotate(self) -> bool:
        return self.current_size() >= self.max_bytes

    def rotate(self) -> Path:
        """Archive the active file, start a fresh one and prune old archives.

        Returns:
            Path of the archive the active file was renamed to.
        """
        if self.stream is not None:
            self.stream.close()
            self.stream = None  # type: ignore[assignment]

        archive = self._next_archive_path()
        os.replace(self.path, archive)

        self._write_line(LOG_CREATED_MESSAGE, "INFO")
        self.prune_archives()
        return archive

    def archives(self) -> list[Path]:
        """Return existing archives of this log, oldest first by last-write time.

        Archives with the same modification time are ordered by the timestamp
        in their name and then by their numeric collision suffix.
        """
        found = []
        for p in self.path.parent.iterdir():
            match = self._archive_pattern.match(p.name)
            if match and p.is_file():
                seq = int(match["seq"]) if match["seq"] is not None else 0
                found.append(((p.stat().st_mtime, match["stamp"], seq), p))
        return [p for _, p in sorted(found)]

    def prune_archives(self) -> list[Path]:
        """Delete the oldest archives until at most `max_archives` remain.

        Returns:
            The archives that were deleted.
        """
        existing = self.archives()
        excess = existing[: max(0, len(existing) - self.max_archives)]
        for archive in excess:
            archive.unlink()
        return excess

    def _next_archive_path(self) -> Path:
        stamp = self._clock().strftime(ARCHIVE_TIMESTAMP_FORMAT)
        base = f"{self.path.stem}_{stamp}"
        # Two rotations within the same second: count past the highest suffix
        # so a pruned name is never reused
        taken = []
        for p in self.path.parent.iterdir():
            match = self._archive_pattern.match(p.name)
            if match and match["stamp"] == stamp:
                taken.append(int(match["seq"] or 0))
        if not taken:
            return self.path.with_name(f"{base}{self.path.suffix}")
        return self.path.with_name(f"{base}_{max(taken) + 1}{self.path.suffix}")

    def _write_line(self, message: str, level: str) -> None:
        if self.stream is None:
            self.stream = self._open()
        timestamp = self._clock().strftime(LINE_TIMESTAMP_FORMAT)
        self.stream.write(f"{timestamp} [{level}] {message}{self.terminator}")
        self.flush()

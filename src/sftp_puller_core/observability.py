"""Logging setup for the SFTP puller.

structlog is layered on top of stdlib logging: components log through
``structlog.get_logger(__name__)`` and every event is rendered by a
``ProcessorFormatter`` on the console handler and, when a log file is
configured, on the size-rotating file handler.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog
from structlog.typing import EventDict, WrappedLogger

from sftp_puller_core.config import DEFAULT_LOG_SIZE_LIMIT_MB, DEFAULT_MAX_LOG_ARCHIVES
from sftp_puller_core.log_rotation import BYTES_PER_MB, LogRotator

# Rendered by the file line layout instead of the event text
_FILE_LINE_KEYS = ("timestamp", "level", "logger")


def render_event_line(
    _logger: WrappedLogger, _method_name: str, event_dict: EventDict
) -> str:
    """Render an event as ``EVENT key=value ...`` for the plain-text log file."""
    for key in _FILE_LINE_KEYS:
        event_dict.pop(key, None)
    event = str(event_dict.pop("event", ""))
    exc = event_dict.pop("exception", None)
    parts = [event, *(f"{k}={v!r}" for k, v in sorted(event_dict.items()))]
    line = " ".join(p for p in parts if p)
    if exc:
        line = f"{line}\n{exc}"
    return line


_shared_processors: list[Any] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
]


def configure_logging(
    log_level: str = "INFO",
    *,
    dev_mode: bool = False,
    log_file: str | None = None,
    max_bytes: int = DEFAULT_LOG_SIZE_LIMIT_MB * BYTES_PER_MB,
    max_archives: int = DEFAULT_MAX_LOG_ARCHIVES,
) -> LogRotator | None:
    """Configure structlog and the stdlib root logger.

    Args:
        log_level: Minimum level name to emit.
        dev_mode: Render colored console output instead of JSON.
        log_file: Optional path of the size-rotated log file.
        max_bytes: Size ceiling of the active log file.
        max_archives: Number of archived log files to keep.

    Returns:
        The file handler when `log_file` is given, otherwise None.
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_shared_processors,
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    console_renderer: Any = (
        structlog.dev.ConsoleRenderer(colors=True)
        if dev_mode
        else structlog.processors.JSONRenderer()
    )
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                console_renderer,
            ],
        )
    )

    # Replace handlers from an earlier call so events are not written twice
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        if isinstance(handler.formatter, structlog.stdlib.ProcessorFormatter):
            root_logger.removeHandler(handler)
            handler.close()
    root_logger.addHandler(console_handler)
    root_logger.setLevel(level)

    file_handler = None
    if log_file:
        file_handler = LogRotator(
            log_file, max_bytes=max_bytes, max_archives=max_archives
        )
        file_handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                foreign_pre_chain=_shared_processors,
                processors=[
                    structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                    render_event_line,
                ],
            )
        )
        root_logger.addHandler(file_handler)

    # Silence noisy third-party loggers
    logging.getLogger("paramiko").setLevel(logging.WARNING)
    logging.getLogger("botocore").setLevel(logging.WARNING)

    return file_handler


@contextmanager
def log_bind(**kwargs: Any) -> Iterator[None]:  # noqa: ANN401
    """Bind context to every log line emitted inside the block."""
    with structlog.contextvars.bound_contextvars(**kwargs):
        yield

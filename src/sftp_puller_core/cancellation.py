"""Cooperative shutdown signalling."""

import signal
import threading
from types import FrameType


class ShutdownToken:
    """Cancellation token observed by the polling loop at iteration boundaries.

    Setting the token never interrupts an in-flight blocking call; it only ends
    an idle `sleep` early so the loop can notice it.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    @property
    def is_set(self) -> bool:
        return self._event.is_set()

    def request_shutdown(self) -> None:
        self._event.set()

    def sleep(self, seconds: float) -> bool:
        """Sleep for `seconds` or until shutdown is requested.

        Returns:
            True if shutdown was requested.
        """
        return self._event.wait(timeout=seconds)


def install_signal_handlers(token: ShutdownToken) -> None:
    """Route interrupt and termination signals to `token`.

    The handler only sets the token. It runs between bytecodes of the main
    thread, so it must not log or touch any other shared state.
    """

    def _handler(_signum: int, _frame: FrameType | None) -> None:
        token.request_shutdown()

    signal.signal(signal.SIGINT, _handler)
    signal.signal(signal.SIGTERM, _handler)
    # Ctrl+Break on Windows consoles
    if hasattr(signal, "SIGBREAK"):
        signal.signal(signal.SIGBREAK, _handler)

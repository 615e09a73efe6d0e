"""Overall deadline for blocking exchanges.

httpx timeouts apply per phase and restart on every socket read, so a peer
that trickles bytes can keep a blocking call alive indefinitely. The
watchdog here learns the connection's socket through the httpcore ``trace``
request extension and shuts it down once the deadline passes, which wakes
any read or write blocked on it.
"""

import contextlib
import socket
import threading
from types import TracebackType
from typing import Any


# Trace events whose return value is the network stream of the connection
_STREAM_EVENTS = ("connect_tcp.complete", "start_tls.complete")


class DeadlineWatchdog:
    """Shuts down the sockets of one exchange when its deadline passes.

    Use as a context manager around the exchange and pass ``trace`` as the
    request's ``trace`` extension.
    """

    def __init__(self, timeout_ms: int) -> None:
        """Initialize the watchdog.

        Args:
            timeout_ms: Budget for the whole exchange in milliseconds.
        """
        self.timeout_ms = timeout_ms
        self._lock = threading.Lock()
        self._sockets: list[socket.socket] = []
        self._expired = threading.Event()
        self._timer = threading.Timer(timeout_ms / 1000.0, self._expire)
        self._timer.daemon = True

    @property
    def expired(self) -> bool:
        """Whether the deadline has passed."""
        return self._expired.is_set()

    def trace(self, event_name: str, info: dict[str, Any]) -> None:
        """Collect sockets as httpcore opens them."""
        if not event_name.endswith(_STREAM_EVENTS):
            return
        stream = info.get("return_value")
        sock = stream.get_extra_info("socket") if stream is not None else None
        if not isinstance(sock, socket.socket):
            return

        with self._lock:
            if not self.expired:
                self._sockets.append(sock)
                return
        # Connected after the deadline
        self._shutdown(sock)

    def _expire(self) -> None:
        with self._lock:
            self._expired.set()
            sockets = list(self._sockets)
        for sock in sockets:
            self._shutdown(sock)

    @staticmethod
    def _shutdown(sock: socket.socket) -> None:
        # Already closed, or detached by a TLS wrap
        with contextlib.suppress(OSError):
            sock.shutdown(socket.SHUT_RDWR)

    def __enter__(self) -> "DeadlineWatchdog":
        self._timer.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self._timer.cancel()

"""TCP receiver feeding raw byte chunks into a queue, and signal handling."""

from __future__ import annotations

import logging
import select
import signal
import socket
import threading

from .blocking_queue import BlockingQueue

log = logging.getLogger(__name__)

_POLL_TIMEOUT = 0.2
_RECV_BUF_SIZE = 4096
_BACKLOG = 5


def _listening_socket(port: int) -> socket.socket:
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        except OSError as exc:
            log.warning("TcpServer: setsockopt(SO_REUSEADDR) failed: %s", exc)
        sock.bind(("", port))
        sock.listen(_BACKLOG)
    except BaseException:
        sock.close()
        raise
    log.info("TcpServer: listening on port %d", sock.getsockname()[1])
    return sock


class TcpServer:
    """Accepts one client at a time and pushes received bytes onto a queue.

    The listening socket is opened on construction; ``OSError`` is raised if
    that fails. ``run`` serves clients until ``stop_event`` is set, then
    closes the socket and the queue.
    """

    def __init__(
        self,
        port: int,
        queue: BlockingQueue[bytes],
        stop_event: threading.Event,
    ) -> None:
        self._queue = queue
        self._stop_event = stop_event
        self._sock = _listening_socket(port)

    @property
    def port(self) -> int:
        """The port actually bound (useful when constructed with port 0)."""
        return self._sock.getsockname()[1]

    def run(self) -> None:
        """Serve clients one after another until stopped."""
        try:
            while not self._stop_event.is_set():
                try:
                    ready, _, _ = select.select([self._sock], [], [], _POLL_TIMEOUT)
                except OSError as exc:
                    log.warning("TcpServer: poll() failed: %s", exc)
                    break
                if not ready:
                    continue
                try:
                    client, address = self._sock.accept()
                except BlockingIOError:
                    continue
                except OSError as exc:
                    log.warning("TcpServer: accept() failed: %s", exc)
                    break
                log.info("TcpServer: client connected from %s", address[0])
                with client:
                    self._recv_loop(client)
                log.info("TcpServer: client disconnected")
        finally:
            self.close()
            self._queue.close()
            log.info("TcpServer: shut down")

    def close(self) -> None:
        """Close the listening socket."""
        self._sock.close()

    def _recv_loop(self, client: socket.socket) -> None:
        while not self._stop_event.is_set():
            try:
                ready, _, _ = select.select([client], [], [], _POLL_TIMEOUT)
                if not ready:
                    continue
                data = client.recv(_RECV_BUF_SIZE)
            except OSError as exc:
                log.warning("TcpServer: recv() failed: %s", exc)
                return
            if not data:
                return
            self._queue.push(data)


_handler_lock = threading.Lock()
_handler_active = False


class SignalHandler:
    """Context manager that sets ``stop_event`` on SIGINT or SIGTERM.

    Only one may be active at a time; the previous handlers are restored on
    exit.
    """

    _SIGNALS = (signal.SIGINT, signal.SIGTERM)

    def __init__(self, stop_event: threading.Event) -> None:
        self._stop_event = stop_event
        self._previous: dict[int, object] = {}

    def _handle(self, signum, frame) -> None:
        self._stop_event.set()

    def __enter__(self) -> SignalHandler:
        global _handler_active
        with _handler_lock:
            if _handler_active:
                raise RuntimeError("SignalHandler: only one instance allowed")
            _handler_active = True
        for signum in self._SIGNALS:
            try:
                self._previous[signum] = signal.signal(signum, self._handle)
            except (ValueError, OSError) as exc:
                log.warning(
                    "SignalHandler: installing %s handler failed: %s",
                    signal.Signals(signum).name,
                    exc,
                )
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        global _handler_active
        for signum, previous in self._previous.items():
            signal.signal(signum, signal.SIG_DFL if previous is None else previous)
        self._previous.clear()
        with _handler_lock:
            _handler_active = False
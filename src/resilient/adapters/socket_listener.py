# resilient/adapters/socket_listener.py
import errno
import socket
from typing import Any, Optional

from resilient.core.interfaces.listener import ListenerPort

# errno values an accept() can return while the listening socket stays usable
TEMPORARY_ERRNOS = frozenset(
    code
    for code in (
        getattr(errno, name, None)
        for name in (
            "EINTR",
            "EAGAIN",
            "EWOULDBLOCK",
            "ECONNABORTED",
            "ECONNRESET",
            "EMFILE",
            "ENFILE",
            "ENOBUFS",
            "ENOMEM",
            "EPROTO",
            "ETIMEDOUT",
        )
    )
    if code is not None
)

TIMEOUT_ERRNOS = frozenset(
    code for code in (getattr(errno, "EAGAIN", None), getattr(errno, "ETIMEDOUT", None))
    if code is not None
)


class NetError(OSError):
    """OSError raised by a socket operation, exposing the temporary capability.

    Attributes:
        op: Name of the failed socket operation (e.g. "accept")
        is_timeout: True when the underlying error was a socket timeout
    """

    def __init__(self, op: str, cause: OSError):
        if cause.errno is None:
            super().__init__(str(cause))
        else:
            super().__init__(cause.errno, cause.strerror or str(cause))
        self.op = op
        self.is_timeout = isinstance(cause, socket.timeout)

    def temporary(self) -> bool:
        return self.is_timeout or self.errno in TEMPORARY_ERRNOS

    def timeout(self) -> bool:
        return self.is_timeout or self.errno in TIMEOUT_ERRNOS

    def __str__(self) -> str:
        return f"{self.op}: {super().__str__()}"


class SocketListenerAdapter(ListenerPort):
    """ListenerPort over a bound, listening `socket.socket`."""

    def __init__(self, sock: socket.socket):
        self._sock = sock

    @classmethod
    def bind(cls, host: str = "127.0.0.1", port: int = 0, backlog: int = 128) -> "SocketListenerAdapter":
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((host, port))
            sock.listen(backlog)
        except OSError:
            sock.close()
            raise
        return cls(sock)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def settimeout(self, seconds: Optional[float]) -> None:
        self._sock.settimeout(seconds)

    def accept(self) -> socket.socket:
        try:
            conn, _ = self._sock.accept()
        except OSError as exc:
            raise NetError("accept", exc) from exc
        return conn

    def close(self) -> None:
        self._sock.close()

    def addr(self) -> Any:
        return self._sock.getsockname()

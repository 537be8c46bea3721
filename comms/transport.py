from __future__ import annotations

import socket
from typing import Optional

from common.errors import TransportError
from common.logging_setup import get_logger


log = get_logger("comms.transport")

# ---------------------------
# Connection helpers
# ---------------------------

def open_connection(host: str, port: int, timeout_s: Optional[float] = 10.0) -> socket.socket:
    """
    Open the TCP link to the simulator. The timeout applies to connect only;
    the returned socket blocks on reads.
    """
    try:
        sock = socket.create_connection((host, port), timeout=timeout_s)
    except OSError as e:
        raise TransportError(f"could not connect to {host}:{port}: {e}") from e
    sock.settimeout(None)
    return sock


class SocketTransport:
    """Exclusive owner of the simulator socket for the lifetime of a session."""

    def __init__(self, sock: socket.socket, recv_bytes: int = 255, delimiter: bytes = b";"):
        self._sock = sock
        self.recv_bytes = recv_bytes
        self.delimiter = delimiter

    @classmethod
    def connect(cls, host: str, port: int, *, recv_bytes: int = 255, timeout_s: Optional[float] = 10.0) -> "SocketTransport":
        return cls(open_connection(host, port, timeout_s), recv_bytes=recv_bytes)

    def recv(self) -> bytes:
        """Next chunk from the peer; b"" means the peer closed the connection."""
        try:
            return self._sock.recv(self.recv_bytes)
        except OSError as e:
            raise TransportError(f"read failed: {e}") from e

    def send_command(self, cmd: str) -> None:
        try:
            self._sock.sendall(cmd.encode("ascii") + self.delimiter)
        except OSError as e:
            raise TransportError(f"write failed: {e}") from e

    def close(self) -> None:
        try:
            self._sock.close()
        except OSError:
            log.debug("socket close failed", exc_info=True)

    def __enter__(self) -> "SocketTransport":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

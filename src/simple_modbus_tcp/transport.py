"""TcpTransport: owns the socket; bounded connect retries, one write and one read per request."""

import logging
import socket
import time
from typing import Any

from .codec import hexdump
from .errors import ModbusConnectionError, ModbusTimeoutError

logger = logging.getLogger(__name__)

# Upper bound for one Modbus TCP frame (260 bytes) with plenty of headroom.
RECEIVE_BUFFER_SIZE = 2100


class TcpTransport:
    """
    Raw-bytes TCP transport. Knows nothing about Modbus beyond sending a frame
    and returning whatever a single blocking read yields. A response split over
    several TCP segments is not reassembled.
    """

    def __init__(
        self,
        connect_timeout: float = 0.4,
        connect_retries: int = 1,
        read_timeout: float | None = None,
    ) -> None:
        self.connect_timeout = connect_timeout
        self.connect_retries = connect_retries
        self._read_timeout = read_timeout
        self._sock: socket.socket | None = None
        self._buffer = bytearray(RECEIVE_BUFFER_SIZE)

    @property
    def read_timeout(self) -> float | None:
        """Seconds to wait for a response; None blocks. Changes reach the live socket."""
        return self._read_timeout

    @read_timeout.setter
    def read_timeout(self, value: float | None) -> None:
        self._read_timeout = value
        if self._sock is not None:
            self._sock.settimeout(value)

    def connect(self, host: str, port: int) -> None:
        """
        Open a TCP connection. A connect timeout is retried ``connect_retries``
        more times; other socket errors are raised at once.
        """
        if self._sock is not None:
            logger.debug("Closing existing connection before reconnecting")
            self.disconnect()

        attempts = self.connect_retries + 1
        for attempt in range(1, attempts + 1):
            logger.debug("Connecting to %s:%s (attempt %d/%d)", host, port, attempt, attempts)
            try:
                sock = socket.create_connection((host, port), timeout=self.connect_timeout)
            except socket.timeout:
                logger.debug("Connect to %s:%s timed out after %ss", host, port, self.connect_timeout)
                time.sleep(0)
                continue
            except OSError as e:
                raise ModbusConnectionError(f"Failed to connect to {host}:{port}: {e}", cause=e) from e
            sock.settimeout(self.read_timeout)
            self._sock = sock
            logger.debug("Connected to %s:%s", host, port)
            return

        raise ModbusConnectionError(f"Failed to connect to {host}:{port}: retries ended")

    def disconnect(self) -> None:
        """
        Close the socket if any. Safe to call repeatedly. A read blocked in
        another thread wakes up with an empty result.
        """
        sock, self._sock = self._sock, None
        if sock is not None:
            try:
                sock.shutdown(socket.SHUT_RDWR)
            except OSError as e:
                logger.debug("Socket shutdown failed (peer already gone?): %s", e)
            try:
                sock.close()
            except OSError as e:
                logger.warning("Error closing Modbus socket: %s", e)

    def is_connected(self) -> bool:
        return self._sock is not None and self._sock.fileno() != -1

    def send_and_receive(self, frame: bytes) -> bytes:
        """
        Write the whole request, then perform exactly one read. Returns the
        bytes read, which is empty when the peer closed the connection.
        """
        sock = self._sock
        if sock is None:
            raise ModbusConnectionError("Connection error (socket is null)")
        logger.debug("TX %s", hexdump(frame))
        try:
            sock.sendall(frame)
            n = sock.recv_into(self._buffer)
        except socket.timeout as e:
            raise ModbusTimeoutError(f"No response within {sock.gettimeout()}s", cause=e) from e
        except OSError as e:
            raise ModbusConnectionError(f"Connection error: {e}", cause=e) from e
        response = bytes(self._buffer[:n])
        logger.debug("RX %s", hexdump(response))
        return response

    def __enter__(self) -> "TcpTransport":
        return self

    def __exit__(self, *args: Any) -> None:
        self.disconnect()

"""UDP server and client exchanging fixed-size datagrams."""

from __future__ import annotations

import logging
import socket

log = logging.getLogger(__name__)

UDP_SERVER_TIMEOUT = 20.0
UDP_READ_TIMEOUT = 0.4


def _split_address(address: str) -> tuple[str, int]:
    host, sep, port = address.rpartition(":")
    if not sep:
        raise ValueError(f"address without port: {address!r}")
    return host.strip("[]"), int(port)


class UdpServer:
    """A bound UDP socket that answers whoever sent to it.

    Raises OSError if the address cannot be bound.
    """

    def __init__(self, address: str, port: int) -> None:
        self._sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            self._sock.bind((address, port))
        except OSError:
            self._sock.close()
            raise
        self.address: tuple[str, int] = self._sock.getsockname()[:2]
        log.info("UDP Socket | Created new server at: %s", self.address)

    def __enter__(self) -> UdpServer:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def receive(self, size: int) -> tuple[bytes, tuple[str, int]]:
        """Receive a datagram of exactly ``size`` bytes and its sender.

        Raises TimeoutError when nothing arrives in time and OSError when
        the datagram has another size.
        """
        self._sock.settimeout(UDP_SERVER_TIMEOUT)
        try:
            data, sender = self._sock.recvfrom(size)
        except TimeoutError:
            raise
        except OSError as err:
            log.error("UdpServer | Error trying to read | %s", err)
            raise
        if len(data) != size:
            log.error(
                "UdpServer | Wrong read | Address: %s | Size read: %s | Size expected: %s",
                sender,
                len(data),
                size,
            )
            raise OSError(f"read {len(data)} bytes, expected {size}")
        return data, sender

    def send(self, message: bytes, address: tuple[str, int]) -> int:
        """Send the message to the address and return the size sent."""
        try:
            sent = self._sock.sendto(message, address)
        except OSError as err:
            log.error("UdpServer | Error trying to write | Address: %s | %s", address, err)
            raise
        if sent < len(message):
            log.error("UdpServer | Wrong write | Address: %s | Sent: %s | Expected: %s", address, sent, len(message))
            raise OSError("size sent differs from size expected")
        return sent

    def close(self) -> None:
        try:
            self._sock.close()
        except OSError as err:
            log.error("UdpServer | Error closing listener | %s", err)


class UdpClient:
    """A UDP socket connected to a single peer given as ``host:port``."""

    def __init__(self, address: str) -> None:
        self.address = address
        self._sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            self._sock.connect(_split_address(address))
        except OSError as err:
            self._sock.close()
            log.error("UdpClient | Error trying to create | %s", err)
            raise

    def __enter__(self) -> UdpClient:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def receive(self, size: int) -> tuple[bytes, None]:
        """Receive a datagram of exactly ``size`` bytes; the address is always None.

        Raises TimeoutError when nothing arrives in time and OSError when
        the datagram has another size.
        """
        self._sock.settimeout(UDP_READ_TIMEOUT)
        try:
            data = self._sock.recv(size)
        except TimeoutError:
            raise
        except OSError as err:
            log.error("UdpClient | Error trying to read | %s", err)
            raise
        if len(data) != size:
            log.error("UdpClient | Wrong read | Size read: %s | Size expected: %s", len(data), size)
            raise OSError(f"read {len(data)} bytes, expected {size}")
        return data, None

    def send(self, message: bytes, address: object = None) -> int:
        """Send the message to the connected peer; ``address`` is ignored."""
        try:
            sent = self._sock.send(message)
        except OSError as err:
            log.error("UdpClient | Error trying to write | %s", err)
            raise
        if sent < len(message):
            log.error("UdpClient | Wrong write | Sent: %s | Expected: %s", sent, len(message))
            raise OSError("size sent differs from size expected")
        return sent

    def close(self) -> None:
        try:
            self._sock.close()
        except OSError as err:
            log.error("UdpClient | Error closing socket | %s", err)
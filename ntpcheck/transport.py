"""One-shot UDP transport: one socket, one request, one reply."""
import logging
import socket
import threading
import time

from .exceptions import HostUnresolvable, SocketError, Timeout
from .packet import NTP

logger = logging.getLogger(__name__)

RECV_BUFFER_SIZE = 512


class Transport:
    """A UDP socket connected to one NTP server.

    The socket exists between open() and close(); close() may be called
    from another thread to abandon a pending receive.
    """

    def __init__(self, host, port=NTP.PORT, timeout=5.0, ttl=None, local_port=None):
        self.host = host
        self.port = port
        self.timeout = timeout
        self.ttl = ttl
        self.local_port = local_port
        self.sock = None
        self._closed = False
        self._lock = threading.Lock()

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, *exc):
        self.close()

    def open(self):
        try:
            family, _, _, _, sockaddr = socket.getaddrinfo(self.host, self.port, type=socket.SOCK_DGRAM)[0]
        except (socket.gaierror, UnicodeError) as e:
            raise HostUnresolvable(f"{self.host}: {e}") from e
        logger.debug("Resolved %s to %s", self.host, sockaddr[0])

        try:
            sock = socket.socket(family, socket.SOCK_DGRAM)
        except OSError as e:
            raise SocketError(f"Unable to create socket: {e}") from e

        with self._lock:
            if self._closed:
                sock.close()
                raise SocketError("Transport closed")
            self.sock = sock

        try:
            if self.local_port is not None:
                sock.bind(('::' if family == socket.AF_INET6 else '0.0.0.0', self.local_port))
                logger.debug("Bound to local port %d", self.local_port)
            if self.ttl is not None:
                if family == socket.AF_INET6:
                    sock.setsockopt(socket.IPPROTO_IPV6, socket.IPV6_UNICAST_HOPS, self.ttl)
                else:
                    sock.setsockopt(socket.IPPROTO_IP, socket.IP_TTL, self.ttl)
                logger.debug("Set TTL to %d", self.ttl)
            sock.connect(sockaddr)
        except OSError as e:
            self.close()
            raise SocketError(f"{self.host}: {e}") from e

    def exchange(self, payload):
        """Send payload and wait for a single reply.

        Returns the reply bytes and the local receive time (T4) in
        nanoseconds since the Unix epoch.
        """
        deadline = time.monotonic() + self.timeout
        sock = self.sock
        if sock is None or self._closed:
            raise SocketError("Transport is not open")

        try:
            sock.settimeout(self._remaining(deadline))
            sock.send(payload)
            logger.debug("%s: waiting for reply", self.host)
            sock.settimeout(self._remaining(deadline))
            data = sock.recv(RECV_BUFFER_SIZE)
            recv_timestamp = time.time_ns()
        except socket.timeout as e:
            raise Timeout(f"{self.host}: no reply within {self.timeout}s") from e
        except OSError as e:
            if self._closed:
                raise SocketError(f"{self.host}: transport closed while waiting for reply") from e
            raise SocketError(f"{self.host}: {e}") from e

        if self._closed:
            raise SocketError(f"{self.host}: transport closed while waiting for reply")
        return data, recv_timestamp

    def close(self):
        with self._lock:
            if self._closed:
                return
            self._closed = True
            sock, self.sock = self.sock, None

        if sock is None:
            return
        try:
            # Wakes up a recv() blocked in another thread.
            sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        sock.close()

    def _remaining(self, deadline):
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise socket.timeout("deadline exceeded")
        return remaining


def exchange(host, payload, port=NTP.PORT, timeout=5.0, ttl=None, local_port=None):
    """Open a transport to host, perform one exchange and close it."""
    with Transport(host, port=port, timeout=timeout, ttl=ttl, local_port=local_port) as transport:
        return transport.exchange(payload)

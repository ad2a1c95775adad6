class NTPException(Exception):
    """Exception raised by this package."""
    pass


class HostUnresolvable(NTPException):
    """The server name could not be resolved to an address."""
    pass


class SocketError(NTPException):
    """Bind, send or receive failed at the OS level."""
    pass


class Timeout(NTPException):
    """No reply arrived before the deadline."""
    pass


class MalformedPacket(NTPException):
    """A reply arrived but is not a valid 48 byte NTP header."""
    pass

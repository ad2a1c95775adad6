from .client import NTPResponse, QueryOptions, get_time, offset_and_rtt, query  # noqa
from .exceptions import HostUnresolvable, MalformedPacket, NTPException, SocketError, Timeout  # noqa
from .packet import NTP, Leap, Mode, NTPPacket, Version, encode_request  # noqa
from .timestamps import ntp_short_to_duration, ntp_to_system_time, system_to_ntp_time  # noqa

__version__ = "1.0.0"

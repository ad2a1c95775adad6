import datetime
import logging
import time
from typing import NamedTuple, Optional

from .packet import NTP, NTPPacket, Version, encode_request, ref_id_to_text
from .timestamps import (
    NANOSECONDS, ntp_interval_to_duration, ntp_short_to_duration, ntp_to_system_time, system_to_ntp_time,
)
from .transport import Transport

logger = logging.getLogger(__name__)


class QueryOptions(NamedTuple):
    """Options of a single query. Timeout is in seconds."""
    version: int = Version.V4
    port: int = NTP.PORT
    timeout: float = 5.0
    ttl: Optional[int] = None
    local_port: Optional[int] = None

    def validate(self):
        try:
            version = Version(self.version)
        except ValueError:
            raise ValueError(f"Unsupported NTP version {self.version!r}, expected 2, 3 or 4")
        if not 0 < self.port < 65536:
            raise ValueError(f"Invalid port {self.port!r}")
        if self.timeout <= 0:
            raise ValueError(f"Timeout must be positive, got {self.timeout!r}")
        if self.ttl is not None and not 0 < self.ttl < 256:
            raise ValueError(f"Invalid TTL {self.ttl!r}")
        if self.local_port is not None and not 0 <= self.local_port < 65536:
            raise ValueError(f"Invalid local port {self.local_port!r}")
        return self._replace(version=version)


class NTPResponse(NamedTuple):
    """Result of a query. Instants and durations are in nanoseconds."""
    time: int
    clock_offset: int
    rtt: int
    stratum: int
    leap: int
    poll: int
    precision: int
    ref_id: int
    root_delay: int
    root_dispersion: int
    reference_time: int
    origin_time: int
    receive_time: int
    transmit_time: int

    @property
    def datetime(self):
        seconds, nanos = divmod(self.time, NANOSECONDS)
        return datetime.datetime.fromtimestamp(seconds, tz=datetime.timezone.utc).replace(microsecond=nanos // 1000)

    def ref_id_text(self):
        return ref_id_to_text(self.ref_id, self.stratum)


def offset_and_rtt(t1, t2, t3, t4):
    """Return the clock offset and round trip delay of one exchange.

    t1 is the client send time, t2 the server receive time, t3 the server
    send time and t4 the client receive time. The offset is positive when
    the server clock is ahead of the local one.
    """
    offset = ((t2 - t1) + (t3 - t4)) // 2
    rtt = (t4 - t1) - (t3 - t2)
    return offset, rtt


def query(host, options=None):
    """Perform one NTP exchange with host and return an NTPResponse."""
    options = (options or QueryOptions()).validate()

    with Transport(
        host, port=options.port, timeout=options.timeout, ttl=options.ttl, local_port=options.local_port,
    ) as transport:
        t1 = time.time_ns()
        request = encode_request(options.version, system_to_ntp_time(t1))
        logger.debug("%s: sending version %d request", host, options.version)
        data, t4 = transport.exchange(request)

    logger.debug("%s: decoding %d byte reply", host, len(data))
    packet = NTPPacket.from_data(data)

    t2 = ntp_to_system_time(packet.recv_timestamp)
    t3 = ntp_to_system_time(packet.tx_timestamp)
    offset, rtt = offset_and_rtt(t1, t2, t3, t4)
    logger.debug("%s: offset %dns, rtt %dns", host, offset, rtt)

    return NTPResponse(
        time=time.time_ns() + offset,
        clock_offset=offset,
        rtt=rtt,
        stratum=packet.stratum,
        leap=packet.leap,
        poll=ntp_interval_to_duration(packet.poll),
        precision=ntp_interval_to_duration(packet.precision),
        ref_id=packet.ref_id,
        root_delay=ntp_short_to_duration(packet.root_delay),
        root_dispersion=ntp_short_to_duration(packet.root_dispersion),
        reference_time=ntp_to_system_time(packet.ref_timestamp),
        origin_time=ntp_to_system_time(packet.orig_timestamp),
        receive_time=t2,
        transmit_time=t3,
    )


def get_time(host):
    """Return the current time according to host, in nanoseconds since the Unix epoch."""
    return query(host).time

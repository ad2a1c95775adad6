"""NTP packet codec for the 48 byte base header (RFC 5905, no extensions)."""
import enum
import struct

from .exceptions import MalformedPacket, NTPException


class Version(enum.IntEnum):
    V2 = 2
    V3 = 3
    V4 = 4


class Mode(enum.IntEnum):
    UNSPECIFIED = 0
    SYMMETRIC_ACTIVE = 1
    SYMMETRIC_PASSIVE = 2
    CLIENT = 3
    SERVER = 4
    BROADCAST = 5
    CONTROL = 6
    PRIVATE = 7


class Leap(enum.IntEnum):
    NO_WARNING = 0
    LAST_MINUTE_61 = 1
    LAST_MINUTE_59 = 2
    ALARM = 3


class NTP:
    """Helper class defining constants."""

    PORT = 123
    PACKET_SIZE = 48

    REF_ID_TABLE = {
        'DNC': "DNC routing protocol",
        'NIST': "NIST public modem",
        'TSP': "TSP time protocol",
        'DTS': "Digital Time Service",
        'ATOM': "Atomic clock (calibrated)",
        'VLF': "VLF radio (OMEGA, etc)",
        'callsign': "Generic radio",
        'LORC': "LORAN-C radionavidation",
        'GOES': "GOES UHF environment satellite",
        'GPS': "GPS UHF satellite positioning",
    }

    STRATUM_TABLE = {
        0: "unspecified or invalid",
        1: "primary reference",
        16: "unsynchronized",
    }

    MODE_TABLE = {
        Mode.UNSPECIFIED: "unspecified",
        Mode.SYMMETRIC_ACTIVE: "symmetric active",
        Mode.SYMMETRIC_PASSIVE: "symmetric passive",
        Mode.CLIENT: "client",
        Mode.SERVER: "server",
        Mode.BROADCAST: "broadcast",
        Mode.CONTROL: "reserved for NTP control messages",
        Mode.PRIVATE: "reserved for private use",
    }

    LEAP_TABLE = {
        Leap.NO_WARNING: "no warning",
        Leap.LAST_MINUTE_61: "last minute has 61 seconds",
        Leap.LAST_MINUTE_59: "last minute has 59 seconds",
        Leap.ALARM: "alarm condition (clock not synchronized)",
    }


class NTPPacket:
    """Represents an NTP packet.

    Timestamps are kept in their raw wire form: root_delay and
    root_dispersion as 16.16 values, the four long timestamps as 32.32
    values. Use ntpcheck.timestamps to convert them.
    """
    _PACKET_FORMAT = "!B B b b I I I Q Q Q Q"

    def __init__(self, version=Version.V4, mode=Mode.CLIENT, tx_timestamp=0):
        self.leap = Leap.NO_WARNING
        self.version = version
        self.mode = mode
        self.stratum = 0
        self.poll = 0
        self.precision = 0
        self.root_delay = 0
        self.root_dispersion = 0
        self.ref_id = 0
        self.ref_timestamp = 0
        self.orig_timestamp = 0
        self.recv_timestamp = 0
        self.tx_timestamp = tx_timestamp

    def __repr__(self):
        return (
            f'<NTPPacket v{int(self.version)} mode={int(self.mode)} stratum={self.stratum} '
            f'tx={self.tx_timestamp:#018x}>'
        )

    def to_data(self):
        """Convert this NTPPacket into a binary buffer."""
        for name, value, limit in (('leap', self.leap, 3), ('version', self.version, 7), ('mode', self.mode, 7)):
            if not 0 <= value <= limit:
                raise NTPException(f"Invalid NTP packet fields: {name} {value} out of range 0-{limit}")
        try:
            return struct.pack(
                NTPPacket._PACKET_FORMAT,
                self.leap << 6 | self.version << 3 | self.mode,
                self.stratum,
                self.poll,
                self.precision,
                self.root_delay,
                self.root_dispersion,
                self.ref_id,
                self.ref_timestamp,
                self.orig_timestamp,
                self.recv_timestamp,
                self.tx_timestamp,
            )
        except struct.error as e:
            raise NTPException(f"Invalid NTP packet fields: {e}") from e

    @classmethod
    def from_data(cls, data):
        """Build a packet from a received binary buffer."""
        if len(data) != NTP.PACKET_SIZE:
            raise MalformedPacket(f"Invalid NTP packet: expected {NTP.PACKET_SIZE} bytes, got {len(data)}")

        unpacked = struct.unpack(NTPPacket._PACKET_FORMAT, data)
        packet = cls()
        packet.leap = Leap((unpacked[0] >> 6) & 0x3)
        packet.version = (unpacked[0] >> 3) & 0x7
        packet.mode = Mode(unpacked[0] & 0x7)
        packet.stratum = unpacked[1]
        packet.poll = unpacked[2]
        packet.precision = unpacked[3]
        packet.root_delay = unpacked[4]
        packet.root_dispersion = unpacked[5]
        packet.ref_id = unpacked[6]
        packet.ref_timestamp = unpacked[7]
        packet.orig_timestamp = unpacked[8]
        packet.recv_timestamp = unpacked[9]
        packet.tx_timestamp = unpacked[10]
        return packet


def encode_request(version, tx_timestamp):
    """Return the wire bytes of a client request carrying tx_timestamp (T1)."""
    return NTPPacket(version=Version(version), mode=Mode.CLIENT, tx_timestamp=tx_timestamp).to_data()


def leap_to_text(leap):
    try:
        return NTP.LEAP_TABLE[Leap(leap)]
    except ValueError:
        raise NTPException(f"Invalid leap indicator: {leap}")


def mode_to_text(mode):
    try:
        return NTP.MODE_TABLE[Mode(mode)]
    except ValueError:
        raise NTPException(f"Invalid mode: {mode}")


def stratum_to_text(stratum):
    if stratum in NTP.STRATUM_TABLE:
        return NTP.STRATUM_TABLE[stratum]
    elif 1 < stratum < 16:
        return "secondary reference (NTP)"
    elif 16 < stratum < 256:
        return "reserved"
    raise NTPException(f"Invalid stratum: {stratum}")


def ref_id_to_text(ref_id, stratum=2):
    """Render a reference identifier according to the stratum it came with.

    Strata 0 and 1 carry a four character ASCII code (a kiss code for 0),
    higher strata the IPv4 address of the upstream server.
    """
    fields = (ref_id >> 24 & 0xFF, ref_id >> 16 & 0xFF, ref_id >> 8 & 0xFF, ref_id & 0xFF)
    if stratum <= 1:
        text = bytes(fields).rstrip(b'\x00').decode('ascii', errors='replace')
        return NTP.REF_ID_TABLE.get(text, text)
    return '%d.%d.%d.%d' % fields

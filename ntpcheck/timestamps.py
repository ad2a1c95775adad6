"""Conversions between NTP fixed-point timestamps and nanosecond integers.

Instants are nanoseconds since the Unix epoch, the unit of time.time_ns().
Durations are plain nanosecond counts.
"""
import datetime
import time

NANOSECONDS = 10 ** 9

_SYSTEM_EPOCH = datetime.date(*time.gmtime(0)[:3])  # 1970-01-01
_NTP_EPOCH = datetime.date(1900, 1, 1)
NTP_DELTA = (_SYSTEM_EPOCH - _NTP_EPOCH).days * 24 * 3600

_MASK64 = (1 << 64) - 1


def ntp_short_to_duration(value):
    """Return the duration in nanoseconds of a 16.16 short timestamp."""
    seconds = (value >> 16) & 0xFFFF
    fraction = value & 0xFFFF
    return seconds * NANOSECONDS + ((fraction * NANOSECONDS) >> 16)


def ntp_to_system_time(value):
    """Convert a 32.32 NTP timestamp to nanoseconds since the Unix epoch.

    Sub-nanosecond fractions are truncated, so only fractions that fall on
    a whole nanosecond (every multiple of 1/512 s among them) convert back
    to the same value with system_to_ntp_time().
    """
    seconds = (value >> 32) & 0xFFFFFFFF
    fraction = value & 0xFFFFFFFF
    return (seconds - NTP_DELTA) * NANOSECONDS + ((fraction * NANOSECONDS) >> 32)


def system_to_ntp_time(timestamp):
    """Convert nanoseconds since the Unix epoch to a 32.32 NTP timestamp.

    The fraction is the first tick at or after the instant, so converting
    back with ntp_to_system_time() yields the same nanosecond.
    """
    seconds, nanos = divmod(timestamp, NANOSECONDS)
    fraction = -((-nanos << 32) // NANOSECONDS)
    return (((seconds + NTP_DELTA) << 32) + fraction) & _MASK64


def ntp_interval_to_duration(exponent):
    """Return 2**exponent seconds in nanoseconds (poll and precision fields)."""
    if exponent >= 0:
        return NANOSECONDS << exponent
    return NANOSECONDS >> -exponent

"""Clock drift between the local host, a monitoring server and a reference.

Both remote clocks are read over NTP in parallel. Their offsets are then
applied to a single local instant so that every row compares the same moment.
"""
import logging
import threading
import time
from typing import NamedTuple, Optional

from .client import QueryOptions, query
from .config import DEFAULT_DRIFT_TOLERANCE, DEFAULT_REFERENCE
from .exceptions import NTPException, Timeout
from .timestamps import NANOSECONDS

logger = logging.getLogger(__name__)


class TimeSample(NamedTuple):
    name: str
    host: Optional[str]
    time: Optional[int]
    error: Optional[NTPException] = None

    @property
    def inconclusive(self):
        return isinstance(self.error, Timeout)


class Drift(NamedTuple):
    name: str
    drift: Optional[int]
    status: str
    inconclusive: bool = False

    @property
    def ok(self):
        return self.status == "OK"


class DriftReport(NamedTuple):
    reference: TimeSample
    server: TimeSample
    client: TimeSample
    drifts: tuple

    @property
    def ok(self):
        return all(d.ok for d in self.drifts)


class QueryThread(threading.Thread):
    """Reads one remote clock; the outcome is kept on the thread."""

    def __init__(self, label, host, options):
        super().__init__(name=f"ntpcheck-{host}", daemon=True)
        self.label = label
        self.host = host
        self.options = options
        self.response = None
        self.error = None

    def run(self):
        try:
            self.response = query(self.host, self.options)
        except NTPException as e:
            logger.debug("%s (%s): %s", self.label, self.host, e)
            self.error = e

    def sample(self, now):
        if self.response is None:
            return TimeSample(self.label, self.host, None, self.error)
        return TimeSample(self.label, self.host, now + self.response.clock_offset)


def compare(name, a, b, tolerance):
    """Drift row between two samples; tolerance is in seconds."""
    if a.time is None or b.time is None:
        return Drift(name, None, "unknown", a.inconclusive or b.inconclusive)

    drift = abs(a.time - b.time)
    if drift > tolerance * NANOSECONDS:
        return Drift(name, drift, f"{drift // NANOSECONDS}s")
    return Drift(name, drift, "OK")


def check_drift(server_host, reference_host=DEFAULT_REFERENCE, options=None, tolerance=DEFAULT_DRIFT_TOLERANCE):
    """Compare the clocks of the monitoring server, the reference and this host."""
    options = (options or QueryOptions()).validate()
    threads = [
        QueryThread("NTP Server", reference_host, options),
        QueryThread("Server", server_host, options),
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    now = time.time_ns()
    reference, server = (thread.sample(now) for thread in threads)
    client = TimeSample("Client", None, now)

    return DriftReport(
        reference=reference,
        server=server,
        client=client,
        drifts=(
            compare("Server Time Drift", server, reference, tolerance),
            compare("Client Time Drift", client, reference, tolerance),
            compare("Client to Server Time Drift", client, server, tolerance),
        ),
    )

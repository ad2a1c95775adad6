import argparse
import datetime
import logging
import sys

from . import config
from .client import QueryOptions, query
from .drift import check_drift
from .exceptions import NTPException, Timeout
from .packet import leap_to_text
from .timestamps import NANOSECONDS


def format_time(timestamp):
    if timestamp is None:
        return "unable to get"
    seconds, nanos = divmod(timestamp, NANOSECONDS)
    dt = datetime.datetime.fromtimestamp(seconds, tz=datetime.timezone.utc)
    return f"{dt:%Y-%m-%d %H:%M:%S}.{nanos:09d} UTC"


def format_duration(nanos):
    return f"{nanos / NANOSECONDS:.9f}s"


def setup_logging(debug=False):
    logging.basicConfig(
        level=logging.DEBUG if debug else config.log_level(),
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )


def options_from_args(args):
    return QueryOptions(
        version=args.version,
        port=args.port,
        timeout=args.timeout,
        ttl=args.ttl,
        local_port=args.local_port,
    ).validate()


def run_query(args):
    host = args.host or config.reference_server()
    try:
        r = query(host, options_from_args(args))
    except Timeout as e:
        print(f"Query timeout: {e}")
        return 1
    except NTPException as e:
        print(f"Query failed: {e}")
        return 1

    print(f"[{host}]       Time: {format_time(r.time)}")
    print(f"[{host}]    RefTime: {format_time(r.reference_time)}")
    print(f"[{host}]        RTT: {format_duration(r.rtt)}")
    print(f"[{host}]     Offset: {format_duration(r.clock_offset)}")
    print(f"[{host}]       Poll: {format_duration(r.poll)}")
    print(f"[{host}]  Precision: {format_duration(r.precision)}")
    print(f"[{host}]    Stratum: {r.stratum}")
    print(f"[{host}]      RefID: 0x{r.ref_id:08x} ({r.ref_id_text()})")
    print(f"[{host}]  RootDelay: {format_duration(r.root_delay)}")
    print(f"[{host}]   RootDisp: {format_duration(r.root_dispersion)}")
    print(f"[{host}]       Leap: {r.leap} ({leap_to_text(r.leap)})")
    return 0


def run_drift(args):
    reference = args.reference or config.reference_server()
    tolerance = args.tolerance if args.tolerance is not None else config.drift_tolerance()
    report = check_drift(args.server, reference, options_from_args(args), tolerance)

    print("* System Time")
    for sample in (report.reference, report.server, report.client):
        label = f"{sample.name} ({sample.host})" if sample.host else sample.name
        print(f"{label:<35} | {format_time(sample.time)}")
    for drift in report.drifts:
        status = drift.status
        if drift.inconclusive:
            status += " (timeout)"
        print(f"{drift.name:<35} | {status}")

    if not report.ok:
        print("\nTime is out of sync. Please make sure the server time is correct.")
        return 1
    return 0


def add_query_arguments(parser):
    parser.add_argument("--version", type=int, default=4, choices=(2, 3, 4), help="NTP protocol version")
    parser.add_argument("--port", type=int, default=123, help="server UDP port")
    parser.add_argument("--timeout", type=float, default=None, help="round trip timeout in seconds")
    parser.add_argument("--ttl", type=int, default=None, help="TTL of the outgoing packet")
    parser.add_argument("--local-port", type=int, default=None, help="pin the local UDP port")


def main(argv=None):
    parser = argparse.ArgumentParser(prog="ntpcheck", description="Query NTP servers and check clock drift")
    parser.add_argument("-d", "--debug", action="store_true", help="enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    query_parser = subparsers.add_parser("query", help="query a single NTP server")
    query_parser.add_argument("host", nargs="?", help="server to query (default $NTPCHECK_SERVER or pool.ntp.org)")
    add_query_arguments(query_parser)
    query_parser.set_defaults(func=run_query)

    drift_parser = subparsers.add_parser("drift", help="compare server, reference and local clocks")
    drift_parser.add_argument("server", help="monitoring server address")
    drift_parser.add_argument("--reference", help="public NTP reference")
    drift_parser.add_argument("--tolerance", type=float, default=None, help="allowed drift in seconds")
    add_query_arguments(drift_parser)
    drift_parser.set_defaults(func=run_drift)

    args = parser.parse_args(argv)
    try:
        setup_logging(args.debug)
        if args.timeout is None:
            args.timeout = config.query_timeout()
        return args.func(args)
    except ValueError as e:
        parser.error(str(e))


if __name__ == "__main__":
    sys.exit(main())

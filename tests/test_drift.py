import pytest

import ntpcheck.drift as drift_module
from ntpcheck.drift import TimeSample, check_drift, compare
from ntpcheck.exceptions import HostUnresolvable, SocketError, Timeout
from ntpcheck.client import QueryOptions
from ntpcheck.timestamps import NANOSECONDS

SECOND = NANOSECONDS


@pytest.fixture
def check_drift_on(monkeypatch):
    """check_drift() with each host name routed to a loopback fake server."""
    real_query = drift_module.query

    def run(server, reference, tolerance, timeout=2):
        ports = {'server': server.port, 'reference': reference.port}

        def routed_query(host, options):
            return real_query('127.0.0.1', options._replace(port=ports[host]))

        monkeypatch.setattr(drift_module, 'query', routed_query)
        return check_drift('server', 'reference', QueryOptions(timeout=timeout), tolerance)

    return run


def test_compare():
    a = TimeSample('a', 'a', 1000 * SECOND)
    assert compare('x', a, TimeSample('b', 'b', 1030 * SECOND), 120).status == 'OK'
    drift = compare('x', a, TimeSample('b', 'b', 1153 * SECOND + 1), 120)
    assert drift.status == '153s'
    assert drift.drift == 153 * SECOND + 1
    assert not drift.ok


def test_compare_missing_sample():
    a = TimeSample('a', 'a', SECOND)
    timed_out = TimeSample('b', 'b', None, Timeout('no reply'))
    broken = TimeSample('b', 'b', None, SocketError('refused'))

    drift = compare('x', a, timed_out, 120)
    assert drift.status == 'unknown'
    assert drift.drift is None
    assert drift.inconclusive
    assert not compare('x', a, broken, 120).inconclusive


def test_check_drift_in_sync(ntp_server, check_drift_on):
    reference = ntp_server(skew=0.5)
    server = ntp_server(skew=-0.5)
    assert reference.port != server.port

    report = check_drift_on(server, reference, tolerance=120)
    assert report.ok
    assert [d.status for d in report.drifts] == ['OK', 'OK', 'OK']
    assert abs(report.drifts[0].drift - SECOND) < SECOND // 10


def test_check_drift_server_out_of_sync(ntp_server, check_drift_on):
    reference = ntp_server()
    server = ntp_server(skew=300)
    report = check_drift_on(server, reference, tolerance=120)

    assert not report.ok
    server_drift, client_drift, client_server_drift = report.drifts
    assert server_drift.status in ('299s', '300s')
    assert client_drift.ok
    assert not client_server_drift.ok


def test_check_drift_reference_timeout(ntp_server, check_drift_on):
    reference = ntp_server(silent=True)
    server = ntp_server()
    report = check_drift_on(server, reference, tolerance=120, timeout=0.3)

    assert isinstance(report.reference.error, Timeout)
    assert report.reference.time is None
    server_drift, client_drift, client_server_drift = report.drifts
    assert server_drift.status == 'unknown' and server_drift.inconclusive
    assert client_drift.status == 'unknown'
    assert client_server_drift.ok
    assert not report.ok


def test_check_drift_rejects_bad_options():
    with pytest.raises(ValueError):
        check_drift('127.0.0.1', '127.0.0.1', QueryOptions(version=7))



def test_check_drift_unresolvable_hosts():
    report = check_drift('a' * 64 + '.example.com', 'b' * 64 + '.example.com', QueryOptions(timeout=1))
    assert isinstance(report.reference.error, HostUnresolvable)
    assert isinstance(report.server.error, HostUnresolvable)
    assert [d.status for d in report.drifts] == ['unknown', 'unknown', 'unknown']
    assert not report.ok

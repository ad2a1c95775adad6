import pytest

from ntpcheck import config
from ntpcheck.cli import format_duration, format_time, main


def test_format_time():
    assert format_time(0) == '1970-01-01 00:00:00.000000000 UTC'
    assert format_time(1_500_000_000_000_000_123) == '2017-07-14 02:40:00.000000123 UTC'
    assert format_time(None) == 'unable to get'


def test_format_duration():
    assert format_duration(-500_000_000) == '-0.500000000s'


def test_query_command(ntp_server, capsys):
    server = ntp_server(stratum=1)
    assert main(['query', server.host, '--port', str(server.port), '--timeout', '2']) == 0
    out = capsys.readouterr().out
    assert f'[{server.host}]    Stratum: 1' in out
    assert 'GPS UHF satellite positioning' in out
    assert '(no warning)' in out


def test_query_command_timeout(ntp_server, capsys):
    server = ntp_server(silent=True)
    assert main(['query', server.host, '--port', str(server.port), '--timeout', '0.2']) == 1
    assert capsys.readouterr().out.startswith('Query timeout:')


def test_query_command_unresolvable(capsys):
    assert main(['query', 'ntp.example.invalid', '--timeout', '1']) == 1
    assert capsys.readouterr().out.startswith('Query failed:')


def test_query_command_bad_ttl():
    with pytest.raises(SystemExit) as e:
        main(['query', '127.0.0.1', '--ttl', '300'])
    assert e.value.code == 2


def test_drift_command(ntp_server, capsys):
    server = ntp_server()
    assert main(['drift', server.host, '--reference', server.host, '--port', str(server.port), '--timeout', '2']) == 0
    out = capsys.readouterr().out
    assert out.startswith('* System Time\n')
    assert f'NTP Server ({server.host})' in out
    assert f"{'Client to Server Time Drift':<35} | OK" in out


def test_drift_command_out_of_sync(ntp_server, capsys):
    server = ntp_server(skew=-600)
    args = ['drift', server.host, '--reference', server.host, '--port', str(server.port), '--tolerance', '60']
    assert main(args) == 1
    out = capsys.readouterr().out
    label = f"{'Client Time Drift':<35} | "
    assert label + '599s' in out or label + '600s' in out
    assert 'Time is out of sync' in out


def test_env_config(monkeypatch):
    monkeypatch.setenv('NTPCHECK_SERVER', 'time.example.com')
    monkeypatch.setenv('NTPCHECK_TIMEOUT', '2.5')
    monkeypatch.delenv('NTPCHECK_DRIFT_TOLERANCE', raising=False)
    assert config.reference_server() == 'time.example.com'
    assert config.query_timeout() == 2.5
    assert config.drift_tolerance() == 120.0


def test_env_config_invalid(monkeypatch):
    monkeypatch.setenv('NTPCHECK_TIMEOUT', 'soon')
    with pytest.raises(ValueError, match='NTPCHECK_TIMEOUT'):
        config.query_timeout()


def test_invalid_env_timeout_is_a_usage_error(monkeypatch, capsys):
    monkeypatch.setenv('NTPCHECK_TIMEOUT', 'soon')
    with pytest.raises(SystemExit) as e:
        main(['query', '127.0.0.1'])
    assert e.value.code == 2
    assert 'NTPCHECK_TIMEOUT' in capsys.readouterr().err

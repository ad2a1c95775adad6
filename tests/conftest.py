import os

import pytest

from fake_server import FakeNTPServer


def pytest_collection_modifyitems(config, items):
    if os.getenv("NTPCHECK_NETWORK_TESTS") == "1":
        return
    skip = pytest.mark.skip(reason="set NTPCHECK_NETWORK_TESTS=1 to query the public NTP pool")
    for item in items:
        if "network" in item.keywords:
            item.add_marker(skip)


@pytest.fixture
def ntp_server():
    servers = []

    def start(**kwargs):
        server = FakeNTPServer(**kwargs).start()
        servers.append(server)
        return server

    yield start
    for server in servers:
        server.stop()

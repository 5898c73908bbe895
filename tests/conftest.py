import pytest

import oscstate
import unitstate


@pytest.fixture
def transport():
    return unitstate.RecordingTransport()


@pytest.fixture
def store():

    store = oscstate.Store()
    store.register_schema('globals', unitstate.generate_schema())
    store.owner = store.create('globals')

    return store


@pytest.fixture
def bridge(store, transport):

    bridge = oscstate.Bridge(store, transport)
    bridge.start()

    yield bridge

    bridge.stop()


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:

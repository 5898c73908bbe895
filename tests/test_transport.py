import oscstate
import pytest
import socket
import struct
import threading
import time

from oscstate import address
from oscstate import osc


class Collector:

    def __init__(self):
        self.calls = list()
        self.arrived = threading.Event()

    def callback(self, *args):
        self.calls.append((args, threading.current_thread().name))
        self.arrived.set()


@pytest.fixture
def remote():
    """ A plain UDP socket standing in for the remote end.
    """

    remote = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    remote.bind(('127.0.0.1', 0))
    remote.settimeout(2)

    yield remote

    remote.close()


@pytest.fixture
def transport(remote):

    registry = oscstate.Registry()
    port = remote.getsockname()[1]
    transport = oscstate.Transport(registry, '127.0.0.1', 0, '127.0.0.1', port)

    yield transport

    transport.close()


def test_port_in_use(transport):

    registry = oscstate.Registry()

    with pytest.raises(oscstate.TransportPortError):
        oscstate.Transport(registry, '127.0.0.1', transport.port, '127.0.0.1', 9)

    assert issubclass(oscstate.TransportPortError, oscstate.TransportError)


def test_receive(transport, remote):

    collector = Collector()
    channel = address.channel(address.ATTACH_REQUEST)
    transport.registry.subscribe(channel, collector.callback)

    datagram = osc.encode('/sw/state-manager/attach-request', 'globals', 1)
    remote.sendto(datagram, ('127.0.0.1', transport.port))

    assert collector.arrived.wait(2) == True

    args, thread = collector.calls[0]
    assert args == ('globals', 1)
    assert thread == 'oscstate-dispatch'


def test_receive_session(transport, remote):

    collector = Collector()
    channel = address.channel(address.UPDATE_REQUEST, (4, 9))
    transport.registry.subscribe(channel, collector.callback)

    datagram = osc.encode('/sw/state-manager/update-request/4/9', '{"gain": 1}')
    remote.sendto(datagram, ('127.0.0.1', transport.port))

    assert collector.arrived.wait(2) == True
    assert collector.calls[0][0] == ('{"gain": 1}',)


def test_malformed(transport, remote):

    collector = Collector()
    channel = address.channel(address.ATTACH_REQUEST)
    transport.registry.subscribe(channel, collector.callback)

    remote.sendto(b'this is not OSC', ('127.0.0.1', transport.port))
    remote.sendto(b'/a\x00\x00,i\x00\x00', ('127.0.0.1', transport.port))

    # Datagrams are processed in order; the valid one arriving proves the
    # malformed ones were dropped without harm.

    datagram = osc.encode('/sw/state-manager/attach-request', 'after')
    remote.sendto(datagram, ('127.0.0.1', transport.port))

    assert collector.arrived.wait(2) == True
    assert [args for args, thread in collector.calls] == [('after',)]


def test_hostile(transport, remote):
    """ Deeply nested bundles, and decoding failures of any kind, are dropped
        and the receive loop carries on.
    """

    collector = Collector()
    channel = address.channel(address.ATTACH_REQUEST)
    transport.registry.subscribe(channel, collector.callback)

    packet = osc.encode('/sw/state-manager/attach-request', 'deep')

    for layer in range(2000):
        packet = osc.bundle_tag + b'\x00' * 7 + b'\x01' + struct.pack('>i', len(packet)) + packet

    remote.sendto(packet, ('127.0.0.1', transport.port))

    datagram = osc.encode('/sw/state-manager/attach-request', 'after')
    remote.sendto(datagram, ('127.0.0.1', transport.port))

    assert collector.arrived.wait(2) == True
    assert [args for args, thread in collector.calls] == [('after',)]
    assert transport.thread.is_alive() == True


def test_unexpected_error(transport, remote, monkeypatch):

    collector = Collector()
    channel = address.channel(address.ATTACH_REQUEST)
    transport.registry.subscribe(channel, collector.callback)

    failures = list()

    def decode(packet):
        if not failures:
            failures.append(packet)
            raise MemoryError('decoding failed badly')
        return original(packet)

    original = osc.decode
    monkeypatch.setattr(osc, 'decode', decode)

    datagram = osc.encode('/sw/state-manager/attach-request', 'first')
    remote.sendto(datagram, ('127.0.0.1', transport.port))

    datagram = osc.encode('/sw/state-manager/attach-request', 'second')
    remote.sendto(datagram, ('127.0.0.1', transport.port))

    assert collector.arrived.wait(2) == True
    assert len(failures) == 1
    assert [args for args, thread in collector.calls] == [('second',)]
    assert transport.thread.is_alive() == True


def test_send(transport, remote):

    channel = address.channel(address.UPDATE_NOTIFICATION, (3, 12))
    transport.send(channel, '{"volume": 12.5}')

    datagram, origin = remote.recvfrom(65535)
    target, args = osc.decode_message(datagram)

    assert target == '/sw/state-manager/update-notification/3/12'
    assert args == ['{"volume": 12.5}']

    transport.send(address.channel(address.ATTACH_RESPONSE), 3, 12, 'globals', '{}', '{}')

    datagram, origin = remote.recvfrom(65535)
    target, args = osc.decode_message(datagram)

    assert target == '/sw/state-manager/attach-response'
    assert args == [3, 12, 'globals', '{}', '{}']


def test_inject(transport):

    collector = Collector()
    transport.registry.subscribe('local', collector.callback)

    transport.inject('local', 1, 2)

    assert collector.arrived.wait(2) == True
    assert collector.calls[0] == ((1, 2), 'oscstate-dispatch')


def test_close(remote):

    registry = oscstate.Registry()
    transport = oscstate.Transport(registry, '127.0.0.1', 0, '127.0.0.1', remote.getsockname()[1])

    transport.close()
    transport.close()

    assert transport.thread.is_alive() == False
    assert transport.dispatcher.thread.is_alive() == False

    # The port is free again.

    second = oscstate.Transport(registry, '127.0.0.1', transport.port, '127.0.0.1', remote.getsockname()[1])
    second.close()


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:

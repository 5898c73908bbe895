""" The datagram transport: one UDP socket bound locally to receive OSC
    messages, one UDP socket to send OSC messages to the remote endpoint.
    Inbound messages are decoded on a background receive thread and queued;
    a single dispatch thread drains the queue in arrival order and hands each
    message to a :class:`oscstate.registry.Registry`.
"""

import logging
import queue
import socket
import threading
import zmq

from . import address
from . import osc

logger = logging.getLogger('oscstate.transport')

maximum_datagram = 65535


class TransportError(Exception):
    """ Base class for all transport-layer errors.
    """


class TransportPortError(TransportError):
    """ The local port could not be bound.
    """



class Transport:
    """ Receive OSC datagrams on *local_address*:*local_port* and send
        them to *remote_address*:*remote_port*. Messages received are
        dispatched to the provided *registry*, keyed by the channel parsed
        from the OSC address; see :func:`oscstate.address.parse`.

        A :class:`TransportPortError` is raised if the local port cannot be
        bound. A *local_port* of zero binds an ephemeral port; the port
        actually in use is available as the :attr:`port` attribute.

        :ivar port: The local port receiving inbound datagrams.
    """

    def __init__(self, registry, local_address, local_port, remote_address, remote_port):

        self.registry = registry
        self.remote = (str(remote_address), int(remote_port))
        self.shutdown = False

        self.inbound = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)

        try:
            self.inbound.bind((str(local_address), int(local_port)))
        except OSError as e:
            self.inbound.close()
            error = "cannot bind %s:%s: %s" % (local_address, local_port, e.strerror)
            raise TransportPortError(error) from e

        self.port = self.inbound.getsockname()[1]

        self.outbound = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        self.outbound_lock = threading.Lock()

        self.queue = queue.SimpleQueue()
        self.dispatcher = _Dispatcher(registry, self.queue)

        self.thread = threading.Thread(target=self.run, name='oscstate-receive')
        self.thread.daemon = True
        self.thread.start()

        logger.info("listening on %s:%d, sending to %s:%d", local_address, self.port, self.remote[0], self.remote[1])


    def close(self):
        """ Stop the receive and dispatch threads and close both sockets.
            Calling :func:`close` more than once is harmless.
        """

        if self.shutdown == True:
            return

        self.shutdown = True
        self.dispatcher.stop()

        if self.thread is not threading.current_thread():
            self.thread.join(1)

        if self.dispatcher.thread is not threading.current_thread():
            self.dispatcher.thread.join(1)

        self.inbound.close()

        self.outbound_lock.acquire()
        self.outbound.close()
        self.outbound_lock.release()


    def inject(self, channel, *args):
        """ Queue a locally generated message for dispatch, exactly as if it
            had arrived from the network on *channel*.
        """

        self.queue.put((channel, args))


    def run(self):

        poller = zmq.Poller()
        poller.register(self.inbound, zmq.POLLIN)

        while self.shutdown == False:
            try:
                sockets = poller.poll(100)
            except zmq.ZMQError:
                if self.shutdown == True:
                    break
                raise

            for active, flag in sockets:
                if self.inbound != active:
                    continue

                # No single datagram may take down the receive thread.

                try:
                    self._receive()
                except Exception:
                    logger.exception('unexpected error handling an inbound datagram')
                    continue


    def _receive(self):

        try:
            datagram, origin = self.inbound.recvfrom(maximum_datagram)
        except OSError:
            # The socket closes out from underneath us on shutdown.
            return

        self._datagram_incoming(datagram, origin)


    def _datagram_incoming(self, datagram, origin=None):
        """ Decode a single inbound datagram and queue the resulting
            message(s). Anything that is not valid OSC is dropped.
        """

        try:
            messages = osc.decode(datagram)
        except osc.OSCError as e:
            logger.debug("dropping malformed datagram from %s: %s", origin, e)
            return

        for target, args in messages:
            channel = address.parse(target)
            self.queue.put((channel, tuple(args)))


    def send(self, channel, *args):
        """ Encode and send a single OSC message to the remote endpoint. The
            *channel* is either a :class:`oscstate.address.Channel` or a raw
            OSC address. Delivery is not acknowledged and failures are not
            retried; a failure to send is logged and otherwise ignored.
        """

        target = address.format(channel)
        datagram = osc.encode(target, *args)

        self.outbound_lock.acquire()

        try:
            self.outbound.sendto(datagram, self.remote)
        except OSError as e:
            logger.warning("unable to send %s to %s:%d: %s", target, self.remote[0], self.remote[1], e)
        finally:
            self.outbound_lock.release()


# end of class Transport



class _DispatcherWake(RuntimeError):
    pass


class _Dispatcher:
    """ Background thread to hand queued messages to the registry, one at a
        time. All protocol handling happens on this one thread, which keeps
        each handler atomic with respect to every other handler.
    """

    def __init__(self, registry, queue):

        self.registry = registry
        self.queue = queue
        self.shutdown = False

        self.thread = threading.Thread(target=self.run, name='oscstate-dispatch')
        self.thread.daemon = True
        self.thread.start()


    def run(self):

        while True:
            if self.shutdown == True:
                break

            try:
                dequeued = self.queue.get(timeout=300)
            except queue.Empty:
                continue

            if isinstance(dequeued, _DispatcherWake):
                continue

            channel, args = dequeued
            self.registry.dispatch(channel, args)


    def stop(self):
        self.shutdown = True
        self.wake()


    def wake(self):
        self.queue.put(_DispatcherWake())


# end of class _Dispatcher


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:

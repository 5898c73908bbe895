""" The :class:`Registry` is the in-process publish/subscribe table that
    routes inbound messages to whoever is listening on a given channel.
"""

import logging
import threading

logger = logging.getLogger('oscstate.registry')


class Registry:
    """ Map a channel to the set of callbacks registered for it. A channel
        can be any hashable value; the bridge uses
        :class:`oscstate.address.Channel` tuples, raw address strings are
        used for anything outside the state-manager protocol.

        Registrations are held by strong reference: a subscribed callback
        stays active until it is explicitly unsubscribed.
    """

    def __init__(self):

        self._listeners = dict()
        self._lock = threading.Lock()


    def __contains__(self, channel):
        return channel in self._listeners


    def __len__(self):
        return len(self._listeners)


    def channels(self):
        """ Return a tuple of every channel with at least one listener.
        """

        self._lock.acquire()
        channels = tuple(self._listeners.keys())
        self._lock.release()

        return channels


    def dispatch(self, channel, args=()):
        """ Invoke every callback registered for *channel* with the contents
            of *args* as positional arguments. Callbacks are invoked in no
            particular order; a callback that raises an exception is logged
            and does not prevent the remaining callbacks from running. Nothing
            happens if there are no listeners.

            The set of callbacks is captured when the dispatch begins. A
            callback unsubscribed by an earlier callback in the same dispatch
            is still invoked this one time.
        """

        self._lock.acquire()

        try:
            registrations = self._listeners[channel]
        except KeyError:
            registrations = ()
        else:
            registrations = tuple(registrations)
        finally:
            self._lock.release()

        for registration in registrations:
            try:
                registration.callback(*args)
            except Exception:
                logger.exception('callback failed for channel %s', channel)
                continue


    def subscribe(self, channel, callback):
        """ Register *callback* for *channel*. The returned
            :class:`Subscription` can be called, or passed to
            :func:`unsubscribe`, to remove exactly this registration.
        """

        if callable(callback):
            pass
        else:
            raise TypeError('callback must be callable')

        registration = Subscription(self, channel, callback)

        self._lock.acquire()

        try:
            registrations = self._listeners[channel]
        except KeyError:
            registrations = set()
            self._listeners[channel] = registrations

        registrations.add(registration)
        self._lock.release()

        return registration


    def unsubscribe(self, registration):
        """ Remove a registration returned by :func:`subscribe`. Removing a
            registration that is already gone is a no-op. A channel left with
            no listeners is dropped from the table.
        """

        channel = registration.channel

        self._lock.acquire()

        try:
            registrations = self._listeners[channel]
        except KeyError:
            pass
        else:
            registrations.discard(registration)
            if len(registrations) == 0:
                del self._listeners[channel]
        finally:
            self._lock.release()


    def clear(self):
        """ Remove every registration.
        """

        self._lock.acquire()
        self._listeners.clear()
        self._lock.release()


# end of class Registry



class Subscription:
    """ Handle for a single callback registration. Instances hash by
        identity, so registering the same callback twice yields two distinct
        registrations.
    """

    def __init__(self, registry, channel, callback):

        self.registry = registry
        self.channel = channel
        self.callback = callback


    def __call__(self):
        self.registry.unsubscribe(self)


    @property
    def active(self):

        try:
            registrations = self.registry._listeners[self.channel]
        except KeyError:
            return False

        return self in registrations


    def __repr__(self):
        return "registry.Subscription(%s)" % (repr(self.channel))


# end of class Subscription


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:

""" The :class:`Bridge` exposes shared state held in a local store to OSC
    remotes. A remote attaches to a state instance, receives the schema and
    current values, and from then on can request updates and will receive a
    notification for every change, whatever its origin, until it detaches.

    The exchange for a single session, as seen from the bridge::

        in   attach-request                     schema name, state id
        out  attach-response                    id, remote id, schema name,
                                                schema JSON, values JSON
        in   update-request/{id}/{remoteId}     JSON of field -> raw value
        out  update-notification/{id}/{remoteId}  JSON of field -> new value
        in   detach-request/{id}/{remoteId}
        out  detach-notification/{id}/{remoteId}  (shutdown, idle timeout)

    All protocol handlers run on the transport's dispatch thread, one
    message at a time.
"""

import functools
import logging
import threading
import time

from . import address
from . import coerce
from . import json
from .poll import Poller

logger = logging.getLogger('oscstate.bridge')

ATTACHING = 'attaching'
ATTACHED = 'attached'
DETACHING = 'detaching'
DETACHED = 'detached'

sweep_channel = 'idle-sweep'


class Session:
    """ One remote's attachment to one state instance. The *handle* is the
        store's handle for this attachment; its id and remote id together
        form the :attr:`key` that identifies this session on the wire.

        :ivar status: One of ATTACHING, ATTACHED, DETACHING, DETACHED.
    """

    def __init__(self, transport, handle, schema_name):

        self.transport = transport
        self.handle = handle
        self.schema_name = schema_name
        self.schema = None
        self.key = address.session_key(handle.id, handle.remote_id)
        self.status = ATTACHING
        self.last_activity = time.time()

        self.update_subscription = None
        self.detach_subscription = None
        self.state_subscription = None


    def __repr__(self):
        return "bridge.Session(%s, id=%s, remote_id=%s, %s)" % (repr(self.schema_name), self.key.id, self.key.remote_id, self.status)


    def notify(self, updates):
        """ Callback for changes to the state instance; relay the changed
            values to the remote.
        """

        if self.status != ATTACHED:
            return

        channel = address.channel(address.UPDATE_NOTIFICATION, self.key)
        self.transport.send(channel, json.dumps_text(updates))


    def notify_detach(self):
        """ Tell the remote this session is gone.
        """

        channel = address.channel(address.DETACH_NOTIFICATION, self.key)
        self.transport.send(channel)


    def touch(self):
        self.last_activity = time.time()


# end of class Session



class Bridge:
    """ Handle the attach/update/detach protocol for remotes on the other
        end of *transport*, against state held in *store*. The store must
        provide ``attach(schema_name, state_id)``, returning a handle with
        ``id``, ``remote_id``, ``get_schema()``, ``get_values()``,
        ``set(updates)``, ``subscribe(callback)`` and ``detach()``;
        :class:`oscstate.store.Store` is one such store.

        If *idle_timeout* is set, sessions that have not sent a request in
        that many seconds are detached, and the remote is sent a
        detach-notification. By default sessions live until the remote
        detaches or the bridge stops.

        :ivar sessions: Active sessions, keyed by
            :class:`oscstate.address.SessionKey`.
    """

    def __init__(self, store, transport, idle_timeout=None):

        self.store = store
        self.transport = transport
        self.registry = transport.registry
        self.sessions = dict()
        self.idle_timeout = idle_timeout

        self._sessions_lock = threading.Lock()
        self._subscriptions = list()
        self._poller = None


    def active(self):
        """ Return a snapshot list of the active sessions.
        """

        self._sessions_lock.acquire()
        sessions = list(self.sessions.values())
        self._sessions_lock.release()

        return sessions


    def start(self):
        """ Begin accepting attach requests.
        """

        if self._subscriptions:
            return

        attach = address.channel(address.ATTACH_REQUEST)
        subscription = self.registry.subscribe(attach, self.req_attach)
        self._subscriptions.append(subscription)

        if self.idle_timeout:
            subscription = self.registry.subscribe(sweep_channel, self.sweep)
            self._subscriptions.append(subscription)

            period = max(float(self.idle_timeout) / 2, 0.01)
            self._poller = Poller(self._request_sweep, period)


    def stop(self):
        """ Stop accepting attach requests and detach every session. No
            notification is sent to the remotes; see
            :class:`oscstate.shutdown.ShutdownCoordinator` for that.
        """

        if self._poller is not None:
            self._poller.stop()
            self._poller = None

        for subscription in self._subscriptions:
            subscription()

        self._subscriptions = list()
        self.detach_all()


    def detach_all(self, notify=False):
        """ Detach every active session. Set *notify* to True to send each
            remote a detach-notification.
        """

        for session in self.active():
            if notify == True:
                session.notify_detach()

            self._detach(session)


    def req_attach(self, schema_name=None, state_id=None, *extra):
        """ Handle an attach-request. On success a new :class:`Session` is
            registered and the remote receives an attach-response; any
            failure is reported with an attach-error and leaves nothing
            behind.
        """

        if schema_name is None:
            self._attach_error('attach-request is missing the schema name')
            return

        schema_name = str(schema_name)

        try:
            handle = self.store.attach(schema_name, state_id)
        except Exception as e:
            error = "%s: %s" % (type(e).__name__, e)
            logger.warning("attach to %s %s failed: %s", schema_name, state_id, error)
            self._attach_error(error)
            return

        session = Session(self.transport, handle, schema_name)

        try:
            session.schema = handle.get_schema()
            schema_json = json.dumps_text(_definitions(session.schema))
            values_json = json.dumps_text(handle.get_values())
        except Exception as e:
            error = "%s: %s" % (type(e).__name__, e)
            logger.warning("attach to %s %s failed: %s", schema_name, state_id, error)
            session.status = DETACHED
            self._release(handle)
            self._attach_error(error)
            return

        key = session.key

        update = address.channel(address.UPDATE_REQUEST, key)
        update_callback = functools.partial(self.req_update, session)
        session.update_subscription = self.registry.subscribe(update, update_callback)

        detach = address.channel(address.DETACH_REQUEST, key)
        detach_callback = functools.partial(self.req_detach, session)
        session.detach_subscription = self.registry.subscribe(detach, detach_callback)

        session.state_subscription = handle.subscribe(session.notify)

        self._sessions_lock.acquire()
        self.sessions[key] = session
        self._sessions_lock.release()

        session.status = ATTACHED

        logger.info("[stateId: %s - remoteId: %s] sending attach response", key.id, key.remote_id)

        response = address.channel(address.ATTACH_RESPONSE)
        self.transport.send(response, handle.id, handle.remote_id, schema_name, schema_json, values_json)


    def req_update(self, session, payload=None, *extra):
        """ Handle an update-request for *session*. The *payload* is a JSON
            object of field name to raw value; every field is coerced to its
            declared type, fields that fail coercion are dropped, and the
            remainder is applied to the state.
        """

        if session.status != ATTACHED:
            return

        session.touch()

        if payload is None:
            logger.warning("%s: update-request without a payload", session)
            return

        try:
            updates = json.loads(payload)
        except (json.DecodeError, TypeError, ValueError) as e:
            logger.warning("%s: ignoring unparseable update-request: %s", session, e)
            return

        if isinstance(updates, dict):
            pass
        else:
            logger.warning("%s: ignoring update-request, expected a JSON object: %s", session, repr(payload))
            return

        updates = coerce.coerce_updates(updates, session.schema)
        session.handle.set(updates)


    def req_detach(self, session, *extra):
        """ Handle a detach-request for *session*.
        """

        if session.status != ATTACHED:
            return

        key = session.key
        logger.info("[stateId: %s - remoteId: %s] detach request", key.id, key.remote_id)

        self._detach(session)


    def sweep(self):
        """ Detach any session idle for longer than the idle timeout,
            notifying the remote.
        """

        if self.idle_timeout:
            pass
        else:
            return

        cutoff = time.time() - float(self.idle_timeout)

        for session in self.active():
            if session.last_activity >= cutoff:
                continue

            if session.status != ATTACHED:
                continue

            key = session.key
            logger.info("[stateId: %s - remoteId: %s] idle, detaching", key.id, key.remote_id)

            session.notify_detach()
            self._detach(session)


    def _attach_error(self, error):
        channel = address.channel(address.ATTACH_ERROR)
        self.transport.send(channel, str(error))


    def _detach(self, session):
        """ Tear down *session*: both request subscriptions, the state
            subscription, its place in :attr:`sessions`, and finally the
            store handle itself.
        """

        session.status = DETACHING

        session.update_subscription()
        session.detach_subscription()

        if callable(session.state_subscription):
            session.state_subscription()

        self._sessions_lock.acquire()
        self.sessions.pop(session.key, None)
        self._sessions_lock.release()

        try:
            self._release(session.handle)
        finally:
            session.status = DETACHED


    def _release(self, handle):

        try:
            handle.detach()
        except Exception:
            logger.exception("detach of %s failed", handle)


    def _request_sweep(self):
        self.transport.inject(sweep_channel)


# end of class Bridge



def _definitions(schema):
    """ Return the plain dictionary form of a schema, whether the store
        handed back a :class:`oscstate.schema.Schema` or a dictionary.
    """

    try:
        to_dict = schema.to_dict
    except AttributeError:
        return dict(schema)

    return to_dict()


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:

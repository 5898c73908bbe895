""" A small in-process state store. The bridge only needs the interface
    described by :class:`StateHandle`; this implementation exists so that a
    process can host shared state without bringing its own state manager,
    and so the bridge can be exercised in isolation.

    The :class:`Store` owns every state instance. Anyone else, the bridge
    included, only ever holds a :class:`StateHandle`, which refers to its
    instance weakly: deleting a state from the store releases it, no matter
    how many handles are still floating around.
"""

import itertools
import logging
import threading
import weakref

from . import schema
from .weakref import Callbacks

logger = logging.getLogger('oscstate.store')


class StoreError(Exception):
    """ Base class for errors raised by the :class:`Store`.
    """


class UnknownSchema(StoreError, KeyError):
    pass


class UnknownState(StoreError, KeyError):
    pass


class DetachedError(StoreError):
    """ The handle is detached, or its state instance no longer exists.
    """



class Store:
    """ The authoritative home for shared state. Schemas are registered by
        name with :func:`register_schema`; state instances of a registered
        schema are created with :func:`create`, and any number of handles
        can then be attached to an instance with :func:`attach`.
    """

    def __init__(self):

        self.schemas = dict()
        self._states = dict()
        self._lock = threading.RLock()
        self._state_ids = itertools.count(1)
        self._remote_ids = itertools.count(1)


    def register_schema(self, name, definitions):
        """ Register the field *definitions* for the schema *name*. See
            :mod:`oscstate.schema` for the definition format.
        """

        new_schema = schema.Schema(name, definitions)

        self._lock.acquire()

        try:
            if name in self.schemas:
                raise ValueError("schema %s is already registered" % (repr(name)))
            self.schemas[name] = new_schema
        finally:
            self._lock.release()

        return new_schema


    def create(self, schema_name, values=None):
        """ Create a new state instance of the schema *schema_name*, with
            every field set to its default, then overridden by the contents
            of *values*, if any. The returned handle belongs to the creator.
        """

        try:
            state_schema = self.schemas[schema_name]
        except KeyError:
            raise UnknownSchema("schema %s is not registered" % (repr(schema_name)))

        initial = state_schema.defaults()

        if values:
            for key, value in values.items():
                if key in state_schema:
                    pass
                else:
                    raise KeyError("schema %s has no field %s" % (repr(schema_name), repr(key)))
                initial[key] = value

        self._lock.acquire()

        try:
            state_id = next(self._state_ids)
            state = _State(state_id, state_schema, initial)
            self._states[state_id] = state
            handle = self._attach(state, owner=True)
        finally:
            self._lock.release()

        logger.info("created state %s (%s)", state_id, schema_name)
        return handle


    def attach(self, schema_name, state_id=None):
        """ Attach a new handle to the state instance *state_id*, which must
            be of the schema *schema_name*. If *state_id* is omitted the first
            instance created for that schema is used. Every handle receives
            its own remote id.
        """

        if schema_name in self.schemas:
            pass
        else:
            raise UnknownSchema("schema %s is not registered" % (repr(schema_name)))

        state_id = _normalize_id(state_id)

        self._lock.acquire()

        try:
            if state_id is None:
                state = self._first(schema_name)
            else:
                try:
                    state = self._states[state_id]
                except KeyError:
                    state = None

            if state is None or state.schema.name != schema_name:
                if state_id is None:
                    error = "no state of schema %s exists" % (repr(schema_name))
                else:
                    error = "no state %s of schema %s exists" % (repr(state_id), repr(schema_name))
                raise UnknownState(error)

            handle = self._attach(state)
        finally:
            self._lock.release()

        return handle


    def delete(self, state_id):
        """ Remove the state instance *state_id* from the store. Any handles
            still attached to it become unusable.
        """

        state_id = _normalize_id(state_id)

        self._lock.acquire()

        try:
            state = self._states.pop(state_id)
        except KeyError:
            raise UnknownState("no state %s exists" % (repr(state_id)))
        finally:
            self._lock.release()

        for handle in tuple(state.handles):
            handle._release()

        logger.info("deleted state %s (%s)", state_id, state.schema.name)


    def states(self, schema_name=None):
        """ Return the ids of every state instance, optionally restricted
            to those of *schema_name*.
        """

        self._lock.acquire()
        states = tuple(self._states.values())
        self._lock.release()

        ids = list()
        for state in states:
            if schema_name is None or state.schema.name == schema_name:
                ids.append(state.id)

        return ids


    def _attach(self, state, owner=False):

        remote_id = next(self._remote_ids)
        handle = StateHandle(state, remote_id, owner)
        state.handles.add(handle)
        return handle


    def _first(self, schema_name):

        for state_id in sorted(self._states.keys()):
            state = self._states[state_id]
            if state.schema.name == schema_name:
                return state

        return None


# end of class Store



class _State:
    """ A single state instance. Only the :class:`Store` holds a strong
        reference to one of these.
    """

    def __init__(self, id, state_schema, values):

        self.id = id
        self.schema = state_schema
        self.values = values
        self.handles = set()
        self.lock = threading.Lock()


    def set(self, updates):
        """ Apply *updates*, and notify every attached handle of the values
            that actually changed. Returns the changed values.
        """

        for key in updates.keys():
            if key in self.schema:
                pass
            else:
                raise KeyError("schema %s has no field %s" % (repr(self.schema.name), repr(key)))

        changed = dict()

        self.lock.acquire()

        try:
            for key, value in updates.items():
                current = self.values[key]
                if current == value and type(current) == type(value):
                    continue
                self.values[key] = value
                changed[key] = value
        finally:
            self.lock.release()

        if changed:
            for handle in tuple(self.handles):
                handle.callbacks(dict(changed))

        return changed


# end of class _State



class StateHandle:
    """ One binding to a state instance. The :attr:`id` identifies the
        instance; the :attr:`remote_id` identifies this particular handle,
        so that several parties attached to the same instance can be told
        apart.

        Subscribed callbacks are invoked with a dictionary of the changed
        values whenever the instance changes, regardless of which handle
        made the change. Callbacks are held by weak reference, see
        :class:`oscstate.weakref.Callbacks`.
    """

    def __init__(self, state, remote_id, owner=False):

        self.id = state.id
        self.remote_id = remote_id
        self.schema_name = state.schema.name
        self.owner = owner
        self.callbacks = Callbacks()
        self._state = weakref.ref(state)


    def __repr__(self):
        return "store.StateHandle(%s, id=%s, remote_id=%s)" % (repr(self.schema_name), self.id, self.remote_id)


    @property
    def attached(self):
        return self._state() is not None


    def detach(self):
        """ Release this handle. The state instance itself is unaffected.
        """

        state = self._state()

        if state is None:
            raise DetachedError("%s is not attached" % (repr(self)))

        state.handles.discard(self)
        self._release()


    def get(self, key):
        state = self._resolve()
        return state.values[key]


    def get_schema(self):
        """ Return the :class:`oscstate.schema.Schema` for this state.
        """

        state = self._resolve()
        return state.schema


    def get_values(self):
        """ Return a copy of every current value.
        """

        state = self._resolve()

        state.lock.acquire()
        values = dict(state.values)
        state.lock.release()

        return values


    def set(self, updates):
        """ Apply the *updates* dictionary to the state instance; every
            key must be a field in the schema. Returns the values that
            changed.
        """

        state = self._resolve()
        return state.set(updates)


    def subscribe(self, callback):
        """ Invoke *callback* with a dictionary of the changed values any
            time the state changes. Returns a function that removes the
            subscription.
        """

        self._resolve()
        reference = self.callbacks.add(callback)

        def unsubscribe():
            self.callbacks.remove(reference)

        return unsubscribe


    def _release(self):
        self._state = _dead
        self.callbacks.clear()


    def _resolve(self):

        state = self._state()

        if state is None:
            raise DetachedError("%s is not attached" % (repr(self)))

        return state


# end of class StateHandle



def _dead():
    return None



def _normalize_id(state_id):
    """ State ids are integers, but a remote may well send them as text.
        Empty values mean 'no id'.
    """

    if state_id is None or state_id == '':
        return None

    if isinstance(state_id, bool):
        raise UnknownState("invalid state id %s" % (repr(state_id)))

    if isinstance(state_id, int):
        return state_id

    if isinstance(state_id, float) and state_id.is_integer():
        return int(state_id)

    try:
        return int(str(state_id).strip())
    except ValueError:
        raise UnknownState("invalid state id %s" % (repr(state_id)))


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:

import logging

from . import config
from .bridge import Bridge
from .registry import Registry
from .shutdown import ShutdownCoordinator
from .store import Store
from .transport import Transport

logger = logging.getLogger('oscstate.daemon')


class Daemon:
    """ The :class:`Daemon` is a facilitator for the common sequence of
        actions taken to put shared state on the air: establishing a
        :class:`oscstate.store.Store`, registering schemas and creating state
        instances, opening the OSC transport, and starting the bridge.

        The developer is expected to subclass the :class:`Daemon` class and
        implement a :func:`setup` method, and/or a :func:`setup_final`
        method. The *configuration* is a :class:`oscstate.config.Configuration`
        instance; if it is not provided, :func:`oscstate.config.load` is
        used to locate one.

        A :class:`oscstate.transport.TransportPortError` raised while
        opening the transport is propagated; no remote can attach until the
        local port is bound.

        :ivar store: The :class:`oscstate.store.Store` holding all state.
        :ivar states: Handles for the state instances created with
            :func:`add_state`, keyed by schema name.
    """

    def __init__(self, configuration=None, store=None, install=True):

        if configuration is None:
            configuration = config.load()

        if store is None:
            store = Store()

        self.config = configuration
        self.store = store
        self.states = dict()
        self.transport = None
        self.bridge = None
        self.shutdown = None

        # The store needs to be populated before the transport is opened:
        # as soon as the socket is bound a remote may attempt to attach.

        self.setup()

        registry = Registry()
        self.transport = Transport(registry,
                                   self.config.local_address, self.config.local_port,
                                   self.config.remote_address, self.config.remote_port)

        self.bridge = Bridge(self.store, self.transport, self.config.idle_timeout)
        self.shutdown = ShutdownCoordinator(self.bridge, self.config.grace)

        if install == True:
            self.shutdown.install()

        self.setup_final()

        self.bridge.start()


    def add_state(self, schema_name, definitions, values=None):
        """ Register *definitions* as the schema *schema_name* and create one
            instance of it, optionally with initial *values*. The returned
            handle is also kept in :attr:`states`.
        """

        self.store.register_schema(schema_name, definitions)
        handle = self.store.create(schema_name, values)
        self.states[schema_name] = handle

        return handle


    def close(self):
        """ Notify remotes, detach every session, and close the transport.
        """

        if self.shutdown is not None:
            self.shutdown.cleanup()

        if self.bridge is not None:
            self.bridge.stop()

        if self.transport is not None:
            self.transport.close()


    def setup(self):
        """ Subclasses should override the :func:`setup` method to invoke
            :func:`add_state` or otherwise populate :attr:`store`. When
            :func:`setup` is called the transport is not yet open. The default
            implementation of this method takes no actions.
        """

        pass


    def setup_final(self):
        """ Subclasses should override the :func:`setup_final` method to
            execute any code that should occur after the transport is open,
            but before attach requests are accepted. The default
            implementation of this method takes no actions.
        """

        pass


# end of class Daemon


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:

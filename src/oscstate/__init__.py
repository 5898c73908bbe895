""" Python implementation of an OSC bridge for shared state. Remotes speaking
    OSC over UDP attach to schema-typed state held in a local store, push
    updates to it, and receive a notification for every change.
"""

# Utility components.

from . import json
from . import poll
from . import weakref

# Submodules used by multiple other components.

from . import address
from . import coerce
from . import config
from . import osc
from . import schema

# Primary public-facing interfaces.

from .registry import Registry
from .store import Store
from .transport import Transport, TransportError, TransportPortError
from .bridge import Bridge
from .shutdown import ShutdownCoordinator
from .daemon import Daemon

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:

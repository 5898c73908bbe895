""" Translation between OSC address strings and the structured channels used
    for routing inside the bridge. Addresses only exist at the transport
    boundary; everything past :func:`parse` works with :class:`Channel`
    tuples, keyed by the channel kind and, for per-session channels, the
    :class:`SessionKey` of the session.

    On the wire a per-session channel looks like::

        /sw/state-manager/update-request/3/12

    where 3 is the state id and 12 is the remote id of the session. A remote
    only ever echoes those ids back as address text, so a
    :class:`SessionKey` always holds the text form of both; see
    :func:`session_key`.
"""

import collections

prefix = '/sw/state-manager'

ATTACH_REQUEST = 'attach-request'
ATTACH_RESPONSE = 'attach-response'
ATTACH_ERROR = 'attach-error'
UPDATE_REQUEST = 'update-request'
UPDATE_NOTIFICATION = 'update-notification'
DETACH_REQUEST = 'detach-request'
DETACH_NOTIFICATION = 'detach-notification'

session_kinds = frozenset((UPDATE_REQUEST, UPDATE_NOTIFICATION, DETACH_REQUEST, DETACH_NOTIFICATION))
global_kinds = frozenset((ATTACH_REQUEST, ATTACH_RESPONSE, ATTACH_ERROR))


SessionKey = collections.namedtuple('SessionKey', ('id', 'remote_id'))
Channel = collections.namedtuple('Channel', ('kind', 'key'))


def channel(kind, key=None):
    """ Return the :class:`Channel` for the given *kind*; *key* is required
        for per-session kinds and must be omitted otherwise.
    """

    if kind in session_kinds:
        if key is None:
            raise ValueError("channel kind %s requires a session key" % (repr(kind)))
        key = session_key(*key)
    elif key is not None:
        raise ValueError("channel kind %s does not take a session key" % (repr(kind)))

    return Channel(kind, key)



def session_key(id, remote_id):
    """ Return the :class:`SessionKey` for a session, with both identifiers
        in the form they take in an address. The state id 7 and the state
        id '7' are the same session on the wire, and must route the same.
    """

    return SessionKey(str(id), str(remote_id))



def format(target):
    """ Return the OSC address string for the provided :class:`Channel`.
        Anything that is not a :class:`Channel` is assumed to already be an
        address and is returned as-is.
    """

    if isinstance(target, Channel):
        pass
    else:
        return str(target)

    if target.key is None:
        return "%s/%s" % (prefix, target.kind)

    return "%s/%s/%s/%s" % (prefix, target.kind, target.key.id, target.key.remote_id)



def parse(address):
    """ Interpret an inbound OSC *address*. Addresses recognized as part of
        the state-manager protocol are returned as :class:`Channel` instances;
        anything else is returned unchanged, so that the raw address can
        still be used as a routing key.
    """

    head = prefix + '/'

    if address.startswith(head):
        pass
    else:
        return address

    parts = address[len(head):].split('/')
    kind = parts[0]

    if kind in global_kinds and len(parts) == 1:
        return Channel(kind, None)

    if kind in session_kinds and len(parts) == 3:
        return Channel(kind, SessionKey(parts[1], parts[2]))

    return address


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:

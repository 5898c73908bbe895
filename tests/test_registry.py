import oscstate
import pytest


class Listener:

    def __init__(self):
        self.calls = list()

    def __call__(self, *args):
        self.calls.append(args)


def test_dispatch():

    registry = oscstate.Registry()
    first = Listener()
    second = Listener()

    registry.subscribe('/one', first)
    registry.subscribe('/one', second)
    registry.subscribe('/two', second)

    registry.dispatch('/one', ('a', 1))
    registry.dispatch('/two', ())

    assert first.calls == [('a', 1)]
    assert sorted(second.calls) == sorted([('a', 1), ()])

    # Nobody listening: nothing happens, no error.

    registry.dispatch('/three', ('ignored',))


def test_unsubscribe_idempotent():

    registry = oscstate.Registry()
    listener = Listener()

    subscription = registry.subscribe('/one', listener)
    assert subscription.active == True
    assert '/one' in registry

    registry.unsubscribe(subscription)
    assert subscription.active == False

    # Twice more, both ways. Neither is an error.

    registry.unsubscribe(subscription)
    subscription()

    registry.dispatch('/one', ('a',))
    assert listener.calls == []


def test_empty_channels_removed():

    registry = oscstate.Registry()

    first = registry.subscribe('/one', Listener())
    second = registry.subscribe('/one', Listener())
    assert len(registry) == 1

    first()
    assert '/one' in registry

    second()
    assert '/one' not in registry
    assert len(registry) == 0
    assert registry.channels() == ()


def test_same_callback_twice():

    registry = oscstate.Registry()
    listener = Listener()

    first = registry.subscribe('/one', listener)
    second = registry.subscribe('/one', listener)

    registry.dispatch('/one', (1,))
    assert listener.calls == [(1,), (1,)]

    first()
    registry.dispatch('/one', (2,))
    assert listener.calls == [(1,), (1,), (2,)]

    assert second.active == True


def test_failing_callback():

    registry = oscstate.Registry()
    listener = Listener()

    def explode(*args):
        raise RuntimeError('boom')

    registry.subscribe('/one', explode)
    registry.subscribe('/one', listener)

    registry.dispatch('/one', ('a',))
    assert listener.calls == [('a',)]


def test_unsubscribe_during_dispatch():
    """ Whoever was registered when the dispatch started receives the
        message, even if unsubscribed partway through.
    """

    registry = oscstate.Registry()
    listeners = [Listener(), Listener()]
    subscriptions = list()

    def unsubscribe_everything(*args):
        for subscription in subscriptions:
            subscription()

    subscriptions.append(registry.subscribe('/one', unsubscribe_everything))
    for listener in listeners:
        subscriptions.append(registry.subscribe('/one', listener))

    registry.dispatch('/one', ('a',))

    for listener in listeners:
        assert listener.calls == [('a',)]

    registry.dispatch('/one', ('b',))

    for listener in listeners:
        assert listener.calls == [('a',)]

    assert '/one' not in registry


def test_structured_channels():

    registry = oscstate.Registry()
    listener = Listener()

    key = oscstate.address.SessionKey(1, 2)
    channel = oscstate.address.channel('update-request', key)
    registry.subscribe(channel, listener)

    parsed = oscstate.address.parse('/sw/state-manager/update-request/1/2')
    registry.dispatch(parsed, ('{}',))

    assert listener.calls == [('{}',)]


def test_not_callable():

    registry = oscstate.Registry()

    with pytest.raises(TypeError):
        registry.subscribe('/one', 'not callable')


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:

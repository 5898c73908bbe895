import logging
import threading
import weakref

logger = logging.getLogger('oscstate.weakref')


def ref(thing):
    """ Return a weak reference to the supplied argument, regardless of
        whether it is a simple object or a bound method.
    """

    try:
        thing.__func__
        thing.__self__
    except AttributeError:
        return weakref.ref(thing)
    else:
        return weakref.WeakMethod(thing)



class Callbacks:
    """ A collection of weakly referenced callbacks. Registering a callback
        here does not keep it, or the object it is bound to, alive; once the
        referent is gone the callback is quietly discarded.
    """

    def __init__(self):
        self._references = list()
        self._lock = threading.Lock()


    def __len__(self):
        return len(self._references)


    def add(self, callback):
        """ Register *callback*, returning the weak reference that can later
            be handed to :func:`remove`.
        """

        if callable(callback):
            pass
        else:
            raise TypeError('callback must be callable')

        reference = ref(callback)

        self._lock.acquire()
        self._references.append(reference)
        self._lock.release()

        return reference


    def clear(self):
        self._lock.acquire()
        self._references.clear()
        self._lock.release()


    def remove(self, reference):
        """ Remove a reference returned by :func:`add`. Removing something
            that is not present is a no-op.
        """

        self._lock.acquire()

        try:
            self._references.remove(reference)
        except ValueError:
            pass
        finally:
            self._lock.release()


    def __call__(self, *args, **kwargs):
        """ Invoke every live callback with the provided arguments. Errors
            raised by a callback are logged; the remaining callbacks are
            still invoked.
        """

        self._lock.acquire()
        references = tuple(self._references)
        self._lock.release()

        invalid = list()

        for reference in references:
            callback = reference()

            if callback is None:
                invalid.append(reference)
                continue

            try:
                callback(*args, **kwargs)
            except Exception:
                logger.exception('callback %s failed', callback)
                continue

        for reference in invalid:
            self.remove(reference)


# end of class Callbacks


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:

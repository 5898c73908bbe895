import logging
import threading
import time

from . import weakref

logger = logging.getLogger('oscstate.poll')


class Poller:
    """ Call the provided *method* every *period* seconds on a dedicated
        background thread. The method is held by weak reference; once its
        owner is gone the poller exits on its own. Exceptions raised by the
        method are logged and polling continues.

        The cadence is anchored to when polling started, not to when the
        previous call finished, so a slow call does not push every later
        call back by the same amount.
    """

    def __init__(self, method, period):

        period = float(period)

        if period <= 0:
            raise ValueError('the polling period must be positive')

        self.interval = period
        self.reference = weakref.ref(method)
        self.shutdown = False

        self.alarm = threading.Event()
        self.thread = threading.Thread(target=self.run, name='oscstate-poll')
        self.thread.daemon = True
        self.thread.start()


    def run(self):

        next = time.time() + self.interval

        while True:
            delay = next - time.time()
            if delay > 0:
                self.alarm.wait(delay)

            if self.shutdown == True:
                break

            method = self.reference()

            if method is None:
                # The original object is gone. No further calls are possible.
                break

            try:
                method()
            except Exception:
                logger.exception('polled method %s failed', method)

            del method

            next += self.interval
            now = time.time()

            # Skip any cycles that were missed entirely rather than trying
            # to catch up with a burst of back-to-back calls.

            if next < now:
                next = now + self.interval


    def stop(self):
        self.shutdown = True
        self.alarm.set()


# end of class Poller


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:

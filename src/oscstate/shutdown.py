""" Process shutdown handling. Remotes have no way of noticing that the
    bridge went away, so on the way out every remote still attached is sent
    a detach-notification for each of its sessions.
"""

import atexit
import logging
import signal
import sys
import threading
import time

logger = logging.getLogger('oscstate.shutdown')


class ShutdownCoordinator:
    """ Notify every session active on *bridge* when the process is asked to
        terminate. After the notifications are sent the coordinator waits
        *grace* seconds, to give the datagrams a chance to leave the host,
        then calls *exit*.

        Cleanup happens at most once: a second signal arriving while, or
        after, the notifications go out is ignored.
    """

    def __init__(self, bridge, grace=0.01, exit=sys.exit):

        grace = float(grace)

        if grace >= 0 and grace != float('inf'):
            pass
        else:
            raise ValueError('the grace period must be a finite, non-negative number of seconds')

        self.bridge = bridge
        self.grace = grace
        self.exit = exit
        self.triggered = False

        self._lock = threading.Lock()
        self._previous = dict()


    def install(self, signals=(signal.SIGINT, signal.SIGTERM)):
        """ Invoke :func:`trigger` upon receipt of any of the *signals*. When
            the interpreter exits normally the notifications are sent and the
            grace period observed, but the exit is left to the interpreter.
            This must be called from the main thread.
        """

        for signum in signals:
            self._previous[signum] = signal.signal(signum, self._signal_incoming)

        atexit.register(self._exit_incoming)


    def uninstall(self):
        """ Restore the previous signal handlers.
        """

        for signum, previous in self._previous.items():
            signal.signal(signum, previous)

        self._previous = dict()
        atexit.unregister(self._exit_incoming)


    def cleanup(self):
        """ Send the detach notifications, if that has not happened yet.
            Returns True if this call did the work, False otherwise.
        """

        self._lock.acquire()

        try:
            if self.triggered == True:
                return False
            self.triggered = True
        finally:
            self._lock.release()

        logger.info('> cleanup...')

        for session in self.bridge.active():
            key = session.key

            try:
                session.notify_detach()
            except Exception as e:
                logger.debug("[stateId: %s - remoteId: %s] detach notification failed: %s", key.id, key.remote_id, e)
                continue

        return True


    def trigger(self):
        """ Clean up, wait out the grace period, and exit.
        """

        if self.cleanup() == False:
            return

        time.sleep(self.grace)

        logger.info('> exiting...')
        self.exit()


    def _exit_incoming(self):

        if self.cleanup() == True:
            time.sleep(self.grace)


    def _signal_incoming(self, signum, frame):
        logger.debug("received signal %d", signum)
        self.trigger()


# end of class ShutdownCoordinator


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:

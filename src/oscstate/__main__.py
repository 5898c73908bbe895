""" Run a bridge from the command line::

        python -m oscstate --schema globals=schemas/globals.json

    Each ``--schema`` argument registers the schema in the named JSON file
    and creates one state instance of it.
"""

import argparse
import logging
import os
import sys
import threading

from . import config
from . import json
from .daemon import Daemon
from .transport import TransportPortError

logger = logging.getLogger('oscstate')


class CommandLineDaemon(Daemon):

    def __init__(self, arguments, *args, **kwargs):
        self.arguments = arguments
        Daemon.__init__(self, *args, **kwargs)


    def setup(self):

        for name, filename in self.arguments.schema:
            with open(filename, 'rb') as opened:
                definitions = json.loads(opened.read())

            self.add_state(name, definitions)


# end of class CommandLineDaemon



def schema_argument(text):

    try:
        name, filename = text.split('=', 1)
    except ValueError:
        raise argparse.ArgumentTypeError("expected NAME=FILE, not %s" % (repr(text)))

    if name == '' or os.path.exists(filename) == False:
        raise argparse.ArgumentTypeError("expected NAME=FILE with an existing FILE, not %s" % (repr(text)))

    return name, filename



def parse_arguments(argv=None):

    parser = argparse.ArgumentParser(prog='oscstate', description='Expose shared state to OSC remotes.')
    parser.add_argument('--schema', action='append', default=list(), type=schema_argument,
                        metavar='NAME=FILE', help='register a schema from a JSON file and create one instance of it')
    parser.add_argument('--config', default=None, metavar='FILE',
                        help='JSON configuration file')
    parser.add_argument('--verbose', '-v', action='count', default=0,
                        help='increase logging verbosity')

    return parser.parse_args(argv)



def main(argv=None):

    arguments = parse_arguments(argv)

    if arguments.verbose > 1:
        level = logging.DEBUG
    elif arguments.verbose == 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    logging.basicConfig(level=level, format='%(asctime)s %(name)s %(levelname)s: %(message)s')

    try:
        configuration = config.load(arguments.config)
    except (OSError, ValueError) as e:
        logger.error("cannot load configuration: %s", e)
        return 1

    try:
        daemon = CommandLineDaemon(arguments, configuration)
    except TransportPortError as e:
        logger.error(str(e))
        return 1

    logger.info("launching oscstate [pid: %d]", os.getpid())

    # Everything of interest happens on background threads. The main thread
    # only needs to stay alive to field signals.

    forever = threading.Event()

    while True:
        forever.wait(1)


if __name__ == '__main__':
    sys.exit(main())


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:

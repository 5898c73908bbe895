""" Configuration for an oscstate process. Values come from three places,
    each overriding the last: the built-in :data:`defaults`, a JSON file,
    and ``OSCSTATE_*`` environment variables. The JSON file is either named
    explicitly or found as ``config.json`` in the :func:`directory`.
"""

import math
import os

from . import json

defaults = dict()
defaults['local_address'] = '0.0.0.0'
defaults['local_port'] = 57121
defaults['remote_address'] = '127.0.0.1'
defaults['remote_port'] = 57122
defaults['grace'] = 0.01
defaults['idle_timeout'] = None

converters = dict()
converters['local_address'] = str
converters['local_port'] = int
converters['remote_address'] = str
converters['remote_port'] = int
converters['grace'] = float
converters['idle_timeout'] = float


class Configuration:
    """ A convenience class to represent configuration data. To first order
        an instance acts like a read-only dictionary; the settings are also
        available as attributes, ``config.local_port`` and so on.
    """

    def __init__(self, settings=None):

        self._settings = dict(defaults)

        if settings:
            self.update(settings)


    def __contains__(self, key):
        return key in self._settings


    def __getattr__(self, name):

        if name.startswith('_'):
            raise AttributeError(name)

        try:
            return self._settings[name]
        except KeyError:
            raise AttributeError("no configuration setting %s" % (repr(name)))


    def __getitem__(self, key):
        return self._settings[key]


    def __repr__(self):
        return 'config.Configuration: ' + repr(self._settings)


    def keys(self):
        return self._settings.keys()


    def update(self, settings):
        """ Merge the *settings* dictionary into this configuration. Every
            value is checked against the expected type; a ValueError is raised
            for unknown settings or values of the wrong type.
        """

        for key, value in settings.items():
            try:
                converter = converters[key]
            except KeyError:
                raise ValueError("unknown configuration setting %s" % (repr(key)))

            if value is None or value == '':
                if key == 'idle_timeout':
                    self._settings[key] = None
                    continue
                raise ValueError("configuration setting %s cannot be empty" % (repr(key)))

            try:
                value = converter(value)
            except (TypeError, ValueError):
                raise ValueError("invalid value %s for configuration setting %s" % (repr(value), repr(key)))

            if converter is int and (value < 0 or value > 65535):
                raise ValueError("invalid port %d for configuration setting %s" % (value, repr(key)))

            if converter is float and not 0 <= value < math.inf:
                raise ValueError("invalid value %s for configuration setting %s, must be a finite non-negative number" % (value, repr(key)))

            self._settings[key] = value


# end of class Configuration



def directory(default=None):
    """ Return the directory location where we should be loading
        configuration files. This defaults to ``$HOME/.oscstate``, but can be
        overridden by calling this method with a valid path, or by setting
        the ``OSCSTATE_HOME`` environment variable. Note that changes to the
        environment variable will be ignored unless it is set prior to the
        first invocation of this method.
    """

    if default is not None:
        default = str(default)
        default = os.path.expandvars(default)

        if os.path.isabs(default):
            pass
        else:
            raise ValueError('the default directory must be an absolute path')

        os.environ['OSCSTATE_HOME'] = default
        directory.found = default


    found = directory.found

    if found is not None:
        return found

    try:
        found = os.environ['OSCSTATE_HOME']
    except KeyError:
        pass
    else:
        directory.found = found
        return found

    try:
        home = os.environ['HOME']
    except KeyError:
        raise RuntimeError('OSCSTATE_HOME and HOME environment variables not set, cannot determine oscstate configuration directory')

    found = os.path.join(home, '.oscstate')

    directory.found = found
    return found

directory.found = None



def from_environment(environment=None):
    """ Return a dictionary of the settings present as ``OSCSTATE_*``
        variables in *environment*, which defaults to :data:`os.environ`.
    """

    if environment is None:
        environment = os.environ

    settings = dict()

    for key in converters.keys():
        variable = 'OSCSTATE_' + key.upper()

        try:
            settings[key] = environment[variable]
        except KeyError:
            continue

    return settings



def load(filename=None, environment=None):
    """ Build a :class:`Configuration` from the defaults, the JSON file
        *filename* (or ``config.json`` in :func:`directory`, if present), and
        the environment. An explicitly named file must exist.
    """

    configuration = Configuration()

    if filename is None:
        candidate = os.path.join(directory(), 'config.json')
        if os.path.exists(candidate):
            filename = candidate

    if filename is not None:
        with open(filename, 'rb') as opened:
            raw_json = opened.read()

        try:
            settings = json.loads(raw_json)
        except (json.DecodeError, ValueError) as e:
            raise ValueError("cannot parse %s: %s" % (filename, e))

        if isinstance(settings, dict):
            pass
        else:
            raise ValueError("%s must contain a JSON object" % (filename))

        configuration.update(settings)

    configuration.update(from_environment(environment))

    return configuration


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:

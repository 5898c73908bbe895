""" Schema handling. A schema is the full set of field definitions for one
    kind of shared state; each field definition is a plain dictionary, for
    example::

        {'type': 'float', 'min': 0, 'max': 1, 'default': 0.5}
        {'type': 'enum', 'list': ['a', 'b'], 'default': 'a', 'nullable': True}

    The 'min', 'max', and 'step' fields are informational and are passed
    through to remotes untouched.
"""

import copy

from . import coerce
from . import json

types = ('float', 'integer', 'boolean', 'string', 'enum', 'any')


class Schema:
    """ A read-only mapping of field name to field definition. The
        *definitions* are validated with :func:`validate` and copied; later
        changes to the original dictionary have no effect.
    """

    def __init__(self, name, definitions):

        self.name = str(name)
        self._definitions = validate(definitions)


    def __contains__(self, key):
        return key in self._definitions


    def __getitem__(self, key):

        try:
            return self._definitions[key]
        except KeyError:
            raise KeyError("schema %s has no field %s" % (repr(self.name), repr(key)))


    def __iter__(self):
        return iter(self._definitions)


    def __len__(self):
        return len(self._definitions)


    def __repr__(self):
        return 'schema.Schema(%s): %s' % (repr(self.name), repr(self._definitions))


    def defaults(self):
        """ Return a dictionary of the default value for every field.
        """

        defaults = dict()

        for key, definition in self._definitions.items():
            defaults[key] = copy.deepcopy(definition['default'])

        return defaults


    def get(self, key, default=None):
        return self._definitions.get(key, default)


    def items(self):
        return self._definitions.items()


    def keys(self):
        return self._definitions.keys()


    def to_dict(self):
        """ Return a deep copy of the field definitions, suitable for handing
            to code outside this module.
        """

        return copy.deepcopy(self._definitions)


    def to_json(self):
        """ Return the JSON text form of the field definitions; this is what
            a remote receives when it attaches.
        """

        return json.dumps_text(self._definitions)


# end of class Schema



def validate(definitions):
    """ Check the provided *definitions*, a dictionary of field name to
        field definition, and return a normalized copy. Every definition
        in the returned copy has 'type', 'nullable', and 'default' set.
        A ValueError is raised for anything that cannot be used.
    """

    try:
        definitions = dict(definitions)
    except (TypeError, ValueError):
        raise ValueError('schema definitions must be a dictionary')

    normalized = dict()

    for key, definition in definitions.items():
        if isinstance(key, str):
            pass
        else:
            raise ValueError("field names must be strings, not %s" % (repr(key)))

        if isinstance(definition, dict):
            pass
        else:
            raise ValueError("definition for %s must be a dictionary" % (repr(key)))

        definition = copy.deepcopy(definition)

        try:
            type = definition['type']
        except KeyError:
            raise ValueError("definition for %s has no type" % (repr(key)))

        if type not in types:
            raise ValueError("definition for %s has unknown type %s" % (repr(key), repr(type)))

        if type == 'enum':
            try:
                choices = definition['list']
            except KeyError:
                raise ValueError("enum definition for %s has no list" % (repr(key)))

            if isinstance(choices, (list, tuple)) and len(choices) > 0:
                definition['list'] = list(choices)
            else:
                raise ValueError("enum definition for %s needs a non-empty list" % (repr(key)))

        nullable = definition.get('nullable', False)
        definition['nullable'] = nullable == True

        default = definition.get('default')

        if default is None:
            definition['default'] = None
        else:
            try:
                definition['default'] = coerce.coerce(key, default, definition)
            except coerce.Rejection:
                raise ValueError("invalid default %s for %s" % (repr(default), repr(key)))

        normalized[key] = definition

    return normalized


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:

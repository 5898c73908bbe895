""" Validation and conversion of untyped values arriving from a remote into
    the types declared by a field definition. A remote can send anything at
    all; the functions here are the only thing standing between that input
    and the authoritative state.

    Failures are reported by raising a :class:`Rejection`. Nothing else is
    ever raised by :func:`coerce`, regardless of how strange the value or the
    field definition may be.
"""

import logging
import math
import re

logger = logging.getLogger('oscstate.coerce')

float_prefix = re.compile(r'[+-]?(?:infinity|(?:\d+\.?\d*|\.\d+)(?:e[+-]?\d+)?)', re.IGNORECASE)
integer_prefix = re.compile(r'[+-]?\d+')


class Rejection(ValueError):
    """ Base class for a value that cannot be applied to a field.
    """

    def __init__(self, key, text):
        ValueError.__init__(self, text)
        self.key = key


class UnknownField(Rejection):
    """ The field is not present in the schema.
    """

    def __init__(self, key):
        Rejection.__init__(self, key, "param %s does not exist" % (repr(key)))


class InvalidValue(Rejection):
    """ The value cannot be interpreted as the declared type.
    """

    def __init__(self, key, value):
        Rejection.__init__(self, key, "invalid value %s for param %s" % (repr(value), repr(key)))
        self.value = value



def coerce(key, value, definition):
    """ Return *value* converted to the type declared by *definition*, the
        field definition for *key*. :class:`UnknownField` is raised if
        *definition* is None; :class:`InvalidValue` is raised if the value
        cannot be converted and the field is not nullable. A nullable field
        receives None instead of a rejection.
    """

    if definition is None:
        raise UnknownField(key)

    try:
        type = definition['type']
    except (KeyError, TypeError):
        type = 'any'

    try:
        if type == 'float':
            coerced = _to_float(value)
        elif type == 'integer':
            coerced = _to_integer(value)
        elif type == 'boolean':
            return _to_boolean(value)
        elif type == 'string':
            return _to_string(value)
        elif type == 'enum':
            coerced = _to_enum(value, definition['list'])
        else:
            return value
    except (KeyError, TypeError, ValueError, OverflowError):
        coerced = None

    if coerced is not None:
        return coerced

    if _nullable(definition):
        return None

    raise InvalidValue(key, value)



def coerce_updates(updates, schema):
    """ Coerce every field in the *updates* mapping against the matching
        definition in *schema*. Fields that are rejected are logged and
        dropped; the surviving fields are returned as a new dictionary.
    """

    coerced = dict()

    for key, value in updates.items():
        try:
            definition = schema.get(key)
        except AttributeError:
            definition = None

        try:
            coerced[key] = coerce(key, value, definition)
        except Rejection as e:
            logger.warning('ignoring param update: %s', e)
            continue

    return coerced



def _nullable(definition):

    try:
        nullable = definition['nullable']
    except (KeyError, TypeError):
        return False

    return nullable == True



def _to_float(value):
    """ Interpret the longest leading numeric portion of *value*, ignoring
        any trailing garbage. Returns None if there is no number to be had.
    """

    if isinstance(value, bool) or value is None:
        return None

    if isinstance(value, (int, float)):
        value = float(value)
        if math.isnan(value):
            return None
        return value

    if isinstance(value, bytes):
        value = value.decode('utf-8', 'replace')

    if isinstance(value, str):
        pass
    else:
        return None

    match = float_prefix.match(value.lstrip())
    if match is None:
        return None

    return float(match.group(0))



def _to_integer(value):
    """ Numbers are truncated toward zero; strings are scanned for a leading
        decimal integer, so that '12abc' is 12.
    """

    if isinstance(value, bool) or value is None:
        return None

    if isinstance(value, int):
        return value

    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        return int(value)

    if isinstance(value, bytes):
        value = value.decode('utf-8', 'replace')

    if isinstance(value, str):
        pass
    else:
        return None

    match = integer_prefix.match(value.lstrip())
    if match is None:
        return None

    return int(match.group(0))



def _to_boolean(value):

    if isinstance(value, float) and math.isnan(value):
        return False

    try:
        return bool(value)
    except Exception:
        return True



def _to_string(value):

    if isinstance(value, str):
        return value

    if value is None:
        return 'null'

    if value is True:
        return 'true'

    if value is False:
        return 'false'

    if isinstance(value, bytes):
        return value.decode('utf-8', 'replace')

    return str(value)



def _to_enum(value, choices):
    """ Return the entry in *choices* matching *value*, or None. An exact
        match is preferred; failing that, the textual forms are compared,
        since an OSC remote may send the number 2 for a '2' entry.
    """

    if isinstance(choices, (list, tuple)):
        pass
    else:
        return None

    for choice in choices:
        if choice == value and type(choice) == type(value):
            return choice

    text = _to_string(value)

    for choice in choices:
        if _to_string(choice) == text:
            return choice

    return None


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:

import math
import oscstate
import pytest

from oscstate.coerce import coerce, coerce_updates, InvalidValue, UnknownField, Rejection


def test_numeric_rejection():

    for type in ('float', 'integer'):
        definition = {'type': type, 'nullable': False}

        for bad in ('abc', '', '   ', 'x12', '.', '-', None, True, [1], {'a': 1}):
            with pytest.raises(InvalidValue):
                coerce('volume', bad, definition)

    # The rejection is a ValueError, so generic handlers still catch it.

    with pytest.raises(ValueError):
        coerce('volume', 'abc', {'type': 'float'})


def test_nullable():

    definitions = list()
    definitions.append({'type': 'float', 'nullable': True})
    definitions.append({'type': 'integer', 'nullable': True})
    definitions.append({'type': 'enum', 'list': ['a', 'b'], 'nullable': True})

    for definition in definitions:
        for bad in ('abc', '', None, 'c'):
            assert coerce('cue', bad, definition) is None


def test_float():

    definition = {'type': 'float'}

    assert coerce('volume', '12.5', definition) == 12.5
    assert coerce('volume', '  12.5', definition) == 12.5
    assert coerce('volume', '12.5abc', definition) == 12.5
    assert coerce('volume', '-3', definition) == -3.0
    assert coerce('volume', '1e3', definition) == 1000.0
    assert coerce('volume', '.5', definition) == 0.5
    assert coerce('volume', 7, definition) == 7.0
    assert isinstance(coerce('volume', 7, definition), float)
    assert coerce('volume', 'Infinity', definition) == math.inf

    with pytest.raises(InvalidValue):
        coerce('volume', math.nan, definition)


def test_integer():

    definition = {'type': 'integer'}

    assert coerce('gain', '12abc', definition) == 12
    assert coerce('gain', '-7.9', definition) == -7
    assert coerce('gain', ' +4', definition) == 4
    assert coerce('gain', 3.9, definition) == 3
    assert coerce('gain', -3.9, definition) == -3
    assert coerce('gain', 42, definition) == 42

    with pytest.raises(InvalidValue):
        coerce('gain', math.inf, definition)


def test_boolean():

    definition = {'type': 'boolean'}

    assert coerce('mute', '', definition) == False
    assert coerce('mute', 'x', definition) == True
    assert coerce('mute', 0, definition) == False
    assert coerce('mute', 0.0, definition) == False
    assert coerce('mute', None, definition) == False
    assert coerce('mute', math.nan, definition) == False
    assert coerce('mute', 1, definition) == True

    # A truthiness cast, not a parse.

    assert coerce('mute', '0', definition) == True
    assert coerce('mute', 'false', definition) == True


def test_string():

    definition = {'type': 'string'}

    assert coerce('label', 'text', definition) == 'text'
    assert coerce('label', 5, definition) == '5'
    assert coerce('label', 2.5, definition) == '2.5'
    assert coerce('label', None, definition) == 'null'
    assert coerce('label', True, definition) == 'true'
    assert coerce('label', b'bytes', definition) == 'bytes'


def test_enum():

    definition = {'type': 'enum', 'list': ['stereo', 'mono']}

    # The matched entry comes back, never the list itself.

    assert coerce('mode', 'mono', definition) == 'mono'
    assert coerce('mode', 'stereo', definition) == 'stereo'

    with pytest.raises(InvalidValue):
        coerce('mode', 'surround', definition)

    numbered = {'type': 'enum', 'list': ['1', '2', 3]}
    assert coerce('mode', 2, numbered) == '2'
    assert coerce('mode', '3', numbered) == 3
    assert coerce('mode', 3, numbered) == 3


def test_any():

    thing = object()

    assert coerce('extra', thing, {'type': 'any'}) is thing
    assert coerce('extra', thing, {'type': 'no-such-type'}) is thing


def test_unknown_field():

    with pytest.raises(UnknownField) as caught:
        coerce('missing', 1, None)

    assert caught.value.key == 'missing'
    assert isinstance(caught.value, Rejection)


def test_malformed_definition():
    """ A definition that is present but nonsensical must still only ever
        yield a value or a Rejection.
    """

    with pytest.raises(InvalidValue):
        coerce('mode', 'a', {'type': 'enum'})

    with pytest.raises(InvalidValue):
        coerce('mode', 'a', {'type': 'enum', 'list': 5})

    assert coerce('mode', 'a', {'type': 'enum', 'list': 5, 'nullable': True}) is None
    assert coerce('thing', 'a', {}) == 'a'
    assert coerce('thing', 'a', 'not a dictionary') == 'a'
    assert coerce('thing', 'a', {'nullable': 'yes'}) == 'a'


def test_coerce_updates():

    schema = oscstate.schema.Schema('globals', {'volume': {'type': 'float'}, 'mute': {'type': 'boolean'}})

    updates = dict()
    updates['volume'] = 'abc'
    updates['mute'] = 'x'
    updates['nonexistent'] = 1

    coerced = coerce_updates(updates, schema)
    assert coerced == {'mute': True}

    coerced = coerce_updates({'volume': '12.5'}, schema)
    assert coerced == {'volume': 12.5}

    # The original mapping is left alone.

    assert updates['volume'] == 'abc'


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:

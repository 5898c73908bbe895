""" Encoding and decoding of OSC 1.0 packets, by way of python-osc. This
    module pins down the mapping between Python values and OSC type tags, and
    reduces every decoding failure to a single :class:`OSCError`.

    Bundles are accepted on the inbound side and flattened into the messages
    they contain; the bridge never sends them.
"""

from pythonosc import osc_message
from pythonosc import osc_message_builder
from pythonosc import osc_packet

bundle_tag = b'#bundle\x00'

int32_minimum = -2 ** 31
int32_maximum = 2 ** 31 - 1
int64_minimum = -2 ** 63
int64_maximum = 2 ** 63 - 1
float32_maximum = 3.4028234663852886e38

Builder = osc_message_builder.OscMessageBuilder

# python-osc signals bad input with its own ParseError classes, but a
# sufficiently hostile datagram can also surface as one of the builtin
# errors, or exhaust the interpreter stack on deeply nested bundles.

decode_errors = (osc_packet.ParseError, osc_message.ParseError,
                 IndexError, TypeError, ValueError, RecursionError)


class OSCError(ValueError):
    """ The packet cannot be encoded or decoded as OSC.
    """
    pass



def encode(address, *args):
    """ Return the bytes for a single OSC message sent to *address* with the
        provided arguments. Python types map to OSC type tags as follows:
        bool to T/F, None to N, int to i (or h if it does not fit in 32 bits),
        float to f (or d if it does not fit in 32 bits), str to s, and bytes
        to b.
    """

    if isinstance(address, str) and address.startswith('/'):
        pass
    else:
        raise OSCError("invalid OSC address: %s" % (repr(address)))

    builder = Builder(address=address)

    for arg in args:
        arg_type, value = _argument(arg)
        builder.add_arg(value, arg_type)

    try:
        message = builder.build()
    except osc_message_builder.BuildError as e:
        raise OSCError(str(e))

    return message.dgram



def decode(packet):
    """ Decode a datagram into a list of (address, args) tuples. A plain
        message yields a single tuple; a bundle yields one tuple for each
        message it contains, in order. :class:`OSCError` is raised for
        anything malformed.
    """

    packet = bytes(packet)

    try:
        timed = osc_packet.OscPacket(packet).messages
    except decode_errors as e:
        raise OSCError("cannot decode OSC packet: %s" % (e))

    messages = list()

    for element in timed:
        message = element.message
        messages.append((message.address, list(message.params)))

    return messages



def decode_message(packet):
    """ Decode a single OSC message, not a bundle, returning an
        (address, args) tuple, where args is a list of Python values.
    """

    packet = bytes(packet)

    if osc_message.OscMessage.dgram_is_message(packet):
        pass
    else:
        raise OSCError('not an OSC message')

    try:
        message = osc_message.OscMessage(packet)
    except decode_errors as e:
        raise OSCError("cannot decode OSC message: %s" % (e))

    return message.address, list(message.params)



def _argument(arg):
    """ Return the (type tag, value) pair for a single outbound argument.
    """

    # Check bool before int, since bool is a subclass of int.

    if arg is True:
        return Builder.ARG_TYPE_TRUE, arg
    if arg is False:
        return Builder.ARG_TYPE_FALSE, arg
    if arg is None:
        return Builder.ARG_TYPE_NIL, arg

    if isinstance(arg, int):
        if int32_minimum <= arg <= int32_maximum:
            return Builder.ARG_TYPE_INT, arg
        if int64_minimum <= arg <= int64_maximum:
            return Builder.ARG_TYPE_INT64, arg
        raise OSCError("integer out of range for OSC: %d" % (arg))

    if isinstance(arg, float):
        if -float32_maximum <= arg <= float32_maximum:
            return Builder.ARG_TYPE_FLOAT, arg
        if arg != arg or arg in (float('inf'), float('-inf')):
            return Builder.ARG_TYPE_FLOAT, arg
        return Builder.ARG_TYPE_DOUBLE, arg

    if isinstance(arg, str):
        return Builder.ARG_TYPE_STRING, arg

    if isinstance(arg, (bytes, bytearray)):
        return Builder.ARG_TYPE_BLOB, bytes(arg)

    raise OSCError("cannot encode %s as an OSC argument" % (type(arg).__name__))


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:

"""
Telnet byte stream decoder.

:class:`TelnetDecoder` separates the literal data of a Telnet byte stream
from its control sequences.  Each call to :meth:`TelnetDecoder.feed` accepts
the bytes of one socket read and returns a list of events, in stream order:

- :class:`Data`, a non-empty run of literal bytes, with any ``IAC IAC``
  pair collapsed to a single ``255`` byte.
- :class:`Command`, wrapping either a :class:`Negotiation` (``IAC WILL``,
  ``WONT``, ``DO`` or ``DONT`` followed by an option byte) or an
  :class:`UnknownCommand` (``IAC`` followed by any other byte).

Decoder state survives between calls, so a control sequence may be split
across two reads.  Unrecognized command and option bytes are never an
error.  No I/O is performed here.
"""

from __future__ import annotations

# std imports
import enum
import logging
from typing import List, NamedTuple, Optional, Union

# local
from . import telopt
from .telopt import ECHO, IAC, name_command, name_option
from .exceptions import ReadError

__all__ = (
    "Option",
    "Negotiation",
    "UnknownCommand",
    "Data",
    "Command",
    "DecoderState",
    "StateKind",
    "Verb",
    "NORMAL",
    "SAW_ESCAPE",
    "TelnetDecoder",
    "awaiting_option",
    "encode_negotiation",
    "ECHO_OPTION",
    "VERBS",
)

class Verb(enum.Enum):
    """Negotiation verb, each followed by exactly one option byte."""

    WILL = telopt.WILL
    WONT = telopt.WONT
    DO = telopt.DO
    DONT = telopt.DONT


#: Negotiation verb bytes.
VERBS = tuple(verb.value for verb in Verb)

# Pre-allocated single-byte cache to avoid per-byte bytes() allocations
_ONE_BYTE = [bytes([i]) for i in range(256)]


class Option(NamedTuple):
    """A Telnet option byte, such as ``ECHO``."""

    byte: bytes

    @property
    def is_echo(self) -> bool:
        """Whether this is the ECHO option, :rfc:`857`."""
        return self.byte == ECHO

    @property
    def name(self) -> str:
        return name_option(self.byte)


#: The only option this client acts upon.
ECHO_OPTION = Option(ECHO)


class Negotiation(NamedTuple):
    """Three-byte ``IAC <verb> <option>`` sequence."""

    verb: bytes
    option: Option

    def __str__(self):
        return "IAC {0} {1}".format(name_command(self.verb), self.option.name)


class UnknownCommand(NamedTuple):
    """Two-byte ``IAC <byte>`` sequence for any command not negotiated."""

    byte: bytes

    def __str__(self):
        return "IAC {0}".format(name_command(self.byte))


ProtocolCommand = Union[Negotiation, UnknownCommand]


class Data(NamedTuple):
    """A run of literal bytes received from the remote end."""

    payload: bytes


class Command(NamedTuple):
    """A single Telnet control sequence received from the remote end."""

    command: ProtocolCommand

    def __str__(self):
        return str(self.command)


ProtocolEvent = Union[Data, Command]


class StateKind(enum.Enum):
    """Position of the decoder within a control sequence."""

    NORMAL = "normal"
    SAW_ESCAPE = "saw_escape"
    AWAITING_OPTION = "awaiting_option"


class DecoderState(NamedTuple):
    """
    Decoder state kept between reads.

    ``verb`` is set only for :attr:`StateKind.AWAITING_OPTION`, when the
    verb of a negotiation has been received but its option byte has not.
    Build states with :data:`NORMAL`, :data:`SAW_ESCAPE` and
    :func:`awaiting_option`.
    """

    kind: StateKind
    verb: Optional[Verb] = None


NORMAL = DecoderState(StateKind.NORMAL)
SAW_ESCAPE = DecoderState(StateKind.SAW_ESCAPE)


def awaiting_option(verb) -> DecoderState:
    """
    Return state for a negotiation ``verb`` awaiting its option byte.

    :param verb: a :class:`Verb` or its byte value.
    :raises ValueError: when ``verb`` is not a negotiation verb.
    """
    return DecoderState(StateKind.AWAITING_OPTION, Verb(verb))


def encode_negotiation(verb, option: Option) -> bytes:
    """
    Return the ``IAC <verb> <option>`` bytes for the given negotiation.

    :raises ValueError: when ``verb`` is not a negotiation verb.
    """
    return IAC + Verb(verb).value + option.byte


class TelnetDecoder:
    """Telnet byte stream state machine, see module docstring."""

    def __init__(self):
        self.log = logging.getLogger(__name__)
        #: Current :class:`DecoderState`, kept between calls to :meth:`feed`.
        self.state = NORMAL

    def __repr__(self):
        if self.state.verb is not None:
            return "<TelnetDecoder {0} {1}>".format(
                self.state.kind.value, self.state.verb.name
            )
        return "<TelnetDecoder {0}>".format(self.state.kind.value)

    def reset(self):
        """Discard any partially received control sequence."""
        self.state = NORMAL

    def feed(self, buf: bytes) -> List[ProtocolEvent]:
        """
        Decode the bytes of a single read.

        :param bytes buf: bytes received by a socket read.
        :raises ReadError: when ``buf`` is empty, that is, the socket read
            returned end-of-file because the peer closed the connection.
        :rtype: list
        :returns: list of :class:`Data` and :class:`Command` events, in the
            order they occur in the stream.
        """
        if not buf:
            raise ReadError("connection closed by peer")

        events: List[ProtocolEvent] = []
        state = self.state
        # marks the first byte of the pending data run
        start = 0

        for idx, value in enumerate(buf):
            byte = _ONE_BYTE[value]
            if state == NORMAL:
                if byte == IAC:
                    if start < idx:
                        events.append(Data(bytes(buf[start:idx])))
                    state = SAW_ESCAPE
                    start = idx + 1

            elif state == SAW_ESCAPE:
                if byte == IAC:
                    # escaped literal 255
                    events.append(Data(IAC))
                    state = NORMAL
                elif byte in VERBS:
                    state = awaiting_option(byte)
                else:
                    command = UnknownCommand(byte)
                    self.log.debug("recv %s", command)
                    events.append(Command(command))
                    state = NORMAL
                start = idx + 1

            else:
                command = Negotiation(state.verb.value, Option(byte))
                self.log.debug("recv %s", command)
                events.append(Command(command))
                state = NORMAL
                start = idx + 1

        if state == NORMAL and start < len(buf):
            events.append(Data(bytes(buf[start:])))

        self.state = state
        return events

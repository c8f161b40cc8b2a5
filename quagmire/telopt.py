"""Telnet command and option byte values, :rfc:`854` and :rfc:`857`."""

IAC = b"\xff"
DONT = b"\xfe"
DO = b"\xfd"
WONT = b"\xfc"
WILL = b"\xfb"
SB = b"\xfa"
GA = b"\xf9"
EL = b"\xf8"
EC = b"\xf7"
AYT = b"\xf6"
AO = b"\xf5"
IP = b"\xf4"
BRK = b"\xf3"
DM = b"\xf2"
NOP = b"\xf1"
SE = b"\xf0"
EOR = b"\xef"

BINARY = b"\x00"
ECHO = b"\x01"
SGA = b"\x03"
STATUS = b"\x05"
TM = b"\x06"
TTYPE = b"\x18"
EOR_OPT = b"\x19"
NAWS = b"\x1f"
TSPEED = b" "
LFLOW = b"!"
LINEMODE = b'"'
XDISPLOC = b"#"
NEW_ENVIRON = b"'"
CHARSET = b"*"
MSDP = b"E"
MSSP = b"F"
MCCP2_COMPRESS = b"V"
MSP = b"Z"
MXP = b"["
GMCP = bytes([201])

__all__ = (
    "AO",
    "AYT",
    "BINARY",
    "BRK",
    "CHARSET",
    "DM",
    "DO",
    "DONT",
    "EC",
    "ECHO",
    "EL",
    "EOR",
    "EOR_OPT",
    "GA",
    "GMCP",
    "IAC",
    "IP",
    "LFLOW",
    "LINEMODE",
    "MCCP2_COMPRESS",
    "MSDP",
    "MSP",
    "MSSP",
    "MXP",
    "NAWS",
    "NEW_ENVIRON",
    "NOP",
    "SB",
    "SE",
    "SGA",
    "STATUS",
    "TM",
    "TSPEED",
    "TTYPE",
    "WILL",
    "WONT",
    "XDISPLOC",
    "name_command",
    "name_commands",
    "name_option",
)

#: Command bytes that may follow IAC
_DEBUG_CMDS = dict(
    [
        (value, key)
        for key, value in globals().items()
        if key
        in (
            "IAC",
            "DONT",
            "DO",
            "WONT",
            "WILL",
            "SB",
            "GA",
            "EL",
            "EC",
            "AYT",
            "AO",
            "IP",
            "BRK",
            "DM",
            "NOP",
            "SE",
            "EOR",
        )
    ]
)

#: Option bytes that may follow IAC WILL, WONT, DO or DONT
_DEBUG_OPTS = dict(
    [
        (value, key)
        for key, value in globals().items()
        if key
        in (
            "BINARY",
            "ECHO",
            "SGA",
            "STATUS",
            "TM",
            "TTYPE",
            "NAWS",
            "TSPEED",
            "LFLOW",
            "LINEMODE",
            "XDISPLOC",
            "NEW_ENVIRON",
            "CHARSET",
            "MSDP",
            "MSSP",
            "MCCP2_COMPRESS",
            "MSP",
            "MXP",
            "GMCP",
            "EOR_OPT",
        )
    ]
)


def name_command(byte):
    """Return string description for (maybe) telnet command byte."""
    return _DEBUG_CMDS.get(byte, repr(byte))


def name_option(byte):
    """Return string description for (maybe) telnet option byte."""
    return _DEBUG_OPTS.get(byte, repr(byte))


def name_commands(cmds, sep=" "):
    """
    Return string description for array of (maybe) telnet command bytes.

    The first byte following a negotiation verb is named as an option.

    Example::

        >>> name_commands(b'\\xff\\xfb\\x01')
        'IAC WILL ECHO'
    """
    names = []
    prev = None
    for value in cmds:
        byte = bytes([value])
        if prev in (WILL, WONT, DO, DONT):
            names.append(name_option(byte))
        else:
            names.append(name_command(byte))
        prev = byte
    return sep.join(names)

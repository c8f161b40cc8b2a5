"""Filtering of received data before it is written to the terminal."""
# std imports
import codecs

# 3rd party
import wcwidth

__all__ = ("DisplayFilter", "MODES")

#: Names of the supported filter modes.
MODES = ("ascii", "utf8")

# control characters a terminal interprets sensibly: BS, TAB, LF, CR, BEL, ESC
_ALLOWED_CONTROLS = frozenset("\b\t\n\r\a\x1b")


class DisplayFilter(object):
    """
    Remove bytes of received data that should not reach the terminal.

    In ``ascii`` mode, every byte of value 128 or greater is dropped and
    all others pass unchanged.  In ``utf8`` mode, data is decoded as UTF-8,
    a character sequence may span several calls, invalid sequences become
    U+FFFD, and control characters other than those a terminal uses for
    layout and escape sequences are dropped.
    """

    def __init__(self, mode="ascii"):
        if mode not in MODES:
            raise ValueError("display mode must be one of {0}, got {1!r}".format(MODES, mode))
        self.mode = mode
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    def __repr__(self):
        return "<DisplayFilter {0}>".format(self.mode)

    def __call__(self, data):
        """Return the displayable part of ``data``, as bytes."""
        if self.mode == "ascii":
            return bytes(byte for byte in data if byte < 0x80)
        text = self._decoder.decode(data)
        return "".join(ch for ch in text if _printable(ch)).encode("utf-8")


def _printable(ucs):
    return ucs in _ALLOWED_CONTROLS or wcwidth.wcwidth(ucs) >= 0

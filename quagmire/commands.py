"""Classification of local input lines."""
# std imports
import collections

__all__ = ("CommandInput", "RegularInput", "parse_input", "QUIT", "DEFAULT_MARKER")

#: Lines beginning with this character are client commands.
DEFAULT_MARKER = "/"

#: Built-in command that ends the session.
QUIT = "quit"

#: A client command, such as ``/quit``, or the name of a macro.
CommandInput = collections.namedtuple("CommandInput", ["name", "args"])

#: A line to be sent to the remote end as-is.
RegularInput = collections.namedtuple("RegularInput", ["text"])


def parse_input(line, marker=DEFAULT_MARKER):
    """
    Classify a line of local input.

    The trailing line terminator, if any, is removed.  A line whose first
    word begins with ``marker`` is a :class:`CommandInput`, unless the
    marker is doubled, in which case one marker is removed and the rest is
    sent as :class:`RegularInput`.

    Example::

        >>> parse_input('/quit\\n')
        CommandInput(name='quit', args=())
        >>> parse_input('//quit\\n')
        RegularInput(text='/quit')
        >>> parse_input('say hi\\n')
        RegularInput(text='say hi')
    """
    text = line.rstrip("\r\n")
    stripped = text.strip()
    if stripped.startswith(marker * 2):
        return RegularInput(text.replace(marker, "", 1))
    if stripped.startswith(marker):
        words = stripped.split()
        name = words[0][len(marker):]
        if name:
            return CommandInput(name, tuple(words[1:]))
    # includes a lone marker, which names no command
    return RegularInput(text)

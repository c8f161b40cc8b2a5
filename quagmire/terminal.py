"""Local terminal echo control and standard input/output streams."""
# std imports
import collections
import threading
import logging
import asyncio
import sys
import os

# local
from .exceptions import TerminalError

__all__ = ("Terminal", "make_stdio")

if sys.platform == "win32":
    termios = None
else:
    import termios


class Terminal(object):
    """
    Context manager for the local echo state of standard input.

    On enter, the terminal mode of ``stdin`` is saved.  On exit it is
    restored, exactly once, whichever way the block is left.  Between the
    two, :meth:`set_echo` switches the echo of typed characters on and off.

    When ``stdin`` is not attached to a terminal, no action is performed
    before or after yielding, and :meth:`set_echo` only records the state.
    """

    ModeDef = collections.namedtuple(
        "mode", ["iflag", "oflag", "cflag", "lflag", "ispeed", "ospeed", "cc"]
    )

    def __init__(self, stdin=None):
        self.log = logging.getLogger(__name__)
        stdin = stdin if stdin is not None else sys.stdin
        self._fileno = stdin.fileno()
        self._istty = termios is not None and os.isatty(self._fileno)
        self._save_mode = None
        #: Whether typed characters are echoed locally.  ``False`` while the
        #: remote end has taken over echoing (``IAC WILL ECHO``).
        self.echo = True

    def __repr__(self):
        return "<Terminal fd={0} {1} {2}>".format(
            self._fileno,
            "tty" if self._istty else "notty",
            "+echo" if self.echo else "-echo",
        )

    @property
    def istty(self):
        """Whether standard input is attached to a terminal."""
        return self._istty

    def __enter__(self):
        if self._istty:
            self._save_mode = self.get_mode()
        self.log.debug("is stdin a tty? %s", self._istty)
        return self

    def __exit__(self, *_):
        self.restore()

    def restore(self):
        """Restore the terminal mode saved on enter; only the first call acts."""
        save_mode, self._save_mode = self._save_mode, None
        if save_mode is not None:
            self.set_mode(save_mode)
            self.log.debug("terminal mode restored")

    def get_mode(self):
        try:
            return self.ModeDef(*termios.tcgetattr(self._fileno))
        except termios.error as err:
            raise TerminalError(*err.args) from err

    def set_mode(self, mode):
        try:
            termios.tcsetattr(self._fileno, termios.TCSANOW, list(mode))
        except termios.error as err:
            raise TerminalError(*err.args) from err

    def set_echo(self, enabled):
        """
        Switch local echo of typed characters on or off.

        :param bool enabled: whether characters should be echoed.
        :raises TerminalError: when the terminal mode cannot be changed.
        """
        enabled = bool(enabled)
        if not self._istty:
            self.log.debug("local echo %s (not a tty)", "on" if enabled else "off")
            self.echo = enabled
            return

        mode = self.get_mode()
        if enabled:
            lflag = mode.lflag | termios.ECHO
        else:
            lflag = mode.lflag & ~termios.ECHO
        self.set_mode(mode._replace(lflag=lflag))
        self.echo = enabled
        self.log.debug("local echo %s", "on" if enabled else "off")


class _BlockingWriter(object):
    """Minimal stream writer for an output file that is not a pipe."""

    def __init__(self, fobj):
        self._fobj = fobj

    def write(self, data):
        self._fobj.write(data)

    async def drain(self):
        self._fobj.flush()


def _start_thread_reader(reader, fobj, loop):
    """Feed lines of a blocking ``fobj`` to ``reader`` from a daemon thread."""

    def _run():
        for line in iter(fobj.readline, b""):
            loop.call_soon_threadsafe(reader.feed_data, line)
        loop.call_soon_threadsafe(reader.feed_eof)

    thread = threading.Thread(target=_run, name="stdin-reader", daemon=True)
    thread.start()
    return thread


async def make_stdio(stdin=None, stdout=None, istty=None):
    """
    Return (reader, writer) pair for sys.stdin, sys.stdout.

    Pipes, sockets and terminals are connected to the event loop.  Regular
    files, which cannot be, are read by a daemon thread and written
    with blocking calls.
    """
    stdin = stdin if stdin is not None else sys.stdin
    stdout = stdout if stdout is not None else sys.stdout
    if istty is None:
        istty = os.isatty(stdin.fileno())
    loop = asyncio.get_event_loop()

    reader = asyncio.StreamReader()
    reader_protocol = asyncio.StreamReaderProtocol(reader)
    try:
        await loop.connect_read_pipe(lambda: reader_protocol, stdin)
    except ValueError:
        _start_thread_reader(reader, stdin.buffer, loop)

    # When stdin is a tty, 0 and 1 are the same open file, and making one of
    # them non-blocking makes the other one so; writing through the same
    # file object keeps output on the event loop as well.
    write_fobj = stdin if istty else stdout
    try:
        writer_transport, writer_protocol = await loop.connect_write_pipe(
            asyncio.streams.FlowControlMixin, write_fobj
        )
    except ValueError:
        writer = _BlockingWriter(stdout.buffer)
    else:
        writer = asyncio.StreamWriter(writer_transport, writer_protocol, None, loop)

    return reader, writer

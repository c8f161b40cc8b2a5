"""Module provides class ClientShell, the session control loop."""
# std imports
import asyncio
import logging

# local
from . import accessories
from .commands import QUIT, DEFAULT_MARKER, CommandInput, parse_input
from .config import Config
from .decoder import ECHO_OPTION, Command, Data, Negotiation, encode_negotiation
from .display import DisplayFilter
from .exceptions import TerminalError, WriteError
from .telopt import DO, DONT, WILL, WONT

__all__ = ("ClientShell", "read_input", "RUNNING", "CLOSING", "CLOSED")

RUNNING, CLOSING, CLOSED = "running", "closing", "closed"


async def read_input(reader, queue, marker=DEFAULT_MARKER):
    """
    Parse lines of local input from ``reader`` into ``queue``.

    Ends after forwarding the ``quit`` command, or at end of input; in
    either case ``None`` is the last item put into ``queue``.
    """
    log = logging.getLogger(__name__)
    try:
        while True:
            try:
                line = await reader.readline()
            except ValueError as err:
                # line exceeded the stream limit and was discarded
                log.warning("input: %s", err)
                continue
            if not line:
                log.debug("EOF from client stdin")
                break
            inp = parse_input(line.decode("utf-8", "surrogateescape"), marker)
            queue.put_nowait(inp)
            if isinstance(inp, CommandInput) and inp.name == QUIT:
                break
    finally:
        queue.put_nowait(None)


class ClientShell(object):
    """
    Route events between a connection, local input and the terminal.

    All side effects of a session happen here, in one task: writing to the
    display, changing local echo, writing to the connection and ending the
    session.  Three queues are multiplexed:

    - :attr:`Connection.events`, decoded events from the remote end,
      ``None`` when it has ended.
    - ``inputs``, parsed local input lines, ``None`` at end of input.
    - :attr:`replies`, negotiation replies synthesized by this class.
    """

    def __init__(self, connection, inputs, stdout, terminal, config=None, *,
                 display=None, line_ending="\r\n", marker=DEFAULT_MARKER):
        self.log = logging.getLogger(__name__)
        self.connection = connection
        self.inputs = inputs
        self.stdout = stdout
        self.terminal = terminal
        self.config = config if config is not None else Config()
        self.display = display if display is not None else DisplayFilter()
        self.line_ending = line_ending
        self.marker = marker

        #: synthesized protocol replies, sent in order.
        self.replies = asyncio.Queue()
        self.state = RUNNING
        #: Whether the session ended because the remote end did.
        self.remote_ended = False

    def __repr__(self):
        return "<ClientShell {0} {1!r}>".format(self.state, self.connection)

    async def run(self):
        """
        Run the session until quit, end of input or loss of connection.

        The connection is closed before returning.

        :rtype: int
        :returns: exit status, ``0``.
        """
        channels = (
            (self.replies, self.handle_reply),
            (self.inputs, self.handle_input),
            (self.connection.events, self.handle_event),
        )
        pending = {
            queue: accessories.make_reader_task(queue) for queue, _ in channels
        }
        try:
            while self.state == RUNNING:
                await asyncio.wait(
                    set(pending.values()), return_when=asyncio.FIRST_COMPLETED
                )
                for queue, handler in channels:
                    task = pending[queue]
                    if self.state != RUNNING or not task.done():
                        continue
                    await handler(task.result())
                    pending[queue] = accessories.make_reader_task(queue)
        finally:
            for task in pending.values():
                task.cancel()
            self.state = CLOSING

        # replies owed to the remote end go out ahead of the close
        reply_task = pending[self.replies]
        if reply_task.done() and not reply_task.cancelled():
            self.send(reply_task.result())
        while not self.replies.empty():
            self.send(self.replies.get_nowait())

        if self.remote_ended:
            await self.echo("Connection closed by foreign host.\n")
        await self.connection.close()
        await self.echo("Goodbye!\n")
        self.state = CLOSED
        return 0

    async def echo(self, text):
        """Write ``text`` to the local display."""
        self.stdout.write(text.encode("utf-8"))
        await self.stdout.drain()

    # channel handlers

    async def handle_event(self, event):
        """Handle one event decoded from the remote end."""
        if event is None:
            self.log.info("remote end closed: %s", self.connection.error or "EOF")
            self.remote_ended = True
            self.state = CLOSING

        elif isinstance(event, Data):
            data = self.display(event.payload)
            if data:
                self.stdout.write(data)
                await self.stdout.drain()

        elif isinstance(event, Command):
            self.handle_command(event.command)

    def handle_command(self, command):
        """Handle a control sequence; only ECHO negotiation has an effect."""
        if isinstance(command, Negotiation) and command.option.is_echo:
            if command.verb == WILL:
                # server has taken over echoing
                self.log.debug("received WILL ECHO")
                self.replies.put_nowait(encode_negotiation(DO, ECHO_OPTION))
                self.set_echo(False)
                return
            if command.verb == WONT:
                self.log.debug("received WONT ECHO")
                self.replies.put_nowait(encode_negotiation(DONT, ECHO_OPTION))
                self.set_echo(True)
                return
        self.log.debug("Got command %s", command)

    async def handle_input(self, inp):
        """Handle one parsed line of local input."""
        if inp is None:
            self.log.debug("end of local input")
            self.state = CLOSING

        elif isinstance(inp, CommandInput):
            if inp.name == QUIT:
                self.log.debug("quit")
                self.state = CLOSING
                return
            lines = self.config.expand_macro(inp.name)
            if lines is None:
                await self.echo(
                    "Unknown command: {0}{1}\n".format(self.marker, inp.name)
                )
                return
            self.log.debug("macro %s: %r", inp.name, lines)
            for line in lines:
                self.send_line(line)

        else:
            self.send_line(inp.text)

    async def handle_reply(self, data):
        """Send a synthesized protocol reply."""
        self.send(data)

    # side effects

    def set_echo(self, enabled):
        try:
            self.terminal.set_echo(enabled)
        except TerminalError as err:
            self.log.error(
                "Couldn't %s echo: %s", "enable" if enabled else "disable", err
            )

    def send_line(self, text):
        self.send((text + self.line_ending).encode("utf-8", "surrogateescape"))

    def send(self, data):
        try:
            self.connection.send(data)
        except WriteError as err:
            self.log.info("write failed: %s", err)
            self.remote_ended = True
            self.state = CLOSING

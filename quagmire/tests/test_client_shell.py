"""Tests for quagmire.client_shell, the session control loop."""

# std imports
import asyncio
import logging

# 3rd party
import pytest

# local
from quagmire.client_shell import CLOSED, CLOSING, RUNNING, ClientShell, read_input
from quagmire.commands import CommandInput, RegularInput
from quagmire.config import Config, Macro
from quagmire.decoder import ECHO_OPTION, Data, Option, Command, Negotiation, UnknownCommand
from quagmire.display import DisplayFilter
from quagmire.exceptions import TerminalError, WriteError
from quagmire.telopt import DO, NOP, SGA, WILL, WONT


class _FakeConnection:
    """Stand-in for :class:`~.Connection` recording what is sent."""

    def __init__(self, fail_send=False):
        self.events = asyncio.Queue()
        self.sent = []
        self.error = None
        self.close_count = 0
        self.fail_send = fail_send

    def send(self, data):
        if self.fail_send or self.close_count:
            raise WriteError("connection is closed")
        self.sent.append(data)

    async def close(self):
        self.close_count += 1


class _FakeTerminal:
    def __init__(self, fail=False):
        self.echo = True
        self.calls = []
        self.fail = fail

    def set_echo(self, enabled):
        self.calls.append(enabled)
        if self.fail:
            raise TerminalError("Inappropriate ioctl for device")
        self.echo = enabled


class _FakeStdout:
    def __init__(self):
        self.buffer = bytearray()
        self.drains = 0

    def write(self, data):
        self.buffer.extend(data)

    async def drain(self):
        self.drains += 1


def _make_shell(config=None, **kwargs):
    conn = kwargs.pop("connection", None) or _FakeConnection()
    terminal = kwargs.pop("terminal", None) or _FakeTerminal()
    stdout = _FakeStdout()
    inputs = asyncio.Queue()
    shell = ClientShell(conn, inputs, stdout, terminal, config, **kwargs)
    return shell, conn, inputs, stdout, terminal


async def _run(shell, timeout=2.0):
    return await asyncio.wait_for(shell.run(), timeout)


async def _until(predicate, rounds=100):
    for _ in range(rounds):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition not met")


@pytest.mark.asyncio
async def test_will_echo_disables_echo_and_replies():
    shell, conn, inputs, stdout, terminal = _make_shell()
    conn.events.put_nowait(Command(Negotiation(WILL, ECHO_OPTION)))
    task = asyncio.ensure_future(shell.run())

    # the reply travels through the reply queue before it is sent
    await _until(lambda: conn.sent)
    assert conn.sent == [bytes([255, 253, 1])]
    assert terminal.echo is False
    assert shell.state == RUNNING

    inputs.put_nowait(CommandInput("quit", ()))
    assert await asyncio.wait_for(task, 2.0) == 0


@pytest.mark.asyncio
async def test_wont_echo_enables_echo_and_replies():
    shell, conn, inputs, stdout, terminal = _make_shell()
    conn.events.put_nowait(Command(Negotiation(WILL, ECHO_OPTION)))
    conn.events.put_nowait(Command(Negotiation(WONT, ECHO_OPTION)))
    task = asyncio.ensure_future(shell.run())

    await _until(lambda: len(conn.sent) == 2)
    assert conn.sent == [bytes([255, 253, 1]), bytes([255, 254, 1])]
    assert terminal.calls == [False, True]
    assert terminal.echo is True

    conn.events.put_nowait(None)
    assert await asyncio.wait_for(task, 2.0) == 0


@pytest.mark.asyncio
async def test_queued_reply_sent_before_close():
    shell, conn, inputs, stdout, terminal = _make_shell()
    # the reply is queued in the same pass that ends the session
    shell.handle_command(Negotiation(WILL, ECHO_OPTION))
    shell.state = CLOSING

    assert await _run(shell) == 0
    # the fake refuses sends after close, so order is checked too
    assert conn.sent == [bytes([255, 253, 1])]
    assert conn.close_count == 1
    assert not shell.remote_ended
    assert shell.replies.empty()


@pytest.mark.asyncio
async def test_other_commands_ignored(caplog):
    shell, conn, inputs, stdout, terminal = _make_shell()
    conn.events.put_nowait(Command(Negotiation(WILL, Option(SGA))))
    conn.events.put_nowait(Command(Negotiation(DO, ECHO_OPTION)))
    conn.events.put_nowait(Command(UnknownCommand(NOP)))
    conn.events.put_nowait(None)

    with caplog.at_level(logging.DEBUG, logger="quagmire.client_shell"):
        assert await _run(shell) == 0
    assert terminal.calls == []
    assert conn.sent == []
    assert "Got command IAC NOP" in caplog.text


@pytest.mark.asyncio
async def test_data_displayed():
    shell, conn, inputs, stdout, terminal = _make_shell()
    conn.events.put_nowait(Data(b"Welcome!\r\n"))
    conn.events.put_nowait(Data(b"caf\xc3\xa9\r\n"))
    conn.events.put_nowait(None)

    assert await _run(shell) == 0
    assert bytes(stdout.buffer) == (
        b"Welcome!\r\ncaf\r\n"
        b"Connection closed by foreign host.\nGoodbye!\n"
    )
    assert stdout.drains >= 2


@pytest.mark.asyncio
async def test_data_displayed_utf8():
    shell, conn, inputs, stdout, terminal = _make_shell(display=DisplayFilter("utf8"))
    conn.events.put_nowait(Data(b"caf\xc3"))
    conn.events.put_nowait(Data(b"\xa9\x00\x07\r\n"))
    conn.events.put_nowait(None)

    assert await _run(shell) == 0
    assert bytes(stdout.buffer).startswith("café\x00\x07\r\n".encode("utf-8"))


@pytest.mark.asyncio
async def test_remote_close_ends_session():
    shell, conn, inputs, stdout, terminal = _make_shell()
    conn.events.put_nowait(None)

    assert await _run(shell) == 0
    assert shell.state == CLOSED
    assert shell.remote_ended
    assert conn.close_count == 1
    assert b"Connection closed by foreign host." in stdout.buffer


@pytest.mark.asyncio
async def test_quit_closes_connection():
    shell, conn, inputs, stdout, terminal = _make_shell()
    inputs.put_nowait(CommandInput("quit", ()))

    assert await _run(shell) == 0
    assert shell.state == CLOSED
    assert not shell.remote_ended
    assert conn.close_count == 1
    assert bytes(stdout.buffer) == b"Goodbye!\n"


@pytest.mark.asyncio
async def test_end_of_input_ends_session():
    shell, conn, inputs, stdout, terminal = _make_shell()
    inputs.put_nowait(RegularInput("say bye"))
    inputs.put_nowait(None)

    assert await _run(shell) == 0
    assert conn.sent == [b"say bye\r\n"]
    assert conn.close_count == 1


@pytest.mark.asyncio
async def test_regular_input_line_ending():
    shell, conn, inputs, stdout, terminal = _make_shell(line_ending="\n")
    inputs.put_nowait(RegularInput("look"))
    inputs.put_nowait(RegularInput(""))
    inputs.put_nowait(RegularInput("say caf\udcc3\udca9"))
    inputs.put_nowait(None)

    assert await _run(shell) == 0
    assert conn.sent == [b"look\n", b"\n", b"say caf\xc3\xa9\n"]


@pytest.mark.asyncio
async def test_macro_expansion():
    config = Config(macros={"lw": Macro(name="lw", commands=["look", "who"])})
    shell, conn, inputs, stdout, terminal = _make_shell(config)
    inputs.put_nowait(CommandInput("lw", ("ignored",)))
    inputs.put_nowait(None)

    assert await _run(shell) == 0
    assert conn.sent == [b"look\r\n", b"who\r\n"]


@pytest.mark.asyncio
async def test_unknown_macro_not_fatal():
    shell, conn, inputs, stdout, terminal = _make_shell()
    inputs.put_nowait(CommandInput("dance", ()))
    inputs.put_nowait(RegularInput("north"))
    inputs.put_nowait(None)

    assert await _run(shell) == 0
    assert bytes(stdout.buffer).startswith(b"Unknown command: /dance\n")
    assert conn.sent == [b"north\r\n"]


@pytest.mark.asyncio
async def test_unknown_macro_custom_marker():
    shell, conn, inputs, stdout, terminal = _make_shell(marker="#")
    inputs.put_nowait(CommandInput("dance", ()))
    inputs.put_nowait(None)

    assert await _run(shell) == 0
    assert bytes(stdout.buffer).startswith(b"Unknown command: #dance\n")


@pytest.mark.asyncio
async def test_write_error_ends_session():
    conn = _FakeConnection(fail_send=True)
    shell, conn, inputs, stdout, terminal = _make_shell(connection=conn)
    inputs.put_nowait(RegularInput("look"))

    assert await _run(shell) == 0
    assert shell.remote_ended
    assert conn.close_count == 1


@pytest.mark.asyncio
async def test_terminal_error_not_fatal(caplog):
    terminal = _FakeTerminal(fail=True)
    shell, conn, inputs, stdout, terminal = _make_shell(terminal=terminal)
    conn.events.put_nowait(Command(Negotiation(WILL, ECHO_OPTION)))
    conn.events.put_nowait(Data(b"Password: "))
    conn.events.put_nowait(None)

    with caplog.at_level(logging.ERROR, logger="quagmire.client_shell"):
        assert await _run(shell) == 0
    assert "Couldn't disable echo" in caplog.text
    assert bytes(stdout.buffer).startswith(b"Password: ")


@pytest.mark.asyncio
async def test_read_input():
    reader = asyncio.StreamReader()
    reader.feed_data(b"look\n//who\n/lw fast\n/quit\nnever sent\n")
    reader.feed_eof()
    queue = asyncio.Queue()

    await asyncio.wait_for(read_input(reader, queue), 2.0)

    items = []
    while not queue.empty():
        items.append(queue.get_nowait())
    assert items == [
        RegularInput("look"),
        RegularInput("/who"),
        CommandInput("lw", ("fast",)),
        CommandInput("quit", ()),
        None,
    ]


@pytest.mark.asyncio
async def test_read_input_eof():
    reader = asyncio.StreamReader()
    reader.feed_data(b"partial line")
    reader.feed_eof()
    queue = asyncio.Queue()

    await asyncio.wait_for(read_input(reader, queue, marker="#"), 2.0)

    assert queue.get_nowait() == RegularInput("partial line")
    assert queue.get_nowait() is None

"""Module provides class Connection."""

from __future__ import annotations

# std imports
import asyncio
import logging
from typing import Optional

# local
from .decoder import TelnetDecoder
from .exceptions import ConnectError, ReadError, WriteError

__all__ = ("Connection", "ConnectError", "ReadError", "WriteError")

#: Maximum number of bytes requested by each socket read.
DEFAULT_BUFSIZE = 1024


class Connection:
    """
    A Telnet connection to a remote host.

    Two tasks share the stream pair of one socket: the *read pump* feeds
    each socket read to a :class:`~.TelnetDecoder` and puts the resulting
    events into :attr:`events`, the *write pump* writes each byte buffer
    given to :meth:`send` to the socket.  Either pump ends on any socket
    error without affecting the other.

    When the read pump ends, ``None`` is put into :attr:`events`; it is the
    last item ever put there.
    """

    #: Seconds :meth:`close` waits for queued bytes to be written.
    close_timeout = 1.0

    def __init__(self, reader, writer, bufsize=DEFAULT_BUFSIZE, decoder=None):
        """
        Class initializer.

        Use :meth:`open` to connect and start the pumps; this initializer
        only wraps an already connected stream pair.

        :raises ValueError: when ``bufsize`` is less than 1.
        """
        if bufsize < 1:
            raise ValueError("bufsize must be at least 1, got {0!r}".format(bufsize))
        self.log = logging.getLogger(__name__)
        self._reader = reader
        self._writer = writer
        self._bufsize = bufsize
        self.decoder = decoder or TelnetDecoder()

        #: inbound :class:`~.Data` and :class:`~.Command` events.
        self.events: asyncio.Queue = asyncio.Queue()
        #: exception that ended the read pump, ``None`` for a clean close.
        self.error: Optional[BaseException] = None

        self._outbound: asyncio.Queue = asyncio.Queue()
        self._closing = False
        self._read_task = None
        self._write_task = None

    def __repr__(self):
        peername = (self.get_extra_info("peername") or ("-", "-"))[:2]
        return "<Connection {0} {1} {2}>".format(
            peername[0], peername[1], "closed" if self._closing else "open"
        )

    @classmethod
    async def open(cls, host, port, *, bufsize=DEFAULT_BUFSIZE, **kwargs):
        """
        Connect to ``host``, ``port`` and start both pumps.

        Further keyword arguments are given to :func:`asyncio.open_connection`.

        :raises ConnectError: when the connection cannot be established.
        :raises ValueError: when ``bufsize`` is less than 1.
        :rtype: Connection
        """
        if bufsize < 1:
            raise ValueError("bufsize must be at least 1, got {0!r}".format(bufsize))
        log = logging.getLogger(__name__)
        try:
            reader, writer = await asyncio.open_connection(host, port, **kwargs)
        except OSError as err:
            log.debug("connect to %s:%s failed: %s", host, port, err)
            raise ConnectError(host, port, err) from err
        conn = cls(reader, writer, bufsize=bufsize)
        conn.log.info("Connected to %s:%s", host, port)
        conn.start()
        return conn

    def start(self):
        """Start the read and write pumps."""
        assert self._read_task is None, "pumps already started"
        loop = asyncio.get_event_loop()
        self._read_task = loop.create_task(self._read_pump())
        self._write_task = loop.create_task(self._write_pump())

    @property
    def closed(self):
        """Whether :meth:`close` has been called."""
        return self._closing

    def get_extra_info(self, name, default=None):
        """Get optional transport information, such as ``'peername'``."""
        return self._writer.get_extra_info(name, default)

    def send(self, data: bytes) -> None:
        """
        Queue raw bytes for transmission by the write pump.

        :raises WriteError: when the connection is closed, or the write pump
            has ended by a previous write failure.
        """
        if self._closing or (self._write_task is not None and self._write_task.done()):
            raise WriteError("connection is closed")
        self._outbound.put_nowait(bytes(data))

    async def close(self):
        """
        Close both directions of the socket.

        Both pumps end as a result.  Calling more than once has no effect.
        """
        if self._closing:
            return
        self._closing = True
        self.log.info("Closing %s", self)

        # let the write pump flush what was already queued, then end it
        self._outbound.put_nowait(None)
        if self._write_task is not None:
            await asyncio.wait([self._write_task], timeout=self.close_timeout)
            if not self._write_task.done():
                self.log.debug("peer is not reading, discarding unsent bytes")
                self._writer.transport.abort()
        self._writer.close()
        try:
            await self._writer.wait_closed()
        except OSError as err:
            self.log.debug("error during close: %s", err)

        for task in (self._read_task, self._write_task):
            if task is not None:
                await asyncio.wait([task])

    async def _read_pump(self):
        try:
            while True:
                data = await self._reader.read(self._bufsize)
                for event in self.decoder.feed(data):
                    self.events.put_nowait(event)
        except ReadError as err:
            self.log.info("Connection closed by %s: %s", self, err)
        except OSError as err:
            self.log.info("Connection lost to %s: %s", self, err)
            self.error = err
        finally:
            self.events.put_nowait(None)

    async def _write_pump(self):
        while True:
            data = await self._outbound.get()
            if data is None:
                break
            try:
                self._writer.write(data)
                await self._writer.drain()
            except OSError as err:
                self.log.debug("write to %s failed: %s", self, err)
                break

"""Exceptions raised by quagmire."""

__all__ = ("ConnectError", "ReadError", "WriteError", "TerminalError")


class ConnectError(ConnectionError):
    """Initial connection to the remote host failed."""

    def __init__(self, host, port, original_exception=None):
        self.host = host
        self.port = port
        self.original_exception = original_exception
        message = "could not connect to {0}:{1}".format(host, port)
        if original_exception is not None:
            message = "{0}: {1}".format(message, original_exception)
        super().__init__(message)


class ReadError(ConnectionError):
    """Reading from an established connection failed, or the peer closed it."""


class WriteError(ConnectionError):
    """Writing to an established connection failed, or it is closed."""


class TerminalError(OSError):
    """The local terminal mode could not be read or changed."""

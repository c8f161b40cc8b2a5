#!/usr/bin/env python3
"""
Command-line entry point of the 'quagmire' MUD client.

Usage::

    quagmire HOST PORT [--config PATH] [--loglevel LEVEL] ...
"""
# std imports
import argparse
import asyncio
import sys

# local imports
from quagmire import accessories
from quagmire.client_shell import ClientShell, read_input
from quagmire.commands import DEFAULT_MARKER
from quagmire.config import Config
from quagmire.connection import DEFAULT_BUFSIZE, Connection
from quagmire.display import MODES, DisplayFilter
from quagmire.exceptions import ConnectError
from quagmire.terminal import Terminal, make_stdio

__all__ = ("run_client", "main")

#: Exit status for malformed arguments, ``EX_USAGE`` of sysexits(3).
EX_USAGE = 64

LINE_ENDINGS = {"crlf": "\r\n", "lf": "\n"}


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(EX_USAGE, "{0}: error: {1}\n".format(self.prog, message))


def _port_number(value):
    try:
        port = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError("invalid port number: {0!r}".format(value))
    if not 0 < port < 65536:
        raise argparse.ArgumentTypeError("port out of range: {0}".format(port))
    return port


def _positive_int(value):
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError("invalid int value: {0!r}".format(value))
    if number < 1:
        raise argparse.ArgumentTypeError("must be at least 1: {0}".format(number))
    return number


def _get_argument_parser():
    parser = _ArgumentParser(
        prog="quagmire",
        description="Telnet client for MUD servers",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("host", action="store", help="hostname")
    parser.add_argument("port", type=_port_number, help="port number")
    parser.add_argument("--config", default=None, help="macro configuration file (JSON)")
    parser.add_argument("--loglevel", default="warn", help="log level")
    parser.add_argument(
        "--logfmt", default=accessories._DEFAULT_LOGFMT, help="log format"
    )
    parser.add_argument("--logfile", help="filepath")
    parser.add_argument(
        "--display",
        default="ascii",
        choices=MODES,
        help="filter applied to received data",
    )
    parser.add_argument(
        "--line-ending",
        default="crlf",
        choices=sorted(LINE_ENDINGS),
        help="terminator appended to each line sent",
    )
    parser.add_argument(
        "--bufsize", default=DEFAULT_BUFSIZE, type=_positive_int, help="socket read size"
    )
    parser.add_argument(
        "--command-marker", default=DEFAULT_MARKER, help="prefix of client commands"
    )
    parser.add_argument(
        "--version", action="version", version=accessories.get_version()
    )
    return parser


def _transform_args(args):
    return {
        "host": args.host,
        "port": args.port,
        "loglevel": args.loglevel,
        "logfile": args.logfile,
        "logfmt": args.logfmt,
        "config": args.config,
        "display": args.display,
        "line_ending": LINE_ENDINGS[args.line_ending],
        "bufsize": args.bufsize,
        "marker": args.command_marker,
    }


async def run_client(argv=None):
    """Command-line 'quagmire' entry point, returns exit status."""
    kwargs = _transform_args(_get_argument_parser().parse_args(argv))
    config_msg = "Client configuration: {key_values}".format(
        key_values=accessories.repr_mapping(kwargs)
    )
    log = accessories.make_logger(
        name=__name__,
        loglevel=kwargs.pop("loglevel"),
        logfile=kwargs.pop("logfile"),
        logfmt=kwargs.pop("logfmt"),
    )
    log.debug(config_msg)

    try:
        config = Config.load(kwargs["config"])
    except (OSError, ValueError) as err:
        print("quagmire: {0}".format(err), file=sys.stderr)
        return 1

    with Terminal() as term:
        stdin, stdout = await make_stdio(istty=term.istty)
        inputs = asyncio.Queue()
        input_task = asyncio.ensure_future(
            read_input(stdin, inputs, marker=kwargs["marker"])
        )
        try:
            conn = await Connection.open(
                kwargs["host"], kwargs["port"], bufsize=kwargs["bufsize"]
            )
        except ConnectError as err:
            input_task.cancel()
            print("quagmire: {0}".format(err), file=sys.stderr)
            return 1

        shell = ClientShell(
            conn,
            inputs,
            stdout,
            term,
            config,
            display=DisplayFilter(kwargs["display"]),
            line_ending=kwargs["line_ending"],
            marker=kwargs["marker"],
        )
        try:
            return await shell.run()
        finally:
            input_task.cancel()
            await conn.close()


def main():
    try:
        status = asyncio.run(run_client())
    except KeyboardInterrupt:
        status = 130
    sys.exit(status)


if __name__ == "__main__":
    main()

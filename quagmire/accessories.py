"""Accessory functions."""
# std imports
import importlib.metadata
import logging
import asyncio

__all__ = ("get_version", "make_logger", "repr_mapping", "make_reader_task")


def get_version():
    """Return version of the installed quagmire distribution."""
    try:
        return importlib.metadata.version("quagmire")
    except importlib.metadata.PackageNotFoundError:
        return "unknown"


_DEFAULT_LOGFMT = " ".join(
    ("%(asctime)s", "%(levelname)s", "%(filename)s:%(lineno)d", "%(message)s")
)


def make_logger(name, loglevel="info", logfile=None, logfmt=_DEFAULT_LOGFMT):
    """Create and return simple logger for given arguments."""
    lvl = getattr(logging, loglevel.upper())
    logging.getLogger().setLevel(lvl)

    _cfg = {"format": logfmt}
    if logfile:
        _cfg["filename"] = logfile
    logging.basicConfig(**_cfg)
    return logging.getLogger(name)


def repr_mapping(mapping):
    """Return printable string, 'key=value [key=value ...]' for mapping."""
    return " ".join("=".join(map(str, kv)) for kv in mapping.items())


def make_reader_task(queue):
    """Return asyncio task wrapping coroutine of queue.get()."""
    return asyncio.ensure_future(queue.get())

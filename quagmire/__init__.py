"""quagmire: an asyncio Telnet client for MUD servers."""
# pylint: disable=wildcard-import,undefined-variable
from .exceptions import *       # noqa
from .telopt import *           # noqa
from .decoder import *          # noqa
from .connection import *       # noqa
from .terminal import *         # noqa
from .commands import *         # noqa
from .config import *           # noqa
from .display import *          # noqa
from .client_shell import *     # noqa
from .accessories import get_version as __get_version

__all__ = tuple(sorted(set(
    exceptions.__all__ +
    telopt.__all__ +
    decoder.__all__ +
    connection.__all__ +
    terminal.__all__ +
    commands.__all__ +
    config.__all__ +
    display.__all__ +
    client_shell.__all__
)))  # noqa

__license__ = 'ISC'
__version__ = __get_version()

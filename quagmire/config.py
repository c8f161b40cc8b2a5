"""
Client configuration file and macros.

The configuration is a JSON file of the form::

    {
      "macros": {
        "lw": {"commands": ["look", "who"]}
      }
    }

Typing ``/lw`` sends each of its commands to the remote end as a line.
"""

from __future__ import annotations

# std imports
import os
import json
import logging
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field

__all__ = ("Config", "Macro", "DEFAULT_PATH")

#: Configuration file used when none is given on the command line.
DEFAULT_PATH = os.path.join("~", ".quagmire.json")

log = logging.getLogger(__name__)


@dataclass
class Macro:
    """
    A named macro expanding to one or more lines.

    :param name: Name typed after the command marker.
    :param commands: Lines sent to the remote end, in order.
    """

    name: str
    commands: List[str]

    def expand(self) -> List[str]:
        """Return the lines this macro sends."""
        return list(self.commands)


@dataclass
class Config:
    """Client configuration."""

    macros: Dict[str, Macro] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        """
        Build configuration from its decoded JSON form.

        :raises ValueError: When the structure is invalid.
        """
        if not isinstance(data, dict):
            raise ValueError("configuration must be an object, got {0}".format(type(data).__name__))
        entries = data.get("macros", {})
        if not isinstance(entries, dict):
            raise ValueError("'macros' must be an object")

        macros: Dict[str, Macro] = {}
        for name, entry in entries.items():
            commands = entry.get("commands") if isinstance(entry, dict) else None
            if not isinstance(commands, list) or not all(
                isinstance(cmd, str) for cmd in commands
            ):
                raise ValueError(
                    "macro {0!r}: 'commands' must be a list of strings".format(name)
                )
            macros[name] = Macro(name=name, commands=commands)
        return cls(macros=macros)

    @classmethod
    def load(cls, path: Optional[str] = None) -> "Config":
        """
        Load configuration from a JSON file.

        :param path: Path to the configuration file.  When ``None``,
            :data:`DEFAULT_PATH` is used if it exists, otherwise an empty
            configuration is returned.
        :raises FileNotFoundError: When an explicit *path* does not exist.
        :raises ValueError: When JSON structure is invalid.
        """
        if path is None:
            path = os.path.expanduser(DEFAULT_PATH)
            if not os.path.exists(path):
                log.debug("no configuration file at %s", path)
                return cls()

        with open(os.path.expanduser(path), "r", encoding="utf-8") as fh:
            data = json.load(fh)
        config = cls.from_dict(data)
        log.debug("loaded %d macros from %s", len(config.macros), path)
        return config

    def expand_macro(self, name: str) -> Optional[List[str]]:
        """Return lines for macro *name*, or ``None`` when it is not defined."""
        macro = self.macros.get(name)
        if macro is None:
            return None
        return macro.expand()

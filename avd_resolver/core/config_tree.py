"""Hierarchical key/value configuration used by skin layout files.

The text format is a sequence of ``name value`` pairs and ``name { ... }``
blocks. Tokens are separated by whitespace, ``#`` starts a comment that runs
to the end of the line, and values may be quoted with ``"`` or ``'`` (a
backslash escapes the next character inside quotes)::

    display {
        width   320
        height  480
        bpp     16
    }
    network {
        speed  full
        delay  none
    }
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Optional, Union


class ConfigParseError(ValueError):
    pass


@dataclass
class ConfigNode:
    name: str
    value: Optional[str] = None
    children: list[ConfigNode] = field(default_factory=list)

    def find(self, name: str) -> Optional[ConfigNode]:
        """Return the first direct child called ``name``."""
        for child in self.children:
            if child.name == name:
                return child
        return None

    def find_path(self, *names: str) -> Optional[ConfigNode]:
        node: Optional[ConfigNode] = self
        for name in names:
            if node is None:
                return None
            node = node.find(name)
        return node

    def get_str(self, name: str, default: Optional[str] = None) -> Optional[str]:
        child = self.find(name)
        if child is None or child.value is None:
            return default
        return child.value

    def get_int(self, name: str, default: int = 0) -> int:
        value = self.get_str(name)
        if value is None:
            return default
        try:
            return int(value, 0)
        except ValueError:
            return default

    def add(self, name: str, value: Optional[str] = None) -> ConfigNode:
        child = ConfigNode(name, value)
        self.children.append(child)
        return child


def _tokenize(text: str) -> Iterator[tuple[str, bool]]:
    """Yield ``(token, quoted)`` pairs."""
    i = 0
    n = len(text)
    while i < n:
        c = text[i]
        if c.isspace():
            i += 1
        elif c == "#":
            while i < n and text[i] != "\n":
                i += 1
        elif c in "{}":
            yield c, False
            i += 1
        elif c in "\"'":
            quote = c
            i += 1
            buf = []
            while i < n and text[i] != quote:
                if text[i] == "\\" and i + 1 < n:
                    i += 1
                buf.append(text[i])
                i += 1
            if i >= n:
                raise ConfigParseError("unterminated quoted string")
            i += 1
            yield "".join(buf), True
        else:
            start = i
            while i < n and not text[i].isspace() and text[i] not in "{}#":
                i += 1
            yield text[start:i], False


def parse_config(text: str, root: Optional[ConfigNode] = None) -> ConfigNode:
    """Parse ``text`` into ``root`` (a fresh unnamed node by default)."""
    root = root if root is not None else ConfigNode("")
    stack = [root]
    pending: Optional[str] = None

    for token, quoted in _tokenize(text):
        if not quoted and token == "{":
            if pending is None:
                raise ConfigParseError("block without a name")
            stack.append(stack[-1].add(pending))
            pending = None
        elif not quoted and token == "}":
            if pending is not None:
                raise ConfigParseError(f"missing value for {pending!r}")
            if len(stack) == 1:
                raise ConfigParseError("unbalanced '}'")
            stack.pop()
        elif pending is None:
            pending = token
        else:
            stack[-1].add(pending, token)
            pending = None

    if pending is not None:
        raise ConfigParseError(f"missing value for {pending!r}")
    if len(stack) != 1:
        raise ConfigParseError("unterminated block")
    return root


def load_config_file(path: Union[str, Path]) -> ConfigNode:
    """Parse a config file. Raises OSError or ConfigParseError."""
    with open(path, encoding="utf-8") as f:
        return parse_config(f.read())

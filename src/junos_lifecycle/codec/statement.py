"""Statements of the line-oriented configuration language and text helpers.

A Statement is one ``set`` or ``delete`` line. The helpers in this module are
pure: prefix matching returns ``(matched, remainder)`` instead of mutating the
input, so the parser never aliases partially consumed lines.
"""
import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, Optional

# Markers wrapping the text of a "show configuration" reply
START_MARKER = "<configuration-output>"
END_MARKER = "</configuration-output>"

SET_PREFIX = "set "
DELETE_PREFIX = "delete "

_UNESCAPE = re.compile(r"\\(.)")


class Verb(str, Enum):
    """Statement verbs."""
    SET = "set"
    DELETE = "delete"


@dataclass(frozen=True)
class Statement:
    """One configuration line.

    ``path`` holds the hierarchical keywords and identifiers, ``args`` the
    value tail (already quoted where needed). ``origin`` is the attribute
    path of the object field that produced the line, when known.
    """
    verb: Verb
    path: tuple[str, ...]
    args: tuple[str, ...] = ()
    origin: Optional[str] = None

    @property
    def text(self) -> str:
        return " ".join((self.verb.value, *self.path, *self.args))

    def __str__(self) -> str:
        return self.text


def set_statement(path: Iterable[str], *args: str, origin: Optional[str] = None) -> Statement:
    return Statement(Verb.SET, tuple(path), tuple(args), origin)


def delete_statement(path: Iterable[str], origin: Optional[str] = None) -> Statement:
    return Statement(Verb.DELETE, tuple(path), (), origin)


def quote(value: str) -> str:
    """Wrap a value in double quotes, escaping backslashes and quotes."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def unquote(value: str) -> str:
    """Remove one pair of surrounding double quotes and undo escaping.

    Values without surrounding quotes are returned unchanged.
    """
    if len(value) < 2 or not (value.startswith('"') and value.endswith('"')):
        return value
    return _UNESCAPE.sub(r"\1", value[1:-1])


def format_identifier(value: str) -> str:
    """Quote an identifier only when it contains whitespace or quotes."""
    if '"' in value or any(c.isspace() for c in value):
        return quote(value)
    return value


def cut_prefix(line: str, prefix: str) -> tuple[bool, str]:
    """Match ``prefix`` at the start of ``line``.

    Returns:
        ``(True, remainder)`` on a match, ``(False, line)`` otherwise.
    """
    if line.startswith(prefix):
        return True, line[len(prefix):]
    return False, line


def first_element(line: str) -> tuple[str, str]:
    """Split the first element off a line, honoring double quotes.

    Returns:
        ``(element, remainder)``. The element keeps its quotes and the
        remainder has its leading separator removed.
    """
    if line.startswith('"'):
        index = 1
        while index < len(line):
            char = line[index]
            if char == "\\":
                index += 2
                continue
            if char == '"':
                return line[:index + 1], line[index + 1:].lstrip(" ")
            index += 1
        return line, ""
    element, _, remainder = line.partition(" ")
    return element, remainder


def dump_lines(dump: str) -> Iterator[str]:
    """Yield the configuration lines of a device dump.

    When a start marker is present only lines strictly between the start and
    end markers are yielded. Blank lines are skipped.
    """
    lines = dump.splitlines()
    has_marker = any(START_MARKER in line for line in lines)
    inside = not has_marker
    for line in lines:
        if START_MARKER in line:
            inside = True
            continue
        if END_MARKER in line:
            if inside:
                break
            continue
        if not inside:
            continue
        line = line.strip()
        if line:
            yield line


def is_empty_dump(dump: str) -> bool:
    """True when a dump holds no configuration line."""
    return next(dump_lines(dump), None) is None

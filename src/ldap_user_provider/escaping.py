"""RFC 2254 escaping of LDAP filter *values*.

Any control character with an ASCII code < 32 as well as the characters with
special meaning in filters (``*``, ``(``, ``)`` and the backslash) are turned
into a backslash followed by two hex digits.  :func:`unescape_value` undoes
the conversion.

Both functions keep the *shape* of their input: a string gives a string, a
list/tuple gives a list of the same length (a one-element list is **not**
collapsed into a scalar).  Binary (``bytes``) values are escaped byte by
byte with ldap3, so every octet becomes ``\\XX``.  Attribute names are never
escaped – only values.
"""
from __future__ import annotations

import re
from typing import Any, List, Sequence, overload

from ldap3.utils.conv import escape_bytes

__all__ = ["escape_value", "unescape_value"]

# Order matters: the backslash must be replaced first because every other
# replacement introduces a new one.
_META_CHARS = (
    ("\\", r"\5c"),
    ("*", r"\2a"),
    ("(", r"\28"),
    (")", r"\29"),
)

_CONTROL_RE = re.compile(r"[\x00-\x1f]")
_HEX_RUN_RE = re.compile(r"(?:\\[0-9A-Fa-f]{2})+")

# Token kept for an empty value so it stays detectable inside a filter.
EMPTY_VALUE = r"\0"


def _escape_one(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        # binary values (objectGUID, objectSid...) are escaped byte by byte
        return escape_bytes(bytes(value)) or EMPTY_VALUE
    val = value if isinstance(value, str) else str(value)
    for char, replacement in _META_CHARS:
        val = val.replace(char, replacement)
    val = _CONTROL_RE.sub(lambda m: "\\%02x" % ord(m.group(0)), val)
    return val or EMPTY_VALUE


def _decode_run(match: re.Match[str]) -> str:
    raw = bytes(int(h, 16) for h in match.group(0).split("\\")[1:])
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return raw.decode("latin-1")


def _unescape_one(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        value = bytes(value).decode("latin-1")
    val = value if isinstance(value, str) else str(value)
    return _HEX_RUN_RE.sub(_decode_run, val)


@overload
def escape_value(values: str) -> str: ...


@overload
def escape_value(values: Sequence[Any]) -> List[str]: ...


def escape_value(values):
    """Escape a value (or every value of a list) for use inside a filter."""
    if isinstance(values, (list, tuple)):
        return [_escape_one(v) for v in values]
    return _escape_one(values)


@overload
def unescape_value(values: str) -> str: ...


@overload
def unescape_value(values: Sequence[Any]) -> List[str]: ...


def unescape_value(values):
    """Undo :func:`escape_value`.

    Consecutive ``\\XX`` sequences are decoded together as UTF-8 so escaped
    multi-byte characters come back intact; runs that are not valid UTF-8 are
    decoded byte per character.
    """
    if isinstance(values, (list, tuple)):
        return [_unescape_one(v) for v in values]
    return _unescape_one(values)

"""Structured Field Values (RFC 8941) — the Dictionary subset we need.

Only bare items are supported (strings, tokens, integers, booleans) and
no parameters: exactly what the ``expo-signature`` header carries, e.g.
``sig="MEUCIQ...", keyid="main"``.
"""

from __future__ import annotations

import re
from collections.abc import Mapping

BareItem = str | int | bool

_KEY = re.compile(r"[a-z*][a-z0-9_\-.*]*")
_TOKEN = re.compile(r"^[A-Za-z*][!#$%&'*+\-.^_`|~:/0-9A-Za-z]*")
_INTEGER = re.compile(r"^-?[0-9]{1,15}")


class StructuredFieldError(ValueError):
    """Raised when a value cannot be serialized or parsed as a structured field."""


class Token(str):
    """A bare sf-token, serialized without quotes."""


def _serialize_string(value: str) -> str:
    if any(not (0x20 <= ord(ch) <= 0x7E) for ch in value):
        raise StructuredFieldError(f"sf-string must be printable ASCII: {value!r}")
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def serialize_item(value: BareItem) -> str:
    if isinstance(value, bool):
        return "?1" if value else "?0"
    if isinstance(value, int):
        if abs(value) > 999_999_999_999_999:
            raise StructuredFieldError(f"sf-integer out of range: {value}")
        return str(value)
    if isinstance(value, Token):
        if not _TOKEN.fullmatch(value):
            raise StructuredFieldError(f"Invalid sf-token: {value!r}")
        return str(value)
    if isinstance(value, str):
        return _serialize_string(value)
    raise StructuredFieldError(f"Unsupported bare item type: {type(value).__name__}")


def serialize_dictionary(members: Mapping[str, BareItem]) -> str:
    """Serialize an ordered mapping of parameter-less items.

    A ``True`` boolean member is written as the bare key, per RFC 8941.
    """
    out: list[str] = []
    for key, value in members.items():
        if not _KEY.fullmatch(key):
            raise StructuredFieldError(f"Invalid dictionary key: {key!r}")
        if value is True:
            out.append(key)
        else:
            out.append(f"{key}={serialize_item(value)}")
    return ", ".join(out)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def _parse_string(text: str, pos: int) -> tuple[str, int]:
    pos += 1  # opening quote
    chars: list[str] = []
    while pos < len(text):
        ch = text[pos]
        if ch == "\\":
            if pos + 1 >= len(text) or text[pos + 1] not in '"\\':
                raise StructuredFieldError("Invalid escape in sf-string")
            chars.append(text[pos + 1])
            pos += 2
        elif ch == '"':
            return "".join(chars), pos + 1
        else:
            chars.append(ch)
            pos += 1
    raise StructuredFieldError("Unterminated sf-string")


def _parse_item(text: str, pos: int) -> tuple[BareItem, int]:
    rest = text[pos:]
    if rest.startswith('"'):
        return _parse_string(text, pos)
    if rest.startswith("?1"):
        return True, pos + 2
    if rest.startswith("?0"):
        return False, pos + 2
    match = _INTEGER.match(rest)
    if match:
        return int(match.group()), pos + match.end()
    match = _TOKEN.match(rest)
    if match:
        return Token(match.group()), pos + match.end()
    raise StructuredFieldError(f"Unparseable item at offset {pos}")


def parse_dictionary(text: str) -> dict[str, BareItem]:
    """Parse a Dictionary of bare items (parameters are rejected)."""
    members: dict[str, BareItem] = {}
    text = text.strip()
    pos = 0
    while pos < len(text):
        match = _KEY.match(text, pos)
        if not match:
            raise StructuredFieldError(f"Expected dictionary key at offset {pos}")
        key, pos = match.group(), match.end()
        if pos < len(text) and text[pos] == "=":
            value, pos = _parse_item(text, pos + 1)
        else:
            value = True
        members[key] = value

        while pos < len(text) and text[pos] in " \t":
            pos += 1
        if pos >= len(text):
            break
        if text[pos] != ",":
            raise StructuredFieldError(f"Expected ',' at offset {pos}")
        pos += 1
        while pos < len(text) and text[pos] in " \t":
            pos += 1
        if pos >= len(text):
            raise StructuredFieldError("Trailing comma in dictionary")
    return members

"""Formatting utilities for gitstamp."""

from collections.abc import Mapping
from datetime import datetime
from typing import Optional

# Characters with a meaning in .properties files
_PROPERTY_ESCAPES = {
    "\\": "\\\\",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\f": "\\f",
    "=": "\\=",
    ":": "\\:",
    "#": "\\#",
    "!": "\\!",
}


def format_timestamp(moment: datetime, pattern: str) -> str:
    """Format a datetime with a strftime pattern.

    Args:
        moment: Time to format
        pattern: strftime pattern (e.g. "%Y-%m-%dT%H:%M:%S%z")

    Returns:
        Formatted string

    Examples:
        >>> from datetime import timezone
        >>> format_timestamp(datetime(2025, 1, 15, 14, 30, tzinfo=timezone.utc), "%Y-%m-%d %H:%M")
        '2025-01-15 14:30'
    """
    return moment.strftime(pattern)


def escape_property(text: str, is_key: bool = False) -> str:
    """Escape a key or value for a .properties file.

    Keys additionally escape spaces; values only escape a leading space.
    Characters outside printable ASCII are written as \\uXXXX escapes, so
    the output is plain ASCII whatever the file encoding.

    Examples:
        >>> escape_property("a b", is_key=True)
        'a\\\\ b'
        >>> escape_property("v1.0:rc")
        'v1.0\\\\:rc'
    """
    out = []
    for i, char in enumerate(text):
        if char == " " and (is_key or i == 0):
            out.append("\\ ")
        elif char in _PROPERTY_ESCAPES:
            out.append(_PROPERTY_ESCAPES[char])
        elif not 0x20 <= ord(char) <= 0x7E:
            out.append("".join(f"\\u{unit:04X}" for unit in _utf16_units(char)))
        else:
            out.append(char)
    return "".join(out)


def _utf16_units(char: str) -> list[int]:
    data = char.encode("utf-16-be")
    return [int.from_bytes(data[i : i + 2], "big") for i in range(0, len(data), 2)]


def format_properties(entries: Mapping[str, str], header: Optional[str] = None) -> str:
    """Render entries as a .properties document, sorted by key.

    Args:
        entries: Key/value pairs
        header: Optional comment written as the first line

    Returns:
        Document text ending with a newline
    """
    lines = []
    if header:
        lines.append(f"# {header}")
    for key in sorted(entries):
        lines.append(f"{escape_property(key, is_key=True)}={escape_property(entries[key])}")
    return "\n".join(lines) + "\n"

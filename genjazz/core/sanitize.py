"""
Field sanitisation for the delimiter-separated request logs.

Every log row must stay on one line and keep its column count, whatever the
backends or clients put into the free-text fields.

What we do:
  - Drop CR and LF so one record is exactly one line
  - Replace the field delimiter with a comma
  - Render ``None`` as an empty field
"""
from __future__ import annotations

import re

_LINE_BREAK_RE = re.compile(r"\r?\n|\r")


def sanitize_log_field(value: object, delimiter: str = ";") -> str:
    """Render *value* as a single-line log field free of *delimiter*."""
    if value is None:
        return ""
    text = _LINE_BREAK_RE.sub("", str(value))
    if delimiter != ",":
        text = text.replace(delimiter, ",")
    else:
        text = text.replace(delimiter, ";")
    return text


def format_log_row(fields: list[object], delimiter: str = ";") -> str:
    """Join sanitised *fields* into one newline-terminated log line."""
    return delimiter.join(sanitize_log_field(f, delimiter) for f in fields) + "\n"

"""
Template expansion for command lines, file paths and SQL statements.

Tokens
------
Date/time conversions are delegated to ``datetime.strftime``. On top of
those the following tokens are expanded from the event context:

    %f          filename of the event (empty when there is none)
    %n          symbolic file subtype, e.g. "image", "movie", "image+movie"
    %v          event number
    %q          shot number within the current second
    %t          camera id
    %C          event text (TEXT_EVENT expanded at event start)
    %s          seconds since the epoch
    %%          a literal percent sign
    %{host}     hostname
    %{fps}      current movie frame rate
    %{filetype} numeric subtype bitmask

Anything else is copied through unchanged, including a trailing ``%`` and
an unterminated ``%{``.
"""

import socket
from dataclasses import dataclass
from datetime import datetime

from events.types import FileType

# Expanded strings are cut at this length, callers must tolerate it.
MAX_EXPANDED_LENGTH = 4095

# strftime conversions that are portable across platforms and not
# re-purposed as context tokens.
STRFTIME_CODES = frozenset("aAbBcdDeFgGhHIjmMprRSTuUVwWxXyYzZ")


@dataclass
class TemplateFields:
    """Context values available to the template tokens."""

    event_nr: int = 0
    shots: int = 0
    camera_id: int | str = 0
    text_event: str = ""
    fps: int = 0

    @classmethod
    def from_context(cls, ctx) -> "TemplateFields":
        return cls(
            event_nr=getattr(ctx, "event_nr", 0),
            shots=getattr(ctx, "shots", 0),
            camera_id=getattr(ctx, "camera_id", 0),
            text_event=getattr(ctx, "text_event", ""),
            fps=getattr(ctx, "movie_fps", 0),
        )


def _context_token(code, timestamp, filename, filetype, fields):
    if code == "%":
        return "%"
    if code == "f":
        return filename or ""
    if code == "n":
        return FileType.describe(filetype)
    if code == "v":
        return f"{int(fields.event_nr):02d}"
    if code == "q":
        return f"{int(fields.shots):02d}"
    if code == "t":
        return str(fields.camera_id)
    if code == "C":
        return fields.text_event or ""
    if code == "s":
        return str(int(timestamp.timestamp()))
    if code in STRFTIME_CODES:
        return timestamp.strftime("%" + code)
    return None


def _named_token(name, filetype, fields):
    if name == "host":
        return socket.gethostname()
    if name == "fps":
        return str(fields.fps)
    if name == "filetype":
        return str(int(filetype or 0))
    return None


def format_template(
    template: str,
    timestamp: datetime | None = None,
    filename: str | None = None,
    filetype: int = 0,
    fields: TemplateFields | None = None,
    max_length: int = MAX_EXPANDED_LENGTH,
) -> str:
    """
    Expands a template string.

    Args:
        template: Text containing substitution tokens.
        timestamp: Time used for the date/time fields (defaults to now).
        filename: Value for %f.
        filetype: Subtype bitmask for %n and %{filetype}.
        fields: Context values for %v, %q, %t, %C and %{fps}.
        max_length: Maximum length of the result.

    Returns:
        The expanded string, truncated to max_length.
    """
    if not template:
        return ""
    timestamp = timestamp or datetime.now()
    fields = fields or TemplateFields()

    out = []
    pos = 0
    length = len(template)
    while pos < length:
        ch = template[pos]
        if ch != "%" or pos + 1 >= length:
            out.append(ch)
            pos += 1
            continue

        code = template[pos + 1]
        if code == "{":
            end = template.find("}", pos + 2)
            if end == -1:
                out.append(template[pos:])
                break
            value = _named_token(template[pos + 2 : end], filetype, fields)
            out.append(value if value is not None else template[pos : end + 1])
            pos = end + 1
            continue

        value = _context_token(code, timestamp, filename, filetype, fields)
        out.append(value if value is not None else "%" + code)
        pos += 2

    return "".join(out)[:max_length]

"""Content-type matching for XML request bodies."""

import re

from beartype import beartype

# <type>/xml or <type>/<anything>+xml, e.g. text/xml, application/rss+xml,
# application/vnd.google-earth.kml+xml
DEFAULT_CONTENT_TYPE_PATTERN: re.Pattern[str] = re.compile(
    r"^[\w!#$%&*`\-.^~]+/(?:[\w!#$%&*`\-.^~+]+\+)?xml$",
    re.IGNORECASE,
)

# Process-wide pattern used by every interceptor configured without its own.
# Set it once before the server starts: writes are not synchronized with
# requests that are being matched.
_content_type_pattern: re.Pattern[str] = DEFAULT_CONTENT_TYPE_PATTERN


def get_content_type_pattern() -> re.Pattern[str]:
    """Return the current process-wide Content-Type pattern."""
    return _content_type_pattern


@beartype
def set_content_type_pattern(pattern: re.Pattern[str] | str | None) -> re.Pattern[str]:
    """Replace the process-wide Content-Type pattern.

    Strings are compiled case-insensitively. ``None`` restores
    :data:`DEFAULT_CONTENT_TYPE_PATTERN`. Returns the installed pattern.
    """
    global _content_type_pattern

    match pattern:
        case None:
            _content_type_pattern = DEFAULT_CONTENT_TYPE_PATTERN
        case str():
            _content_type_pattern = re.compile(pattern, re.IGNORECASE)
        case _:
            _content_type_pattern = pattern
    return _content_type_pattern


def split_content_type(header: str) -> tuple[str, dict[str, str]]:
    """Split a Content-Type header into its MIME type and parameters.

    The MIME type keeps its case; patterns decide on case sensitivity.

    >>> split_content_type('Application/XML; charset="UTF-8"')
    ('Application/XML', {'charset': 'UTF-8'})
    """
    mime, *raw_params = header.split(";")
    params: dict[str, str] = {}
    for raw in raw_params:
        key, sep, value = raw.partition("=")
        if not sep:
            continue
        params[key.strip().lower()] = value.strip().strip('"')
    return mime.strip(), params


def matches_content_type(header: str | None, pattern: re.Pattern[str] | None = None) -> bool:
    """Check a Content-Type header against ``pattern`` (default: the process-wide one)."""
    if not header:
        return False
    mime, _ = split_content_type(header)
    return (pattern or get_content_type_pattern()).search(mime) is not None

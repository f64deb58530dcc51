"""URL path construction from untrusted segments."""

from urllib.parse import quote

# Sub-delimiters that are legal inside a single path segment.
_SEGMENT_SAFE = "$&+:=@"


def escape_segment(segment: object) -> str:
    """Percent-escape one path segment; ``/`` is escaped, never a separator.

    ``.`` and ``..`` are escaped as well, otherwise URL normalisation would
    drop them or climb a level.
    """
    text = str(segment)
    if text in (".", ".."):
        return "%2E" * len(text)
    return quote(text, safe=_SEGMENT_SAFE)


def to_safe_url(*segments: object) -> str:
    """Join segments into a single escaped URL path.

    Args:
        segments: Path segments such as ``"service", service_id, "version", 3``.
            Non-string values are converted with ``str()``.

    Returns:
        Path starting with ``/``, e.g. ``/service/abc%20def/version/3``.
    """
    return "/" + "/".join(escape_segment(segment) for segment in segments)

"""
Header and URL component helpers.
"""
import re
from typing import Optional
from urllib.parse import quote, unquote_plus

_MALFORMED_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")
_CONTENT_LENGTH = re.compile(r"^[+-]?[0-9]+$")


def mask_value(val: Optional[str]) -> str:
    """Mask sensitive value for logging, showing first 10 chars."""
    if not val:
        return "<empty>"
    if len(val) <= 10:
        return "*" * len(val)
    return val[:10] + "*" * (len(val) - 10)


def url_encode(value: str) -> str:
    """UTF-8 percent-encoding leaving only A-Z a-z 0-9 - . _ ~ literal."""
    return quote(value, safe="", encoding="utf-8")


def url_decode(value: str) -> str:
    """
    Decode a form-urlencoded component as UTF-8 ('+' is a space).
    Raises ValueError on a truncated or non-hex escape, or on invalid UTF-8.
    """
    if _MALFORMED_ESCAPE.search(value):
        raise ValueError(f"Malformed percent-escape in '{value}'")
    return unquote_plus(value, encoding="utf-8", errors="strict")


def parse_charset(content_type: Optional[str]) -> Optional[str]:
    """
    Extract the charset parameter of a Content-Type value.
    Quotes around the charset are dropped (charset="utf-8" is common).
    """
    if not content_type:
        return None
    for part in content_type.split(";"):
        name, sep, value = part.partition("=")
        if sep and name.strip().lower() == "charset":
            charset = value.strip().replace('"', "").replace("'", "")
            return charset or None
    return None


def parse_content_length(value: Optional[str]) -> Optional[int]:
    """Parse a Content-Length value; None when absent or not an integer."""
    if value is None:
        return None
    value = value.strip()
    if not _CONTENT_LENGTH.match(value):
        return None
    return int(value)

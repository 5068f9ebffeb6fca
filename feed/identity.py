"""
Identity keys.

Every identity comparison in the app (registration uniqueness, login,
cookie identity, author/commenter/sender/recipient matching, delete
authorization) goes through normalize_email(). Never compare raw stored
strings.
"""

import re
from urllib.parse import unquote

# A '%' not followed by two hex digits makes the whole string undecodable,
# the same way decodeURIComponent rejects it.
_MALFORMED_ESCAPE = re.compile(r'%(?![0-9A-Fa-f]{2})')


def _percent_decode(value):
    if _MALFORMED_ESCAPE.search(value):
        return value
    try:
        return unquote(value, encoding='utf-8', errors='strict')
    except UnicodeDecodeError:
        return value


def normalize_email(raw) -> str:
    """
    Canonical comparison key for a raw email.

    Trims, percent-decodes (``a%40example.com`` -> ``a@example.com``) and
    lowercases. Never raises: missing or garbled input gives ``""`` or the
    trimmed original. Trim and decode repeat until the value stops changing,
    so the result is a fixed point and ``normalize_email`` is idempotent.
    """
    if raw is None:
        return ''
    value = str(raw)
    while True:
        decoded = _percent_decode(value.strip())
        if decoded == value:
            break
        value = decoded
    return value.lower()


def same_identity(a, b) -> bool:
    """True when both values normalize to the same non-empty key."""
    key = normalize_email(a)
    return bool(key) and key == normalize_email(b)

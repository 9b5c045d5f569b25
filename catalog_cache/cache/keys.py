"""Cache key construction, validation and matching.

Keys are opaque strings to the cache itself. By convention callers build them
from a namespace followed by discriminating parameters, joined with ``:``::

    build_cache_key("tmdb", "tv", 603)            -> "tmdb:tv:603"
    build_cache_key("tmdb", "tv", 603, "season", 1)

so that a whole family of entries can be dropped with one prefix
(``"tmdb:tv:603"``) or pattern (``"tmdb:*:603*"``) invalidation.
"""

from __future__ import annotations

import fnmatch
import re
from collections.abc import Callable

from catalog_cache.cache.errors import InvalidKeyError

KEY_DELIMITER = ":"

# Patterns starting with this marker are regular expressions, the rest are globs
REGEX_PATTERN_MARKER = "re:"

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


def _percent(text: str) -> str:
    return "".join(f"%{byte:02X}" for byte in text.encode("utf-8"))


def _escape(part: str) -> str:
    escaped = part.replace("%", "%25").replace(KEY_DELIMITER, "%3A")
    escaped = _CONTROL_CHARS.sub(lambda m: _percent(m.group()), escaped)
    # Edge whitespace would make the joined key fail validation
    body = escaped.strip()
    if not body:
        return _percent(escaped)
    lead = len(escaped) - len(escaped.lstrip())
    trail = len(escaped) - len(escaped.rstrip())
    return _percent(escaped[:lead]) + body + _percent(escaped[len(escaped) - trail :])


def build_cache_key(*parts: str | int | float | bool) -> str:
    """Join key parts with ``:``.

    Strings are percent-escaped (``%`` -> ``%25``, ``:`` -> ``%3A``, control
    characters and whitespace at either end of a part as their UTF-8 bytes)
    so two distinct tuples of parts never produce the same key and every
    string part yields a valid key. Booleans render as ``1``/``0``.
    """
    if not parts:
        raise InvalidKeyError("at least one key part is required")

    rendered: list[str] = []
    for part in parts:
        if isinstance(part, bool):
            rendered.append("1" if part else "0")
        elif isinstance(part, (int, float)):
            rendered.append(str(part))
        elif isinstance(part, str):
            rendered.append(_escape(part))
        else:
            raise InvalidKeyError(
                f"key parts must be str, int, float or bool, got {type(part).__name__}"
            )

    key = KEY_DELIMITER.join(rendered)
    return validate_key(key)


def validate_key(key: object) -> str:
    """Return *key* unchanged, or raise InvalidKeyError if it is malformed."""
    if not isinstance(key, str):
        raise InvalidKeyError(f"cache keys must be str, got {type(key).__name__}")
    if not key:
        raise InvalidKeyError("cache key must not be empty")
    if key != key.strip():
        raise InvalidKeyError(f"cache key {key!r} has leading or trailing whitespace")
    if _CONTROL_CHARS.search(key):
        raise InvalidKeyError(f"cache key {key!r} contains control characters")
    return key


def validate_prefix(prefix: object) -> str:
    if not isinstance(prefix, str) or not prefix:
        raise InvalidKeyError("invalidation prefix must be a non-empty string")
    return prefix


def compile_pattern(pattern: object) -> Callable[[str], bool]:
    """Build a full-key, case-sensitive matcher.

    ``re:<expr>`` is a regular expression matched with ``fullmatch``; anything
    else is a shell-style glob (``*``, ``?``, ``[seq]``).
    """
    if not isinstance(pattern, str) or not pattern:
        raise InvalidKeyError("invalidation pattern must be a non-empty string")

    if pattern.startswith(REGEX_PATTERN_MARKER):
        expr = pattern[len(REGEX_PATTERN_MARKER):]
        if not expr:
            raise InvalidKeyError("regular expression pattern is empty")
        try:
            compiled = re.compile(expr)
        except re.error as exc:
            raise InvalidKeyError(f"invalid regular expression {expr!r}: {exc}") from exc
        return lambda key: compiled.fullmatch(key) is not None

    return lambda key: fnmatch.fnmatchcase(key, pattern)

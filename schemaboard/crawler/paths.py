"""Canonical catalog keys for page paths."""

from __future__ import annotations

import string
from urllib.parse import urlsplit

_URL_PREFIXES = ("http://", "https://")

# Slashes and whitespace are stripped in one pass.
_TRAILING = "/" + string.whitespace


def normalize_path(raw: str) -> str:
    """Canonicalize a raw path or absolute URL into a catalog key.

    * surrounding whitespace is trimmed;
    * ``http(s)://host/...`` keeps only its path (the raw string is used
      unchanged if it cannot be parsed as a URL);
    * a single leading ``/`` is ensured;
    * trailing slashes are removed except for the root path ``/``;
    * the result is lower-cased.

    Never raises.  ``normalize_path(normalize_path(p)) == normalize_path(p)``.

    >>> normalize_path("HTTPS://example.com/Foo/Bar/")
    '/foo/bar'
    >>> normalize_path("foo")
    '/foo'
    """
    normalized = raw.strip()

    if normalized.lower().startswith(_URL_PREFIXES):
        try:
            normalized = urlsplit(normalized).path
        except ValueError:
            pass

    if not normalized.startswith("/"):
        normalized = "/" + normalized

    normalized = normalized.rstrip(_TRAILING) or "/"
    return normalized.lower()

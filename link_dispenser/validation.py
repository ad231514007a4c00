"""
Key and URL validation helpers.

Both the LinkManager and the one-time migration run caller data through the
same two functions so that the file store, the relational store and the
import all agree on what a key and a URL look like.

Keys:
    Strings and integers (and integral floats) are stringified and every
    non-digit character removed: "100", "1.000" and "$100" all become 100.
    Other types, an empty result, or zero are rejected.

URLs:
    Strings are trimmed and kept only when they start with http:// or
    https:// (case-insensitive). Duplicates inside one batch are dropped,
    first occurrence wins.
"""

import re
from typing import Any, Iterable, List

from .errors import InvalidInput

__all__ = ["normalize_key", "clean_urls", "is_valid_url"]

NonDigitPattern = re.compile(r"\D")
UrlPattern = re.compile(r"^https?://", re.IGNORECASE)


def normalize_key(raw: Any) -> int:
    """
    Strip non-digit characters from `raw` and return the resulting integer.

    Raises:
        InvalidInput: If `raw` is not a string or integer (integral floats
            count as integers), or nothing but zeros is left after stripping.
    """
    if raw is None:
        raise InvalidInput("Debes enviar el valor")
    if isinstance(raw, float) and raw.is_integer():
        raw = int(raw)
    if isinstance(raw, bool) or not isinstance(raw, (int, str)):
        raise InvalidInput(f"Valor invalido: {raw!r}")
    digits = NonDigitPattern.sub("", str(raw))
    if not digits:
        raise InvalidInput(f"Valor invalido: {raw!r}")
    key = int(digits)
    if key == 0:
        raise InvalidInput(f"Valor invalido: {raw!r}")
    return key


def is_valid_url(url: Any) -> bool:
    return isinstance(url, str) and bool(UrlPattern.match(url.strip()))


def clean_urls(urls: Iterable[Any]) -> List[str]:
    """Trim, filter to http(s) and de-duplicate, preserving input order."""
    seen = set()
    cleaned: List[str] = []
    for url in urls or ():
        if not is_valid_url(url):
            continue
        url = url.strip()
        if url in seen:
            continue
        seen.add(url)
        cleaned.append(url)
    return cleaned

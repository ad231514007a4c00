"""
One-time import of a links.json file into a link store.

Keys are normalized and URLs filtered with the same rules as add-links, and
rows are inserted with insert-or-ignore, so running the import twice against
the same database inserts nothing the second time.
"""

import json
import logging
from typing import Any, Dict

from .errors import InvalidInput, StorageFailure
from .storage.base import BaseLinkStore
from .validation import clean_urls, normalize_key

log = logging.getLogger(__name__)


def read_links_file(path: str) -> Dict[str, Any]:
    """Load the raw key -> urls mapping; a missing or empty file is {}."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            raw = fh.read()
    except FileNotFoundError:
        log.warning("Links file %s not found, nothing to import", path)
        return {}
    try:
        data = json.loads(raw or "{}")
    except ValueError as exc:
        raise StorageFailure(f"Corrupt links file {path}") from exc
    if not isinstance(data, dict):
        raise StorageFailure(f"Corrupt links file {path}: expected an object")
    return data


def migrate_mapping(data: Dict[str, Any], store: BaseLinkStore) -> int:
    """Insert every valid (key, url) of `data` into `store`; return rows inserted."""
    inserted = 0
    for raw_key, urls in data.items():
        try:
            key = normalize_key(raw_key)
        except InvalidInput:
            log.warning("Skipping unusable key %r", raw_key)
            continue
        cleaned = clean_urls(urls if isinstance(urls, list) else [])
        if not cleaned:
            continue
        added = store.add_links(key, cleaned)
        log.info("valor=%s: %d of %d links inserted", key, added, len(cleaned))
        inserted += added
    return inserted


def migrate_file(path: str, store: BaseLinkStore) -> int:
    return migrate_mapping(read_links_file(path), store)

"""
LinkManager module for Link Dispenser.

Responsibilities:
    - Normalize caller keys and validate URLs before touching storage
    - Dispense one unused link per call and report what is left
    - Bulk-load, clear and report on the inventory of each key
    - Translate "nothing to hand out" into NotFound

Design notes:
    - The manager only knows the BaseLinkStore contract; whether links live
      in a JSON file or in Postgres is decided by the injected store.
    - Correctness under concurrent consumers is the store's job (the Postgres
      store claims rows with FOR UPDATE SKIP LOCKED). The manager never reads
      and then writes on its own.
    - Results are plain dicts whose field names are the public JSON contract
      (url, remaining, addedCount, total, removedCount).
"""

import logging
from typing import Any, Dict, List, Sequence

from ..errors import InvalidInput, NotFound
from ..storage.base import BaseLinkStore
from ..validation import clean_urls, normalize_key

log = logging.getLogger(__name__)


class LinkManager:
    """Coordinates dispensing and inventory rules on top of a link store."""

    def __init__(self, store: BaseLinkStore):
        """
        Args:
            store (BaseLinkStore): Backend holding the links.
        """
        self.store = store

    # ---------------------------------------------------------------------
    # Consumption
    # ---------------------------------------------------------------------
    def consume(self, valor: Any) -> Dict[str, Any]:
        """
        Hand out one unused link for `valor` and mark it used.

        Returns:
            dict: {"url": str, "remaining": int}

        Raises:
            InvalidInput: If the key normalizes to nothing.
            NotFound: If the key has no unused link right now.
            StorageFailure: On backend errors (nothing is left half-claimed).
        """
        key = normalize_key(valor)
        claim = self.store.consume(key)
        if claim is None:
            log.info("No links left for valor=%s", key)
            raise NotFound(key)
        log.info("Dispensed link for valor=%s (%d remaining)", key, claim.remaining)
        return {"url": claim.url, "remaining": claim.remaining}

    # ---------------------------------------------------------------------
    # Inventory admin
    # ---------------------------------------------------------------------
    def add_links(self, valor: Any, urls: Sequence[Any]) -> Dict[str, int]:
        """
        Store new links under `valor`.

        Only strings starting with http:// or https:// (after trimming) are
        kept. Links already stored for the key are not counted again.

        Returns:
            dict: {"addedCount": int, "total": int} where total is the unused
            count for the key after the insert.

        Raises:
            InvalidInput: Bad key, or no URL survived validation.
        """
        key = normalize_key(valor)
        if not isinstance(urls, (list, tuple)):
            raise InvalidInput("links debe ser una lista de URLs")
        cleaned = clean_urls(urls)
        if not cleaned:
            raise InvalidInput("No se recibieron links validos (http/https)")
        added = self.store.add_links(key, cleaned)
        total = self.store.count_unused(key)
        log.info("Added %d/%d links for valor=%s (total %d)", added, len(cleaned), key, total)
        return {"addedCount": added, "total": total}

    def clear_links(self, valor: Any) -> Dict[str, int]:
        """Remove the unused links of `valor`; used ones stay as history."""
        key = normalize_key(valor)
        removed = self.store.clear_links(key)
        log.info("Cleared %d unused links for valor=%s", removed, key)
        return {"removedCount": removed}

    def status(self) -> Dict[int, int]:
        return self.store.status()

    def list_all(self) -> Dict[int, List[str]]:
        return self.store.list_all()

    def list_for_key(self, valor: Any) -> List[str]:
        key = normalize_key(valor)
        return self.store.list_for_key(key)

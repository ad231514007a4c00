"""
File-backed storage for Link Dispenser (JSON map-of-lists).

Responsibilities:
    - Keep unused links per key in a single JSON object on disk
    - Hand out the first link of a key's list and drop it from the file
    - Merge new links, skipping ones already in the key's list

Design:
    - The whole file is read, changed in memory and rewritten on every call.
      Writes go to a temp file that replaces the live one, so a failed write
      leaves the previous contents intact.
    - A value that is not a list is a corrupt file (StorageFailure);
      non-string entries inside a list are skipped.
    - Only unused links are stored; consuming removes the entry, so there is
      no used-history in file mode.
    - A process-local lock serializes calls inside one process. Nothing
      protects the file against a second process; use the Postgres backend
      when more than one worker serves requests.

File layout:
    {
        "100": ["https://a.example/1", "https://a.example/2"],
        "500": []
    }
"""

import contextlib
import json
import logging
import os
import tempfile
import threading
from typing import Dict, List, Optional, Sequence

from ..errors import InvalidInput, StorageFailure
from ..validation import normalize_key
from .base import BaseLinkStore, Claim

log = logging.getLogger(__name__)

LinkMap = Dict[int, List[str]]


class FileLinkStore(BaseLinkStore):
    name = "file"

    def __init__(self, path: str = "./links.json"):
        """
        Args:
            path (str): JSON file holding the key -> urls map. A missing file
                reads as an empty map and is created on the first write.
        """
        self.path = path
        self._lock = threading.Lock()

    # ---- Internal helpers -------------------------------------------------

    def _load(self) -> LinkMap:
        """
        Read the file into {int key: [url, ...]}.

        Keys written by older tools may carry separators ("1.000") and are
        normalized here; lists of keys that collapse together are merged.
        """
        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                raw = fh.read()
        except FileNotFoundError:
            return {}
        except OSError as exc:
            raise StorageFailure(f"Could not read {self.path}") from exc

        try:
            data = json.loads(raw or "{}")
        except ValueError as exc:
            raise StorageFailure(f"Corrupt links file {self.path}") from exc
        if not isinstance(data, dict):
            raise StorageFailure(f"Corrupt links file {self.path}: expected an object")

        links: LinkMap = {}
        for raw_key, urls in data.items():
            try:
                key = normalize_key(raw_key)
            except InvalidInput:
                log.warning("Skipping unusable key %r in %s", raw_key, self.path)
                continue
            if urls is None:
                urls = []
            if not isinstance(urls, list):
                raise StorageFailure(f"Corrupt links file {self.path}: value of {raw_key!r} is not a list")
            bucket = links.setdefault(key, [])
            for url in urls:
                if not isinstance(url, str):
                    log.warning("Skipping non-string link %r under %r in %s", url, raw_key, self.path)
                    continue
                if url not in bucket:
                    bucket.append(url)
        return links

    def _save(self, links: LinkMap) -> None:
        """Write to a temp file next to the live one, then swap it in."""
        payload = {str(key): urls for key, urls in sorted(links.items())}
        directory = os.path.dirname(os.path.abspath(self.path))
        try:
            fd, tmp_path = tempfile.mkstemp(prefix=".links-", suffix=".tmp", dir=directory)
        except OSError as exc:
            raise StorageFailure(f"Could not write {self.path}") from exc
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(payload, fh, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except (OSError, TypeError, ValueError) as exc:
            with contextlib.suppress(OSError):
                os.remove(tmp_path)
            raise StorageFailure(f"Could not write {self.path}") from exc

    # ---- Contract methods -------------------------------------------------

    def consume(self, valor: int) -> Optional[Claim]:
        with self._lock:
            links = self._load()
            bucket = links.get(valor)
            if not bucket:
                return None
            url = bucket.pop(0)
            self._save(links)
            return Claim(url=url, remaining=len(bucket))

    def add_links(self, valor: int, urls: Sequence[str]) -> int:
        with self._lock:
            links = self._load()
            bucket = links.setdefault(valor, [])
            added = 0
            for url in urls:
                if url in bucket:
                    continue
                bucket.append(url)
                added += 1
            if added:
                self._save(links)
            return added

    def count_unused(self, valor: int) -> int:
        with self._lock:
            return len(self._load().get(valor, []))

    def clear_links(self, valor: int) -> int:
        with self._lock:
            links = self._load()
            removed = len(links.get(valor, []))
            if valor in links:
                links[valor] = []
                self._save(links)
            return removed

    def status(self) -> Dict[int, int]:
        with self._lock:
            links = self._load()
        return {key: len(urls) for key, urls in links.items()}

    def list_all(self) -> Dict[int, List[str]]:
        with self._lock:
            return self._load()

    def list_for_key(self, valor: int) -> List[str]:
        with self._lock:
            return list(self._load().get(valor, []))

    def __repr__(self) -> str:
        return f"FileLinkStore(path={os.path.abspath(self.path)!r})"

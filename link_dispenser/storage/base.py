"""
Base storage interface for Link Dispenser.

Purpose:
    Define a small, stable contract that both inventory backends (JSON file
    and PostgreSQL) implement, so the LinkManager and the HTTP layer never
    need to know which one is active.

Conventions:
    - Keys passed in are already normalized positive integers.
    - URLs passed in are already trimmed, validated and de-duplicated.
    - Backends raise `StorageFailure` for I/O or query errors and never leave
      a partial mutation behind.

Testing & Coverage:
    These are abstract methods and are not executed directly in tests.
    We annotate them with `# pragma: no cover` so coverage tools don't
    penalize the project for un-runnable abstract declarations.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, NamedTuple, Optional, Sequence

__all__ = ["BaseLinkStore", "Claim"]


class Claim(NamedTuple):
    """A link handed out by `consume` and the unused count left after it."""

    url: str
    remaining: int


class BaseLinkStore(ABC):
    """Abstract base class for link inventory backends."""

    name: str = "base"

    def open(self) -> None:
        """Acquire resources (pools, schema). Default: nothing to do."""

    def close(self) -> None:
        """Release resources acquired by `open`. Default: nothing to do."""

    @abstractmethod  # pragma: no cover
    def consume(self, valor: int) -> Optional[Claim]:
        """
        Claim the oldest unused link for `valor` and mark it used.

        Returns:
            Optional[Claim]: The claimed url and remaining count, or None
            when no unused link exists for the key.
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def add_links(self, valor: int, urls: Sequence[str]) -> int:
        """
        Store `urls` under `valor`, ignoring ones already present.

        Returns:
            int: How many urls were newly stored.
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def count_unused(self, valor: int) -> int:
        """Return how many unused links `valor` currently holds."""
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def clear_links(self, valor: int) -> int:
        """
        Remove every unused link for `valor`. Used links stay as history.

        Returns:
            int: How many links were removed.
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def status(self) -> Dict[int, int]:
        """Return key -> unused count for every known key."""
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def list_all(self) -> Dict[int, List[str]]:
        """Return key -> unused urls in dispensing order."""
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def list_for_key(self, valor: int) -> List[str]:
        """Return the unused urls of one key in dispensing order."""
        raise NotImplementedError

"""
Storage factory – pick the link inventory backend from configuration
===================================================================

This module centralizes selection of the storage backend (JSON file vs
PostgreSQL) so the rest of the app stays ignorant of where links live.

Rules
-----
- A connection string (argument `dsn` or env DATABASE_URL) selects Postgres.
- Its absence selects the JSON file backend at `links_file` / env LINKS_FILE.
- `backend` may force a choice ("file" or "postgres"); forcing "postgres"
  without a DSN is a configuration error.
- The environment is read **at call time**, and the Postgres module is only
  imported when it is selected.
"""

import logging
from typing import Optional

from ..config import Settings, get_settings
from .base import BaseLinkStore
from .file_store import FileLinkStore

log = logging.getLogger(__name__)


def get_store(
    backend: Optional[str] = None,
    dsn: Optional[str] = None,
    links_file: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> BaseLinkStore:
    """
    Return a BaseLinkStore for the requested or configured backend.

    The returned store is not opened yet; call `open()` (AppContext does).

    Raises:
        ValueError: Unknown backend name, or "postgres" without a DSN.
    """
    settings = settings or get_settings()
    dsn = dsn if dsn is not None else settings.database_url
    be = (backend or ("postgres" if dsn else "file")).strip().lower()

    log.info("Selected storage backend: %s", be)

    if be == "file":
        return FileLinkStore(path=links_file or settings.links_file)

    if be == "postgres":
        if not dsn:
            raise ValueError("DATABASE_URL is required for postgres backend")
        # Local import to avoid loading the driver in file mode
        from .db_store import PostgresLinkStore

        return PostgresLinkStore(
            dsn=dsn,
            min_size=settings.pool_min_size,
            max_size=settings.pool_max_size,
            sslmode=settings.db_sslmode,
        )

    raise ValueError(f"Unknown storage backend: {be!r}")

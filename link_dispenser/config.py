"""
Runtime configuration for Link Dispenser
=======================================

Settings are read from environment variables (only here) and exposed through
`get_settings()`. The environment is read **at call time** so tests can
monkeypatch variables without reloading modules. Avoid reading env vars
anywhere else; import from this module instead.

Storage
-------
- DATABASE_URL      : Postgres DSN. When set, the relational backend is used;
                      when absent, the JSON file backend is used.
- LINKS_FILE        : path of the JSON file for file mode (default "./links.json")
- DB_POOL_MIN_SIZE  : minimum pooled connections (default 1)
- DB_POOL_MAX_SIZE  : maximum pooled connections (default 10)
- DB_SSLMODE        : optional libpq sslmode, e.g. "require"

Server
------
- PORT              : listen port (default 4000)
- LOG_LEVEL         : logging level name (default "INFO")
"""

import os
from typing import Optional


def _get_int(name: str, default: int) -> int:
    raw = os.getenv(name, str(default))
    try:
        return int(raw)
    except (TypeError, ValueError):
        return default


class Settings:
    """Snapshot of the environment taken when the object is built."""

    def __init__(self) -> None:
        # -------- Storage --------
        self.database_url: str = os.getenv("DATABASE_URL", "").strip()
        self.links_file: str = os.getenv("LINKS_FILE", "./links.json")
        self.pool_min_size: int = max(1, _get_int("DB_POOL_MIN_SIZE", 1))
        self.pool_max_size: int = max(self.pool_min_size, _get_int("DB_POOL_MAX_SIZE", 10))
        self.db_sslmode: Optional[str] = os.getenv("DB_SSLMODE") or None

        # -------- Server --------
        self.port: int = _get_int("PORT", 4000)
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO").strip().upper()

    @property
    def backend(self) -> str:
        """"postgres" when a connection string is configured, else "file"."""
        return "postgres" if self.database_url else "file"

    def __repr__(self) -> str:
        return f"Settings(backend={self.backend!r}, links_file={self.links_file!r}, port={self.port})"


def get_settings() -> Settings:
    """Build a fresh Settings object from the current environment."""
    return Settings()

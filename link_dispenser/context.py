"""
Application context: the one place that owns the store and the manager.

Instead of module-level connection globals, the app builds an AppContext,
opens it at startup and closes it at shutdown:

    ctx = AppContext()
    ctx.open()             # builds the store from settings, opens its pool
    ctx.manager.consume(100)
    ctx.close()

Tests inject a ready-made store (`AppContext(store=FileLinkStore(tmp))`).
"""

import logging
from typing import Optional

from .config import Settings, get_settings
from .manager.link_manager import LinkManager
from .storage.base import BaseLinkStore
from .storage.storage_factory import get_store

log = logging.getLogger(__name__)


class AppContext:
    def __init__(self, settings: Optional[Settings] = None, store: Optional[BaseLinkStore] = None):
        self.settings = settings or get_settings()
        self.store = store
        self._manager: Optional[LinkManager] = None

    @property
    def manager(self) -> LinkManager:
        if self._manager is None:
            raise RuntimeError("AppContext is not open")
        return self._manager

    @property
    def is_open(self) -> bool:
        return self._manager is not None

    def open(self) -> "AppContext":
        if self.is_open:
            return self
        if self.store is None:
            self.store = get_store(settings=self.settings)
        self.store.open()
        self._manager = LinkManager(store=self.store)
        log.info("Link store opened: %r", self.store)
        return self

    def close(self) -> None:
        if self.store is not None:
            self.store.close()
        self._manager = None
        log.info("Link store closed")

    def __enter__(self) -> "AppContext":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

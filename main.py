"""
Main API module for Link Dispenser.

Responsibilities:
    - Hand out one stored link per request for a numeric "valor"
    - Let operators load, clear and inspect the links of each valor
    - Map InvalidInput / NotFound / StorageFailure to 400 / 404 / 500

Architecture:
    - App Factory pattern (create_app) for test isolation and DI.
    - An AppContext owns the store and LinkManager; it is opened and closed
      by the FastAPI lifespan, never at import time.
    - JSON file storage by default; set DATABASE_URL for PostgreSQL.

Run:
    uvicorn main:app --port 4000      (or: python main.py, honours $PORT)
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from link_dispenser.context import AppContext
from link_dispenser.errors import InvalidInput, NotFound, StorageFailure
from link_dispenser.validation import normalize_key


class ValorRequest(BaseModel):
    """Request payload carrying only the key."""
    valor: Any = None


class AddLinksRequest(BaseModel):
    """Request payload for bulk-loading links under a key."""
    valor: Any = None
    links: Any = None


def create_app(context: Optional[AppContext] = None) -> FastAPI:
    """
    Factory function to build and configure a new FastAPI app instance.

    Args:
        context (Optional[AppContext]): Pre-built context (tests inject one
            wrapping a temporary store). Built from the environment if omitted.

    Returns:
        FastAPI: Application whose lifespan opens and closes the context.
    """
    ctx = context or AppContext()
    log = logging.getLogger("link_dispenser")

    # basic console logging (optional)
    if not logging.getLogger().handlers:
        logging.basicConfig(level=ctx.settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        ctx.open()
        log.info("Link storage backend: %s", ctx.store.name)
        yield
        ctx.close()

    app = FastAPI(
        title="Link Dispenser",
        description="Hands out each stored link exactly once per valor",
        docs_url="/docs",
        lifespan=lifespan,
    )
    app.state.context = ctx

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ----------------------------------------------------------------
    # Utilities
    # ----------------------------------------------------------------
    def _call(fn, *args):
        """Run a manager call and translate domain errors to HTTP errors."""
        try:
            return fn(*args)
        except InvalidInput as exc:
            raise HTTPException(status_code=400, detail=str(exc))
        except NotFound as exc:
            raise HTTPException(status_code=404, detail=str(exc))
        except StorageFailure:
            log.exception("Storage failure while serving request")
            raise HTTPException(status_code=500, detail="Internal error")

    @app.get("/health")
    def health() -> Dict[str, str]:
        return {"status": "ok", "backend": ctx.store.name if ctx.store else "unknown"}

    # ----------------------------------------------------------------
    # Routes
    # ----------------------------------------------------------------
    @app.post("/obtener-link")
    def obtener_link(req: ValorRequest) -> Dict[str, Any]:
        """
        Dispense one unused link for `valor`.

        Returns:
            dict: {"url": str, "remaining": int}

        Raises:
            HTTPException: 400 on a bad valor, 404 when nothing is left.
        """
        return _call(ctx.manager.consume, req.valor)

    @app.post("/agregar-links")
    def agregar_links(req: AddLinksRequest) -> Dict[str, int]:
        """Load links under `valor`; returns {"addedCount", "total"}."""
        return _call(ctx.manager.add_links, req.valor, req.links)

    @app.post("/limpiar-links")
    def limpiar_links(req: ValorRequest) -> Dict[str, int]:
        """Remove the unused links of `valor`; returns {"removedCount"}."""
        return _call(ctx.manager.clear_links, req.valor)

    @app.get("/estado-links")
    def estado_links() -> Dict[str, int]:
        """Unused links left per valor."""
        status = _call(ctx.manager.status)
        return {str(valor): count for valor, count in status.items()}

    @app.get("/links")
    def listar_links() -> Dict[str, List[str]]:
        """Every unused link, grouped by valor, in dispensing order."""
        links = _call(ctx.manager.list_all)
        return {str(valor): urls for valor, urls in links.items()}

    @app.get("/links/{valor}")
    def listar_links_valor(valor: str) -> Dict[str, Any]:
        """Unused links of one valor, in dispensing order."""
        key = _call(normalize_key, valor)
        return {"valor": key, "links": _call(ctx.manager.list_for_key, key)}

    return app


# `uvicorn main:app` and `from main import app` keep working.
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=app.state.context.settings.port)

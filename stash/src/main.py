"""
stash/src/main.py — Application Entry Point

Responsibility:
    FastAPI application factory.  Mounts the gateway routes, registers the
    ``StoreError`` → HTTP 500 mapping, and binds the Store Connector to the
    process lifetime:

      • startup  → ``connect`` once (skipped when a connector is injected);
                   a failure here is fatal and the server never starts.
      • shutdown → close the client this process opened.

    The connector lives on ``app.state.connector``; routes reach it through
    the ``get_connector`` dependency.

Usage:
    uvicorn stash.src.main:app --port 8080
    python -m stash.scripts.serve

Related Files:
    - stash/src/api/routes.py               → Routes mounted here
    - stash/src/database/store_connector.py → Connected during startup
    - stash/config/settings.py              → Store target + credentials
"""

from __future__ import annotations

import contextlib
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from stash.config.settings import settings
from stash.src.api.routes import router
from stash.src.database import store_connector
from stash.src.database.errors import StoreConnectionError, StoreError
from stash.src.database.store_connector import StoreConnector
from stash.src.utils.logger import get_logger

logger = get_logger(__name__)


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    if getattr(app.state, "connector", None) is not None:
        yield
        return

    try:
        connector = await store_connector.connect(
            settings.MONGO_HOSTS,
            settings.MONGO_USERNAME,
            settings.MONGO_PASSWORD.get_secret_value(),
            database=settings.MONGO_DB_NAME,
            collection=settings.MONGO_COLLECTION,
            tls=settings.MONGO_TLS,
            auth_source=settings.MONGO_AUTH_SOURCE,
            server_selection_timeout_ms=settings.MONGO_SERVER_SELECTION_TIMEOUT_MS,
        )
    except StoreConnectionError:
        logger.critical("Store unreachable at startup — refusing to serve.")
        raise

    app.state.connector = connector
    try:
        yield
    finally:
        app.state.connector = None
        connector.close()


async def _store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    logger.error("[API] %s %s failed: %s: %s", request.method, request.url.path, type(exc).__name__, exc)
    return JSONResponse(status_code=500, content={"detail": f"{type(exc).__name__}: {exc}"})


def create_app(connector: StoreConnector | None = None) -> FastAPI:
    """
    Build the gateway.

    Parameters
    ----------
    connector
        A ready ``StoreConnector``.  When given, startup does not dial the
        store and shutdown leaves the connector open for its owner.
    """
    app = FastAPI(title="Stash", version="0.1.0", lifespan=lifespan)
    app.state.connector = connector

    app.add_exception_handler(StoreError, _store_error_handler)
    app.include_router(router)

    return app


app = create_app()

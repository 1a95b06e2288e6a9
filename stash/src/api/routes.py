"""
stash/src/api/routes.py — Gateway Routes

Responsibility:
    Defines the only two application endpoints:
      - POST /save → store the raw request body as one payload record
      - GET  /read → return one stored payload followed by a newline

    Each handler is a thin controller: derive a session from the injected
    Store Connector, perform exactly one store operation, write the
    response.  Store failures are not caught here; they propagate to the
    ``StoreError`` handler registered in stash/src/main.py.

Related Files:
    - stash/src/main.py                      → Router mounted, connector injected
    - stash/src/database/store_connector.py  → Store operations
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response

from stash.src.database.records import PayloadRecord
from stash.src.database.store_connector import StoreConnector
from stash.src.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["payloads"])

_NEWLINE = b"\n"


def get_connector(request: Request) -> StoreConnector:
    return request.app.state.connector


@router.post("/save")
async def save_payload(request: Request, connector: StoreConnector = Depends(get_connector)) -> Response:
    """Store the entire request body, byte for byte."""
    payload = await request.body()
    record = PayloadRecord(data=payload)

    async with connector.derive_session() as session:
        await connector.insert(session, record)

    logger.debug("[API] /save stored %d byte(s)", len(payload))
    return Response(status_code=200)


@router.get("/read")
async def read_payload(connector: StoreConnector = Depends(get_connector)) -> Response:
    """Return an arbitrary stored payload plus a trailing newline."""
    async with connector.derive_session() as session:
        record = await connector.find_one(session)

    logger.debug("[API] /read returned %d byte(s)", len(record.data))
    return Response(content=record.data + _NEWLINE, media_type="application/octet-stream")

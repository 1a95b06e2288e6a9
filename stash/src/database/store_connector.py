"""
Stash - Store Connector
=========================
Owns the single long-lived MongoDB client shared by the whole process and
exposes the four store operations the HTTP gateway needs:

  • ``connect``        — dial the replica set over TLS, authenticate, ping.
  • ``derive_session`` — scoped, per-request client session.
  • ``insert``         — write one ``PayloadRecord``.
  • ``find_one``       — read one ``PayloadRecord`` (match-all by default).

Design decisions:
  • **One client per process** — ``connect`` is called once at startup and
    the resulting ``StoreConnector`` is injected into the gateway.  It is
    never re-initialised; if the client goes bad, every later operation
    fails until the process restarts.
  • **Per-request sessions** — ``derive_session`` wraps
    ``start_session`` (no network round trip) and always ends the session,
    including when the store call raises.
  • **No retries** — every driver error is translated once into the
    ``StoreError`` taxonomy and propagated.
  • **No implicit ordering** — ``find_one`` with the match-all filter
    returns whatever the server's natural scan yields first.

Usage:
    from stash.src.database.store_connector import connect

    connector = await connect(["db-0:27017"], "user", "secret")
    async with connector.derive_session() as session:
        await connector.insert(session, PayloadRecord(data=b"hello"))
        record = await connector.find_one(session)
"""

from __future__ import annotations

import contextlib
from typing import Any, AsyncIterator

import motor.motor_asyncio
from bson.errors import BSONError
from pymongo.errors import PyMongoError

from stash.src.database.errors import RecordNotFoundError, StoreConnectionError, StoreReadError, StoreWriteError
from stash.src.database.records import PayloadRecord
from stash.src.utils.logger import get_logger

logger = get_logger(__name__)

MatchFilter = dict[str, Any]

_MATCH_ALL: MatchFilter = {}

# DocumentTooLarge and InvalidBSON derive from BSONError, not PyMongoError
_DRIVER_ERRORS = (PyMongoError, BSONError)


class StoreConnector:
    """
    Handle on one database/collection namespace of a connected client.

    Parameters
    ----------
    client
        A connected ``AsyncIOMotorClient`` (or any object exposing
        ``start_session``, item access by database name, and ``close``).
    database
        Database name holding the payload collection.
    collection
        Default collection for ``insert`` / ``find_one``.
    """

    __slots__ = ("_client", "_database", "_collection")

    def __init__(self, client: motor.motor_asyncio.AsyncIOMotorClient, database: str, collection: str) -> None:
        self._client = client
        self._database = database
        self._collection = collection

    @property
    def namespace(self) -> str:
        return f"{self._database}.{self._collection}"


    def _collection_for(self, collection: str | None) -> motor.motor_asyncio.AsyncIOMotorCollection:
        return self._client[self._database][collection or self._collection]


    @contextlib.asynccontextmanager
    async def derive_session(self) -> AsyncIterator[motor.motor_asyncio.AsyncIOMotorClientSession]:
        """Yield a fresh client session; it is ended on every exit path."""
        async with await self._client.start_session() as session:
            yield session


    async def insert(self, session: motor.motor_asyncio.AsyncIOMotorClientSession, record: PayloadRecord, collection: str | None = None) -> None:
        """Insert one record.  Raises ``StoreWriteError`` on any driver failure."""
        try:
            result = await self._collection_for(collection).insert_one(record.to_document(), session=session)
        except _DRIVER_ERRORS as exc:
            logger.error("[STORE] Insert into '%s' failed: %s", self.namespace, exc)
            raise StoreWriteError(f"insert into {self.namespace} failed: {exc}") from exc
        logger.debug("[STORE] Inserted %d byte(s) as %s", len(record.data), result.inserted_id)


    async def find_one(self, session: motor.motor_asyncio.AsyncIOMotorClientSession, filter: MatchFilter | None = None, collection: str | None = None) -> PayloadRecord:
        """
        Return one record matching *filter* (match-all when ``None``).

        Raises
        ------
        RecordNotFoundError
            Nothing matches.
        StoreReadError
            Driver failure, or the matched document is not a payload record.
        """
        try:
            doc = await self._collection_for(collection).find_one(_MATCH_ALL if filter is None else filter, session=session)
        except _DRIVER_ERRORS as exc:
            logger.error("[STORE] Read from '%s' failed: %s", self.namespace, exc)
            raise StoreReadError(f"read from {self.namespace} failed: {exc}") from exc

        if doc is None:
            raise RecordNotFoundError(f"no record in {self.namespace}")
        return PayloadRecord.from_document(doc)


    async def count(self, session: motor.motor_asyncio.AsyncIOMotorClientSession, collection: str | None = None) -> int:
        """Number of stored records.  Used by the startup probe only."""
        try:
            return await self._collection_for(collection).count_documents(_MATCH_ALL, session=session)
        except _DRIVER_ERRORS as exc:
            raise StoreReadError(f"count on {self.namespace} failed: {exc}") from exc


    def close(self) -> None:
        self._client.close()
        logger.info("[STORE] Client for '%s' closed.", self.namespace)


async def connect(
    addresses: list[str],
    username: str,
    password: str,
    *,
    database: str = "test",
    collection: str = "data",
    tls: bool = True,
    auth_source: str = "admin",
    server_selection_timeout_ms: int = 30_000,
) -> StoreConnector:
    """
    Open the shared client and verify it with a ``ping``.

    The motor client connects lazily, so the ping is what surfaces
    unreachable hosts and rejected credentials at startup.

    Raises
    ------
    StoreConnectionError
        Malformed connection parameters, or a network, TLS, or
        authentication failure.  Not retried.
    """
    target = ",".join(addresses)
    logger.info("[STORE] Connecting to %s (tls=%s, db=%s, collection=%s)", target, tls, database, collection)
    try:
        client = motor.motor_asyncio.AsyncIOMotorClient(
            host=list(addresses),
            username=username,
            password=password,
            authSource=auth_source,
            tls=tls,
            serverSelectionTimeoutMS=server_selection_timeout_ms,
        )
    except (PyMongoError, ValueError, TypeError) as exc:
        logger.critical("[STORE] Invalid connection parameters for %s: %s", target, exc)
        raise StoreConnectionError(f"cannot connect to {target}: {exc}") from exc

    try:
        await client.admin.command("ping")
    except PyMongoError as exc:
        client.close()
        logger.critical("[STORE] Connection to %s failed: %s", target, exc)
        raise StoreConnectionError(f"cannot connect to {target}: {exc}") from exc

    logger.info("[STORE] Connected.")
    return StoreConnector(client, database, collection)

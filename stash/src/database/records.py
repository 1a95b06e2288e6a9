"""
Stash - Payload Record
========================
The single persisted entity: an opaque byte sequence.

Stored document shape (``MONGO_DB_NAME.MONGO_COLLECTION``)::

    {
        "_id": ObjectId,     # assigned by the store, never exposed
        "data": <binary>
    }

No identifier, timestamp, or version is added by the gateway.  A record is
written once and never mutated.
"""

from __future__ import annotations

from typing import Any, Mapping

from pydantic import BaseModel

from stash.src.database.errors import StoreReadError

Document = dict[str, Any]


class PayloadRecord(BaseModel):
    """An opaque byte payload, stored exactly as received."""

    data: bytes = b""

    def to_document(self) -> Document:
        return {"data": self.data}

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "PayloadRecord":
        raw = doc.get("data")
        # subtype 0 decodes to ``bytes``, other subtypes to ``Binary`` (a bytes subclass)
        if not isinstance(raw, (bytes, bytearray)):
            raise StoreReadError(f"Malformed payload record {doc.get('_id')!r}: 'data' is {type(raw).__name__}, expected binary")
        return cls(data=bytes(raw))

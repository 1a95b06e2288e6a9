"""
Stash - Store Error Taxonomy
==============================
Every failure the Store Connector surfaces derives from ``StoreError``.
Driver exceptions (``pymongo.errors.PyMongoError``) are translated at the
connector boundary and chained with ``raise ... from exc``.
"""

from __future__ import annotations


class StoreError(Exception):
    """Base class for all document-store failures."""


class StoreConnectionError(StoreError):
    """The store could not be reached or rejected the credentials."""


class StoreWriteError(StoreError):
    """An insert did not complete."""


class StoreReadError(StoreError):
    """A read did not complete or returned a malformed record."""


class RecordNotFoundError(StoreReadError):
    """The collection holds no record matching the filter."""

"""
In-memory document database for testing.

This module provides a process-local backend for:
- Unit tests
- Integration tests
- Local development without a CouchDB server

Invariants:
    - All data is lost on process exit
    - Revision tokens follow CouchDB's "<generation>-<digest>" shape
    - Same conflict rules as CouchDB: overwriting requires the current
      revision, creating requires no revision
    - Thread-safe for concurrent access

How to change safely:
    - This is test-only code, changes don't affect production
    - Keep interface compatible with the DocumentDatabase protocol
"""

from __future__ import annotations

import copy
import hashlib
import json
import logging
import threading
from typing import Dict, List, Optional

from ..errors import DatabaseError, DocumentConflict, DocumentNotFound
from .base import ID_FIELD, REV_FIELD, Document

logger = logging.getLogger(__name__)


class InMemoryDatabase:
    """In-memory implementation of DocumentDatabase.

    Documents are deep-copied on the way in and out, so callers never
    share state with the stored copy.

    Example:
        >>> db = InMemoryDatabase("test")
        >>> rev = db.save({"_id": "/foo", "body": "bar"})
        >>> rev.startswith("1-")
        True
    """

    def __init__(self, name: str) -> None:
        self._name = name
        self._docs: Dict[str, Document] = {}
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return self._name

    def get(self, doc_id: str) -> Document:
        with self._lock:
            doc = self._docs.get(doc_id)
            if doc is None:
                raise DocumentNotFound(doc_id, database=self._name)
            return copy.deepcopy(doc)

    def save(self, doc: Document) -> str:
        doc_id = doc.get(ID_FIELD)
        if not doc_id:
            raise DatabaseError("Document has no _id", status_code=400)

        with self._lock:
            current = self._docs.get(doc_id)
            given_rev = doc.get(REV_FIELD)

            if current is None:
                if given_rev is not None:
                    raise DocumentConflict(doc_id, database=self._name)
                generation = 1
            else:
                if given_rev != current[REV_FIELD]:
                    raise DocumentConflict(doc_id, database=self._name)
                generation = int(current[REV_FIELD].split("-", 1)[0]) + 1

            stored = copy.deepcopy(doc)
            stored[REV_FIELD] = self._next_revision(generation, stored)
            self._docs[doc_id] = stored

        logger.debug(
            "Document saved to in-memory database",
            extra={"database": self._name, "doc_id": doc_id, "rev": stored[REV_FIELD]},
        )
        return stored[REV_FIELD]

    def all_ids(self) -> List[str]:
        with self._lock:
            return sorted(self._docs)

    @staticmethod
    def _next_revision(generation: int, doc: Document) -> str:
        body = {k: v for k, v in doc.items() if k != REV_FIELD}
        digest = hashlib.md5(json.dumps(body, sort_keys=True).encode("utf-8")).hexdigest()
        return f"{generation}-{digest}"

    # Testing helpers

    def document_count(self) -> int:
        """Number of stored documents (testing helper)."""
        with self._lock:
            return len(self._docs)


class InMemoryServer:
    """In-memory implementation of DocumentServer.

    Databases live as long as the server object, so two Boombera stores
    sharing one server see each other's writes.
    """

    def __init__(self) -> None:
        self._databases: Dict[str, InMemoryDatabase] = {}
        self._lock = threading.Lock()

    def database(self, name: str) -> InMemoryDatabase:
        with self._lock:
            db = self._databases.get(name)
            if db is None:
                db = InMemoryDatabase(name)
                self._databases[name] = db
                logger.debug("In-memory database created", extra={"database": name})
            return db

    def has_database(self, name: str) -> bool:
        with self._lock:
            return name in self._databases

    def close(self) -> None:
        """No connections to release."""

    def get_database(self, name: str) -> Optional[InMemoryDatabase]:
        """Existing database without creating it (testing helper)."""
        with self._lock:
            return self._databases.get(name)

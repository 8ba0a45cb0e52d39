"""
Base protocol and types for the document database abstraction.

This module defines the DocumentServer and DocumentDatabase protocols
that all backends must implement, plus the create_server factory.

Invariants:
    - Documents are plain JSON-compatible dicts keyed by "_id"
    - Every stored document carries an opaque "_rev" revision token
    - save() of an existing id must carry the current "_rev", otherwise
      DocumentConflict is raised and nothing is written
    - get() of a missing id raises DocumentNotFound

How to change safely:
    - Protocol changes require updating all implementations
    - Keep InMemoryDatabase revision semantics identical to CouchDB's
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ..config import Settings

Document = Dict[str, Any]

ID_FIELD = "_id"
REV_FIELD = "_rev"
DESIGN_PREFIX = "_design/"


@runtime_checkable
class DocumentDatabase(Protocol):
    """Protocol for a single named document database.

    Example:
        >>> db = server.database("content")
        >>> rev = db.save({"_id": "/foo", "body": "bar"})
        >>> db.get("/foo")["_rev"] == rev
        True
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Database name."""
        ...

    @abstractmethod
    def get(self, doc_id: str) -> Document:
        """Fetch a whole document by id.

        Raises:
            DocumentNotFound: If no document has this id
            DatabaseError: For other backend failures
        """
        ...

    @abstractmethod
    def save(self, doc: Document) -> str:
        """Write a whole document.

        The document's "_rev" must match the stored revision when the id
        already exists, and must be absent when it does not.

        Returns:
            The new revision token

        Raises:
            DocumentConflict: If the revision is missing or stale
            DatabaseError: For other backend failures
        """
        ...

    @abstractmethod
    def all_ids(self) -> List[str]:
        """All document ids in the database, sorted."""
        ...


@runtime_checkable
class DocumentServer(Protocol):
    """Protocol for a document database server."""

    @abstractmethod
    def database(self, name: str) -> DocumentDatabase:
        """Open the named database, creating it if it does not exist."""
        ...

    @abstractmethod
    def has_database(self, name: str) -> bool:
        """Whether the named database exists, without creating it."""
        ...

    @abstractmethod
    def close(self) -> None:
        """Release connections held by the server."""
        ...


def create_server(settings: "Settings") -> DocumentServer:
    """Factory function to create a document server from settings.

    Args:
        settings: Boombera settings

    Returns:
        Appropriate DocumentServer implementation

    Raises:
        ValueError: If backend is not supported
    """
    from ..config import Backend
    from .couchdb import CouchServer
    from .memory import InMemoryServer

    if settings.backend == Backend.COUCHDB:
        return CouchServer(
            settings.couchdb_url,
            auth=settings.auth,
            timeout=settings.timeout,
        )
    elif settings.backend == Backend.MEMORY:
        return InMemoryServer()
    else:
        raise ValueError(f"Unsupported backend: {settings.backend}")

"""
Error types for Boombera.

This module defines all exception types raised by the library:
- BoomberaError: Base exception
- VersionMismatch: Database provisioned for another library version
- InvalidMapping: Alias target does not exist
- InvalidPath: Path is empty or reserved by the database
- DatabaseError: Document database failure
- DocumentNotFound: No document with the requested id
- DocumentConflict: Save rejected because of a stale revision
- ConnectionError: Database server unreachable

Invariants:
    - All errors inherit from BoomberaError
    - DocumentNotFound never escapes Boombera.get/put/map; lookups
      return Found/NotFound results instead
    - Errors include context for debugging
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class BoomberaError(Exception):
    """Base exception for all Boombera errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "BOOMBERA_ERROR"
        self.details = details or {}


class VersionMismatch(BoomberaError):
    """Database and library disagree on the Boombera version.

    Raised when:
    - The database has no design document (never provisioned)
    - The design document records a different version
    """

    def __init__(
        self,
        message: str,
        expected_version: Optional[str] = None,
        database_version: Optional[str] = None,
    ) -> None:
        super().__init__(
            message,
            code="VERSION_MISMATCH",
            details={
                "expected_version": expected_version,
                "database_version": database_version,
            },
        )
        self.expected_version = expected_version
        self.database_version = database_version


class InvalidMapping(BoomberaError):
    """A pointer was requested to a path with no content item."""

    def __init__(self, path: str, target_path: str, reason: Optional[str] = None) -> None:
        msg = reason or f"Cannot map {path} to {target_path}: no content at {target_path}"
        super().__init__(
            msg,
            code="INVALID_MAPPING",
            details={"path": path, "target_path": target_path},
        )
        self.path = path
        self.target_path = target_path


class InvalidPath(BoomberaError):
    """A path cannot hold a content item.

    Raised when:
    - The path is empty
    - The path starts with "_", the prefix CouchDB reserves for its own
      documents (e.g. "_design/boombera")
    """

    def __init__(self, path: str) -> None:
        super().__init__(
            f"Invalid content path: {path!r}",
            code="INVALID_PATH",
            details={"path": path},
        )
        self.path = path


class DatabaseError(BoomberaError):
    """The document database rejected a request.

    Attributes:
        status_code: HTTP status returned by the server, if any
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        code: str = "DATABASE_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        merged = {"status_code": status_code}
        merged.update(details or {})
        super().__init__(message, code=code, details=merged)
        self.status_code = status_code


class DocumentNotFound(DatabaseError):
    """No document exists with the requested id."""

    def __init__(self, doc_id: str, database: Optional[str] = None) -> None:
        super().__init__(
            f"Document not found: {doc_id}",
            status_code=404,
            code="NOT_FOUND",
            details={"doc_id": doc_id, "database": database},
        )
        self.doc_id = doc_id
        self.database = database


class DocumentConflict(DatabaseError):
    """Save rejected: the revision token is missing or stale.

    Not retried by the library. Reload the item and apply the change again.
    """

    def __init__(self, doc_id: str, database: Optional[str] = None) -> None:
        super().__init__(
            f"Document update conflict: {doc_id}",
            status_code=409,
            code="CONFLICT",
            details={"doc_id": doc_id, "database": database},
        )
        self.doc_id = doc_id
        self.database = database


class ConnectionError(BoomberaError):
    """Failed to reach the document database server."""

    def __init__(
        self,
        message: str,
        address: Optional[str] = None,
    ) -> None:
        super().__init__(
            message,
            code="CONNECTION_ERROR",
            details={"address": address},
        )
        self.address = address

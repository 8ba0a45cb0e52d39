"""
Document database abstraction for Boombera.

This module provides a pluggable backend interface supporting:
- CouchDB over HTTP (production)
- In-memory (for testing)

Invariants:
    - Documents are addressed by opaque string ids
    - Missing ids raise DocumentNotFound
    - Overwrites require the current revision token

How to change safely:
    - New backends must implement the DocumentServer and DocumentDatabase protocols
    - Verify conflict semantics match CouchDB's
"""

from .base import (
    DESIGN_PREFIX,
    ID_FIELD,
    REV_FIELD,
    Document,
    DocumentDatabase,
    DocumentServer,
    create_server,
)
from .couchdb import CouchDatabase, CouchServer
from .memory import InMemoryDatabase, InMemoryServer

__all__ = [
    # Protocol and types
    "Document",
    "DocumentDatabase",
    "DocumentServer",
    "ID_FIELD",
    "REV_FIELD",
    "DESIGN_PREFIX",
    # Factory
    "create_server",
    # Implementations
    "CouchServer",
    "CouchDatabase",
    "InMemoryServer",
    "InMemoryDatabase",
]

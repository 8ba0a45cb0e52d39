"""
Boombera - a path-addressed content store on top of CouchDB.

Content lives at hierarchical paths. A path holds either concrete content
or a pointer to another path:
- put(path, body) stores content
- map(path, target) makes path an alias for target
- get(path) returns the content, following a pointer by one hop

Example:
    >>> from boombera import Boombera, install_design_doc
    >>>
    >>> install_design_doc("content")
    >>> with Boombera("content") as store:
    ...     store.put("/articles/1", "Hello")
    ...     store.map("/latest", "/articles/1")
    ...     store.get("/latest").item.body
    'Hello'

Invariants:
    - A store refuses databases provisioned for another Boombera version
    - Pointer resolution is a single hop
    - Writes are whole-document saves guarded by revision tokens

Version: see the VERSION file in this package.
"""

from .config import Backend, Settings, get_settings
from .content_item import ContentItem, Found, Lookup, NotFound
from .database import CouchServer, InMemoryServer, create_server
from .design import design_doc, install_design_doc
from .errors import (
    BoomberaError,
    ConnectionError,
    DatabaseError,
    DocumentConflict,
    DocumentNotFound,
    InvalidMapping,
    InvalidPath,
    VersionMismatch,
)
from .store import Boombera
from .version import check_version, current_version, database_version

__version__ = current_version()

__all__ = [
    # Version
    "__version__",
    "current_version",
    "database_version",
    "check_version",
    # Store
    "Boombera",
    "ContentItem",
    "Found",
    "NotFound",
    "Lookup",
    # Design document
    "design_doc",
    "install_design_doc",
    # Backends
    "create_server",
    "CouchServer",
    "InMemoryServer",
    # Config
    "Settings",
    "Backend",
    "get_settings",
    # Errors
    "BoomberaError",
    "VersionMismatch",
    "InvalidMapping",
    "InvalidPath",
    "DatabaseError",
    "DocumentNotFound",
    "DocumentConflict",
    "ConnectionError",
]

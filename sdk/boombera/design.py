"""
Design document installation for Boombera.

The design document "_design/boombera" records the library version a
database was provisioned with and defines the views over content
documents:

    content_paths: path -> document id, for every content document
    content_map:   path -> {"_id": target} for pointers, null otherwise

Invariants:
    - install_design_doc() is idempotent: running it again rewrites the
      same definition on top of the current revision
    - The existing revision is always carried forward, so an update never
      conflicts with itself

How to change safely:
    - Any change to the views or the document shape needs a VERSION bump,
      otherwise existing stores keep passing the version gate
"""

from __future__ import annotations

import logging
from typing import Optional

from .config import Settings, get_settings
from .database import REV_FIELD, Document, DocumentServer, create_server
from .errors import DocumentNotFound
from .version import DESIGN_DOC_ID, VERSION_FIELD, current_version

logger = logging.getLogger(__name__)

CONTENT_PATHS_MAP = """function(doc) {
  if (doc['path']) {
    emit(doc['path'], doc['_id']);
  }
}"""

CONTENT_MAP_MAP = """function(doc) {
  if (doc['path']) {
    if (doc['pointer']) {
      emit(doc['path'], {'_id': doc['pointer']});
    } else {
      emit(doc['path'], null);
    }
  }
}"""


def design_doc(version: Optional[str] = None) -> Document:
    """Current design document definition (without a revision)."""
    return {
        "_id": DESIGN_DOC_ID,
        "language": "javascript",
        VERSION_FIELD: current_version() if version is None else version,
        "views": {
            "content_paths": {"map": CONTENT_PATHS_MAP},
            "content_map": {"map": CONTENT_MAP_MAP},
        },
    }


def install_design_doc(
    database_name: str,
    *,
    server: Optional[DocumentServer] = None,
    settings: Optional[Settings] = None,
) -> str:
    """Create or update the design document on a database.

    Args:
        database_name: Database to provision (created if missing)
        server: Document server to use (defaults to one built from settings)
        settings: Settings for the default server

    Returns:
        Revision of the written design document

    Raises:
        DocumentConflict: If another writer updated the design document
            between our read and write
    """
    owns_server = server is None
    if server is None:
        server = create_server(settings or get_settings())

    try:
        db = server.database(database_name)
        doc = design_doc()
        try:
            existing = db.get(DESIGN_DOC_ID)
        except DocumentNotFound:
            action = "created"
        else:
            doc[REV_FIELD] = existing[REV_FIELD]
            action = "updated"

        rev = db.save(doc)
    finally:
        if owns_server:
            server.close()

    logger.info(
        f"Design document {action}",
        extra={"database": database_name, "version": doc[VERSION_FIELD], "rev": rev},
    )
    return rev

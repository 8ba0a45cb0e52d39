"""
Version gate for Boombera.

A database is provisioned for one Boombera release: install_design_doc()
writes the library version into the design document. Before a store is
used, check_version() compares that value with the running library's
version and refuses to continue on any difference.

Invariants:
    - current_version() is read once from the bundled VERSION file
    - A database without a design document never passes the gate
    - The gate has no side effects on success
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Optional

from .database import DocumentDatabase
from .errors import DocumentNotFound, VersionMismatch

logger = logging.getLogger(__name__)

VERSION_FILE = Path(__file__).with_name("VERSION")
DESIGN_DOC_ID = "_design/boombera"
VERSION_FIELD = "gem_version"


@lru_cache(maxsize=1)
def current_version() -> str:
    """Version of the running library, from the VERSION file."""
    return VERSION_FILE.read_text(encoding="utf-8").strip()


def database_version(db: DocumentDatabase) -> Optional[str]:
    """Version of Boombera the database was provisioned for.

    Returns:
        The recorded version, or None if the design document is missing
    """
    try:
        doc = db.get(DESIGN_DOC_ID)
    except DocumentNotFound:
        return None
    return doc.get(VERSION_FIELD)


def check_version(db: DocumentDatabase, expected: Optional[str] = None) -> None:
    """Refuse databases provisioned for another Boombera version.

    Args:
        db: Database to check
        expected: Version to require (defaults to current_version())

    Raises:
        VersionMismatch: If the database records no version or another one
    """
    if expected is None:
        expected = current_version()
    found = database_version(db)

    if found is None:
        logger.warning(
            "Database has no Boombera version",
            extra={"database": db.name, "expected_version": expected},
        )
        raise VersionMismatch(
            "Database does not specify a Boombera version",
            expected_version=expected,
        )

    if found != expected:
        logger.warning(
            "Database Boombera version mismatch",
            extra={"database": db.name, "expected_version": expected, "database_version": found},
        )
        raise VersionMismatch(
            f"Database expects Boombera {found}",
            expected_version=expected,
            database_version=found,
        )

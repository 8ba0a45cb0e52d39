"""
Content items: the unit of storage in Boombera.

A content item lives at a path and is either concrete content (it has a
body) or a pointer (it aliases another path). The path doubles as the
document id.

Lookups return explicit results instead of None:
- Found(item): an item exists
- NotFound(path): nothing at that path

Invariants:
    - An item never holds both a body and a pointer
    - Pointer resolution is a single hop; a pointer to a pointer resolves
      to the intermediate pointer item, never further
    - A pointer can only be created to a path that holds an item
    - Empty and "_"-prefixed paths never hold items: lookups report
      NotFound and saves raise InvalidPath
    - save() always writes the whole document and carries the revision

Document shape:
    {"_id": path, "_rev"?: token, "path": path, "body"?: content, "pointer"?: path}
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Union

from .database import ID_FIELD, REV_FIELD, Document, DocumentDatabase
from .errors import DocumentNotFound, InvalidMapping, InvalidPath

logger = logging.getLogger(__name__)

RESERVED_PREFIX = "_"


def is_content_path(path: str) -> bool:
    """Whether path may hold a content item.

    CouchDB reserves "_"-prefixed ids (design documents among them).
    """
    return bool(path) and not path.startswith(RESERVED_PREFIX)


@dataclass
class ContentItem:
    """Content, or an alias to content, stored at a path.

    Attributes:
        path: Hierarchical key, also the database document id
        body: Concrete content (JSON-serializable), None for pointers
        pointer: Path this item aliases to, None for concrete content
        revision: Database revision token, None until first saved

    Example:
        >>> item = ContentItem("/foo", "bar")
        >>> item.save(db)
        True
    """

    path: str
    body: Any = None
    pointer: str | None = None
    revision: str | None = None

    @property
    def is_pointer(self) -> bool:
        return self.pointer is not None

    @property
    def is_persisted(self) -> bool:
        return self.revision is not None

    @classmethod
    def from_document(cls, doc: Document) -> ContentItem:
        """Build an item from a stored document."""
        return cls(
            path=doc.get("path") or doc[ID_FIELD],
            body=doc.get("body"),
            pointer=doc.get("pointer"),
            revision=doc.get(REV_FIELD),
        )

    def to_document(self) -> Document:
        """Full document for this item, including the revision if known."""
        doc: Document = {ID_FIELD: self.path, "path": self.path}
        if self.revision is not None:
            doc[REV_FIELD] = self.revision
        if self.pointer is not None:
            doc["pointer"] = self.pointer
        else:
            doc["body"] = self.body
        return doc

    @classmethod
    def load(cls, path: str, db: DocumentDatabase) -> Lookup:
        """Load the item stored at path, without following pointers.

        Args:
            path: Path to look up
            db: Database to read from

        Returns:
            Found(item) or NotFound(path)
        """
        if not is_content_path(path):
            return NotFound(path)
        try:
            doc = db.get(path)
        except DocumentNotFound:
            return NotFound(path)
        return Found(cls.from_document(doc))

    @classmethod
    def resolve(cls, path: str, db: DocumentDatabase) -> Lookup:
        """Load the item at path, following a pointer by one hop.

        A pointer whose target has disappeared is logged and reported as
        NotFound for the target path.

        Args:
            path: Path to look up
            db: Database to read from

        Returns:
            Found(item) with the content reached, or NotFound
        """
        result = cls.load(path, db)
        if not isinstance(result, Found) or not result.item.is_pointer:
            return result

        target = result.item.pointer
        resolved = cls.load(target, db)
        if isinstance(resolved, NotFound):
            logger.warning(
                "Pointer target is missing",
                extra={"database": db.name, "path": path, "target": target},
            )
        return resolved

    def set_body(self, body: Any) -> None:
        """Make this item concrete content, dropping any pointer."""
        self.body = body
        self.pointer = None

    def map_to(self, target_path: str, db: DocumentDatabase) -> None:
        """Turn this item into a pointer to target_path.

        The item is left untouched when validation fails.

        Raises:
            InvalidMapping: If target_path is this item's own path, or
                nothing is stored at target_path
        """
        if target_path == self.path:
            raise InvalidMapping(
                self.path, target_path, reason=f"Cannot map {self.path} to itself"
            )
        if isinstance(self.load(target_path, db), NotFound):
            raise InvalidMapping(self.path, target_path)

        self.pointer = target_path
        self.body = None

    def save(self, db: DocumentDatabase) -> bool:
        """Persist the whole item and refresh its revision.

        Raises:
            InvalidPath: If the path is empty or reserved
            DocumentConflict: If the stored revision moved on since load
            DatabaseError: For other backend failures
        """
        if not is_content_path(self.path):
            raise InvalidPath(self.path)
        self.revision = db.save(self.to_document())
        logger.debug(
            "Content item saved",
            extra={
                "database": db.name,
                "path": self.path,
                "rev": self.revision,
                "pointer": self.pointer,
            },
        )
        return True


@dataclass(frozen=True)
class Found:
    """Lookup result: an item exists."""

    item: ContentItem

    @property
    def found(self) -> bool:
        return True


@dataclass(frozen=True)
class NotFound:
    """Lookup result: nothing is stored at path."""

    path: str

    @property
    def found(self) -> bool:
        return False


Lookup = Union[Found, NotFound]

"""
Boombera store: the public facade.

Example:
    >>> with Boombera("content") as store:
    ...     store.put("/foo", "bar")
    ...     store.map("/alias", "/foo")
    ...     result = store.get("/alias")
    ...     if isinstance(result, Found):
    ...         print(result.item.body)

Invariants:
    - A Boombera instance only exists once the version gate has passed
    - put/map are a single whole-document save each; nothing is written
      when validation fails
    - Every call re-reads from the database; no caching
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional

from .config import Settings, get_settings
from .content_item import ContentItem, Found, Lookup
from .database import DESIGN_PREFIX, DocumentDatabase, DocumentServer, create_server
from .version import check_version

logger = logging.getLogger(__name__)


class Boombera:
    """Content store bound to one named database.

    Attributes:
        database: The database handle held for the store's lifetime
    """

    def __init__(
        self,
        database_name: str,
        *,
        server: Optional[DocumentServer] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        """Open the database and run the version gate.

        Args:
            database_name: Database to use (created if missing)
            server: Document server (defaults to one built from settings)
            settings: Settings for the default server

        Raises:
            VersionMismatch: If the database was provisioned for another
                Boombera version, or never provisioned
        """
        self._owns_server = server is None
        self._server = server or create_server(settings or get_settings())

        try:
            self.database: DocumentDatabase = self._server.database(database_name)
            check_version(self.database)
        except Exception:
            self.close()
            raise

        logger.info("Boombera store opened", extra={"database": database_name})

    def get(self, path: str) -> Lookup:
        """Content at path, following a pointer by one hop.

        Returns:
            Found(item) or NotFound(path)
        """
        return ContentItem.resolve(path, self.database)

    def put(self, path: str, body: Any) -> bool:
        """Store body at path, replacing any content or pointer there.

        Returns:
            True once saved
        """
        result = ContentItem.load(path, self.database)
        if isinstance(result, Found):
            item = result.item
            item.set_body(body)
        else:
            item = ContentItem(path, body)
        return item.save(self.database)

    def map(self, path: str, target_path: str) -> bool:
        """Make path an alias for target_path.

        Returns:
            True once saved

        Raises:
            InvalidMapping: If nothing is stored at target_path
        """
        result = ContentItem.load(path, self.database)
        if isinstance(result, Found):
            item = result.item
        else:
            item = ContentItem(path, None)
        item.map_to(target_path, self.database)
        return item.save(self.database)

    def paths(self) -> List[str]:
        """Paths of all stored content items, sorted."""
        return [
            doc_id for doc_id in self.database.all_ids() if not doc_id.startswith(DESIGN_PREFIX)
        ]

    def close(self) -> None:
        """Release the server connection if this store created it."""
        if self._owns_server:
            self._server.close()

    def __enter__(self) -> Boombera:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

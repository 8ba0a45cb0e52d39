"""
CouchDB backend for Boombera.

Talks to CouchDB's HTTP API through a shared httpx.Client:
- PUT  /{db}             create database (412 if it already exists)
- GET  /{db}/{id}        fetch document
- PUT  /{db}/{id}        create or overwrite document (body carries _rev)
- GET  /{db}/_all_docs   list document ids

Invariants:
    - Document ids are percent-encoded, except the "_design/" prefix
      which CouchDB routes on literally
    - 404 on a document maps to DocumentNotFound, 409 to DocumentConflict
    - Transport failures map to ConnectionError; other non-2xx responses
      map to DatabaseError with CouchDB's error/reason

How to change safely:
    - Test against a real CouchDB when changing URL construction
    - Keep status code mapping aligned with InMemoryDatabase behavior
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Tuple
from urllib.parse import quote

import httpx

from ..errors import ConnectionError, DatabaseError, DocumentConflict, DocumentNotFound
from .base import DESIGN_PREFIX, ID_FIELD, Document

logger = logging.getLogger(__name__)


def encode_doc_id(doc_id: str) -> str:
    """URL path segment for a document id."""
    if doc_id.startswith(DESIGN_PREFIX):
        return DESIGN_PREFIX + quote(doc_id[len(DESIGN_PREFIX):], safe="")
    return quote(doc_id, safe="")


def _error_details(response: httpx.Response) -> Tuple[str, str]:
    try:
        payload = response.json()
    except ValueError:
        return "unknown_error", response.text
    if not isinstance(payload, dict):
        return "unknown_error", response.text
    return str(payload.get("error", "unknown_error")), str(payload.get("reason", ""))


class CouchDatabase:
    """A single CouchDB database.

    Created through CouchServer.database(); shares the server's HTTP
    connection pool.
    """

    def __init__(self, server: CouchServer, name: str) -> None:
        self._server = server
        self._name = name
        self._path = "/" + quote(name, safe="")

    @property
    def name(self) -> str:
        return self._name

    def get(self, doc_id: str) -> Document:
        # GET /{db}/ answers with database info, not a document
        if not doc_id:
            raise DocumentNotFound(doc_id, database=self._name)
        response = self._server._request("GET", f"{self._path}/{encode_doc_id(doc_id)}")
        if response.status_code == 404:
            raise DocumentNotFound(doc_id, database=self._name)
        self._server._raise_for_status(response, f"GET {doc_id}")
        logger.debug("Document fetched", extra={"database": self._name, "doc_id": doc_id})
        return response.json()

    def save(self, doc: Document) -> str:
        doc_id = doc.get(ID_FIELD)
        if not doc_id:
            raise DatabaseError("Document has no _id", status_code=400)

        response = self._server._request(
            "PUT", f"{self._path}/{encode_doc_id(doc_id)}", json=doc
        )
        if response.status_code == 409:
            raise DocumentConflict(doc_id, database=self._name)
        self._server._raise_for_status(response, f"PUT {doc_id}")

        rev = response.json()["rev"]
        logger.debug(
            "Document saved",
            extra={"database": self._name, "doc_id": doc_id, "rev": rev},
        )
        return rev

    def all_ids(self) -> List[str]:
        response = self._server._request("GET", f"{self._path}/_all_docs")
        self._server._raise_for_status(response, "GET _all_docs")
        return sorted(row["id"] for row in response.json().get("rows", []))


class CouchServer:
    """Connection to a CouchDB server.

    Example:
        >>> server = CouchServer("http://127.0.0.1:5984", auth=("admin", "secret"))
        >>> db = server.database("content")
        >>> server.close()
    """

    def __init__(
        self,
        url: str,
        *,
        auth: Optional[Tuple[str, str]] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        """Initialize server connection.

        Args:
            url: Base URL of the CouchDB server
            auth: Optional (username, password) for basic auth
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self._url = url.rstrip("/")
        self._client = httpx.Client(
            base_url=self._url,
            auth=auth,
            timeout=timeout,
            headers={"Accept": "application/json"},
            transport=transport,
        )

    @property
    def url(self) -> str:
        return self._url

    def database(self, name: str) -> CouchDatabase:
        """Open the named database, creating it if needed.

        Raises:
            DatabaseError: If the server refuses to create it
            ConnectionError: If the server is unreachable
        """
        response = self._request("PUT", "/" + quote(name, safe=""))
        if response.status_code in (201, 202):
            logger.info("CouchDB database created", extra={"database": name})
        elif response.status_code != 412:
            self._raise_for_status(response, f"PUT database {name}")
        return CouchDatabase(self, name)

    def has_database(self, name: str) -> bool:
        """Whether the named database exists (HEAD /{db}, never creates)."""
        response = self._request("HEAD", "/" + quote(name, safe=""))
        if response.status_code == 404:
            return False
        self._raise_for_status(response, f"HEAD database {name}")
        return True

    def close(self) -> None:
        self._client.close()

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            return self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise ConnectionError(
                f"Failed to reach CouchDB: {e}",
                address=self._url,
            ) from e

    def _raise_for_status(self, response: httpx.Response, action: str) -> None:
        if response.is_success:
            return
        error, reason = _error_details(response)
        raise DatabaseError(
            f"CouchDB {action} failed: {error} ({reason})",
            status_code=response.status_code,
            details={"error": error, "reason": reason},
        )

"""
Shared fixtures for the Boombera test suite.

Provides:
- server: a fresh in-memory document server
- pinned_version: pins the library version to "1.2.3"
- fake_couchdb: an httpx.MockTransport speaking the CouchDB HTTP API,
  backed by an in-memory server
"""

import json
from urllib.parse import unquote

import httpx
import pytest

import sdk.boombera.cli as cli_module
import sdk.boombera.design as design_module
import sdk.boombera.version as version_module
from sdk.boombera.database.memory import InMemoryServer
from sdk.boombera.errors import DocumentConflict, DocumentNotFound

PINNED_VERSION = "1.2.3"


@pytest.fixture
def server():
    """Create a fresh in-memory server."""
    return InMemoryServer()


@pytest.fixture
def pinned_version(monkeypatch):
    """Pin the library version reported to the gate and the installer."""
    monkeypatch.setattr(version_module, "current_version", lambda: PINNED_VERSION)
    monkeypatch.setattr(design_module, "current_version", lambda: PINNED_VERSION)
    monkeypatch.setattr(cli_module, "current_version", lambda: PINNED_VERSION)
    return PINNED_VERSION


def couchdb_handler(backend: InMemoryServer):
    """Request handler emulating the subset of CouchDB Boombera uses."""

    def handler(request: httpx.Request) -> httpx.Response:
        raw_path = request.url.raw_path.decode("ascii").split("?", 1)[0]
        db_part, _, rest = raw_path.lstrip("/").partition("/")
        db_name = unquote(db_part)

        if not rest:
            if request.method == "HEAD":
                exists = backend.get_database(db_name) is not None
                return httpx.Response(200 if exists else 404)
            if request.method != "PUT":
                return httpx.Response(405, json={"error": "method_not_allowed"})
            if backend.get_database(db_name) is not None:
                return httpx.Response(412, json={"error": "file_exists"})
            backend.database(db_name)
            return httpx.Response(201, json={"ok": True})

        db = backend.database(db_name)
        if rest == "_all_docs":
            rows = [{"id": doc_id, "key": doc_id} for doc_id in db.all_ids()]
            return httpx.Response(200, json={"total_rows": len(rows), "rows": rows})

        doc_id = unquote(rest)
        if request.method == "GET":
            try:
                return httpx.Response(200, json=db.get(doc_id))
            except DocumentNotFound:
                return httpx.Response(404, json={"error": "not_found", "reason": "missing"})

        if request.method == "PUT":
            doc = json.loads(request.content)
            try:
                rev = db.save(doc)
            except DocumentConflict:
                return httpx.Response(
                    409, json={"error": "conflict", "reason": "Document update conflict."}
                )
            return httpx.Response(201, json={"ok": True, "id": doc_id, "rev": rev})

        return httpx.Response(405, json={"error": "method_not_allowed"})

    return handler


@pytest.fixture
def couchdb_backend():
    """In-memory storage behind the fake CouchDB transport."""
    return InMemoryServer()


@pytest.fixture
def fake_couchdb(couchdb_backend):
    """httpx transport emulating a CouchDB server."""
    return httpx.MockTransport(couchdb_handler(couchdb_backend))

"""
Integration tests for the Boombera store.

Tests cover:
- Construction and the version gate
- put/get/map against the in-memory backend
- Delegation to ContentItem (mocked)
- Connection lifecycle
"""

from unittest.mock import MagicMock, patch

import pytest

from sdk.boombera.content_item import ContentItem, Found, NotFound
from sdk.boombera.database.memory import InMemoryServer
from sdk.boombera.design import install_design_doc
from sdk.boombera.errors import InvalidMapping, InvalidPath, VersionMismatch
from sdk.boombera.store import Boombera
from sdk.boombera.version import DESIGN_DOC_ID


@pytest.fixture
def store(server, pinned_version):
    """Store on a provisioned in-memory database."""
    install_design_doc("boombera_test", server=server)
    return Boombera("boombera_test", server=server)


class TestConstruction:
    """Tests for Boombera.__init__."""

    def test_connects_to_named_database(self, server, pinned_version):
        """The store holds the named database."""
        install_design_doc("my_db", server=server)

        store = Boombera("my_db", server=server)

        assert store.database is server.get_database("my_db")

    def test_version_mismatch(self, server, pinned_version):
        """A database provisioned for another version is refused."""
        server.database("boombera_test").save({"_id": DESIGN_DOC_ID, "gem_version": "1.2.2"})

        with pytest.raises(VersionMismatch, match="^Database expects Boombera 1.2.2$"):
            Boombera("boombera_test", server=server)

    def test_missing_version(self, server, pinned_version):
        """An unprovisioned database is refused."""
        with pytest.raises(
            VersionMismatch, match="^Database does not specify a Boombera version$"
        ):
            Boombera("boombera_test", server=server)

    def test_failed_construction_closes_own_server(self, pinned_version, monkeypatch):
        """A server built from settings is closed when the gate fails."""
        server = MagicMock(wraps=InMemoryServer())
        monkeypatch.setattr("sdk.boombera.store.create_server", lambda settings: server)

        with pytest.raises(VersionMismatch):
            Boombera("boombera_test")

        server.close.assert_called_once()

    def test_failed_construction_keeps_injected_server(self, pinned_version):
        """Injected servers are left open even on failure."""
        server = MagicMock(wraps=InMemoryServer())

        with pytest.raises(VersionMismatch):
            Boombera("boombera_test", server=server)

        server.close.assert_not_called()


class TestPut:
    """Tests for Boombera.put."""

    def test_put_new_path(self, store):
        """put creates content at a new path."""
        assert store.put("/foo", "bar") is True

        result = store.get("/foo")
        assert isinstance(result, Found)
        assert result.item.body == "bar"

    def test_put_existing_path_updates_in_place(self, store):
        """put on an existing path updates the same document."""
        store.put("/foo", "bar")
        first_rev = store.database.get("/foo")["_rev"]

        store.put("/foo", "baz")

        doc = store.database.get("/foo")
        assert doc["body"] == "baz"
        assert doc["_rev"].startswith("2-")
        assert doc["_rev"] != first_rev
        assert store.paths() == ["/foo"]

    def test_put_over_pointer_replaces_pointer(self, store):
        """put on an alias turns it back into content."""
        store.put("/foo", "bar")
        store.map("/alias", "/foo")

        store.put("/alias", "own content")

        assert store.get("/alias").item.body == "own content"
        assert store.get("/alias").item.path == "/alias"
        assert "pointer" not in store.database.get("/alias")

    def test_put_structured_body(self, store):
        """Any JSON-compatible body round-trips."""
        store.put("/doc", {"title": "Hi", "tags": ["a", "b"]})

        assert store.get("/doc").item.body == {"title": "Hi", "tags": ["a", "b"]}

    def test_put_existing_delegates_to_content_item(self, store):
        """Existing items are updated through set_body and save."""
        item = MagicMock(spec=ContentItem)
        item.save.return_value = True

        with patch.object(ContentItem, "load", return_value=Found(item)) as load:
            assert store.put("/foo", "bar") is True

        load.assert_called_once_with("/foo", store.database)
        item.set_body.assert_called_once_with("bar")
        item.save.assert_called_once_with(store.database)


class TestGet:
    """Tests for Boombera.get."""

    def test_get_missing(self, store):
        """Nothing stored yields NotFound."""
        assert store.get("/nothing") == NotFound("/nothing")

    def test_get_delegates_to_resolve(self, store):
        """get returns whatever resolution returns."""
        result = Found(ContentItem("/foo", "bar"))

        with patch.object(ContentItem, "resolve", return_value=result) as resolve:
            assert store.get("/foo") is result

        resolve.assert_called_once_with("/foo", store.database)


class TestMap:
    """Tests for Boombera.map."""

    def test_map_new_path(self, store):
        """map creates a pointer that get follows."""
        store.put("/foo", "bar")

        assert store.map("/alias", "/foo") is True

        result = store.get("/alias")
        assert result.item.path == "/foo"
        assert result.item.body == "bar"
        assert store.database.get("/alias")["pointer"] == "/foo"

    def test_map_existing_content(self, store):
        """map turns existing content into a pointer."""
        store.put("/foo", "bar")
        store.put("/old", "old body")

        store.map("/old", "/foo")

        doc = store.database.get("/old")
        assert doc["pointer"] == "/foo"
        assert "body" not in doc
        assert doc["_rev"].startswith("2-")

    def test_map_existing_pointer_retargets(self, store):
        """map on an alias points it somewhere else."""
        store.put("/one", 1)
        store.put("/two", 2)
        store.map("/alias", "/one")

        store.map("/alias", "/two")

        assert store.get("/alias").item.body == 2

    def test_map_follows_target_updates(self, store):
        """An alias sees later updates of its target."""
        store.put("/foo", "bar")
        store.map("/alias", "/foo")

        store.put("/foo", "baz")

        assert store.get("/alias").item.body == "baz"

    def test_map_missing_target_new_path(self, store):
        """Mapping a new path to nothing raises and writes nothing."""
        with pytest.raises(InvalidMapping):
            store.map("/alias", "/missing")

        assert store.get("/alias") == NotFound("/alias")
        assert store.paths() == []

    def test_map_missing_target_existing_path(self, store):
        """Mapping existing content to nothing leaves it unchanged."""
        store.put("/foo", "bar")
        before = store.database.get("/foo")

        with pytest.raises(InvalidMapping):
            store.map("/foo", "/missing")

        assert store.database.get("/foo") == before

    def test_map_new_path_delegates_to_content_item(self, store):
        """New paths get an empty item that is mapped then saved."""
        item = MagicMock(spec=ContentItem)
        item.save.return_value = True

        with patch("sdk.boombera.store.ContentItem") as content_item_cls:
            content_item_cls.load.return_value = NotFound("/bar")
            content_item_cls.return_value = item
            assert store.map("/bar", "/foo") is True

        content_item_cls.assert_called_once_with("/bar", None)
        item.map_to.assert_called_once_with("/foo", store.database)
        item.save.assert_called_once_with(store.database)

    def test_map_invalid_mapping_skips_save(self, store):
        """InvalidMapping from map_to aborts before saving."""
        item = MagicMock(spec=ContentItem)
        item.map_to.side_effect = InvalidMapping("/bar", "/foo")

        with patch.object(ContentItem, "load", return_value=Found(item)):
            with pytest.raises(InvalidMapping):
                store.map("/bar", "/foo")

        item.save.assert_not_called()


class TestReservedPaths:
    """Design documents and empty paths are not content."""

    def test_put_design_doc_path(self, store, server):
        """put cannot overwrite the design document."""
        before = store.database.get(DESIGN_DOC_ID)

        with pytest.raises(InvalidPath) as exc_info:
            store.put(DESIGN_DOC_ID, "oops")

        assert exc_info.value.code == "INVALID_PATH"
        assert store.database.get(DESIGN_DOC_ID) == before
        Boombera("boombera_test", server=server)

    def test_put_underscore_path(self, store):
        """Any "_"-prefixed id is reserved."""
        with pytest.raises(InvalidPath):
            store.put("_local/foo", "bar")

        assert store.paths() == []

    def test_put_empty_path(self, store):
        """The empty path holds nothing."""
        with pytest.raises(InvalidPath):
            store.put("", "bar")

    def test_map_from_design_doc_path(self, store):
        """map cannot turn the design document into a pointer."""
        store.put("/foo", "bar")
        before = store.database.get(DESIGN_DOC_ID)

        with pytest.raises(InvalidPath):
            store.map(DESIGN_DOC_ID, "/foo")

        assert store.database.get(DESIGN_DOC_ID) == before

    def test_map_to_design_doc(self, store):
        """The design document is not a valid alias target."""
        with pytest.raises(InvalidMapping):
            store.map("/a", DESIGN_DOC_ID)

        assert store.get("/a") == NotFound("/a")

    def test_get_design_doc_path(self, store):
        """get never returns the design document as content."""
        assert store.get(DESIGN_DOC_ID) == NotFound(DESIGN_DOC_ID)

    def test_get_empty_path(self, store):
        """get of the empty path is NotFound."""
        assert store.get("") == NotFound("")


class TestPaths:
    """Tests for Boombera.paths."""

    def test_lists_content_paths(self, store):
        """Design documents are excluded."""
        store.put("/b", "2")
        store.put("/a", "1")
        store.map("/c", "/a")

        assert store.paths() == ["/a", "/b", "/c"]


class TestScenarios:
    """End-to-end scenarios."""

    def test_fresh_database_flow(self, server, pinned_version):
        """Install, store, alias and reject a bad alias."""
        install_design_doc("db", server=server)

        with Boombera("db", server=server) as store:
            assert store.put("/foo", "bar") is True
            assert store.get("/foo").item.body == "bar"
            assert store.map("/alias", "/foo") is True
            assert store.get("/alias").item.body == "bar"
            with pytest.raises(InvalidMapping):
                store.map("/alias", "/missing")

    def test_two_stores_share_database(self, server, pinned_version):
        """Stores re-read the database on every call."""
        install_design_doc("db", server=server)
        writer = Boombera("db", server=server)
        reader = Boombera("db", server=server)

        writer.put("/foo", "bar")

        assert reader.get("/foo").item.body == "bar"

    def test_context_manager_closes_own_server(self, pinned_version, monkeypatch):
        """Leaving the with block closes a store-created server."""
        backend = InMemoryServer()
        install_design_doc("db", server=backend)
        server = MagicMock(wraps=backend)
        monkeypatch.setattr("sdk.boombera.store.create_server", lambda settings: server)

        with Boombera("db") as store:
            store.put("/foo", "bar")
            server.close.assert_not_called()

        server.close.assert_called_once()

"""
Boombera Test Suite.

This package contains:
- unit/: Unit tests (in-memory backend, mocked CouchDB transport)
- integration/: Store and CLI flows (in-memory server, fake CouchDB)
"""

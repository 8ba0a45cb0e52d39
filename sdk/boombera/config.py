"""
Configuration for Boombera.

Uses pydantic-settings for environment variable loading. Every setting
can be overridden with a ``BOOMBERA_`` prefixed variable, e.g.
``BOOMBERA_COUCHDB_URL=http://couch.internal:5984``.

Invariants:
    - All settings have sensible defaults for local development
    - Secrets are never logged or exposed in error messages
"""

from __future__ import annotations

import logging
from enum import Enum
from functools import lru_cache

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class Backend(str, Enum):
    """Supported document database backends."""

    COUCHDB = "couchdb"
    MEMORY = "memory"


class Settings(BaseSettings):
    """Boombera configuration loaded from environment."""

    backend: Backend = Field(default=Backend.COUCHDB, description="Document database backend")

    # CouchDB connection
    couchdb_url: str = Field(default="http://127.0.0.1:5984", description="CouchDB server URL")
    couchdb_username: str | None = Field(default=None, description="CouchDB username")
    couchdb_password: SecretStr | None = Field(default=None, description="CouchDB password")
    timeout: float = Field(default=10.0, gt=0, description="Request timeout seconds")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="text", pattern="^(text|json)$", description="text or json")

    model_config = {"env_prefix": "BOOMBERA_"}

    @property
    def auth(self) -> tuple[str, str] | None:
        """Basic auth credentials, if a username is configured."""
        if not self.couchdb_username:
            return None
        password = self.couchdb_password.get_secret_value() if self.couchdb_password else ""
        return (self.couchdb_username, password)

    def log_config(self) -> None:
        """Log configuration (redacting secrets)."""
        logger.info(
            "Boombera configuration loaded",
            extra={
                "backend": self.backend.value,
                "couchdb_url": self.couchdb_url if self.backend == Backend.COUCHDB else None,
                "couchdb_auth": self.couchdb_username is not None,
                "timeout": self.timeout,
                "log_level": self.log_level,
            },
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Settings from the environment, loaded once per process."""
    return Settings()

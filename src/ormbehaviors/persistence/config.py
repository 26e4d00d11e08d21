"""Database configuration and store factory."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ormbehaviors.persistence.store import SQLAlchemyRecordStore


@dataclass
class DatabaseConfig:
    """Database connection configuration.

    Supports sqlite:/// and postgresql:// URL schemes.
    """

    url: str
    echo: bool = False

    @classmethod
    def from_env(cls, base_path: Path | None = None) -> DatabaseConfig:
        """Create config from environment variables.

        Resolution order:
        1. DATABASE_URL env var (standard)
        2. ORMBEHAVIORS_DB_PATH env var (converted to sqlite:/// URL)
        3. Default: sqlite:///{base_path}/ormbehaviors.db
        """
        echo = os.environ.get("ORMBEHAVIORS_SQL_ECHO", "").lower() in ("1", "true", "yes")

        url = os.environ.get("DATABASE_URL")
        if url:
            return cls(url=url, echo=echo)

        db_path = os.environ.get("ORMBEHAVIORS_DB_PATH")
        if db_path:
            return cls(url=f"sqlite:///{db_path}", echo=echo)

        if base_path:
            return cls(url=f"sqlite:///{base_path / 'ormbehaviors.db'}", echo=echo)

        return cls(url="sqlite:///ormbehaviors.db", echo=echo)

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    @property
    def is_postgresql(self) -> bool:
        return self.url.startswith("postgresql")

    @property
    def sqlalchemy_url(self) -> str:
        """URL suitable for SQLAlchemy engine creation.

        Ensures postgresql:// URLs use the psycopg (v3) driver since
        the postgresql extra depends on psycopg[binary], not psycopg2.
        """
        if self.url.startswith("postgresql://"):
            return self.url.replace("postgresql://", "postgresql+psycopg://", 1)
        return self.url


def create_store(config: DatabaseConfig) -> SQLAlchemyRecordStore:
    """Create a record store for the configured database.

    Raises:
        ValueError: For unsupported URL schemes.
    """
    if not (config.is_sqlite or config.is_postgresql):
        raise ValueError(f"Unsupported database URL scheme: {config.url}")

    from ormbehaviors.persistence.store import SQLAlchemyRecordStore

    return SQLAlchemyRecordStore(config.sqlalchemy_url, echo=config.echo)

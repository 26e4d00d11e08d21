"""Shared CLI state: metadata and database resolved from global options."""

from dataclasses import dataclass
from pathlib import Path

import click

from ormbehaviors.errors import ConfigurationError
from ormbehaviors.metadata.loader import MetadataLoader
from ormbehaviors.persistence.config import DatabaseConfig, create_store
from ormbehaviors.persistence.store import SQLAlchemyRecordStore


@dataclass
class CliState:
    metadata_path: Path
    database_url: str | None = None

    def load_metadata(self) -> MetadataLoader:
        """Load all entities, exiting with status 1 on bad metadata."""
        if not self.metadata_path.exists():
            click.echo(f"Error: Metadata directory not found at {self.metadata_path}", err=True)
            raise SystemExit(1)
        loader = MetadataLoader(self.metadata_path)
        try:
            loader.load_all()
        except ConfigurationError as e:
            click.echo(click.style(f"Invalid metadata: {e}", fg="red"), err=True)
            raise SystemExit(1)
        return loader

    def open_store(self) -> SQLAlchemyRecordStore:
        if self.database_url:
            config = DatabaseConfig(url=self.database_url)
        else:
            config = DatabaseConfig.from_env()
        try:
            return create_store(config)
        except ValueError as e:
            click.echo(f"Error: {e}", err=True)
            raise SystemExit(1)

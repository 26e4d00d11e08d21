"""Database CLI commands."""

import click

from ormbehaviors.cli.state import CliState
from ormbehaviors.records.service import RecordService


@click.group()
def db():
    """Database commands."""
    pass


@db.command()
@click.pass_obj
def init(state: CliState):
    """Create tables for every entity that doesn't have one yet."""
    loader = state.load_metadata()
    store = state.open_store()
    try:
        RecordService(store, loader).initialize()
    finally:
        store.dispose()

    entities = loader.list_entities()
    for name in sorted(entities):
        click.echo(f"  ✓ {name} ({loader.get_entity(name).table})")
    click.echo(click.style(f"\nInitialized {len(entities)} table(s).", fg="green", bold=True))

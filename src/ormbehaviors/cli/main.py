"""ormbehaviors CLI entry point."""

import logging
from pathlib import Path

import click

from ormbehaviors.cli.state import CliState


@click.group()
@click.option(
    "--metadata",
    "metadata_path",
    default="metadata",
    show_default=True,
    type=click.Path(file_okay=False, path_type=Path),
    help="Metadata directory (contains entities/).",
)
@click.option(
    "--database-url",
    default=None,
    help="SQLAlchemy database URL. Defaults to DATABASE_URL / ORMBEHAVIORS_DB_PATH.",
)
@click.option("-v", "--verbose", is_flag=True, default=False, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, metadata_path: Path, database_url: str | None, verbose: bool):
    """ormbehaviors: record lifecycle behaviors CLI."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
    ctx.obj = CliState(metadata_path=metadata_path, database_url=database_url)


# Register subcommand groups
from ormbehaviors.cli.db_cmd import db  # noqa: E402
from ormbehaviors.cli.metadata_cmd import metadata  # noqa: E402
from ormbehaviors.cli.order_cmd import order  # noqa: E402

cli.add_command(db)
cli.add_command(metadata)
cli.add_command(order)

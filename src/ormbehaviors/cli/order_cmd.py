"""Order column CLI commands: check and repair."""

import click

from ormbehaviors.behaviors.active_order import ActiveOrderBehavior
from ormbehaviors.cli.state import CliState
from ormbehaviors.errors import ConfigurationError
from ormbehaviors.records.service import RecordService


def _resolve(state: CliState, entity_name: str):
    """Return (store, entity, behavior) for an entity with an activeOrder behavior."""
    loader = state.load_metadata()
    entity = loader.get_entity(entity_name)
    if entity is None:
        click.echo(f"Error: Entity '{entity_name}' not found", err=True)
        raise SystemExit(1)

    store = state.open_store()
    try:
        behavior = RecordService(store, loader).get_behavior(entity_name, ActiveOrderBehavior)
    except ConfigurationError as e:
        store.dispose()
        click.echo(click.style(f"Invalid behavior configuration: {e}", fg="red"), err=True)
        raise SystemExit(1)
    if behavior is None:
        store.dispose()
        click.echo(f"Error: Entity '{entity_name}' has no activeOrder behavior", err=True)
        raise SystemExit(1)

    return store, entity, behavior


@click.group()
def order():
    """Order column maintenance."""
    pass


@order.command()
@click.argument("entity_name")
@click.pass_obj
def check(state: CliState, entity_name: str):
    """Report groups whose order values are not exactly 1..N."""
    store, entity, behavior = _resolve(state, entity_name)
    try:
        with store.connect() as conn:
            gaps = behavior.find_gaps(store, conn, entity)
    finally:
        store.dispose()

    if gaps:
        for gap in gaps:
            group = ", ".join(f"{k}={v!r}" for k, v in gap["group"].items()) or "(all rows)"
            click.echo(click.style(f"  ✗ {group}: {gap['positions']}", fg="red"))
        click.echo(
            click.style(
                f"\n{len(gaps)} group(s) of {entity_name} need repair. "
                f"Run 'ormbehaviors order repair {entity_name}'.",
                fg="red",
                bold=True,
            )
        )
        raise SystemExit(1)

    click.echo(
        click.style(
            f"Order column '{behavior.order_attribute}' of {entity_name} is contiguous.",
            fg="green",
        )
    )


@order.command()
@click.argument("entity_name")
@click.pass_obj
def repair(state: CliState, entity_name: str):
    """Renumber every group of an entity densely from 1."""
    store, entity, behavior = _resolve(state, entity_name)
    try:
        with store.transaction() as conn:
            changed = behavior.normalize(store, conn, entity)
    finally:
        store.dispose()

    if changed:
        click.echo(click.style(f"Renumbered {changed} row(s) of {entity_name}.", fg="green"))
    else:
        click.echo("Nothing to repair.")

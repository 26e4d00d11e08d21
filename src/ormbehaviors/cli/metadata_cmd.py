"""Metadata CLI commands: validate."""

from pathlib import Path

import click

from ormbehaviors.cli.state import CliState
from ormbehaviors.metadata.validator import _SUBDIR_SCHEMA, validate_metadata_dir, validate_yaml_file


@click.group()
def metadata():
    """Metadata commands."""
    pass


@metadata.command()
@click.option(
    "--strict",
    is_flag=True,
    default=False,
    help="Treat warnings as errors.",
)
@click.option(
    "--path",
    "target_path",
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Validate a single YAML file instead of the whole metadata directory.",
)
@click.pass_obj
def validate(state: CliState, strict: bool, target_path: Path | None):
    """Validate metadata YAML files against JSON Schemas."""
    metadata_path = state.metadata_path

    # ── Schema (JSON Schema) validation ─────────────────────────────────────
    if target_path is not None:
        # Single-file mode: infer schema from parent directory name
        parent = target_path.parent.name
        schema_name = _SUBDIR_SCHEMA.get(parent)
        if schema_name is None:
            click.echo(
                f"Warning: cannot determine schema for directory '{parent}'. "
                f"Expected one of: {', '.join(_SUBDIR_SCHEMA)}.",
                err=True,
            )
            schema_issues = []
        else:
            schema_issues = validate_yaml_file(target_path, schema_name)
            if strict:
                for issue in schema_issues:
                    issue.severity = "error"
    else:
        if not metadata_path.exists():
            click.echo(f"Error: Metadata directory not found at {metadata_path}", err=True)
            raise SystemExit(1)
        schema_issues = validate_metadata_dir(metadata_path, strict=strict)

    errors = [i for i in schema_issues if i.severity == "error"]
    warnings = [i for i in schema_issues if i.severity == "warning"]

    for issue in schema_issues:
        colour = "red" if issue.severity == "error" else "yellow"
        click.echo(click.style(str(issue), fg=colour))

    if errors:
        click.echo(
            click.style(
                f"\n{len(errors)} schema error(s) found"
                + (f", {len(warnings)} warning(s)" if warnings else ""),
                fg="red",
                bold=True,
            )
        )
        raise SystemExit(1)

    if warnings:
        click.echo(click.style(f"{len(warnings)} warning(s) found.", fg="yellow"))

    # ── Cross-entity (loader) validation ─────────────────────────────────────
    if target_path is None:
        loader = state.load_metadata()
        entities = loader.list_entities()
        click.echo(f"\nLoaded {len(entities)} entities:")
        for name in sorted(entities):
            entity = loader.get_entity(name)
            click.echo(
                f"  ✓ {name} ({len(entity.fields)} fields, "
                f"{len(entity.behaviors)} behaviors)"
            )

    click.echo(click.style("\nAll metadata is valid.", fg="green", bold=True))

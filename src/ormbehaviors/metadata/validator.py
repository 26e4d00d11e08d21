"""
metadata/validator.py: JSON Schema validation for entity YAML files.

Usage:
    from ormbehaviors.metadata.validator import validate_metadata_dir, validate_yaml_file

    issues = validate_metadata_dir(Path("metadata"))
    for issue in issues:
        print(issue)
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from jsonschema import Draft202012Validator
from jsonschema.exceptions import ValidationError
from referencing import Registry, Resource
from referencing.jsonschema import DRAFT202012

logger = logging.getLogger(__name__)

_SCHEMAS_DIR = Path(__file__).parent / "schemas"

# Map subdirectory name → schema filename
_SUBDIR_SCHEMA: dict[str, str] = {
    "entities": "entity.schema.json",
}


@dataclass
class ValidationIssue:
    """A single validation finding for a metadata YAML file."""

    file: Path
    message: str
    path: str = ""          # JSON pointer path within the document, e.g. "fields[0]/name"
    severity: str = "error" # "error" | "warning"

    def __str__(self) -> str:
        loc = f" at {self.path}" if self.path else ""
        return f"[{self.severity.upper()}] {self.file}{loc}: {self.message}"


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_schema(name: str) -> dict[str, Any]:
    schema_path = _SCHEMAS_DIR / name
    with schema_path.open() as fh:
        return json.load(fh)


def _load_registry() -> Registry:
    """Build a jsonschema Registry containing all bundled schemas."""
    resources = []
    for name in ("_defs.schema.json", "entity.schema.json"):
        schema = _load_schema(name)
        resources.append(
            (schema["$id"], Resource(contents=schema, specification=DRAFT202012))
        )
    return Registry().with_resources(resources)


def _json_path(error: ValidationError) -> str:
    """Convert a jsonschema ValidationError path to a readable string."""
    parts = []
    for p in error.absolute_path:
        if isinstance(p, int):
            parts.append(f"[{p}]")
        else:
            parts.append(str(p))
    return "/".join(parts).replace("/[", "[")


def _semantic_issues(yaml_path: Path, doc: dict[str, Any]) -> list[ValidationIssue]:
    """Checks JSON Schema cannot express: references to declared fields."""
    issues: list[ValidationIssue] = []
    field_types = {
        f.get("name"): f.get("type", "string")
        for f in doc.get("fields", [])
        if isinstance(f, dict)
    }
    field_names = set(field_types)

    if not any(f.get("primaryKey") for f in doc.get("fields", []) if isinstance(f, dict)):
        issues.append(ValidationIssue(file=yaml_path, message="No primary key field declared", path="fields"))

    for i, behavior in enumerate(doc.get("behaviors", []) or []):
        if not isinstance(behavior, dict) or behavior.get("type") != "activeOrder":
            continue
        order_attribute = behavior.get("orderAttribute", "order")
        if order_attribute not in field_names:
            issues.append(
                ValidationIssue(
                    file=yaml_path,
                    message=f"Order attribute '{order_attribute}' is not a declared field",
                    path=f"behaviors[{i}]",
                )
            )
        elif field_types[order_attribute] not in ("order", "integer"):
            issues.append(
                ValidationIssue(
                    file=yaml_path,
                    message=(
                        f"Order attribute '{order_attribute}' has type "
                        f"'{field_types[order_attribute]}', expected an integer type"
                    ),
                    path=f"behaviors[{i}]/orderAttribute",
                    severity="warning",
                )
            )
        references = behavior.get("referenceColumns") or []
        if isinstance(references, str):
            references = [references]
        for column in references:
            if column not in field_names:
                issues.append(
                    ValidationIssue(
                        file=yaml_path,
                        message=f"Reference column '{column}' is not a declared field",
                        path=f"behaviors[{i}]/referenceColumns",
                    )
                )

    return issues


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def validate_yaml_file(
    yaml_path: Path,
    schema_name: str,
    *,
    registry: Registry | None = None,
) -> list[ValidationIssue]:
    """
    Validate a single YAML file against the named schema.

    Args:
        yaml_path:   Path to the YAML file to validate.
        schema_name: Filename of the schema (e.g. ``"entity.schema.json"``).
        registry:    Pre-built schema registry.  Built automatically if omitted.

    Returns:
        A list of :class:`ValidationIssue` objects (empty on success).
    """
    try:
        with yaml_path.open() as fh:
            doc = yaml.safe_load(fh)
    except yaml.YAMLError as exc:
        return [ValidationIssue(file=yaml_path, message=f"YAML parse error: {exc}")]

    if doc is None:
        return [
            ValidationIssue(file=yaml_path, message="File is empty or contains only whitespace")
        ]

    if registry is None:
        registry = _load_registry()

    schema = _load_schema(schema_name)
    validator = Draft202012Validator(schema, registry=registry)

    issues = [
        ValidationIssue(file=yaml_path, message=error.message, path=_json_path(error))
        for error in sorted(validator.iter_errors(doc), key=lambda e: list(e.path))
    ]

    # Field references are only meaningful on a structurally valid document
    if not issues and schema_name == "entity.schema.json":
        issues.extend(_semantic_issues(yaml_path, doc))

    return issues


def validate_metadata_dir(
    metadata_dir: Path,
    *,
    strict: bool = False,
) -> list[ValidationIssue]:
    """
    Validate all YAML files under *metadata_dir*.

    Args:
        metadata_dir: Root metadata directory (contains ``entities/``).
        strict:       If ``True``, warnings are escalated to errors.

    Returns:
        A flat list of :class:`ValidationIssue` objects across all files.
        Empty list means all files are valid.
    """
    if not metadata_dir.is_dir():
        return [
            ValidationIssue(
                file=metadata_dir,
                message=f"Metadata directory does not exist: {metadata_dir}",
            )
        ]

    # Build registry once, shared across all file validations
    try:
        registry = _load_registry()
    except (FileNotFoundError, json.JSONDecodeError) as exc:
        return [
            ValidationIssue(
                file=_SCHEMAS_DIR,
                message=f"Failed to load JSON Schema files: {exc}",
            )
        ]

    all_issues: list[ValidationIssue] = []

    for subdir, schema_name in _SUBDIR_SCHEMA.items():
        target = metadata_dir / subdir
        if not target.is_dir():
            logger.warning("No %s/ directory under %s", subdir, metadata_dir)
            continue
        for yaml_file in sorted(target.glob("*.yaml")):
            file_issues = validate_yaml_file(yaml_file, schema_name, registry=registry)
            if strict:
                for issue in file_issues:
                    if issue.severity == "warning":
                        issue.severity = "error"
            all_issues.extend(file_issues)

    return all_issues

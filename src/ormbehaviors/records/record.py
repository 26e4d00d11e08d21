"""In-memory record: attribute values plus the last persisted state."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ormbehaviors.hooks.types import compute_changes
from ormbehaviors.metadata.loader import EntityModel


@dataclass
class Record:
    """A row of an entity, as seen by the record lifecycle.

    ``old_attributes`` holds the values last read from or written to the
    store; it is None while the record has not been inserted.
    """

    entity: EntityModel
    attributes: dict[str, Any] = field(default_factory=dict)
    old_attributes: dict[str, Any] | None = None
    errors: dict[str, list[str]] = field(default_factory=dict)
    related: dict[str, Record] = field(default_factory=dict)

    @property
    def is_new_record(self) -> bool:
        return self.old_attributes is None

    def get(self, name: str, default: Any = None) -> Any:
        return self.attributes.get(name, default)

    def set(self, name: str, value: Any) -> None:
        self.attributes[name] = value

    def __getitem__(self, name: str) -> Any:
        return self.attributes.get(name)

    def __setitem__(self, name: str, value: Any) -> None:
        self.attributes[name] = value

    def set_attributes(self, values: dict[str, Any]) -> None:
        """Mass-assign values; names that are not entity fields are ignored."""
        for name, value in values.items():
            if self.entity.has_field(name):
                self.attributes[name] = value

    def get_old_attribute(self, name: str) -> Any:
        if self.old_attributes is None:
            return None
        return self.old_attributes.get(name)

    @property
    def primary_key(self) -> dict[str, Any]:
        return {pk: self.attributes.get(pk) for pk in self.entity.primary_key}

    def dirty_attributes(self, names: list[str] | None = None) -> dict[str, Any]:
        """Field values that differ from the persisted state.

        For a new record every set field is dirty. When ``names`` is given
        only those attributes are considered.
        """
        candidates = names if names is not None else self.entity.field_names
        current = {name: self.attributes[name] for name in candidates if name in self.attributes}
        return compute_changes(current, self.old_attributes)

    def mark_persisted(self) -> None:
        """Snapshot the current field values as the persisted state."""
        self.old_attributes = {
            name: self.attributes.get(name) for name in self.entity.field_names
        }

    # ------------------------------------------------------------------
    # Errors
    # ------------------------------------------------------------------

    def add_error(self, attribute: str, message: str) -> None:
        self.errors.setdefault(attribute, []).append(message)

    def has_errors(self, attribute: str | None = None) -> bool:
        if attribute is None:
            return bool(self.errors)
        return bool(self.errors.get(attribute))

    def first_error(self, attribute: str) -> str | None:
        messages = self.errors.get(attribute)
        return messages[0] if messages else None

    def clear_errors(self, attribute: str | None = None) -> None:
        if attribute is None:
            self.errors.clear()
        else:
            self.errors.pop(attribute, None)

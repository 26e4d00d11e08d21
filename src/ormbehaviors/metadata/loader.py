"""Load and resolve entity metadata from YAML files."""

from pathlib import Path
from dataclasses import dataclass, field
from typing import Any
import yaml

from ormbehaviors.errors import ConfigurationError


@dataclass
class FieldDefinition:
    name: str
    type: str = "string"
    primary_key: bool = False
    auto_increment: bool = False
    nullable: bool = True
    required: bool = False
    default: Any = None
    length: int | None = None


@dataclass
class RelationConfig:
    """Has-one relation: owner.foreign_key -> related.references."""

    entity: str  # The related entity name
    foreign_key: str  # Owner attribute holding the related key
    references: str | None = None  # Related attribute; None = related primary key


@dataclass
class BehaviorConfig:
    """Behavior declaration from YAML metadata."""

    type: str
    options: dict[str, Any] = field(default_factory=dict)


@dataclass
class EntityModel:
    name: str
    table: str
    fields: list[FieldDefinition]
    primary_key: list[str] = field(default_factory=lambda: ["id"])
    relations: dict[str, RelationConfig] = field(default_factory=dict)
    behaviors: list[BehaviorConfig] = field(default_factory=list)

    @property
    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]

    def get_field(self, name: str) -> FieldDefinition | None:
        for f in self.fields:
            if f.name == name:
                return f
        return None

    def has_field(self, name: str) -> bool:
        return self.get_field(name) is not None

    def defaults(self) -> dict[str, Any]:
        """Static field defaults, used when building a new record."""
        return {f.name: f.default for f in self.fields if f.default is not None}


def table_name_for(entity_name: str) -> str:
    """Convert an entity name to a snake_case table name."""
    result = []
    for i, char in enumerate(entity_name):
        if char.isupper() and i > 0:
            result.append("_")
        result.append(char.lower())
    return "".join(result)


class MetadataLoader:
    """Loads entity definitions from YAML files.

    Layout:
        <metadata_path>/entities/*.yaml  one entity per file
    """

    def __init__(self, metadata_path: Path | None = None):
        self.metadata_path = metadata_path
        self.entities: dict[str, EntityModel] = {}

    def load_all(self) -> None:
        """Load all entities and check cross-entity references."""
        self._load_entities()
        self._validate_relations()

    def _load_entities(self) -> None:
        """Load entity definitions."""
        if self.metadata_path is None:
            return
        entities_path = self.metadata_path / "entities"
        if not entities_path.exists():
            return

        for yaml_file in sorted(entities_path.glob("*.yaml")):
            with open(yaml_file) as f:
                data = yaml.safe_load(f)
                if data and "entity" in data:
                    self.add_entity(data)

    def add_entity(self, data: dict) -> EntityModel:
        """Resolve an entity definition dict and register it."""
        entity = self._resolve_entity(data)
        self.entities[entity.name] = entity
        return entity

    def _validate_relations(self) -> None:
        """Every relation must target a known entity and a known owner field."""
        for entity in self.entities.values():
            for name, relation in entity.relations.items():
                if relation.entity not in self.entities:
                    raise ConfigurationError(
                        f"Entity '{entity.name}' relation '{name}' targets "
                        f"unknown entity '{relation.entity}'"
                    )
                if not entity.has_field(relation.foreign_key):
                    raise ConfigurationError(
                        f"Entity '{entity.name}' relation '{name}' uses unknown "
                        f"foreign key '{relation.foreign_key}'"
                    )

    def _resolve_entity(self, data: dict) -> EntityModel:
        """Resolve an entity definition."""
        name = data["entity"]

        fields = [self._resolve_field(f) for f in data.get("fields", [])]
        if not fields:
            raise ConfigurationError(f"Entity '{name}' declares no fields")

        primary_key = [f.name for f in fields if f.primary_key]
        if not primary_key:
            raise ConfigurationError(f"Entity '{name}' has no primary key field")

        relations = {
            rel_name: self._resolve_relation(rel_data)
            for rel_name, rel_data in (data.get("relations") or {}).items()
        }

        behaviors = [self._resolve_behavior(b) for b in data.get("behaviors", [])]

        return EntityModel(
            name=name,
            table=data.get("table") or table_name_for(name),
            fields=fields,
            primary_key=primary_key,
            relations=relations,
            behaviors=behaviors,
        )

    def _resolve_field(self, data: dict) -> FieldDefinition:
        """Convert field dict to FieldDefinition."""
        primary_key = data.get("primaryKey", False)
        field_type = data.get("type", "string")
        return FieldDefinition(
            name=data["name"],
            type=field_type,
            primary_key=primary_key,
            # Surrogate "id" keys are generated by the database unless told otherwise
            auto_increment=data.get("autoIncrement", primary_key and field_type == "id"),
            nullable=data.get("nullable", not primary_key),
            required=data.get("required", False),
            default=data.get("default"),
            length=data.get("length"),
        )

    def _resolve_relation(self, data: dict) -> RelationConfig:
        """Convert relation dict to RelationConfig."""
        return RelationConfig(
            entity=data["entity"],
            foreign_key=data["foreignKey"],
            references=data.get("references"),
        )

    def _resolve_behavior(self, data: dict) -> BehaviorConfig:
        """Split a behavior entry into its type and remaining options."""
        options = {k: v for k, v in data.items() if k != "type"}
        return BehaviorConfig(type=data["type"], options=options)

    def get_entity(self, name: str) -> EntityModel | None:
        """Get a resolved entity by name."""
        return self.entities.get(name)

    def list_entities(self) -> list[str]:
        """List all entity names."""
        return list(self.entities.keys())

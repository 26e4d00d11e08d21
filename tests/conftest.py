"""Shared fixtures: a temp-file SQLite store and a service factory."""

import copy

import pytest

from ormbehaviors.metadata.loader import MetadataLoader
from ormbehaviors.persistence import SQLAlchemyRecordStore
from ormbehaviors.records import RecordService


ITEM = {
    "entity": "Item",
    "fields": [
        {"name": "id", "type": "id", "primaryKey": True},
        {"name": "list_id", "type": "integer"},
        {"name": "name", "type": "string"},
        {"name": "order", "type": "order"},
    ],
    "behaviors": [{"type": "activeOrder", "referenceColumns": "list_id"}],
}


def entity_with(base: dict, **changes) -> dict:
    """Deep copy of an entity definition with top-level keys replaced."""
    data = copy.deepcopy(base)
    data.update(changes)
    return data


@pytest.fixture
def store(tmp_path):
    store = SQLAlchemyRecordStore(f"sqlite:///{tmp_path / 'test.db'}")
    yield store
    store.dispose()


@pytest.fixture
def make_service(store):
    """Build a RecordService over the given entity definitions, tables created."""

    def _make(*entities, user_context=None):
        loader = MetadataLoader()
        for data in entities:
            loader.add_entity(copy.deepcopy(data))
        service = RecordService(store, loader, user_context=user_context)
        service.initialize()
        return service

    return _make

"""Tests for the uuid, stamping, attribute and related-record behaviors."""

import uuid
from datetime import datetime
from unittest.mock import patch

import pytest

from ormbehaviors.behaviors import (
    AttributeBehavior,
    Behavior,
    EnhancedAttributeBehavior,
    IdentitystampBehavior,
    RelatedModelPopulatorBehavior,
    TimestampBehavior,
    UuidBehavior,
)
from ormbehaviors.errors import ConfigurationError, InvalidCallError
from ormbehaviors.hooks import BEFORE_INSERT, BEFORE_UPDATE, Operation, UserContext


def _entity(name, *fields, behaviors=None, relations=None):
    data = {
        "entity": name,
        "fields": [{"name": "id", "type": "id", "primaryKey": True}, *fields],
        "behaviors": behaviors or [],
    }
    if relations:
        data["relations"] = relations
    return data


class AbortOn(Behavior):
    def __init__(self, hook_point):
        self.hook_point = hook_point

    def events(self):
        return {self.hook_point: self.abort}

    def abort(self, ctx):
        ctx.is_valid = False


# =============================================================================
# UuidBehavior
# =============================================================================


TOKEN = _entity(
    "Token",
    {"name": "uuid", "type": "uuid"},
    {"name": "label", "type": "string"},
    behaviors=[{"type": "uuid"}],
)


class TestUuidBehavior:
    @pytest.fixture
    def service(self, make_service):
        return make_service(TOKEN)

    def test_assigns_version5_uuid(self, service):
        token = service.new("Token", {"label": "a"})
        assert service.save(token)

        value = uuid.UUID(token["uuid"])
        assert value.version == 5
        assert service.find_one("Token", {"id": token["id"]})["uuid"] == token["uuid"]

    def test_values_are_unique(self, service):
        values = set()
        for i in range(5):
            token = service.new("Token", {"label": str(i)})
            service.save(token)
            values.add(token["uuid"])
        assert len(values) == 5

    def test_keeps_existing_value(self, service):
        existing = str(uuid.uuid4())
        token = service.new("Token", {"uuid": existing})
        service.save(token)
        assert token["uuid"] == existing

    def test_not_reassigned_on_update(self, service):
        token = service.new("Token", {"label": "a"})
        service.save(token)
        first = token["uuid"]
        token["label"] = "b"
        service.save(token)
        assert token["uuid"] == first

    def test_assigned_when_validation_skipped(self, service):
        token = service.new("Token")
        assert service.save(token, run_validation=False)
        assert token["uuid"]

    def test_regenerates_on_collision(self, service):
        token = service.new("Token")
        with patch.object(UuidBehavior, "_exists", side_effect=[True, False]) as exists:
            assert service.validate(token)
        assert exists.call_count == 2
        assert token["uuid"] == exists.call_args_list[1].args[1]

    def test_namespace_from_environment(self, monkeypatch):
        monkeypatch.setenv("ORMBEHAVIORS_UUID_NAMESPACE_URL", "https://example.com/tokens")
        behavior = UuidBehavior()
        assert behavior.namespace == uuid.uuid5(uuid.NAMESPACE_URL, "https://example.com/tokens")

    def test_default_namespace(self, monkeypatch):
        monkeypatch.delenv("ORMBEHAVIORS_UUID_NAMESPACE_URL", raising=False)
        assert UuidBehavior().namespace_url == "urn:ormbehaviors"


# =============================================================================
# IdentitystampBehavior
# =============================================================================


DOC = _entity(
    "Doc",
    {"name": "title", "type": "string"},
    {"name": "created_by", "type": "string"},
    {"name": "updated_by", "type": "string"},
    {"name": "created_at", "type": "datetime"},
    {"name": "updated_at", "type": "datetime"},
)


class TestIdentitystampBehavior:
    @pytest.fixture
    def service(self, make_service):
        service = make_service(DOC, user_context=UserContext(user_id="alice"))
        service.attach_behavior("Doc", IdentitystampBehavior())
        return service

    def test_insert_sets_both(self, service):
        doc = service.new("Doc", {"title": "a"})
        service.save(doc)

        stored = service.find_one("Doc", {"id": doc["id"]})
        assert stored["created_by"] == "alice"
        assert stored["updated_by"] == "alice"

    def test_update_sets_updated_by_only(self, service):
        doc = service.new("Doc", {"title": "a"})
        service.save(doc)

        service.user_context = UserContext(user_id="bob")
        doc["title"] = "b"
        service.save(doc)

        stored = service.find_one("Doc", {"id": doc["id"]})
        assert stored["created_by"] == "alice"
        assert stored["updated_by"] == "bob"

    def test_without_identity(self, make_service):
        service = make_service(DOC)
        service.attach_behavior("Doc", IdentitystampBehavior())
        doc = service.new("Doc", {"title": "a"})
        assert service.save(doc)
        assert doc["created_by"] is None

    def test_static_and_callable_values(self, make_service):
        service = make_service(DOC, user_context=UserContext(user_id="alice", tenant_id="acme"))
        service.attach_behavior(
            "Doc",
            IdentitystampBehavior(
                value=lambda ctx: f"{ctx.user_context.tenant_id}/{ctx.user_context.user_id}"
            ),
        )
        doc = service.new("Doc", {"title": "a"})
        service.save(doc)
        assert doc["created_by"] == "acme/alice"

        assert IdentitystampBehavior(value="system").get_value(None) == "system"

    def test_disabled_attribute(self, make_service):
        service = make_service(DOC, user_context=UserContext(user_id="alice"))
        service.attach_behavior("Doc", IdentitystampBehavior(created_by_attribute=None))
        doc = service.new("Doc", {"title": "a"})
        service.save(doc)

        assert doc["created_by"] is None
        assert doc["updated_by"] == "alice"

    def test_events(self):
        behavior = IdentitystampBehavior()
        assert behavior.attributes == {
            BEFORE_INSERT: ["created_by", "updated_by"],
            BEFORE_UPDATE: ["updated_by"],
        }

    def test_touch(self, service):
        doc = service.new("Doc", {"title": "a"})
        service.save(doc)
        service.user_context = UserContext(user_id="carol")

        behavior = service.get_behavior("Doc", IdentitystampBehavior)
        behavior.touch(service, doc, "updated_by")

        stored = service.find_one("Doc", {"id": doc["id"]})
        assert stored["updated_by"] == "carol"
        assert stored["created_by"] == "alice"

    def test_touch_new_record_raises(self, service):
        behavior = service.get_behavior("Doc", IdentitystampBehavior)
        with pytest.raises(InvalidCallError):
            behavior.touch(service, service.new("Doc"), "updated_by")


# =============================================================================
# TimestampBehavior
# =============================================================================


class TestTimestampBehavior:
    @pytest.fixture
    def clock(self):
        return iter([datetime(2024, 1, 1, 9, 0), datetime(2024, 1, 2, 9, 0), datetime(2024, 1, 3, 9, 0)])

    @pytest.fixture
    def service(self, make_service, clock):
        service = make_service(DOC)
        service.attach_behavior("Doc", TimestampBehavior(value=lambda ctx: next(clock)))
        return service

    def test_insert_and_update(self, service):
        doc = service.new("Doc", {"title": "a"})
        service.save(doc)
        assert doc["created_at"] == datetime(2024, 1, 1, 9, 0)
        assert doc["updated_at"] == datetime(2024, 1, 1, 9, 0)

        doc["title"] = "b"
        service.save(doc)

        stored = service.find_one("Doc", {"id": doc["id"]})
        assert stored["created_at"] == datetime(2024, 1, 1, 9, 0)
        assert stored["updated_at"] == datetime(2024, 1, 2, 9, 0)

    def test_touch(self, service):
        doc = service.new("Doc", {"title": "a"})
        service.save(doc)
        service.get_behavior("Doc", TimestampBehavior).touch(service, doc, "updated_at")

        assert service.find_one("Doc", {"id": doc["id"]})["updated_at"] == datetime(2024, 1, 2, 9, 0)

    def test_default_is_utc_now(self):
        value = TimestampBehavior().get_value(None)
        assert value.tzinfo is not None
        assert value.utcoffset().total_seconds() == 0


# =============================================================================
# AttributeBehavior
# =============================================================================


class TestAttributeBehavior:
    def test_sets_value_at_hook_point(self, make_service):
        service = make_service(
            _entity(
                "Task",
                {"name": "status", "type": "string"},
                {"name": "title", "type": "string"},
                behaviors=[{"type": "attribute", "attributes": {"beforeInsert": "status"}, "value": "open"}],
            )
        )
        task = service.new("Task", {"title": "a", "status": "closed"})
        service.save(task)
        assert task["status"] == "open"

        task["status"] = "closed"
        service.save(task)
        assert service.find_one("Task", {"id": task["id"]})["status"] == "closed"

    def test_callable_receives_context(self):
        behavior = AttributeBehavior({"beforeInsert": ["a", "b"]}, value=lambda ctx: ctx)
        assert behavior.get_value("ctx") == "ctx"
        assert behavior.attributes == {"beforeInsert": ["a", "b"]}

    def test_invalid_hook_point(self):
        with pytest.raises(ConfigurationError, match="Invalid hook point 'onSave'"):
            AttributeBehavior({"onSave": "status"})


# =============================================================================
# EnhancedAttributeBehavior
# =============================================================================


POST = _entity("Post", {"name": "title", "type": "string"})
COMMENT = _entity(
    "Comment",
    {"name": "post_id", "type": "integer"},
    {"name": "body", "type": "string"},
    {"name": "archived", "type": "boolean", "default": False},
)


class TestEnhancedAttributeBehavior:
    @pytest.fixture
    def service(self, make_service):
        service = make_service(POST, COMMENT)
        service.attach_behavior(
            "Post",
            EnhancedAttributeBehavior(
                attributes={"afterUpdate": "archived"},
                value=True,
                foreign_class=["Comment", {"post_id": "id"}],
            ),
        )
        return service

    def _post_with_comments(self, service, title, count):
        post = service.new("Post", {"title": title})
        service.save(post)
        for i in range(count):
            service.save(service.new("Comment", {"post_id": post["id"], "body": f"{title}-{i}"}))
        return post

    def test_updates_matching_foreign_records(self, service):
        first = self._post_with_comments(service, "first", 2)
        second = self._post_with_comments(service, "second", 1)

        first["title"] = "first!"
        assert service.save(first)

        archived = {c["body"]: c["archived"] for c in service.find_all("Comment")}
        assert archived == {"first-0": True, "first-1": True, "second-0": False}
        assert second["title"] == "second"

    def test_foreign_save_failure_aborts_owner(self, service):
        post = self._post_with_comments(service, "first", 1)
        service.attach_behavior("Comment", AbortOn(BEFORE_UPDATE))

        post["title"] = "changed"
        assert service.save(post) is False

        assert post.has_errors("EnhancedAttributeBehavior")
        assert service.find_one("Post", {"id": post["id"]})["title"] == "first"
        assert service.find_one("Comment", {"post_id": post["id"]})["archived"] is False

    def test_without_foreign_class_sets_owner(self, make_service):
        service = make_service(POST)
        service.attach_behavior(
            "Post", EnhancedAttributeBehavior(attributes={"beforeInsert": "title"}, value="untitled")
        )
        post = service.new("Post")
        service.save(post)
        assert post["title"] == "untitled"

    @pytest.mark.parametrize("foreign_class", [["Comment"], ["Comment", "post_id"], ["Comment", {}]])
    def test_invalid_foreign_class(self, foreign_class):
        with pytest.raises(ConfigurationError):
            EnhancedAttributeBehavior(attributes={"afterUpdate": "archived"}, foreign_class=foreign_class)

    def test_from_metadata(self, make_service):
        post = dict(
            POST,
            behaviors=[{
                "type": "enhancedAttribute",
                "attributes": {"afterUpdate": "archived"},
                "value": True,
                "foreignClass": ["Comment", {"post_id": "id"}],
            }],
        )
        service = make_service(post, COMMENT)
        behavior = service.get_behavior("Post", EnhancedAttributeBehavior)
        assert behavior.foreign_class == ("Comment", {"post_id": "id"})


# =============================================================================
# RelatedModelPopulatorBehavior
# =============================================================================


AUTHOR = _entity("Author", {"name": "name", "type": "string", "required": True})
ARTICLE = _entity(
    "Article",
    {"name": "title", "type": "string", "required": True},
    {"name": "author_id", "type": "relation"},
    relations={"author": {"entity": "Author", "foreignKey": "author_id"}},
    behaviors=[{"type": "relatedModelPopulator", "relations": "author"}],
)


class TestRelatedModelPopulatorBehavior:
    @pytest.fixture
    def service(self, make_service):
        return make_service(AUTHOR, ARTICLE)

    @pytest.fixture
    def populator(self, service):
        return service.get_behavior("Article", RelatedModelPopulatorBehavior)

    def test_relation_map(self, populator):
        assert list(populator.related_map) == ["author"]
        assert populator.related_map["author"].foreign_key == "author_id"

    def test_unknown_relation_ignored(self, populator):
        populator.add_relation("editor")
        assert list(populator.related_map) == ["author"]

    def test_remove_and_set_relations(self, populator):
        populator.remove_relation("author")
        assert populator.related_map == {}
        populator.set_relations(["author"])
        assert list(populator.related_map) == ["author"]

    def test_load_populates_related(self, service, populator):
        article = service.new("Article")
        loaded = populator.load(article, {"Article": {"title": "Hi", "Author": {"name": "Ann"}}})

        assert loaded
        assert article["title"] == "Hi"
        assert article.related["author"]["name"] == "Ann"
        assert article.related["author"].is_new_record

    def test_load_with_empty_scope(self, service, populator):
        article = service.new("Article")
        assert populator.load(article, {"title": "Hi", "Author": {"name": "Ann"}}, scope="")
        assert article.related["author"]["name"] == "Ann"

    def test_load_without_owner_data(self, service, populator):
        assert populator.load(service.new("Article"), {"Other": {}}) is False

    def test_save_cascades_and_links(self, service, populator):
        article = service.new("Article")
        populator.load(article, {"Article": {"title": "Hi", "Author": {"name": "Ann"}}})

        assert service.save(article), article.errors

        author = article.related["author"]
        assert not author.is_new_record
        assert article["author_id"] == author["id"]
        stored = service.find_one("Article", {"id": article["id"]})
        assert stored["author_id"] == author["id"]
        assert service.find_one("Author", {"id": author["id"]})["name"] == "Ann"

    def test_related_errors_copied_to_owner(self, service, populator):
        article = service.new("Article")
        populator.load(article, {"Article": {"title": "Hi", "Author": {"name": ""}}})

        assert service.save(article) is False
        assert article.first_error("author[name]") == "name cannot be blank."
        assert service.find_all("Article") == []
        assert service.find_all("Author") == []

    def test_related_save_failure_rolls_back_owner(self, service, populator):
        service.attach_behavior("Author", AbortOn(BEFORE_INSERT))
        article = service.new("Article")
        populator.load(article, {"Article": {"title": "Hi", "Author": {"name": "Ann"}}})

        assert service.save(article) is False
        assert "Unable to save related 'author'" in article.first_error("RelatedModelPopulatorBehavior")
        assert article.is_new_record
        assert service.find_all("Article") == []
        assert service.find_all("Author") == []

    def test_update_saves_changed_related(self, service, populator):
        article = service.new("Article")
        populator.load(article, {"Article": {"title": "Hi", "Author": {"name": "Ann"}}})
        service.save(article)

        article.related["author"]["name"] = "Anne"
        article["title"] = "Hello"
        assert service.save(article)

        assert service.find_one("Author", {"id": article["author_id"]})["name"] == "Anne"
        assert len(service.find_all("Author")) == 1

    def test_owner_without_related_saves_normally(self, service):
        article = service.new("Article", {"title": "Solo"})
        assert service.save(article)
        assert article["author_id"] is None

    def test_validate_handler_only_flags_context(self, service, store, populator):
        article = service.new("Article")
        populator.load(article, {"Article": {"title": "Hi", "Author": {"name": ""}}})

        with store.connect() as conn:
            ctx = service.context(article, Operation.CREATE, conn)
            assert populator.validate_related_models(ctx) is None

        assert ctx.is_valid is False
        assert article.first_error("author[name]") == "name cannot be blank."

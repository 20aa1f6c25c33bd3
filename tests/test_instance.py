"""Tests for instance inspection and relation stubs."""

from __future__ import annotations

import pytest

from modelviz.config import settings
from modelviz.errors import ModelNotFound, RecordNotFound
from modelviz.inspector import inspect_instance


class TestInspectInstance:
    def test_attributes_are_serialised_and_filtered(self, sql_adapter):
        node = inspect_instance(sql_adapter, "Post", "1")
        assert node.key == "Post:1"
        assert node.model == "Post"
        assert node.record_id == "1"
        assert node.attributes == {"id": 1, "title": "Hello", "published_on": "2024-05-01"}

    def test_created_at_is_excluded(self, sql_adapter):
        node = inspect_instance(sql_adapter, "Author", "1")
        assert "created_at" not in node.attributes
        assert node.attributes["email"] == "ada@example.com"

    def test_to_many_stub_carries_count_and_previews(self, sql_adapter, monkeypatch):
        monkeypatch.setattr(settings, "relation_limit", 2)
        stub = inspect_instance(sql_adapter, "Author", "1").relation("posts")
        assert stub.count == 3
        assert stub.preview_ids == ["1", "2"]
        assert stub.foreign_key == "author_id"
        assert "value" not in stub.to_dict()

    def test_to_one_stubs_carry_value(self, sql_adapter):
        node = inspect_instance(sql_adapter, "Author", "1")
        profile = node.relation("profile")
        assert profile.value == "1"
        assert profile.count == 1
        assert "preview_ids" not in profile.to_dict()

        author = inspect_instance(sql_adapter, "Post", "3").relation("author")
        assert author.value == "1"
        assert author.count == 1

    def test_empty_relations(self, sql_adapter):
        node = inspect_instance(sql_adapter, "Author", "2")
        assert node.relation("posts").count == 0
        assert node.relation("posts").preview_ids == []
        assert node.relation("profile").value is None
        assert node.relation("profile").count == 0

    def test_unknown_model(self, sql_adapter):
        with pytest.raises(ModelNotFound):
            inspect_instance(sql_adapter, "Nope", "1")

    def test_excluded_model(self, sql_adapter, monkeypatch):
        monkeypatch.setattr(settings, "excluded_models", ["AuditLog"])
        with pytest.raises(ModelNotFound):
            inspect_instance(sql_adapter, "AuditLog", "1")

    def test_unknown_record(self, sql_adapter):
        with pytest.raises(RecordNotFound):
            inspect_instance(sql_adapter, "Author", "999")


class TestDegradation:
    def test_failing_relation_degrades_alone(self, sql_adapter, monkeypatch, caplog):
        original = sql_adapter.count

        def flaky(ref, relation):
            if relation.name == "posts":
                raise RuntimeError("db hiccup")
            return original(ref, relation)

        monkeypatch.setattr(sql_adapter, "count", flaky)
        node = inspect_instance(sql_adapter, "Author", "1")

        posts = node.relation("posts")
        assert posts.count == 0
        assert posts.preview_ids == []
        assert posts.degraded

        profile = node.relation("profile")
        assert profile.value == "1"
        assert not profile.degraded
        assert "Author:1.posts" in caplog.text

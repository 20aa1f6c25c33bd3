"""Tests for the class-level schema graph."""

from __future__ import annotations

from modelviz.config import settings
from modelviz.inspector import build_schema, list_model_names

import sql_models


def _edges(graph):
    return {(e.source, e.target, e.label, e.type) for e in graph.edges}


class TestBuildSchema:
    def test_one_node_per_model(self, sql_adapter):
        graph = build_schema(sql_adapter)
        assert [n.id for n in graph.nodes] == ["AuditLog", "Author", "Post", "Profile", "Tag"]
        author = next(n for n in graph.nodes if n.id == "Author")
        assert author.label == "Author"
        assert author.fields_count == 4
        assert author.relations_count == 2

    def test_edges_follow_declared_relations(self, sql_adapter):
        assert _edges(build_schema(sql_adapter)) == {
            ("Author", "Post", "posts", "has_many"),
            ("Author", "Profile", "profile", "has_one"),
            ("Post", "Author", "author", "belongs_to"),
            ("Post", "Tag", "tags", "many_to_many"),
            ("Profile", "Author", "author", "belongs_to"),
            ("Tag", "Post", "posts", "many_to_many"),
        }

    def test_excluded_model_vanishes_from_nodes_and_edges(self, sql_adapter, monkeypatch):
        monkeypatch.setattr(settings, "excluded_models", ["AuditLog", "Tag"])
        graph = build_schema(sql_adapter)
        assert "AuditLog" not in list_model_names(sql_adapter)
        assert [n.id for n in graph.nodes] == ["Author", "Post", "Profile"]
        assert all("Tag" not in (e.source, e.target) for e in graph.edges)
        post = next(n for n in graph.nodes if n.id == "Post")
        assert post.relations_count == 2

    def test_failing_model_is_skipped(self, sql_adapter, monkeypatch, caplog):
        original = sql_adapter.relations

        def flaky(cls):
            if cls is sql_models.Profile:
                raise RuntimeError("broken mapper")
            return original(cls)

        monkeypatch.setattr(sql_adapter, "relations", flaky)
        graph = build_schema(sql_adapter)
        assert "Profile" not in [n.id for n in graph.nodes]
        assert all("Profile" not in (e.source, e.target) for e in graph.edges)
        assert "Skipping model Profile" in caplog.text

    def test_to_dict_shape(self, sql_adapter):
        data = build_schema(sql_adapter).to_dict()
        assert set(data) == {"nodes", "edges"}
        assert set(data["nodes"][0]) == {"id", "label", "fields_count", "relations_count"}
        assert set(data["edges"][0]) == {"source", "target", "label", "type"}

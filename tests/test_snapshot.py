"""Tests for graph snapshot export/import."""

from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from modelviz.errors import SnapshotVersionError
from modelviz.graph.snapshot import export_snapshot, import_snapshot
from modelviz.graph.state import load_root, merge_expansion, move_node
from modelviz.inspector.models import Cardinality, ExpansionResult, InstanceNode, RelationStub


def _explored():
    author = InstanceNode(
        key="Author:1",
        model="Author",
        record_id="1",
        attributes={"name": "Ada"},
        relations=[RelationStub("posts", Cardinality.HAS_MANY, "Post", "author_id", count=3, preview_ids=["1", "2", "3"])],
    )
    posts = [
        InstanceNode(key=f"Post:{i}", model="Post", record_id=str(i), attributes={"title": f"P{i}"})
        for i in (1, 2)
    ]
    state = load_root(author)
    state = merge_expansion(state, ExpansionResult("Author:1", "posts", 3, 1, 2, posts))
    return move_node(state, "Post:2", 500.0, 120.0)


class TestExport:
    def test_format(self):
        now = datetime(2026, 1, 1, 12, tzinfo=timezone.utc)
        data = export_snapshot(_explored(), now=now)
        assert data["version"] == 1
        assert data["timestamp"] == "2026-01-01T12:00:00+00:00"
        assert data["root"] == {"model": "Author", "id": "1"}
        assert data["expandedRelations"] == ["Author:1:posts"]
        assert {"source": "Author:1", "target": "Post:1", "relation": "posts", "macro": "has_many"} in data["edges"]
        post2 = next(n for n in data["nodes"] if n["key"] == "Post:2")
        assert post2["position"] == {"x": 500.0, "y": 120.0}

    def test_placeholders_are_not_saved(self):
        data = json.dumps(export_snapshot(_explored()))
        assert "more:" not in data


class TestImport:
    def test_restores_graph(self):
        original = _explored()
        restored = import_snapshot(json.dumps(export_snapshot(original)))
        assert restored.root_key == "Author:1"
        assert restored.nodes == original.nodes
        assert set(restored.edges) == set(original.edges)
        assert restored.expanded == original.expanded
        assert restored.positions["Post:2"] == (500.0, 120.0)
        assert restored.placeholders == {}

    def test_depths_are_root_zero_others_one(self):
        restored = import_snapshot(export_snapshot(_explored()))
        assert restored.depths == {"Author:1": 0, "Post:1": 1, "Post:2": 1}

    def test_without_root_first_node_is_depth_zero(self):
        data = export_snapshot(_explored())
        data["root"] = None
        restored = import_snapshot(data)
        assert restored.root_key is None
        assert restored.depths["Author:1"] == 0

    @pytest.mark.parametrize("version", [2, 0, "1", True, None])
    def test_rejects_other_versions(self, version):
        data = export_snapshot(_explored())
        data["version"] = version
        with pytest.raises(SnapshotVersionError):
            import_snapshot(data)

    def test_missing_version(self):
        with pytest.raises(SnapshotVersionError):
            import_snapshot({"nodes": []})

    def test_malformed_nodes(self):
        with pytest.raises(ValidationError):
            import_snapshot({"version": 1, "timestamp": "x", "nodes": [{"model": "Author"}]})

    def test_edges_to_missing_nodes_are_dropped(self):
        data = export_snapshot(_explored())
        data["edges"].append({"source": "Author:1", "target": "Post:99", "relation": "posts", "macro": "has_many"})
        restored = import_snapshot(data)
        assert all(e.target != "Post:99" for e in restored.edges.values())

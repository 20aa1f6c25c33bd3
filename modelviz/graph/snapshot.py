"""Versioned save/restore of an explored graph.

Snapshot format (version 1)::

    {
      "version": 1,
      "timestamp": "2026-01-01T12:00:00+00:00",
      "root": {"model": "Author", "id": "1"} | null,
      "nodes": [InstanceNode + {"position": {"x": .., "y": ..}}],
      "expandedRelations": ["Author:1:posts"],
      "edges": [{"source": .., "target": .., "relation": .., "macro": ..}]
    }

"More" placeholders are not saved; they reappear on the next expansion.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Optional, Union

from pydantic import BaseModel, Field

from modelviz.errors import SnapshotVersionError
from modelviz.graph.state import GraphEdge, GraphState, edge_id
from modelviz.inspector.models import InstanceNode, node_key, split_key

SNAPSHOT_VERSION = 1


class SavedPosition(BaseModel):
    x: float = 0.0
    y: float = 0.0


class SavedRoot(BaseModel):
    model: str
    id: str


class SavedNode(BaseModel):
    key: str
    model: str
    record_id: str
    attributes: dict[str, Any] = Field(default_factory=dict)
    relations: list[dict[str, Any]] = Field(default_factory=list)
    position: SavedPosition = Field(default_factory=SavedPosition)


class SavedEdge(BaseModel):
    source: str
    target: str
    relation: str
    macro: str = ""


class SavedGraph(BaseModel):
    version: int
    timestamp: str
    root: Optional[SavedRoot] = None
    nodes: list[SavedNode] = Field(default_factory=list)
    expandedRelations: list[str] = Field(default_factory=list)
    edges: list[SavedEdge] = Field(default_factory=list)


def export_snapshot(state: GraphState, now: Optional[datetime] = None) -> dict[str, Any]:
    """Serialise *state* into a version-1 snapshot dict."""
    now = now or datetime.now(timezone.utc)
    root = None
    if state.root_key:
        model, record_id = split_key(state.root_key)
        root = SavedRoot(model=model, id=record_id)

    nodes = []
    for key, node in state.nodes.items():
        x, y = state.positions.get(key, (0.0, 0.0))
        nodes.append(SavedNode(**node.to_dict(), position=SavedPosition(x=x, y=y)))

    saved = SavedGraph(
        version=SNAPSHOT_VERSION,
        timestamp=now.isoformat(),
        root=root,
        nodes=nodes,
        expandedRelations=sorted(state.expanded),
        edges=[
            SavedEdge(source=e.source, target=e.target, relation=e.relation, macro=e.macro)
            for e in state.edges.values()
        ],
    )
    return saved.model_dump()


def import_snapshot(data: Union[str, bytes, dict[str, Any]]) -> GraphState:
    """Rebuild a :class:`GraphState` from a snapshot.

    The root (or, without one, the first node) gets depth 0 and every other
    node depth 1; the original depths are not part of the format.

    Raises:
        SnapshotVersionError: If ``version`` is not 1.
        pydantic.ValidationError: If the snapshot is malformed.
    """
    if isinstance(data, (str, bytes)):
        data = json.loads(data)
    found = data.get("version") if isinstance(data, dict) else None
    if isinstance(found, bool) or found != SNAPSHOT_VERSION:
        raise SnapshotVersionError(
            f"Unsupported snapshot version {found!r} (expected {SNAPSHOT_VERSION})"
        )
    saved = SavedGraph.model_validate(data)

    root_key = node_key(saved.root.model, saved.root.id) if saved.root else None
    first_key = saved.nodes[0].key if saved.nodes else None

    nodes: dict[str, InstanceNode] = {}
    depths: dict[str, int] = {}
    positions: dict[str, tuple[float, float]] = {}
    for saved_node in saved.nodes:
        node = InstanceNode.from_dict(saved_node.model_dump(exclude={"position"}))
        nodes[node.key] = node
        is_root = node.key == (root_key or first_key)
        depths[node.key] = 0 if is_root else 1
        positions[node.key] = (saved_node.position.x, saved_node.position.y)

    edges = {}
    for e in saved.edges:
        if e.source not in nodes or e.target not in nodes:
            continue
        eid = edge_id(e.source, e.target, e.relation)
        edges[eid] = GraphEdge(eid, e.source, e.target, e.relation, e.macro)

    return GraphState(
        nodes=nodes,
        depths=depths,
        edges=edges,
        expanded=frozenset(saved.expandedRelations),
        positions=positions,
        root_key=root_key,
    )

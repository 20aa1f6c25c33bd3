"""Accumulated client-side graph of explored instances.

Every operation is a pure function from an old :class:`GraphState` to a new
one; nothing here mutates its input.  Callers that share a state across
concurrent expansions serialise the swap themselves (see
:class:`modelviz.graph.session.GraphSession`).

Identifiers
-----------
node         ``<Model>:<record_id>``
edge         ``e:<source>-><target>:<relation>``
placeholder  ``more:<source>:<relation>:<next_page>``
expanded     ``<source>:<relation>``
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Mapping, Optional

from modelviz.graph.layout import estimate_height, layered_layout
from modelviz.graph.palette import PLACEHOLDER_COLOR, model_color
from modelviz.inspector.models import ExpansionResult, InstanceNode

Position = tuple[float, float]


@dataclass(frozen=True)
class GraphEdge:
    id: str
    source: str
    target: str
    relation: str
    macro: str = ""


@dataclass(frozen=True)
class MorePlaceholder:
    """Stands in for the unloaded pages of one relation."""

    id: str
    source_key: str
    relation: str
    target_class: str
    next_page: int
    remaining: int


@dataclass(frozen=True)
class GraphState:
    nodes: Mapping[str, InstanceNode] = field(default_factory=dict)
    depths: Mapping[str, int] = field(default_factory=dict)
    edges: Mapping[str, GraphEdge] = field(default_factory=dict)
    placeholders: Mapping[str, MorePlaceholder] = field(default_factory=dict)
    expanded: frozenset[str] = frozenset()
    positions: Mapping[str, Position] = field(default_factory=dict)
    pinned: frozenset[str] = frozenset()
    root_key: Optional[str] = None

    def is_expanded(self, source_key: str, relation: str) -> bool:
        return relation_marker(source_key, relation) in self.expanded


# ---------------------------------------------------------------------------
# Identifiers
# ---------------------------------------------------------------------------

def edge_id(source: str, target: str, relation: str) -> str:
    return f"e:{source}->{target}:{relation}"


def relation_marker(source_key: str, relation: str) -> str:
    return f"{source_key}:{relation}"


def placeholder_prefix(source_key: str, relation: str) -> str:
    return f"more:{source_key}:{relation}:"


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------

def empty_state() -> GraphState:
    return GraphState()


def clear_state(state: GraphState) -> GraphState:
    """Drop everything; kept symmetrical with the other transitions."""
    return empty_state()


def relayout(state: GraphState) -> GraphState:
    """Lay the graph out again, leaving manually moved nodes where they are."""
    positions = layered_layout(state)
    pinned = frozenset(k for k in state.pinned if k in positions)
    for key in pinned:
        positions[key] = state.positions[key]
    return replace(state, positions=positions, pinned=pinned)


def load_root(node: InstanceNode) -> GraphState:
    """Start a new exploration with *node* as the only node, at depth 0."""
    state = GraphState(nodes={node.key: node}, depths={node.key: 0}, root_key=node.key)
    return relayout(state)


def merge_expansion(state: GraphState, result: ExpansionResult) -> GraphState:
    """Merge one page of an expansion into *state*.

    Stale "more" placeholders for the same source and relation are dropped
    whatever their page, the relation is marked expanded, nodes merge by key
    (data is refreshed, the recorded depth is the minimum seen), edges are
    deduplicated by id, and a new placeholder is added when more pages exist.
    Merging the same page twice is a no-op.

    Raises:
        KeyError: If the expansion's source is not a node of *state*.
    """
    source = result.source_key
    if source not in state.nodes:
        raise KeyError(f"Expansion source {source!r} is not in the graph")

    stub = state.nodes[source].relation(result.relation)
    macro = stub.cardinality.value if stub is not None else ""
    target_class = stub.target_class if stub is not None else ""

    prefix = placeholder_prefix(source, result.relation)
    nodes = dict(state.nodes)
    depths = dict(state.depths)
    edges = dict(state.edges)
    placeholders = {pid: p for pid, p in state.placeholders.items() if not pid.startswith(prefix)}

    depth = depths.get(source, 0) + 1
    for node in result.nodes:
        nodes[node.key] = node
        depths[node.key] = min(depths.get(node.key, depth), depth)
        eid = edge_id(source, node.key, result.relation)
        if eid not in edges:
            edges[eid] = GraphEdge(eid, source, node.key, result.relation, macro)

    if result.has_more:
        next_page = result.page + 1
        pid = f"{prefix}{next_page}"
        placeholders[pid] = MorePlaceholder(
            id=pid,
            source_key=source,
            relation=result.relation,
            target_class=target_class or (result.nodes[0].model if result.nodes else ""),
            next_page=next_page,
            remaining=result.total - result.page * result.per_page,
        )

    merged = replace(
        state,
        nodes=nodes,
        depths=depths,
        edges=edges,
        placeholders=placeholders,
        expanded=state.expanded | {relation_marker(source, result.relation)},
    )
    return relayout(merged)


def move_node(state: GraphState, key: str, x: float, y: float) -> GraphState:
    """Record a manual position (e.g. after dragging) for *key*.

    The node stays pinned there through later relayouts.
    """
    if key not in state.nodes and key not in state.placeholders:
        raise KeyError(f"Unknown node {key!r}")
    positions = dict(state.positions)
    positions[key] = (x, y)
    return replace(state, positions=positions, pinned=state.pinned | {key})


# ---------------------------------------------------------------------------
# Renderer view
# ---------------------------------------------------------------------------

def flow_nodes(state: GraphState) -> list[dict[str, Any]]:
    """Renderer-facing node dicts, instance nodes first, then placeholders."""
    rendered = []
    for key, node in state.nodes.items():
        depth = state.depths.get(key, 0)
        x, y = state.positions.get(key, (0.0, 0.0))
        expanded = [
            stub.name for stub in node.relations if state.is_expanded(key, stub.name)
        ]
        rendered.append({
            "id": key,
            "type": "modelNode",
            "position": {"x": x, "y": y},
            "data": {
                **node.to_dict(),
                "expandedRelations": expanded,
                "depth": depth,
                "color": model_color(node.model),
                "opacity": max(0.4, 1 - depth * 0.15),
                "estimatedHeight": estimate_height(node),
            },
        })
    for pid, placeholder in state.placeholders.items():
        x, y = state.positions.get(pid, (0.0, 0.0))
        rendered.append({
            "id": pid,
            "type": "loadMoreNode",
            "position": {"x": x, "y": y},
            "data": {
                "sourceKey": placeholder.source_key,
                "relation": placeholder.relation,
                "nextPage": placeholder.next_page,
                "remaining": placeholder.remaining,
                "color": model_color(placeholder.target_class),
                "estimatedHeight": estimate_height(None),
            },
        })
    return rendered


def flow_edges(state: GraphState) -> list[dict[str, Any]]:
    rendered = [
        {
            "id": edge.id,
            "source": edge.source,
            "target": edge.target,
            "label": edge.relation,
            "color": model_color(state.nodes[edge.target].model)
            if edge.target in state.nodes
            else PLACEHOLDER_COLOR,
        }
        for edge in state.edges.values()
    ]
    for pid, placeholder in state.placeholders.items():
        rendered.append({
            "id": f"e:{placeholder.source_key}->{pid}",
            "source": placeholder.source_key,
            "target": pid,
            "label": "",
            "color": PLACEHOLDER_COLOR,
        })
    return rendered

"""Utilities for rendering graphs in the CLI."""

from __future__ import annotations

from typing import Any, Optional

import typer

from modelviz.graph.palette import hex_to_rgb, model_color
from modelviz.graph.state import GraphState
from modelviz.inspector.models import InstanceNode, RelationStub

MAX_ATTRIBUTES = 4


def _label(model: str, record_id: str) -> str:
    return typer.style(f"{model}#{record_id}", fg=hex_to_rgb(model_color(model)), bold=True)


def _summary(node: InstanceNode) -> str:
    items = list(node.attributes.items())[:MAX_ATTRIBUTES]
    return "  ".join(f"{k}={v!r}" for k, v in items)


def stub_line(stub: RelationStub) -> str:
    """One-line description of a relation stub, e.g. ``posts (has_many Post) 3 [1, 2]``."""
    head = f"{stub.name} ({stub.cardinality.value} {stub.target_class})"
    if stub.cardinality.is_to_one:
        tail = stub.value if stub.value is not None else "-"
    else:
        tail = f"{stub.count} {stub.preview_ids}"
    flag = "  [degraded]" if stub.degraded else ""
    return f"{head} {tail}{flag}"


def render_node(node: InstanceNode) -> str:
    """Render one instance node with its attributes and relation stubs."""
    lines = [_label(node.model, node.record_id)]
    for name, value in node.attributes.items():
        lines.append(f"  {name}: {value!r}")
    if node.relations:
        lines.append("  relations:")
        for stub in node.relations:
            lines.append(f"    {stub_line(stub)}")
    return "\n".join(lines)


def render_tree(state: GraphState, root_key: Optional[str] = None) -> str:
    """Render an explored graph as an ASCII tree rooted at *root_key*.

    Nodes reached through more than one path are printed once; later
    occurrences are marked ``(see above)``.  Each "more" placeholder becomes
    a ``… N more`` leaf under its relation's source.
    """
    root_key = root_key or state.root_key
    if root_key is None or root_key not in state.nodes:
        return "Graph is empty."

    children: dict[str, list[tuple[str, str, bool]]] = {}
    for edge in state.edges.values():
        children.setdefault(edge.source, []).append((edge.target, edge.relation, False))
    for pid, placeholder in state.placeholders.items():
        children.setdefault(placeholder.source_key, []).append((pid, placeholder.relation, True))

    lines: list[str] = []
    visited: set[str] = set()

    def _render(key: str, relation: str, prefix: str, is_last: bool, is_root: bool) -> None:
        if is_root:
            line = ""
            child_prefix = ""
        else:
            line = prefix + ("└── " if is_last else "├── ") + f"[{relation}] "
            child_prefix = prefix + ("    " if is_last else "│   ")

        placeholder = state.placeholders.get(key)
        if placeholder is not None:
            lines.append(f"{line}… {placeholder.remaining} more")
            return

        node = state.nodes[key]
        if key in visited:
            lines.append(f"{line}{_label(node.model, node.record_id)} (see above)")
            return
        visited.add(key)
        summary = _summary(node)
        lines.append(f"{line}{_label(node.model, node.record_id)}" + (f"  {summary}" if summary else ""))

        # Placeholders sort after the nodes of their relation.
        kids = sorted(children.get(key, []), key=lambda c: (c[1], c[2]))
        for i, (child, rel, _) in enumerate(kids):
            _render(child, rel, child_prefix, i == len(kids) - 1, False)

    _render(root_key, "", "", True, True)
    return "\n".join(lines)


def render_schema(schema: dict[str, Any]) -> str:
    """Render a schema graph dict as one block per model with its outgoing edges."""
    outgoing: dict[str, list[dict[str, Any]]] = {}
    for edge in schema["edges"]:
        outgoing.setdefault(edge["source"], []).append(edge)

    lines = []
    for node in schema["nodes"]:
        name = node["id"]
        style = typer.style(name, fg=hex_to_rgb(model_color(name)), bold=True)
        lines.append(f"{style}  ({node['fields_count']} fields, {node['relations_count']} relations)")
        edges = outgoing.get(name, [])
        for i, edge in enumerate(edges):
            connector = "└── " if i == len(edges) - 1 else "├── "
            lines.append(f"{connector}{edge['label']} ({edge['type']}) -> {edge['target']}")
    return "\n".join(lines)

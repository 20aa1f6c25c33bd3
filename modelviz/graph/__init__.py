"""Client-side accumulation, layout and persistence of explored instance graphs."""

from modelviz.graph.session import GraphSession, GraphSource, LocalSource
from modelviz.graph.snapshot import export_snapshot, import_snapshot
from modelviz.graph.state import (
    GraphEdge,
    GraphState,
    MorePlaceholder,
    empty_state,
    flow_edges,
    flow_nodes,
    load_root,
    merge_expansion,
    move_node,
)

__all__ = [
    "GraphEdge",
    "GraphSession",
    "GraphSource",
    "GraphState",
    "LocalSource",
    "MorePlaceholder",
    "empty_state",
    "export_snapshot",
    "flow_edges",
    "flow_nodes",
    "import_snapshot",
    "load_root",
    "merge_expansion",
    "move_node",
]

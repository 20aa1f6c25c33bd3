"""Layered top-to-bottom layout for explored graphs.

Nodes are placed in rows by their recorded depth; each "more" placeholder sits
one row below its source.  Rows are centred on ``x = 0`` and keep insertion
order, so repeated layouts of a growing graph stay visually stable.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from modelviz.inspector.models import InstanceNode

if TYPE_CHECKING:
    from modelviz.graph.state import GraphState

NODE_WIDTH = 280
RANK_SEP = 80
NODE_SEP = 40
PLACEHOLDER_HEIGHT = 40


def estimate_height(node: Optional[InstanceNode]) -> int:
    """Approximate rendered card height; ``None`` stands for a placeholder."""
    if node is None:
        return PLACEHOLDER_HEIGHT
    attr_rows = min(len(node.attributes), 8)
    has_relations = any(stub.count > 0 for stub in node.relations)
    return 60 + attr_rows * 22 + (30 if has_relations else 0) + 20


def layered_layout(state: GraphState) -> dict[str, tuple[float, float]]:
    rows: dict[int, list[tuple[str, int]]] = {}
    for key, node in state.nodes.items():
        rows.setdefault(state.depths.get(key, 0), []).append((key, estimate_height(node)))
    for pid, placeholder in state.placeholders.items():
        depth = state.depths.get(placeholder.source_key, 0) + 1
        rows.setdefault(depth, []).append((pid, estimate_height(None)))

    positions: dict[str, tuple[float, float]] = {}
    y = 0.0
    for depth in sorted(rows):
        row = rows[depth]
        row_width = len(row) * NODE_WIDTH + (len(row) - 1) * NODE_SEP
        x = -row_width / 2
        for key, _height in row:
            positions[key] = (x, y)
            x += NODE_WIDTH + NODE_SEP
        y += max(height for _, height in row) + RANK_SEP
    return positions

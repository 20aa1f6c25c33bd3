"""Class-level schema graph: one node per model, one edge per relation."""

from __future__ import annotations

import logging

from modelviz.inspector.adapters.base import MappingAdapter
from modelviz.inspector.models import ModelDescriptor, RelationDescriptor, SchemaEdge, SchemaGraph

logger = logging.getLogger(__name__)


def list_model_names(adapter: MappingAdapter) -> list[str]:
    """Return eligible model names, sorted, with configured exclusions removed."""
    return adapter.model_names()


def build_schema(adapter: MappingAdapter) -> SchemaGraph:
    """Walk every eligible model once and assemble the schema graph.

    A model whose reflection raises is logged and left out entirely, so it
    appears neither as a node nor as an edge endpoint.  Relations to excluded
    or unknown models are dropped from the edges but still counted in the
    source's ``relations_count``.
    """
    reflected: list[tuple[ModelDescriptor, list[RelationDescriptor]]] = []
    for name in adapter.model_names():
        try:
            cls = adapter.model_class(name)
            relations = adapter.relations(cls)
            descriptor = ModelDescriptor(
                id=name,
                label=name,
                fields_count=len(adapter.fields(cls)),
                relations_count=len(relations),
            )
        except Exception:
            logger.warning("Skipping model %s: reflection failed", name, exc_info=True)
            continue
        reflected.append((descriptor, relations))

    node_ids = {descriptor.id for descriptor, _ in reflected}
    edges: list[SchemaEdge] = []
    seen: set[tuple[str, str, str]] = set()

    for descriptor, relations in reflected:
        for rel in relations:
            if rel.target_class not in node_ids:
                continue
            edge_key = (descriptor.id, rel.target_class, rel.name)
            if edge_key in seen:
                continue
            seen.add(edge_key)
            edges.append(
                SchemaEdge(
                    source=descriptor.id,
                    target=rel.target_class,
                    label=rel.name,
                    type=rel.cardinality.value,
                )
            )

    return SchemaGraph(nodes=[d for d, _ in reflected], edges=edges)

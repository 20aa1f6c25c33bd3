"""Relation expansion: fetch one page of related records as full nodes."""

from __future__ import annotations

import logging
from typing import Optional

from modelviz.config import settings
from modelviz.inspector.adapters.base import MappingAdapter
from modelviz.inspector.instance import best_effort, serialize_node
from modelviz.inspector.models import ExpansionResult, RecordRef

logger = logging.getLogger(__name__)


def expand_relation(
    adapter: MappingAdapter,
    model_name: str,
    record_id: str,
    relation_name: str,
    page: int = 1,
    per_page: Optional[int] = None,
) -> ExpansionResult:
    """Return page *page* of ``model_name#record_id``'s *relation_name*.

    Every returned node carries its own relation stubs, so it can be expanded
    further.  A failing fetch yields no nodes and ``total=0`` instead of an
    error.

    Raises:
        ModelNotFound: Unknown model, or the relation is not declared on it.
        RecordNotFound: No source record with that identifier.
    """
    per_page = per_page or settings.relation_limit
    page = max(page, 1)

    with adapter.session():
        cls = adapter.model_class(model_name)
        source = adapter.find(cls, str(record_id))
        relation = adapter.relation(cls, relation_name)
        what = f"{source.key}.{relation_name}"

        refs: list[RecordRef]
        refs, fetch_failed = best_effort(
            lambda: adapter.fetch_page(source, relation, page, per_page), [], what=what
        )
        if fetch_failed:
            total, count_failed = 0, False
        else:
            total, count_failed = best_effort(lambda: adapter.count(source, relation), 0, what=what)

        nodes = [serialize_node(adapter, ref) for ref in refs]

    return ExpansionResult(
        source_key=source.key,
        relation=relation_name,
        total=max(int(total), 0),
        page=page,
        per_page=per_page,
        nodes=nodes,
        degraded=fetch_failed or count_failed,
    )

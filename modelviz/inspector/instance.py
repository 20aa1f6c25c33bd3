"""Instance inspection: one record, its attributes and cheap relation stubs.

Stubs never materialise related collections.  To-many relations get a count
and a bounded list of preview ids; full records are fetched later, one page at
a time, by :mod:`modelviz.inspector.expander`.  Each stub is computed inside
its own best-effort scope, so one broken relation degrades to ``count=0``
without failing the whole instance.
"""

from __future__ import annotations

import logging
from typing import Callable, TypeVar

from modelviz.config import settings
from modelviz.inspector.adapters.base import MappingAdapter
from modelviz.inspector.models import (
    Cardinality,
    InstanceNode,
    RecordRef,
    RelationDescriptor,
    RelationStub,
)
from modelviz.inspector.serialize import safe_attributes

logger = logging.getLogger(__name__)

T = TypeVar("T")


def best_effort(action: Callable[[], T], default: T, *, what: str) -> tuple[T, bool]:
    """Run *action*; on any failure log it and return ``(default, True)``."""
    try:
        return action(), False
    except Exception:
        logger.warning("Relation %s failed, degrading to an empty result", what, exc_info=True)
        return default, True


def build_relation_stub(
    adapter: MappingAdapter, ref: RecordRef, relation: RelationDescriptor
) -> RelationStub:
    stub = RelationStub(
        name=relation.name,
        cardinality=relation.cardinality,
        target_class=relation.target_class,
        foreign_key=relation.foreign_key,
        is_embedded=relation.is_embedded,
    )
    what = f"{ref.key}.{relation.name}"
    cardinality = relation.cardinality

    if cardinality is Cardinality.BELONGS_TO:
        value, stub.degraded = best_effort(
            lambda: adapter.foreign_key_value(ref, relation), None, what=what
        )
        stub.value = value
        stub.count = 0 if value is None else 1

    elif cardinality in (Cardinality.HAS_ONE, Cardinality.EMBEDS_ONE):
        related, stub.degraded = best_effort(
            lambda: adapter.fetch_one(ref, relation), None, what=what
        )
        stub.value = related.record_id if related is not None else None
        stub.count = 0 if related is None else 1

    elif cardinality in (Cardinality.HAS_MANY, Cardinality.MANY_TO_MANY, Cardinality.EMBEDS_MANY):
        limit = settings.relation_limit

        def summary() -> tuple[int, list[str]]:
            return adapter.count(ref, relation), adapter.preview_ids(ref, relation, limit)

        (count, previews), stub.degraded = best_effort(summary, (0, []), what=what)
        stub.count = max(int(count), 0)
        stub.preview_ids = [str(p) for p in previews][:limit]

    else:
        raise AssertionError(f"Unhandled cardinality {cardinality!r}")

    return stub


def serialize_node(adapter: MappingAdapter, ref: RecordRef) -> InstanceNode:
    """Turn a live record into an :class:`InstanceNode` with its own stubs."""
    relations = adapter.relations(type(ref.record))
    return InstanceNode(
        key=ref.key,
        model=ref.model,
        record_id=ref.record_id,
        attributes=safe_attributes(adapter.attribute_values(ref.record)),
        relations=[build_relation_stub(adapter, ref, rel) for rel in relations],
    )


def inspect_instance(adapter: MappingAdapter, model_name: str, record_id: str) -> InstanceNode:
    """Return the instance node for ``model_name#record_id``.

    Raises:
        ModelNotFound: Unknown or excluded model.
        RecordNotFound: No record with that identifier.
    """
    with adapter.session():
        cls = adapter.model_class(model_name)
        ref = adapter.find(cls, str(record_id))
        return serialize_node(adapter, ref)

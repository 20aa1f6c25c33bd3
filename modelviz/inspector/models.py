"""Dataclasses describing reflected models, relations and graph fragments.

These are plain Python objects.  The HTTP layer and the CLI serialise them
with :meth:`to_dict`, so every field must already be JSON-safe.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, NamedTuple, Optional


class Cardinality(str, Enum):
    BELONGS_TO = "belongs_to"
    HAS_ONE = "has_one"
    HAS_MANY = "has_many"
    MANY_TO_MANY = "many_to_many"
    EMBEDS_ONE = "embeds_one"
    EMBEDS_MANY = "embeds_many"

    @property
    def is_to_one(self) -> bool:
        return self in (Cardinality.BELONGS_TO, Cardinality.HAS_ONE, Cardinality.EMBEDS_ONE)

    @property
    def is_embedded(self) -> bool:
        return self in (Cardinality.EMBEDS_ONE, Cardinality.EMBEDS_MANY)


class RecordRef(NamedTuple):
    """A live record paired with the identity the adapter assigned to it."""

    model: str
    record_id: str
    record: Any

    @property
    def key(self) -> str:
        return node_key(self.model, self.record_id)


def node_key(model: str, record_id: str) -> str:
    """Return the stable ``"<model>:<id>"`` key used across the explored graph."""
    return f"{model}:{record_id}"


def split_key(key: str) -> tuple[str, str]:
    """Inverse of :func:`node_key`; the id part may itself contain colons."""
    model, _, record_id = key.partition(":")
    return model, record_id


@dataclass(frozen=True)
class RelationDescriptor:
    name: str
    target_class: str
    cardinality: Cardinality
    foreign_key: Optional[str] = None
    inverse_of: Optional[str] = None

    @property
    def is_embedded(self) -> bool:
        return self.cardinality.is_embedded

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "target_class": self.target_class,
            "cardinality": self.cardinality.value,
            "foreign_key": self.foreign_key,
            "inverse_of": self.inverse_of,
            "is_embedded": self.is_embedded,
        }


@dataclass(frozen=True)
class ModelDescriptor:
    id: str
    label: str
    fields_count: int
    relations_count: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SchemaEdge:
    source: str
    target: str
    label: str
    type: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class SchemaGraph:
    nodes: list[ModelDescriptor] = field(default_factory=list)
    edges: list[SchemaEdge] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
        }


@dataclass
class RelationStub:
    name: str
    cardinality: Cardinality
    target_class: str
    foreign_key: Optional[str]
    is_embedded: bool = False
    value: Optional[str] = None
    count: int = 0
    preview_ids: list[str] = field(default_factory=list)
    degraded: bool = False

    def to_dict(self) -> dict[str, Any]:
        data = {
            "name": self.name,
            "cardinality": self.cardinality.value,
            "target_class": self.target_class,
            "foreign_key": self.foreign_key,
            "is_embedded": self.is_embedded,
            "count": self.count,
            "degraded": self.degraded,
        }
        # To-one stubs carry a value, to-many stubs carry previews.
        if self.cardinality.is_to_one:
            data["value"] = self.value
        else:
            data["preview_ids"] = list(self.preview_ids)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RelationStub:
        return cls(
            name=data["name"],
            cardinality=Cardinality(data["cardinality"]),
            target_class=data["target_class"],
            foreign_key=data.get("foreign_key"),
            is_embedded=data.get("is_embedded", False),
            value=data.get("value"),
            count=data.get("count", 0),
            preview_ids=list(data.get("preview_ids") or []),
            degraded=data.get("degraded", False),
        )


@dataclass
class InstanceNode:
    key: str
    model: str
    record_id: str
    attributes: dict[str, Any] = field(default_factory=dict)
    relations: list[RelationStub] = field(default_factory=list)

    def relation(self, name: str) -> Optional[RelationStub]:
        for stub in self.relations:
            if stub.name == name:
                return stub
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "model": self.model,
            "record_id": self.record_id,
            "attributes": self.attributes,
            "relations": [r.to_dict() for r in self.relations],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> InstanceNode:
        return cls(
            key=data["key"],
            model=data["model"],
            record_id=data["record_id"],
            attributes=dict(data.get("attributes") or {}),
            relations=[RelationStub.from_dict(r) for r in data.get("relations") or []],
        )


@dataclass
class ExpansionResult:
    source_key: str
    relation: str
    total: int
    page: int
    per_page: int
    nodes: list[InstanceNode] = field(default_factory=list)
    degraded: bool = False

    @property
    def has_more(self) -> bool:
        return self.page * self.per_page < self.total

    def to_dict(self) -> dict[str, Any]:
        return {
            "source_key": self.source_key,
            "relation": self.relation,
            "total": self.total,
            "page": self.page,
            "per_page": self.per_page,
            "has_more": self.has_more,
            "degraded": self.degraded,
            "nodes": [n.to_dict() for n in self.nodes],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ExpansionResult:
        return cls(
            source_key=data["source_key"],
            relation=data["relation"],
            total=data["total"],
            page=data["page"],
            per_page=data["per_page"],
            nodes=[InstanceNode.from_dict(n) for n in data.get("nodes") or []],
            degraded=data.get("degraded", False),
        )


@dataclass
class RecordsPage:
    model: str
    columns: list[str]
    rows: list[dict[str, Any]]
    total: int
    page: int
    per_page: int

    @property
    def total_pages(self) -> int:
        return -(-self.total // self.per_page) if self.per_page else 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "model": self.model,
            "columns": self.columns,
            "rows": self.rows,
            "total": self.total,
            "page": self.page,
            "per_page": self.per_page,
            "total_pages": self.total_pages,
        }

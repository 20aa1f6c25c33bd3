"""SQLAlchemy adapter: declarative mapped classes with columns and relationships.

Usage::

    from sqlalchemy import create_engine
    from sqlalchemy.orm import sessionmaker

    adapter = RelationalAdapter(Base, sessionmaker(create_engine(url)))
"""

from __future__ import annotations

import uuid
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from sqlalchemy import func, inspect as sa_inspect, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Mapper, RelationshipDirection, scoped_session, sessionmaker, with_parent
from sqlalchemy.orm.exc import UnmappedColumnError

from modelviz.errors import RecordNotFound
from modelviz.inspector.adapters.base import MappingAdapter, Paradigm, offset_for, to_one_page
from modelviz.inspector.classifier import RawRelation
from modelviz.inspector.models import Cardinality, RecordRef, RelationDescriptor

_COERCIBLE = (int, float, uuid.UUID)


# ---------------------------------------------------------------------------
# Relationship metadata helpers
# ---------------------------------------------------------------------------

def _macro(prop: Any) -> str:
    if prop.direction is RelationshipDirection.MANYTOONE:
        return "belongs_to"
    if prop.direction is RelationshipDirection.MANYTOMANY:
        return "many_to_many"
    return "has_many" if prop.uselist else "has_one"


def _attribute_key(mapper: Mapper, column: Any) -> str:
    try:
        return mapper.get_property_by_column(column).key
    except UnmappedColumnError:
        return column.key


def _foreign_key(mapper: Mapper, prop: Any) -> Optional[str]:
    if prop.direction is RelationshipDirection.MANYTOMANY or not prop.local_remote_pairs:
        return None
    local, remote = prop.local_remote_pairs[0]
    if prop.direction is RelationshipDirection.MANYTOONE:
        return _attribute_key(mapper, local)
    return _attribute_key(prop.mapper, remote)


def _inverse_of(prop: Any) -> Optional[str]:
    if prop.back_populates:
        return prop.back_populates
    backref = prop.backref
    if isinstance(backref, str):
        return backref
    if isinstance(backref, tuple) and backref:
        return backref[0]
    return None


def _coerce(column: Any, raw: str) -> Any:
    try:
        python_type = column.type.python_type
    except NotImplementedError:
        return raw
    if python_type in _COERCIBLE:
        return python_type(raw)
    return raw


# ---------------------------------------------------------------------------
# Adapter
# ---------------------------------------------------------------------------

class RelationalAdapter(MappingAdapter):
    paradigm = Paradigm.RELATIONAL

    def __init__(self, base: Any, session_factory: sessionmaker) -> None:
        self._base = base
        self._session = scoped_session(session_factory)

    # ------------------------------------------------------------------
    # Reflection
    # ------------------------------------------------------------------
    def model_classes(self) -> list[type]:
        classes = [
            mapper.class_
            for mapper in self._base.registry.mappers
            if not mapper.class_.__dict__.get("__abstract__", False)
        ]
        return sorted(classes, key=lambda c: c.__name__)

    def embedded_classes(self) -> list[type]:
        return []

    def fields(self, cls: type) -> dict[str, Any]:
        mapper = sa_inspect(cls)
        return {
            prop.key: prop.columns[0]
            for prop in mapper.column_attrs
            if not prop.key.startswith("_")
        }

    def primary_key_names(self, cls: type) -> list[str]:
        mapper = sa_inspect(cls)
        return [_attribute_key(mapper, col) for col in mapper.primary_key]

    def raw_relations(self, cls: type) -> list[RawRelation]:
        mapper = sa_inspect(cls)
        return [
            RawRelation(
                name=prop.key,
                macro=_macro(prop),
                target_class=prop.mapper.class_.__name__,
                foreign_key=_foreign_key(mapper, prop),
                inverse_of=_inverse_of(prop),
            )
            for prop in mapper.relationships
        ]

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------
    @contextmanager
    def session(self) -> Iterator[None]:
        """Give the calling thread its own session and discard it afterwards."""
        try:
            yield
        finally:
            self._session.remove()

    def _ref(self, record: Any, model: Optional[str] = None) -> RecordRef:
        identity = sa_inspect(record).mapper.primary_key_from_instance(record)
        record_id = ",".join(str(v) for v in identity)
        return RecordRef(model or type(record).__name__, record_id, record)

    def _identity(self, mapper: Mapper, record_id: str) -> Any:
        columns = mapper.primary_key
        parts = record_id.split(",") if len(columns) > 1 else [record_id]
        if len(parts) != len(columns):
            raise ValueError(f"expected {len(columns)} key parts, got {len(parts)}")
        values = tuple(_coerce(col, part) for col, part in zip(columns, parts))
        return values[0] if len(values) == 1 else values

    def find(self, cls: type, record_id: str) -> RecordRef:
        mapper = sa_inspect(cls)
        try:
            record = self._session.get(cls, self._identity(mapper, record_id))
        except (ValueError, TypeError, SQLAlchemyError) as exc:
            raise RecordNotFound(f"{cls.__name__}#{record_id} not found: {exc}") from exc
        if record is None:
            raise RecordNotFound(f"{cls.__name__}#{record_id} not found")
        return self._ref(record, cls.__name__)

    def attribute_values(self, record: Any) -> dict[str, Any]:
        mapper = sa_inspect(record).mapper
        return {prop.key: getattr(record, prop.key) for prop in mapper.column_attrs}

    def records_page(self, cls: type, page: int, per_page: int) -> tuple[int, list[RecordRef]]:
        mapper = sa_inspect(cls)
        total = self._session.scalar(select(func.count()).select_from(cls)) or 0
        stmt = (
            select(cls)
            .order_by(*(col.desc() for col in mapper.primary_key))
            .offset(offset_for(page, per_page))
            .limit(per_page)
        )
        records = self._session.scalars(stmt).all()
        return total, [self._ref(r, cls.__name__) for r in records]

    # ------------------------------------------------------------------
    # Relations
    # ------------------------------------------------------------------
    def _criteria(self, ref: RecordRef, relation: RelationDescriptor) -> tuple[Mapper, Any]:
        attr = getattr(type(ref.record), relation.name)
        return attr.property.mapper, with_parent(ref.record, attr)

    def foreign_key_value(self, ref: RecordRef, relation: RelationDescriptor) -> Optional[str]:
        if not relation.foreign_key:
            return None
        value = getattr(ref.record, relation.foreign_key)
        return None if value is None else str(value)

    def fetch_one(self, ref: RecordRef, relation: RelationDescriptor) -> Optional[RecordRef]:
        related = getattr(ref.record, relation.name)
        if isinstance(related, (list, tuple)):
            related = related[0] if related else None
        if related is None:
            return None
        return self._ref(related, relation.target_class)

    def fetch_page(
        self, ref: RecordRef, relation: RelationDescriptor, page: int, per_page: int
    ) -> list[RecordRef]:
        if relation.cardinality.is_to_one:
            return to_one_page(self.fetch_one(ref, relation), page)

        target, criteria = self._criteria(ref, relation)
        stmt = (
            select(target.class_)
            .where(criteria)
            .order_by(*target.primary_key)
            .offset(offset_for(page, per_page))
            .limit(per_page)
        )
        return [self._ref(r, relation.target_class) for r in self._session.scalars(stmt).all()]

    def count(self, ref: RecordRef, relation: RelationDescriptor) -> int:
        if relation.cardinality is Cardinality.BELONGS_TO:
            return 0 if self.foreign_key_value(ref, relation) is None else 1
        if relation.cardinality.is_to_one:
            return 0 if self.fetch_one(ref, relation) is None else 1

        target, criteria = self._criteria(ref, relation)
        stmt = select(func.count()).select_from(target.class_).where(criteria)
        return self._session.scalar(stmt) or 0

    def preview_ids(self, ref: RecordRef, relation: RelationDescriptor, limit: int) -> list[str]:
        if relation.cardinality.is_to_one:
            return []
        target, criteria = self._criteria(ref, relation)
        stmt = select(*target.primary_key).where(criteria).order_by(*target.primary_key).limit(limit)
        return [",".join(str(v) for v in row) for row in self._session.execute(stmt).all()]

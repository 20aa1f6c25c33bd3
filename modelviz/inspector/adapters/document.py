"""mongoengine adapter: documents with reference and embedded fields.

Relations are read off the declared fields:

    ReferenceField(X)                     belongs_to X
    ListField(ReferenceField(X))          many_to_many X
    EmbeddedDocumentField(E)              embeds_one E
    EmbeddedDocumentListField(E)          embeds_many E

mongoengine has no declared inverse side, so every ``ReferenceField`` on
another document that points back at a class becomes a ``has_many`` (or
``has_one`` when the field is ``unique``) on that class.  It is named by the
field's ``related_name`` keyword, falling back to ``<snake_model>_set``::

    class Post(Document):
        author = ReferenceField(Author, related_name="posts")

Embedded documents rarely declare an ``id``; they are identified by their
position inside the owner, e.g. ``<post_id>.comments.2``.
"""

from __future__ import annotations

import re
from typing import Any, Iterable, Optional

from bson import DBRef
from bson.errors import InvalidId
from mongoengine import Document, EmbeddedDocument
from mongoengine.errors import ValidationError
from mongoengine.fields import (
    EmbeddedDocumentField,
    LazyReferenceField,
    ListField,
    ReferenceField,
)

from modelviz.errors import RecordNotFound
from modelviz.inspector.adapters.base import MappingAdapter, Paradigm, offset_for, to_one_page
from modelviz.inspector.classifier import EMBEDDED_IN, RawRelation
from modelviz.inspector.models import Cardinality, RecordRef, RelationDescriptor

_REFERENCE_FIELDS = (ReferenceField, LazyReferenceField)
_CAMEL = re.compile(r"(?<!^)(?=[A-Z])")


def _snake(name: str) -> str:
    return _CAMEL.sub("_", name).lower()


def _ordered_fields(cls: Any) -> list[tuple[str, Any]]:
    # _fields_ordered puts the id field first, _fields appends it last
    return [(name, cls._fields[name]) for name in cls._fields_ordered]


def _descendants(root: type) -> list[type]:
    found = []
    for sub in root.__subclasses__():
        if not sub.__module__.startswith("mongoengine"):
            found.append(sub)
        found.extend(_descendants(sub))
    return found


def _is_abstract(cls: type) -> bool:
    return bool(getattr(cls, "_meta", {}).get("abstract"))


def _raw_id(value: Any) -> Any:
    return value.id if isinstance(value, DBRef) else value


def _field_macro(field: Any) -> Optional[tuple[str, type]]:
    """Return ``(macro, target_class)`` for a relation field, else ``None``."""
    if isinstance(field, _REFERENCE_FIELDS):
        return "belongs_to", field.document_type
    if isinstance(field, EmbeddedDocumentField):
        return "embeds_one", field.document_type
    if isinstance(field, ListField):
        inner = field.field
        if isinstance(inner, EmbeddedDocumentField):
            return "embeds_many", inner.document_type
        if isinstance(inner, _REFERENCE_FIELDS):
            return "many_to_many", inner.document_type
    return None


class DocumentAdapter(MappingAdapter):
    paradigm = Paradigm.DOCUMENT

    def __init__(self, documents: Optional[Iterable[type]] = None) -> None:
        if documents is None:
            documents = _descendants(Document) + _descendants(EmbeddedDocument)
        self._classes = [c for c in documents if not _is_abstract(c)]

    # ------------------------------------------------------------------
    # Reflection
    # ------------------------------------------------------------------
    def model_classes(self) -> list[type]:
        docs = [c for c in self._classes if issubclass(c, Document)]
        return sorted(docs, key=lambda c: c.__name__)

    def embedded_classes(self) -> list[type]:
        embedded = [c for c in self._classes if issubclass(c, EmbeddedDocument)]
        return sorted(embedded, key=lambda c: c.__name__)

    def fields(self, cls: type) -> dict[str, Any]:
        return {name: f for name, f in _ordered_fields(cls) if not name.startswith("_")}

    def primary_key_names(self, cls: type) -> list[str]:
        id_field = cls._meta.get("id_field")
        return [id_field] if id_field else []

    def raw_relations(self, cls: type) -> list[RawRelation]:
        relations = []
        for name, field in _ordered_fields(cls):
            found = _field_macro(field)
            if found is None:
                continue
            macro, target = found
            relations.append(
                RawRelation(
                    name=name,
                    macro=macro,
                    target_class=target.__name__,
                    foreign_key=name,
                    inverse_of=getattr(field, "related_name", None),
                )
            )
        relations.extend(self._reverse_relations(cls))
        relations.extend(self._owners(cls))
        return relations

    def _reverse_relations(self, cls: type) -> list[RawRelation]:
        reverse = []
        for other in self.model_classes():
            for name, field in _ordered_fields(other):
                if not isinstance(field, _REFERENCE_FIELDS) or field.document_type is not cls:
                    continue
                reverse.append(
                    RawRelation(
                        name=getattr(field, "related_name", None) or f"{_snake(other.__name__)}_set",
                        macro="has_one" if field.unique else "has_many",
                        target_class=other.__name__,
                        foreign_key=name,
                        inverse_of=name,
                    )
                )
        return reverse

    def _owners(self, cls: type) -> list[RawRelation]:
        if not issubclass(cls, EmbeddedDocument):
            return []
        owners = []
        for owner in self._classes:
            for _, field in _ordered_fields(owner):
                found = _field_macro(field)
                if found and found[0].startswith("embeds_") and found[1] is cls:
                    owners.append(RawRelation(_snake(owner.__name__), EMBEDDED_IN, owner.__name__))
                    break
        return owners

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------
    def _ref(self, record: Any, model: str) -> RecordRef:
        return RecordRef(model, str(record.pk), record)

    def _embedded_ref(self, record: Any, model: str, position: str) -> RecordRef:
        own_id = getattr(record, "id", None) if "id" in record._fields else None
        return RecordRef(model, str(own_id) if own_id is not None else position, record)

    def find(self, cls: type, record_id: str) -> RecordRef:
        try:
            record = cls.objects(pk=record_id).first()
        except (ValidationError, InvalidId, ValueError, TypeError) as exc:
            raise RecordNotFound(f"{cls.__name__}#{record_id} not found: {exc}") from exc
        if record is None:
            raise RecordNotFound(f"{cls.__name__}#{record_id} not found")
        return self._ref(record, cls.__name__)

    def attribute_values(self, record: Any) -> dict[str, Any]:
        data = record.to_mongo()
        return {name: data.get(field.db_field) for name, field in _ordered_fields(record)}

    def records_page(self, cls: type, page: int, per_page: int) -> tuple[int, list[RecordRef]]:
        total = cls.objects.count()
        records = (
            cls.objects.order_by(f"-{cls._meta['id_field']}")
            .skip(offset_for(page, per_page))
            .limit(per_page)
        )
        return total, [self._ref(r, cls.__name__) for r in records]

    # ------------------------------------------------------------------
    # Relations
    # ------------------------------------------------------------------
    def _target(self, relation: RelationDescriptor) -> type:
        for cls in self._classes:
            if cls.__name__ == relation.target_class:
                return cls
        raise LookupError(f"Unknown relation target {relation.target_class!r}")

    def _referrers(self, ref: RecordRef, relation: RelationDescriptor) -> Any:
        target = self._target(relation)
        return target.objects(**{relation.foreign_key: ref.record}).order_by(
            target._meta["id_field"]
        )

    def _reference_ids(self, ref: RecordRef, relation: RelationDescriptor) -> list[Any]:
        field = ref.record._fields[relation.foreign_key]
        raw = ref.record.to_mongo().get(field.db_field) or []
        return [_raw_id(v) for v in raw]

    def foreign_key_value(self, ref: RecordRef, relation: RelationDescriptor) -> Optional[str]:
        field = ref.record._fields[relation.foreign_key]
        value = _raw_id(ref.record.to_mongo().get(field.db_field))
        return None if value is None else str(value)

    def fetch_one(self, ref: RecordRef, relation: RelationDescriptor) -> Optional[RecordRef]:
        cardinality = relation.cardinality
        if cardinality is Cardinality.BELONGS_TO:
            fk = self.foreign_key_value(ref, relation)
            related = None if fk is None else self._target(relation).objects(pk=fk).first()
        elif cardinality is Cardinality.HAS_ONE:
            related = self._referrers(ref, relation).first()
        elif cardinality is Cardinality.EMBEDS_ONE:
            related = getattr(ref.record, relation.name)
            if related is not None:
                return self._embedded_ref(
                    related, relation.target_class, f"{ref.record_id}.{relation.name}"
                )
        else:
            raise ValueError(f"{relation.name!r} is not a to-one relation")
        return None if related is None else self._ref(related, relation.target_class)

    def fetch_page(
        self, ref: RecordRef, relation: RelationDescriptor, page: int, per_page: int
    ) -> list[RecordRef]:
        cardinality = relation.cardinality
        offset = offset_for(page, per_page)
        if cardinality.is_to_one:
            return to_one_page(self.fetch_one(ref, relation), page)
        if cardinality is Cardinality.HAS_MANY:
            docs = self._referrers(ref, relation).skip(offset).limit(per_page)
            return [self._ref(d, relation.target_class) for d in docs]
        if cardinality is Cardinality.MANY_TO_MANY:
            ids = self._reference_ids(ref, relation)[offset:offset + per_page]
            by_id = {str(d.pk): d for d in self._target(relation).objects(pk__in=ids)}
            return [
                self._ref(by_id[str(i)], relation.target_class) for i in ids if str(i) in by_id
            ]
        # embeds_many: an in-memory slice of the owner's array
        items = list(getattr(ref.record, relation.name) or [])
        return [
            self._embedded_ref(item, relation.target_class, f"{ref.record_id}.{relation.name}.{offset + i}")
            for i, item in enumerate(items[offset:offset + per_page])
        ]

    def count(self, ref: RecordRef, relation: RelationDescriptor) -> int:
        cardinality = relation.cardinality
        if cardinality is Cardinality.BELONGS_TO:
            return 0 if self.foreign_key_value(ref, relation) is None else 1
        if cardinality.is_to_one:
            return 0 if self.fetch_one(ref, relation) is None else 1
        if cardinality is Cardinality.HAS_MANY:
            return self._referrers(ref, relation).count()
        if cardinality is Cardinality.MANY_TO_MANY:
            return len(self._reference_ids(ref, relation))
        return len(getattr(ref.record, relation.name) or [])

    def preview_ids(self, ref: RecordRef, relation: RelationDescriptor, limit: int) -> list[str]:
        cardinality = relation.cardinality
        if cardinality.is_to_one:
            return []
        if cardinality is Cardinality.HAS_MANY:
            id_field = self._target(relation)._meta["id_field"]
            return [str(v) for v in self._referrers(ref, relation).limit(limit).scalar(id_field)]
        if cardinality is Cardinality.MANY_TO_MANY:
            return [str(v) for v in self._reference_ids(ref, relation)[:limit]]
        return [r.record_id for r in self.fetch_page(ref, relation, 1, limit)]

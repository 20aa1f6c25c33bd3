"""The capability surface every mapping adapter implements.

Downstream components (schema, instance, expander, records) depend only on
:class:`MappingAdapter`; they never inspect which mapping library is active.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import contextmanager
from enum import Enum
from typing import Any, Iterator, Optional

from modelviz.config import settings
from modelviz.errors import ModelNotFound
from modelviz.inspector.classifier import RawRelation, classify_all
from modelviz.inspector.models import RecordRef, RelationDescriptor


class Paradigm(str, Enum):
    RELATIONAL = "relational"
    DOCUMENT = "document"


class MappingAdapter(ABC):
    paradigm: Paradigm

    # ------------------------------------------------------------------
    # Reflection
    # ------------------------------------------------------------------
    @abstractmethod
    def model_classes(self) -> list[type]:
        """Return every concrete, top-level model class known to the adapter."""

    @abstractmethod
    def embedded_classes(self) -> list[type]:
        """Return classes that only exist inside another model's records."""

    @abstractmethod
    def fields(self, cls: type) -> dict[str, Any]:
        """Return the public declared fields of *cls*, keyed by attribute name."""

    @abstractmethod
    def primary_key_names(self, cls: type) -> list[str]:
        """Return the attribute name(s) holding *cls*'s identity."""

    @abstractmethod
    def raw_relations(self, cls: type) -> list[RawRelation]:
        """Return the declared relations of *cls* in the library's vocabulary."""

    def relations(self, cls: type) -> list[RelationDescriptor]:
        return classify_all(self.raw_relations(cls))

    def model_names(self) -> list[str]:
        """Eligible model names (configured exclusions removed), sorted."""
        excluded = set(settings.excluded_models)
        return sorted(c.__name__ for c in self.model_classes() if c.__name__ not in excluded)

    def model_class(self, name: str, *, include_embedded: bool = False) -> type:
        """Resolve *name* to a model class.

        Raises:
            ModelNotFound: If *name* is unknown, abstract, excluded, or (unless
                *include_embedded*) an embedded-only class.
        """
        if name not in settings.excluded_models:
            candidates = list(self.model_classes())
            if include_embedded:
                candidates += self.embedded_classes()
            for cls in candidates:
                if cls.__name__ == name:
                    return cls
        raise ModelNotFound(f"Model '{name}' not found")

    def relation(self, cls: type, name: str) -> RelationDescriptor:
        for descriptor in self.relations(cls):
            if descriptor.name == name:
                return descriptor
        raise ModelNotFound(f"Relation '{name}' not found on {cls.__name__}")

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------
    @contextmanager
    def session(self) -> Iterator[None]:
        """Scope a unit of work; adapters that need a session override this."""
        yield

    @abstractmethod
    def find(self, cls: type, record_id: str) -> RecordRef:
        """Return the record of *cls* identified by *record_id*.

        Raises:
            RecordNotFound: If no such record exists or the id is malformed.
        """

    @abstractmethod
    def attribute_values(self, record: Any) -> dict[str, Any]:
        """Return the raw (unserialised) scalar attributes of *record*."""

    @abstractmethod
    def records_page(self, cls: type, page: int, per_page: int) -> tuple[int, list[RecordRef]]:
        """Return ``(total, refs)`` for one page of *cls*, newest first."""

    @abstractmethod
    def foreign_key_value(self, ref: RecordRef, relation: RelationDescriptor) -> Optional[str]:
        """Return the stored foreign key of a ``belongs_to`` relation as a string."""

    @abstractmethod
    def fetch_one(self, ref: RecordRef, relation: RelationDescriptor) -> Optional[RecordRef]:
        """Return the single related record of a to-one relation, if any."""

    @abstractmethod
    def fetch_page(
        self, ref: RecordRef, relation: RelationDescriptor, page: int, per_page: int
    ) -> list[RecordRef]:
        """Return one page of related records (to-one relations only have page 1)."""

    @abstractmethod
    def count(self, ref: RecordRef, relation: RelationDescriptor) -> int:
        """Return the number of related records."""

    @abstractmethod
    def preview_ids(self, ref: RecordRef, relation: RelationDescriptor, limit: int) -> list[str]:
        """Return up to *limit* related ids without materialising the records."""


def to_one_page(related: Optional[RecordRef], page: int) -> list[RecordRef]:
    """Pagination for to-one relations: the related record is page 1 only."""
    if related is None or page != 1:
        return []
    return [related]


def offset_for(page: int, per_page: int) -> int:
    return (page - 1) * per_page

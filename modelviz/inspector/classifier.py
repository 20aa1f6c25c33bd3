"""Normalise paradigm-specific relation metadata into RelationDescriptors.

Adapters describe each declared relation as a :class:`RawRelation` using the
macro vocabulary of their mapping library.  :func:`classify` maps that
vocabulary onto the closed :class:`~modelviz.inspector.models.Cardinality`
enumeration and drops the inverse side of embeddings (``embedded_in``), which
is not independently expandable and would otherwise surface as a second edge
for the same logical relation.
"""

from __future__ import annotations

from typing import NamedTuple, Optional

from modelviz.inspector.models import Cardinality, RelationDescriptor

EMBEDDED_IN = "embedded_in"

_MACROS: dict[str, Cardinality] = {
    "belongs_to": Cardinality.BELONGS_TO,
    "has_one": Cardinality.HAS_ONE,
    "has_many": Cardinality.HAS_MANY,
    "many_to_many": Cardinality.MANY_TO_MANY,
    "has_and_belongs_to_many": Cardinality.MANY_TO_MANY,
    "embeds_one": Cardinality.EMBEDS_ONE,
    "embeds_many": Cardinality.EMBEDS_MANY,
}


class RawRelation(NamedTuple):
    name: str
    macro: str
    target_class: str
    foreign_key: Optional[str] = None
    inverse_of: Optional[str] = None


def classify(raw: RawRelation) -> Optional[RelationDescriptor]:
    """Return the normalised descriptor for *raw*, or ``None`` for ``embedded_in``.

    Raises:
        ValueError: If the adapter reported a macro outside the known vocabulary.
    """
    if raw.macro == EMBEDDED_IN:
        return None
    try:
        cardinality = _MACROS[raw.macro]
    except KeyError:
        raise ValueError(f"Unknown relation macro {raw.macro!r} on {raw.name!r}") from None

    return RelationDescriptor(
        name=raw.name,
        target_class=raw.target_class,
        cardinality=cardinality,
        foreign_key=None if cardinality.is_embedded else raw.foreign_key,
        inverse_of=raw.inverse_of,
    )


def classify_all(raws: list[RawRelation]) -> list[RelationDescriptor]:
    descriptors = []
    for raw in raws:
        descriptor = classify(raw)
        if descriptor is not None:
            descriptors.append(descriptor)
    return descriptors

"""Paginated table view of one model's records."""

from __future__ import annotations

from typing import Optional

from modelviz.config import settings
from modelviz.inspector.adapters.base import MappingAdapter
from modelviz.inspector.models import RecordsPage
from modelviz.inspector.serialize import serialize_value


def _columns(adapter: MappingAdapter, cls: type) -> list[str]:
    names = list(adapter.fields(cls))[: settings.max_table_columns]
    primary = [n for n in adapter.primary_key_names(cls) if n not in names]
    return primary + names


def list_records(
    adapter: MappingAdapter,
    model_name: str,
    page: int = 1,
    per_page: Optional[int] = None,
) -> RecordsPage:
    """Return one page of *model_name*'s records, newest first.

    Raises:
        ModelNotFound: Unknown or excluded model.
    """
    per_page = per_page or settings.records_per_page
    page = max(page, 1)

    with adapter.session():
        cls = adapter.model_class(model_name)
        columns = _columns(adapter, cls)
        total, refs = adapter.records_page(cls, page, per_page)
        rows = []
        for ref in refs:
            values = adapter.attribute_values(ref.record)
            rows.append({col: serialize_value(values.get(col)) for col in columns})

    return RecordsPage(
        model=model_name,
        columns=columns,
        rows=rows,
        total=total,
        page=page,
        per_page=per_page,
    )

"""Model reflection and instance expansion endpoints.

Routes
------
GET /models                                     Sorted eligible model names
GET /schema                                     Class-level schema graph
GET /models/{model}/records                     One page of a model's records
GET /models/{model}/{record_id}                 One instance node with relation stubs
GET /models/{model}/{record_id}/relations/{relation}
                                                One page of a relation's records

The records route is declared before the instance route so that ``records``
is never captured as a record id.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Query, Request
from pydantic import BaseModel

from modelviz.config import settings
from modelviz.inspector import (
    build_schema,
    expand_relation,
    inspect_instance,
    list_model_names,
    list_records,
)
from modelviz.inspector.adapters import MappingAdapter

router = APIRouter()


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------

class ModelListOut(BaseModel):
    models: list[str]


class SchemaNodeOut(BaseModel):
    id: str
    label: str
    fields_count: int
    relations_count: int


class SchemaEdgeOut(BaseModel):
    source: str
    target: str
    label: str
    type: str


class SchemaOut(BaseModel):
    nodes: list[SchemaNodeOut]
    edges: list[SchemaEdgeOut]


class RecordsOut(BaseModel):
    model: str
    columns: list[str]
    rows: list[dict[str, Any]]
    total: int
    page: int
    per_page: int
    total_pages: int


def _adapter(request: Request) -> MappingAdapter:
    return request.app.state.adapter


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("/models", response_model=ModelListOut)
def list_models_endpoint(request: Request) -> dict[str, Any]:
    """Return every eligible model name, sorted."""
    return {"models": list_model_names(_adapter(request))}


@router.get("/schema", response_model=SchemaOut)
def schema_endpoint(request: Request) -> dict[str, Any]:
    """Return the schema graph: one node per model, one edge per relation."""
    return build_schema(_adapter(request)).to_dict()


@router.get("/models/{model}/records", response_model=RecordsOut)
def records_endpoint(
    model: str,
    request: Request,
    page: int = Query(1, ge=1),
    per_page: int = Query(settings.records_per_page, ge=1, le=settings.max_per_page),
) -> dict[str, Any]:
    """Return one page of *model*'s records, newest first."""
    return list_records(_adapter(request), model, page=page, per_page=per_page).to_dict()


@router.get("/models/{model}/{record_id}", response_model=dict[str, Any])
def instance_endpoint(model: str, record_id: str, request: Request) -> dict[str, Any]:
    """Return one record as an instance node with relation stubs."""
    node = inspect_instance(_adapter(request), model, record_id)
    return {"node": node.to_dict()}


@router.get("/models/{model}/{record_id}/relations/{relation}", response_model=dict[str, Any])
def relation_endpoint(
    model: str,
    record_id: str,
    relation: str,
    request: Request,
    page: int = Query(1, ge=1),
    per_page: Optional[int] = Query(None, ge=1, le=settings.max_per_page),
) -> dict[str, Any]:
    """Return one page of the records behind *relation*.

    ``per_page`` defaults to the configured relation limit.
    """
    result = expand_relation(
        _adapter(request), model, record_id, relation, page=page, per_page=per_page
    )
    return result.to_dict()

"""FastAPI application factory.

Lifespan
--------
The mapping adapter is resolved once per process and shared across all
requests via ``request.app.state.adapter``.  When :func:`create_app` is given
an adapter it is installed immediately; otherwise the lifespan detects one on
startup and refuses to start if no supported mapping library is loaded.

Routers
-------
Every endpoint group is mounted under ``/api``:

    /api/models, /api/schema   model reflection and instance expansion
    /api/llm                   assistant passthrough to an external command

Errors
------
Unknown models, relations and records answer ``404 {"error": message}``;
anything unclassified answers ``500 {"error": message}``.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from modelviz import __version__
from modelviz.errors import ModelNotFound, RecordNotFound
from modelviz.inspector.adapters import MappingAdapter, get_adapter

from modelviz.api.routers import llm as llm_router
from modelviz.api.routers import models as models_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Detect the mapping adapter on startup unless one was injected."""
    if getattr(app.state, "adapter", None) is None:
        app.state.adapter = get_adapter()
    logger.info("Serving %s models", app.state.adapter.paradigm.value)
    yield


async def _not_found(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=404, content={"error": str(exc)})


async def _server_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"error": str(exc)})


def create_app(adapter: Optional[MappingAdapter] = None) -> FastAPI:
    """Return a fully-configured FastAPI application instance."""
    app = FastAPI(
        title="modelviz API",
        description=(
            "Read-only introspection of an application's data models: the "
            "class-level schema graph, paginated record tables, and lazily "
            "expanded instance graphs."
        ),
        version=__version__,
        lifespan=lifespan,
    )
    app.state.adapter = adapter

    # Development tool: allow a renderer served from any origin.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ModelNotFound, _not_found)
    app.add_exception_handler(RecordNotFound, _not_found)
    app.add_exception_handler(Exception, _server_error)

    app.include_router(models_router.router, prefix="/api", tags=["models"])
    app.include_router(llm_router.router, prefix="/api", tags=["llm"])

    return app


# Module-level instance used by uvicorn:
#   uvicorn modelviz.api.app:app --reload
app = create_app()

"""Mapping adapters and the start-up detection that picks one.

Public re-exports so callers can write::

    from modelviz.inspector.adapters import MappingAdapter, get_adapter

The concrete adapters are imported lazily: importing this package must not
pull SQLAlchemy or mongoengine into ``sys.modules``, because their presence
is exactly what :func:`detect_paradigm` looks for.
"""

from __future__ import annotations

import importlib
import logging
import sys
from functools import lru_cache
from types import ModuleType
from typing import Mapping, Optional

from modelviz.config import Settings, settings
from modelviz.errors import AdapterDetectionFailure
from modelviz.inspector.adapters.base import MappingAdapter, Paradigm

logger = logging.getLogger(__name__)

__all__ = ["MappingAdapter", "Paradigm", "build_adapter", "detect_paradigm", "get_adapter"]


def detect_paradigm(modules: Optional[Mapping[str, ModuleType]] = None) -> Paradigm:
    """Return the mapping paradigm loaded in the host process.

    mongoengine wins when both libraries are present.

    Raises:
        AdapterDetectionFailure: If neither library has been imported.
    """
    modules = sys.modules if modules is None else modules
    if "mongoengine" in modules:
        return Paradigm.DOCUMENT
    if "sqlalchemy" in modules:
        return Paradigm.RELATIONAL
    raise AdapterDetectionFailure(
        "No supported mapping library detected (SQLAlchemy or mongoengine)"
    )


def _import_models(cfg: Settings) -> Optional[ModuleType]:
    if not cfg.models_module:
        return None
    try:
        return importlib.import_module(cfg.models_module)
    except ImportError as exc:
        raise AdapterDetectionFailure(
            f"Could not import models module {cfg.models_module!r}: {exc}"
        ) from exc


def build_adapter(cfg: Settings = settings) -> MappingAdapter:
    """Import the host models, detect the paradigm and construct its adapter."""
    module = _import_models(cfg)
    paradigm = detect_paradigm()
    logger.info("Detected %s mapping paradigm", paradigm.value)

    if paradigm is Paradigm.DOCUMENT:
        import mongoengine

        from modelviz.inspector.adapters.document import DocumentAdapter

        mongoengine.connect(host=cfg.mongo_uri)
        return DocumentAdapter()

    from sqlalchemy import create_engine
    from sqlalchemy.orm import sessionmaker

    from modelviz.inspector.adapters.relational import RelationalAdapter

    base = getattr(module, cfg.declarative_base, None) if module is not None else None
    if base is None or not hasattr(base, "registry"):
        raise AdapterDetectionFailure(
            f"SQLAlchemy detected but no declarative base {cfg.declarative_base!r} "
            f"in models module {cfg.models_module!r}"
        )
    engine = create_engine(cfg.database_url)
    return RelationalAdapter(base, sessionmaker(bind=engine))


@lru_cache(maxsize=None)
def get_adapter() -> MappingAdapter:
    """Process-wide adapter; the paradigm never changes at runtime."""
    return build_adapter(settings)

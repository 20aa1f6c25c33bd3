"""FastAPI HTTP layer package.

Public re-export so callers can write::

    from modelviz.api import create_app

    uvicorn modelviz.api.app:app --reload
"""

from modelviz.api.app import create_app

__all__ = ["create_app"]

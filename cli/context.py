"""Shared plumbing for modelviz CLI commands.

Resolves the process-wide mapping adapter and turns the library's expected
failures into a one-line message and exit code 1.
"""

from __future__ import annotations

from functools import wraps
from typing import Callable

import typer

from modelviz.errors import ModelVizError
from modelviz.inspector.adapters import MappingAdapter, get_adapter


def resolve_adapter() -> MappingAdapter:
    """Return the adapter for the host application's models."""
    return get_adapter()


def handle_errors(func: Callable) -> Callable:
    """Decorator for CLI commands that report modelviz errors and exit 1.

    Covers unknown models/records, failed adapter detection, rejected
    snapshots and API error responses.
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ModelVizError as exc:
            typer.echo(f"Error: {exc}", err=True)
            raise typer.Exit(code=1)

    return wrapper

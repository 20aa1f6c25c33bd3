"""modelviz CLI: entry-point for inspecting an application's data models.

Usage:
    modelviz --help

The host application's models are located through ``MODELVIZ_MODELS_MODULE``
(plus ``MODELVIZ_DATABASE_URL`` or ``MODELVIZ_MONGO_URI``); see
``modelviz.config``.
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from modelviz.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import json
import logging
from typing import Optional

import typer

from modelviz.config import settings
from modelviz.inspector import (
    build_schema,
    expand_relation,
    inspect_instance,
    list_model_names,
    list_records,
)

from cli.commands.explore import explore
from cli.context import handle_errors, resolve_adapter
from cli.rendering import render_node, render_schema

app = typer.Typer(
    name="modelviz",
    help="Inspect data models, records and their relations.",
    no_args_is_help=True,
)

app.command("explore")(explore)


# ---------------------------------------------------------------------------
# Reflection
# ---------------------------------------------------------------------------
@app.command("models")
@handle_errors
def models() -> None:
    """List every eligible model, sorted."""
    names = list_model_names(resolve_adapter())
    if not names:
        typer.echo("No models found.")
        return
    for name in names:
        typer.echo(name)


@app.command("schema")
@handle_errors
def schema(
    format: str = typer.Option("tree", "--format", help="Output format: tree | json"),
) -> None:
    """Print the class-level schema graph."""
    if format not in ("tree", "json"):
        typer.echo(f"Error: unknown format {format!r}. Use: tree | json", err=True)
        raise typer.Exit(1)
    graph = build_schema(resolve_adapter()).to_dict()
    if format == "json":
        typer.echo(json.dumps(graph, indent=2))
    else:
        typer.echo(render_schema(graph))


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------
@app.command("records")
@handle_errors
def records(
    model: str = typer.Argument(..., help="Model name."),
    page: int = typer.Option(1, "--page", min=1),
    per_page: int = typer.Option(settings.records_per_page, "--per-page", min=1, max=settings.max_per_page),
) -> None:
    """Print one page of a model's records, newest first."""
    result = list_records(resolve_adapter(), model, page=page, per_page=per_page)
    typer.echo(f"{result.model}: page {result.page}/{max(result.total_pages, 1)} ({result.total} records)")
    typer.echo("\t".join(result.columns))
    for row in result.rows:
        typer.echo("\t".join("" if row[c] is None else str(row[c]) for c in result.columns))


@app.command("show")
@handle_errors
def show(
    model: str = typer.Argument(..., help="Model name."),
    record_id: str = typer.Argument(..., help="Primary key of the record."),
) -> None:
    """Print one record with its attributes and relation stubs."""
    node = inspect_instance(resolve_adapter(), model, record_id)
    typer.echo(render_node(node))


@app.command("expand")
@handle_errors
def expand(
    model: str = typer.Argument(..., help="Model name."),
    record_id: str = typer.Argument(..., help="Primary key of the record."),
    relation: str = typer.Argument(..., help="Relation to expand."),
    page: int = typer.Option(1, "--page", min=1),
    per_page: Optional[int] = typer.Option(None, "--per-page", min=1, max=settings.max_per_page),
) -> None:
    """Print one page of the records behind a relation."""
    result = expand_relation(resolve_adapter(), model, record_id, relation, page=page, per_page=per_page)
    shown = len(result.nodes)
    typer.echo(f"{result.source_key}.{result.relation}: {shown} of {result.total} (page {result.page})")
    for node in result.nodes:
        typer.echo(render_node(node))
    if result.has_more:
        typer.echo(f"… more on page {result.page + 1}")
    if result.degraded:
        typer.echo("Warning: the relation could not be fully loaded.", err=True)


# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------
@app.command("serve")
def serve(
    host: str = typer.Option("127.0.0.1", "--host"),
    port: int = typer.Option(8000, "--port"),
) -> None:
    """Run the HTTP API with uvicorn."""
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run("modelviz.api.app:app", host=host, port=port)


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()

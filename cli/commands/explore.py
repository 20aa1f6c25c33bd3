"""Command for exploring an instance graph from the terminal."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Optional

import typer

from modelviz.graph.client import ApiClient
from modelviz.graph.session import GraphSession, GraphSource, LocalSource

from cli.context import handle_errors, resolve_adapter
from cli.rendering import render_tree


async def explore_graph(
    source: GraphSource,
    model: str,
    record_id: str,
    depth: int,
    per_page: Optional[int] = None,
) -> GraphSession:
    """Load ``model#record_id`` and expand every relation breadth-first.

    Each level expands page 1 of every non-empty relation of the nodes the
    previous level discovered.
    """
    session = GraphSession(source, per_page=per_page)
    await session.load_root(model, record_id)
    frontier = [session.state.root_key]
    for _ in range(depth):
        discovered: list[str] = []
        for key in frontier:
            before = set(session.state.nodes)
            await session.expand_node(key)
            discovered.extend(k for k in session.state.nodes if k not in before)
        if not discovered:
            break
        frontier = discovered
    return session


async def _run(
    model: Optional[str],
    record_id: Optional[str],
    depth: int,
    per_page: Optional[int],
    import_path: Optional[Path],
    api_url: Optional[str],
) -> GraphSession:
    if api_url:
        async with ApiClient(api_url) as client:
            return await _explore_with(client, model, record_id, depth, per_page, import_path)
    return await _explore_with(
        LocalSource(resolve_adapter()), model, record_id, depth, per_page, import_path
    )


async def _explore_with(source, model, record_id, depth, per_page, import_path) -> GraphSession:
    if import_path is not None:
        session = GraphSession(source, per_page=per_page)
        await session.import_snapshot(import_path.read_text(encoding="utf-8"))
        return session
    return await explore_graph(source, model, record_id, depth, per_page)


@handle_errors
def explore(
    model: Optional[str] = typer.Argument(None, help="Model of the root record."),
    record_id: Optional[str] = typer.Argument(None, help="Primary key of the root record."),
    depth: int = typer.Option(1, "--depth", min=0, help="Levels of relations to expand."),
    per_page: Optional[int] = typer.Option(None, "--per-page", min=1, help="Records per relation page."),
    export: Optional[Path] = typer.Option(None, "--export", help="Save the explored graph as a snapshot."),
    import_: Optional[Path] = typer.Option(
        None, "--import", exists=True, dir_okay=False, help="Render a saved snapshot instead."
    ),
    api: Optional[str] = typer.Option(None, "--api", help="Explore through a running modelviz API."),
) -> None:
    """Expand a record's relations and print the explored graph as a tree."""
    if import_ is None and (model is None or record_id is None):
        typer.echo("Error: MODEL and ID are required unless --import is given.", err=True)
        raise typer.Exit(code=1)

    session = asyncio.run(_run(model, record_id, depth, per_page, import_, api))
    typer.echo(render_tree(session.state))

    if export is not None:
        export.write_text(json.dumps(session.export(), indent=2), encoding="utf-8")
        typer.echo(f"Snapshot saved to {export}")

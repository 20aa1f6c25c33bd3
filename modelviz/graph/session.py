"""Async graph exploration session.

A :class:`GraphSession` owns one :class:`~modelviz.graph.state.GraphState` and
drives it from a :class:`GraphSource`: the HTTP API
(:class:`~modelviz.graph.client.ApiClient`) or an in-process adapter
(:class:`LocalSource`).

Fetches run without holding the lock; only the pure merge and the state swap
happen under it.
Loading a new root, clearing or importing bumps the session generation; any
expansion response that arrives for an older generation is dropped.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional, Protocol, Union

from modelviz.graph.snapshot import export_snapshot, import_snapshot
from modelviz.graph.state import (
    GraphState,
    empty_state,
    load_root,
    merge_expansion,
    move_node,
)
from modelviz.inspector.adapters.base import MappingAdapter
from modelviz.inspector.expander import expand_relation
from modelviz.inspector.instance import inspect_instance
from modelviz.inspector.models import ExpansionResult, InstanceNode, split_key

logger = logging.getLogger(__name__)


class GraphSource(Protocol):
    async def fetch_instance(self, model: str, record_id: str) -> InstanceNode: ...

    async def expand_relation(
        self,
        model: str,
        record_id: str,
        relation: str,
        page: int = 1,
        per_page: Optional[int] = None,
    ) -> ExpansionResult: ...


class LocalSource:
    """Serve a session straight from a mapping adapter, off the event loop."""

    def __init__(self, adapter: MappingAdapter) -> None:
        self._adapter = adapter

    async def fetch_instance(self, model: str, record_id: str) -> InstanceNode:
        return await asyncio.to_thread(inspect_instance, self._adapter, model, record_id)

    async def expand_relation(
        self,
        model: str,
        record_id: str,
        relation: str,
        page: int = 1,
        per_page: Optional[int] = None,
    ) -> ExpansionResult:
        return await asyncio.to_thread(
            expand_relation, self._adapter, model, record_id, relation, page, per_page
        )


class GraphSession:
    def __init__(self, source: GraphSource, *, per_page: Optional[int] = None) -> None:
        self._source = source
        self._per_page = per_page
        self._state = empty_state()
        self._generation = 0
        self._lock = asyncio.Lock()

    @property
    def state(self) -> GraphState:
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    async def load_root(self, model: str, record_id: str) -> GraphState:
        """Replace the whole graph with the single node ``model#record_id``."""
        self._generation += 1
        generation = self._generation
        node = await self._source.fetch_instance(model, record_id)
        async with self._lock:
            if generation != self._generation:
                logger.info("Discarding superseded root %s:%s", model, record_id)
                return self._state
            self._state = load_root(node)
            return self._state

    async def expand(self, source_key: str, relation: str, page: int = 1) -> GraphState:
        """Fetch one page of *relation* on *source_key* and merge it."""
        generation = self._generation
        model, record_id = split_key(source_key)
        result = await self._source.expand_relation(
            model, record_id, relation, page, self._per_page
        )
        async with self._lock:
            if generation != self._generation or source_key not in self._state.nodes:
                logger.info("Discarding stale expansion %s.%s", source_key, relation)
                return self._state
            self._state = merge_expansion(self._state, result)
            return self._state

    async def load_more(self, placeholder_id: str) -> GraphState:
        """Load the page a "more" placeholder stands for."""
        placeholder = self._state.placeholders.get(placeholder_id)
        if placeholder is None:
            raise KeyError(f"Unknown placeholder {placeholder_id!r}")
        return await self.expand(placeholder.source_key, placeholder.relation, placeholder.next_page)

    async def expand_node(self, key: str) -> GraphState:
        """Expand page 1 of every non-empty, not yet expanded relation of *key*."""
        node = self._state.nodes.get(key)
        if node is None:
            raise KeyError(f"Unknown node {key!r}")
        for stub in node.relations:
            if stub.count == 0 or self._state.is_expanded(key, stub.name):
                continue
            await self.expand(key, stub.name)
        return self._state

    async def move(self, key: str, x: float, y: float) -> GraphState:
        async with self._lock:
            self._state = move_node(self._state, key, x, y)
            return self._state

    async def clear(self) -> GraphState:
        self._generation += 1
        async with self._lock:
            self._state = empty_state()
            return self._state

    def export(self) -> dict[str, Any]:
        return export_snapshot(self._state)

    async def import_snapshot(self, data: Union[str, bytes, dict[str, Any]]) -> Optional[str]:
        """Replace the graph with a saved snapshot and return its root key.

        The current graph is left untouched if the snapshot is rejected.
        """
        restored = import_snapshot(data)
        self._generation += 1
        async with self._lock:
            self._state = restored
        return restored.root_key

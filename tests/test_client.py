"""Tests for the async API client.

Mocking strategy:
- ``respx`` patches ``httpx`` at the transport layer for request shape and
  error mapping.
- ``httpx.ASGITransport`` runs the real app in-process for the end-to-end
  graph session test.
"""

from __future__ import annotations

import json

import httpx
import pytest
import respx

from modelviz.api.app import create_app
from modelviz.graph.client import ApiClient, ApiError
from modelviz.graph.session import GraphSession

_BASE = "http://modelviz.test"

_NODE = {
    "key": "Author:1",
    "model": "Author",
    "record_id": "1",
    "attributes": {"name": "Ada"},
    "relations": [
        {
            "name": "posts",
            "cardinality": "has_many",
            "target_class": "Post",
            "foreign_key": "author_id",
            "is_embedded": False,
            "count": 3,
            "degraded": False,
            "preview_ids": ["1", "2", "3"],
        }
    ],
}


class TestApiClientMocked:
    @respx.mock
    async def test_fetch_instance(self):
        respx.get(f"{_BASE}/api/models/Author/1").mock(
            return_value=httpx.Response(200, json={"node": _NODE})
        )
        async with ApiClient(_BASE) as api:
            node = await api.fetch_instance("Author", "1")
        assert node.key == "Author:1"
        assert node.relation("posts").count == 3

    @respx.mock
    async def test_path_segments_are_escaped(self):
        route = respx.get(f"{_BASE}/api/models/Comment/abc.comments%2F0").mock(
            return_value=httpx.Response(200, json={"node": {**_NODE, "relations": []}})
        )
        async with ApiClient(_BASE) as api:
            await api.fetch_instance("Comment", "abc.comments/0")
        assert route.called
        assert route.calls.last.request.url.raw_path == b"/api/models/Comment/abc.comments%2F0"

    @respx.mock
    async def test_expand_relation_sends_pagination(self):
        route = respx.get(f"{_BASE}/api/models/Author/1/relations/posts").mock(
            return_value=httpx.Response(
                200,
                json={
                    "source_key": "Author:1",
                    "relation": "posts",
                    "total": 3,
                    "page": 2,
                    "per_page": 2,
                    "has_more": False,
                    "degraded": False,
                    "nodes": [],
                },
            )
        )
        async with ApiClient(_BASE) as api:
            result = await api.expand_relation("Author", "1", "posts", page=2, per_page=2)
        assert route.calls.last.request.url.params["page"] == "2"
        assert route.calls.last.request.url.params["per_page"] == "2"
        assert result.total == 3
        assert not result.has_more

    @respx.mock
    async def test_error_body_becomes_api_error(self):
        respx.get(f"{_BASE}/api/models/Nope/1").mock(
            return_value=httpx.Response(404, json={"error": "Model 'Nope' not found"})
        )
        async with ApiClient(_BASE) as api:
            with pytest.raises(ApiError) as excinfo:
                await api.fetch_instance("Nope", "1")
        assert excinfo.value.status_code == 404
        assert str(excinfo.value) == "Model 'Nope' not found"

    @respx.mock
    async def test_non_json_error(self):
        respx.get(f"{_BASE}/api/models").mock(return_value=httpx.Response(502, text="Bad Gateway"))
        async with ApiClient(_BASE) as api:
            with pytest.raises(ApiError, match="HTTP 502"):
                await api.list_models()

    @respx.mock
    async def test_ask(self):
        route = respx.post(f"{_BASE}/api/llm").mock(
            return_value=httpx.Response(200, json={"response": "42"})
        )
        async with ApiClient(_BASE) as api:
            assert await api.ask("meaning?") == "42"
        assert json.loads(route.calls.last.request.content) == {"input": "meaning?"}


class TestApiClientAgainstApp:
    async def test_graph_session_over_http(self, sql_adapter):
        transport = httpx.ASGITransport(app=create_app(sql_adapter))
        async with ApiClient("http://testserver", transport=transport) as api:
            assert await api.list_models() == ["AuditLog", "Author", "Post", "Profile", "Tag"]

            session = GraphSession(api, per_page=2)
            await session.load_root("Author", "1")
            state = await session.expand("Author:1", "posts")
            assert sorted(state.nodes) == ["Author:1", "Post:1", "Post:2"]
            assert len(state.placeholders) == 1

            records = await api.records("Post", per_page=2)
            assert records["total"] == 3

"""Tests for the mongoengine mapping adapter (on mongomock)."""

from __future__ import annotations

import pytest

from modelviz.errors import ModelNotFound, RecordNotFound
from modelviz.inspector import expand_relation, inspect_instance, list_records
from modelviz.inspector.models import Cardinality

import doc_models


def _relations(adapter, cls):
    return {r.name: r for r in adapter.relations(cls)}


class TestReflection:
    def test_only_top_level_documents_are_models(self, doc_adapter):
        assert doc_adapter.model_names() == ["Article", "Topic", "Writer"]

    def test_embedded_classes_resolve_only_on_request(self, doc_adapter):
        with pytest.raises(ModelNotFound):
            doc_adapter.model_class("Comment")
        assert doc_adapter.model_class("Comment", include_embedded=True) is doc_models.Comment

    def test_field_relations(self, doc_adapter):
        article = _relations(doc_adapter, doc_models.Article)
        assert article["writer"].cardinality is Cardinality.BELONGS_TO
        assert article["writer"].foreign_key == "writer"
        assert article["topics"].cardinality is Cardinality.MANY_TO_MANY
        assert article["comments"].cardinality is Cardinality.EMBEDS_MANY
        assert article["comments"].foreign_key is None

    def test_reverse_reference_becomes_has_many(self, doc_adapter):
        writer = _relations(doc_adapter, doc_models.Writer)
        assert writer["articles"].cardinality is Cardinality.HAS_MANY
        assert writer["articles"].target_class == "Article"
        assert writer["articles"].foreign_key == "writer"
        assert writer["address"].cardinality is Cardinality.EMBEDS_ONE

    def test_embedded_owner_side_is_not_a_relation(self, doc_adapter):
        assert doc_adapter.relations(doc_models.Comment) == []
        assert doc_adapter.relations(doc_models.Address) == []


class TestInstances:
    def test_find_rejects_malformed_ids(self, doc_adapter):
        with pytest.raises(RecordNotFound):
            doc_adapter.find(doc_models.Writer, "not-an-object-id")

    def test_inspect_writer(self, doc_adapter, mongo):
        grace = mongo["writer"]
        node = inspect_instance(doc_adapter, "Writer", str(grace.pk))
        assert node.key == f"Writer:{grace.pk}"
        assert node.attributes["name"] == "Grace"

        articles = node.relation("articles")
        assert articles.count == 2
        assert articles.preview_ids == [str(a.pk) for a in mongo["articles"]]

        address = node.relation("address")
        assert address.is_embedded
        assert address.value == f"{grace.pk}.address"

    def test_belongs_to_and_many_to_many_stubs(self, doc_adapter, mongo):
        first = mongo["articles"][0]
        node = inspect_instance(doc_adapter, "Article", str(first.pk))
        assert node.relation("writer").value == str(mongo["writer"].pk)
        assert node.relation("topics").count == 2
        assert node.relation("comments").count == 2

    def test_expand_embedded_comments_uses_positional_ids(self, doc_adapter, mongo):
        first = mongo["articles"][0]
        result = expand_relation(doc_adapter, "Article", str(first.pk), "comments", per_page=1)
        assert result.total == 2
        assert result.has_more
        assert [n.key for n in result.nodes] == [f"Comment:{first.pk}.comments.0"]
        assert result.nodes[0].attributes == {"body": "Nice", "commenter": "ann"}

        page2 = expand_relation(doc_adapter, "Article", str(first.pk), "comments", page=2, per_page=1)
        assert [n.record_id for n in page2.nodes] == [f"{first.pk}.comments.1"]

    def test_expand_many_to_many_keeps_list_order(self, doc_adapter, mongo):
        first = mongo["articles"][0]
        result = expand_relation(doc_adapter, "Article", str(first.pk), "topics")
        assert [n.attributes["name"] for n in result.nodes] == ["python", "mongo"]

    def test_expand_many_to_many_pages_through_the_list(self, doc_adapter, mongo):
        first = mongo["articles"][0]
        page1 = expand_relation(doc_adapter, "Article", str(first.pk), "topics", per_page=1)
        assert page1.total == 2
        assert page1.has_more
        assert [n.attributes["name"] for n in page1.nodes] == ["python"]

        page2 = expand_relation(doc_adapter, "Article", str(first.pk), "topics", page=2, per_page=1)
        assert page2.total == 2
        assert not page2.has_more
        assert [n.attributes["name"] for n in page2.nodes] == ["mongo"]

    def test_expand_reverse_has_many(self, doc_adapter, mongo):
        grace = mongo["writer"]
        result = expand_relation(doc_adapter, "Writer", str(grace.pk), "articles", per_page=5)
        assert [n.attributes["title"] for n in result.nodes] == ["First", "Second"]
        assert not result.has_more

    def test_list_records_newest_first(self, doc_adapter):
        page = list_records(doc_adapter, "Article")
        assert page.total == 2
        assert page.columns[0] == "id"
        assert [row["title"] for row in page.rows] == ["Second", "First"]

"""Shared fixtures: a seeded relational store and a seeded document store.

Relational
    In-memory SQLite behind a ``StaticPool`` so every thread (FastAPI's
    threadpool, ``asyncio.to_thread``) sees the same database.

    Author 1 "Ada"  -> posts 1, 2, 3; profile 1
    Author 2 "Bob"  -> no posts, no profile
    Post 1          -> tags 1, 2

Document
    mongomock behind ``mongoengine.connect``.

    Writer "Grace" (with an embedded address) -> articles "First", "Second"
    Article "First" -> topics "python", "mongo"; two embedded comments
"""

from __future__ import annotations

from datetime import date

import mongomock
import pytest
from mongoengine import connect, disconnect
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from modelviz.config import settings
from modelviz.inspector.adapters.document import DocumentAdapter
from modelviz.inspector.adapters.relational import RelationalAdapter

import doc_models
import sql_models


@pytest.fixture(autouse=True)
def default_settings(monkeypatch):
    """Pin the settings every test relies on, whatever the environment says."""
    monkeypatch.setattr(settings, "relation_limit", 5)
    monkeypatch.setattr(settings, "excluded_models", [])
    monkeypatch.setattr(settings, "excluded_attributes", ["_id", "created_at", "updated_at"])
    monkeypatch.setattr(settings, "records_per_page", 25)
    monkeypatch.setattr(settings, "max_table_columns", 30)


# ---------------------------------------------------------------------------
# Relational
# ---------------------------------------------------------------------------

@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    sql_models.Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine, expire_on_commit=False)

    with factory() as s:
        ada = sql_models.Author(id=1, name="Ada", email="ada@example.com")
        bob = sql_models.Author(id=2, name="Bob")
        t1 = sql_models.Tag(id=1, name="python")
        t2 = sql_models.Tag(id=2, name="sql")
        posts = [
            sql_models.Post(id=1, title="Hello", published_on=date(2024, 5, 1), author=ada, tags=[t1, t2]),
            sql_models.Post(id=2, title="Again", author=ada),
            sql_models.Post(id=3, title="Third", author=ada),
        ]
        profile = sql_models.Profile(id=1, bio="Mathematician", author=ada)
        log = sql_models.AuditLog(id=1, action="login")
        s.add_all([ada, bob, t1, t2, *posts, profile, log])
        s.commit()

    yield factory
    engine.dispose()


@pytest.fixture()
def sql_adapter(session_factory):
    return RelationalAdapter(sql_models.Base, session_factory)


# ---------------------------------------------------------------------------
# Document
# ---------------------------------------------------------------------------

@pytest.fixture()
def mongo():
    connect("modelviz_test", host="mongodb://localhost", mongo_client_class=mongomock.MongoClient)
    grace = doc_models.Writer(
        name="Grace", address=doc_models.Address(street="1 Main St", city="Arlington")
    ).save()
    python = doc_models.Topic(name="python").save()
    mongo_topic = doc_models.Topic(name="mongo").save()
    first = doc_models.Article(
        title="First",
        writer=grace,
        topics=[python, mongo_topic],
        comments=[
            doc_models.Comment(body="Nice", commenter="ann"),
            doc_models.Comment(body="Thanks", commenter="grace"),
        ],
    ).save()
    second = doc_models.Article(title="Second", writer=grace).save()

    yield {"writer": grace, "topics": [python, mongo_topic], "articles": [first, second]}

    for doc in (doc_models.Writer, doc_models.Topic, doc_models.Article):
        doc.drop_collection()
    disconnect()


@pytest.fixture()
def doc_adapter(mongo):
    return DocumentAdapter(doc_models.DOCUMENTS)

"""mongoengine documents used as the document-store host application in tests."""

from mongoengine import (
    Document,
    EmbeddedDocument,
    EmbeddedDocumentField,
    EmbeddedDocumentListField,
    ListField,
    ReferenceField,
    StringField,
)


class Address(EmbeddedDocument):
    street = StringField()
    city = StringField()


class Comment(EmbeddedDocument):
    body = StringField()
    commenter = StringField()


class Writer(Document):
    name = StringField(required=True)
    address = EmbeddedDocumentField(Address)


class Topic(Document):
    name = StringField()


class Article(Document):
    title = StringField()
    writer = ReferenceField(Writer, related_name="articles")
    topics = ListField(ReferenceField(Topic))
    comments = EmbeddedDocumentListField(Comment)


DOCUMENTS = [Address, Comment, Writer, Topic, Article]

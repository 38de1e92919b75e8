"""
MongoDB helpers

Thin functions over pymongo used by the Mongo-backed attendance store.
Collections are passed in explicitly; there is no module-level client.
"""
from datetime import datetime, timezone

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import MongoClient

SERVER_SELECTION_TIMEOUT_MS = 5000


def connect(database_url):
    """Open a client for the given connection string. The caller owns it and must close it."""
    return MongoClient(
        database_url,
        tz_aware=True,
        serverSelectionTimeoutMS=SERVER_SELECTION_TIMEOUT_MS,
    )


def utcnow():
    # BSON dates keep millisecond precision
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def to_object_id(value):
    """Parse a document id, returning None when it is not a valid ObjectId."""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        return None


def serialize(doc):
    if not doc:
        return doc
    d = dict(doc)
    if "_id" in d:
        d["_id"] = str(d["_id"])
    return d


def create_document(collection, data):
    """Insert data with fresh timestamps and return the stored document."""
    now = utcnow()
    doc = {"_id": ObjectId(), **data, "createdAt": now, "updatedAt": now}
    collection.insert_one(doc)
    return doc


def get_documents(collection, filter_dict=None):
    return list(collection.find(filter_dict or {}))

"""
Attendance store

Persistence for Student records. Two implementations share the same
semantics: MongoAttendanceStore (pymongo) and InMemoryAttendanceStore.
"""
import logging
import threading
from contextlib import contextmanager
from typing import Any, Dict, List, Protocol

from bson import ObjectId
from pydantic import ValidationError as SchemaError
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

import database
from errors import NotFoundError, StorageError, ValidationError
from schemas import Student, StudentRecord, StudentUpdate

logger = logging.getLogger(__name__)


class AttendanceStore(Protocol):
    kind: str
    database_name: str

    def list(self) -> List[StudentRecord]:
        raise NotImplementedError

    def create(self, fields: Dict[str, Any]) -> StudentRecord:
        raise NotImplementedError

    def update(self, student_id: str, fields: Dict[str, Any]) -> StudentRecord:
        raise NotImplementedError

    def delete(self, student_id: str) -> bool:
        """Remove a record. Unknown ids are not an error; returns whether one was removed."""

        raise NotImplementedError

    def ping(self) -> bool:
        raise NotImplementedError

    def collection_names(self) -> List[str]:
        raise NotImplementedError

    def close(self) -> None:
        raise NotImplementedError


def _invalid(exc: SchemaError) -> ValidationError:
    errors = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err["loc"]) or "body"
        errors.append({"field": field, "message": err["msg"]})
    message = "; ".join(f"{e['field']}: {e['message']}" for e in errors)
    return ValidationError(message or "Invalid student", errors)


def _require_object(fields):
    if not isinstance(fields, dict):
        raise ValidationError("Student payload must be a JSON object")


def validate_new(fields) -> Student:
    _require_object(fields)
    try:
        return Student.model_validate(fields)
    except SchemaError as exc:
        raise _invalid(exc) from None


def validate_changes(fields) -> Dict[str, Any]:
    _require_object(fields)
    try:
        return StudentUpdate.model_validate(fields).changes()
    except SchemaError as exc:
        raise _invalid(exc) from None


def _record(doc) -> StudentRecord:
    try:
        return StudentRecord.model_validate(database.serialize(doc))
    except SchemaError as exc:
        raise StorageError(f"Stored student {doc.get('_id')} is malformed: {exc}") from exc


def _not_found(student_id):
    return NotFoundError(f"Student {student_id} not found")


@contextmanager
def _storage_errors(operation):
    try:
        yield
    except PyMongoError as exc:
        logger.error("MongoDB %s failed: %s", operation, exc)
        raise StorageError(f"Database error during {operation}") from exc


class MongoAttendanceStore:
    kind = "mongodb"

    def __init__(self, collection, client=None):
        self._collection = collection
        self._client = client

    @classmethod
    def from_settings(cls, settings):
        client = database.connect(settings.database_url)
        collection = client[settings.database_name][settings.collection_name]
        return cls(collection, client=client)

    @property
    def database_name(self):
        return self._collection.database.name

    def list(self):
        with _storage_errors("list"):
            docs = database.get_documents(self._collection)
        return [_record(d) for d in docs]

    def create(self, fields):
        student = validate_new(fields)
        with _storage_errors("create"):
            doc = database.create_document(self._collection, student.model_dump(mode="json"))
        logger.info("Created student %s (roll=%s)", doc["_id"], student.roll)
        return _record(doc)

    def update(self, student_id, fields):
        changes = validate_changes(fields)
        oid = database.to_object_id(student_id)
        if oid is None:
            raise _not_found(student_id)
        with _storage_errors("update"):
            doc = self._collection.find_one_and_update(
                {"_id": oid},
                {"$set": {**changes, "updatedAt": database.utcnow()}},
                return_document=ReturnDocument.AFTER,
            )
        if doc is None:
            raise _not_found(student_id)
        logger.info("Updated student %s: %s", student_id, sorted(changes))
        return _record(doc)

    def delete(self, student_id):
        oid = database.to_object_id(student_id)
        if oid is None:
            return False
        with _storage_errors("delete"):
            res = self._collection.delete_one({"_id": oid})
        deleted = res.deleted_count > 0
        logger.info("Delete student %s: %s", student_id, "removed" if deleted else "not present")
        return deleted

    def ping(self):
        try:
            self._collection.database.command("ping")
        except PyMongoError as exc:
            logger.warning("MongoDB ping failed: %s", exc)
            return False
        return True

    def collection_names(self):
        try:
            return self._collection.database.list_collection_names()[:10]
        except PyMongoError as exc:
            logger.warning("MongoDB list_collection_names failed: %s", exc)
            return []

    def close(self):
        if self._client is not None:
            self._client.close()


class InMemoryAttendanceStore:
    """Dict-backed store for development without MongoDB and for tests."""

    kind = "memory"
    database_name = "memory"

    def __init__(self):
        self._docs = {}
        self._lock = threading.Lock()

    def list(self):
        with self._lock:
            docs = list(self._docs.values())
        return [_record(d) for d in docs]

    def create(self, fields):
        student = validate_new(fields)
        now = database.utcnow()
        doc = {"_id": str(ObjectId()), **student.model_dump(mode="json"), "createdAt": now, "updatedAt": now}
        with self._lock:
            self._docs[doc["_id"]] = doc
        logger.info("Created student %s (roll=%s)", doc["_id"], student.roll)
        return _record(doc)

    def update(self, student_id, fields):
        changes = validate_changes(fields)
        with self._lock:
            doc = self._docs.get(student_id)
            if doc is None:
                raise _not_found(student_id)
            doc = {**doc, **changes, "updatedAt": database.utcnow()}
            self._docs[student_id] = doc
        logger.info("Updated student %s: %s", student_id, sorted(changes))
        return _record(doc)

    def delete(self, student_id):
        with self._lock:
            deleted = self._docs.pop(student_id, None) is not None
        logger.info("Delete student %s: %s", student_id, "removed" if deleted else "not present")
        return deleted

    def ping(self):
        return True

    def collection_names(self):
        return []

    def close(self):
        pass


def build_store(settings) -> AttendanceStore:
    if settings.database_url:
        return MongoAttendanceStore.from_settings(settings)
    logger.warning("DATABASE_URL not set; using in-memory store (data is lost on restart)")
    return InMemoryAttendanceStore()

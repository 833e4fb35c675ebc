"""
MongoDB connection for the art catalog.

The database handle is built once at startup by ``connect()`` and handed to
``main.create_app``; nothing here keeps a module-level connection.
"""

import logging
import os
from typing import Any, Dict, Optional

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "mongodb://localhost:27017"
DEFAULT_DATABASE_NAME = "artify"

ARTS = "arts"
USERS = "users"
FAVORITES = "favorites"
REPORTS = "reports"


def connect(database_url: Optional[str] = None, database_name: Optional[str] = None) -> Database:
    url = database_url or os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)
    name = database_name or os.getenv("DATABASE_NAME", DEFAULT_DATABASE_NAME)
    client = MongoClient(url, serverSelectionTimeoutMS=5000)
    logger.info("Connecting to MongoDB database %s", name)
    return client[name]


def ensure_indexes(db: Database) -> None:
    """Create the indexes the repositories rely on. Safe to call repeatedly."""
    db[USERS].create_index([("email", ASCENDING)], unique=True)
    db[FAVORITES].create_index([("artworkId", ASCENDING), ("userEmail", ASCENDING)], unique=True)
    db[FAVORITES].create_index([("userEmail", ASCENDING), ("createdAt", DESCENDING)])
    db[ARTS].create_index([("createdAt", DESCENDING)])
    db[ARTS].create_index([("userEmail", ASCENDING)])
    db[REPORTS].create_index([("artworkId", ASCENDING)])


def serialize_doc(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Copy of ``doc`` with ``_id`` exposed as ``id`` and ObjectIds as strings."""
    if not doc:
        return doc
    doc = dict(doc)
    _id = doc.pop("_id", None)
    if _id is not None:
        doc["id"] = str(_id)
    for k, v in list(doc.items()):
        doc[k] = _serialize_value(v)
    return doc


def _serialize_value(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, dict):
        return serialize_doc(value)
    if isinstance(value, list):
        return [_serialize_value(v) for v in value]
    return value

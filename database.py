"""
MongoDB helper for the store.

Collections are named after the lowercase schema class (Product -> "product").
Every pymongo failure surfaces as ``StorageError``; nothing is retried.
"""
from typing import Any, Dict, List, Optional, Union

import structlog
from bson import ObjectId
from bson.errors import InvalidId
from pydantic import BaseModel
from pymongo import MongoClient, ReturnDocument
from pymongo.errors import PyMongoError

from errors import StorageError

logger = structlog.get_logger()

client = None
db = None


def connect(url: str, name: str):
    global client, db
    client = MongoClient(url)
    db = client[name]
    logger.info("mongodb.connected", database=name)
    return db


def close():
    global client, db
    if client is not None:
        client.close()
    client = None
    db = None


def _collection(collection_name: str):
    if db is None:
        raise StorageError("Database not configured")
    return db[collection_name]


def _as_dict(data: Union[BaseModel, Dict[str, Any]]) -> Dict[str, Any]:
    if isinstance(data, BaseModel):
        return data.model_dump(by_alias=True, exclude_none=True)
    return dict(data)


def ensure_indexes():
    try:
        _collection("seller").create_index("username", unique=True)
    except PyMongoError as e:
        raise StorageError(str(e)) from e


def get_documents(collection_name: str, filter_dict: Optional[Dict[str, Any]] = None) -> List[dict]:
    try:
        return list(_collection(collection_name).find(filter_dict or {}))
    except PyMongoError as e:
        raise StorageError(str(e)) from e


def find_document(collection_name: str, filter_dict: Dict[str, Any]) -> Optional[dict]:
    try:
        return _collection(collection_name).find_one(filter_dict)
    except PyMongoError as e:
        raise StorageError(str(e)) from e


def create_document(collection_name: str, data: Union[BaseModel, Dict[str, Any]]) -> dict:
    doc = _as_dict(data)
    try:
        result = _collection(collection_name).insert_one(doc)
    except PyMongoError as e:
        raise StorageError(str(e)) from e
    doc["_id"] = result.inserted_id
    return doc


def delete_document(collection_name: str, document_id: str) -> bool:
    try:
        oid = ObjectId(document_id)
    except (InvalidId, TypeError):
        raise StorageError(f'Cast to ObjectId failed for value "{document_id}"')
    try:
        res = _collection(collection_name).delete_one({"_id": oid})
    except PyMongoError as e:
        raise StorageError(str(e)) from e
    return res.deleted_count > 0


def upsert_document(collection_name: str, filter_dict: Dict[str, Any], data: Union[BaseModel, Dict[str, Any]]) -> dict:
    try:
        return _collection(collection_name).find_one_and_update(
            filter_dict,
            {"$set": _as_dict(data)},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
    except PyMongoError as e:
        raise StorageError(str(e)) from e

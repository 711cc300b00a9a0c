"""
Database operations - Generic CRUD functions for all collections
"""
from typing import List, Dict, Optional, Tuple
from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError
from datetime import datetime, timezone

from frontdesk.errors import StoreFailure


def _object_id(doc_id: str) -> Optional[ObjectId]:
    try:
        return ObjectId(doc_id)
    except (InvalidId, TypeError):
        return None


def _stringify(document: Optional[Dict]) -> Optional[Dict]:
    if document is not None and isinstance(document.get("_id"), ObjectId):
        document["_id"] = str(document["_id"])
    return document


class DBOperations:
    """Generic database operations for MongoDB collections, optionally bound to a session"""

    def __init__(self, database, session=None):
        self.database = database
        self.session = session

    def collection(self, collection_name: str):
        return self.database[collection_name]

    async def get_all(
        self,
        collection_name: str,
        filter_query: Dict = None,
        sort: Optional[List[Tuple[str, int]]] = None,
        skip: int = 0,
        limit: int = 0,
    ) -> List[Dict]:
        """Get all documents from a collection with optional filtering"""
        filter_query = filter_query or {}
        try:
            cursor = self.collection(collection_name).find(filter_query, session=self.session)
            if sort:
                cursor = cursor.sort(sort)
            if skip:
                cursor = cursor.skip(skip)
            if limit:
                cursor = cursor.limit(limit)
            documents = await cursor.to_list(length=limit or None)
        except PyMongoError as e:
            raise StoreFailure(f"Read from '{collection_name}' failed: {e}", collection=collection_name)
        return [_stringify(doc) for doc in documents]

    async def get_by_id(self, collection_name: str, doc_id: str) -> Optional[Dict]:
        """Get a single document by ID"""
        oid = _object_id(doc_id)
        if oid is None:
            return None
        return await self.get_one(collection_name, {"_id": oid})

    async def get_one(self, collection_name: str, filter_query: Dict) -> Optional[Dict]:
        """Get a single document by filter query"""
        try:
            document = await self.collection(collection_name).find_one(filter_query, session=self.session)
        except PyMongoError as e:
            raise StoreFailure(f"Read from '{collection_name}' failed: {e}", collection=collection_name)
        return _stringify(document)

    async def create(self, collection_name: str, document: Dict) -> Dict:
        """Create a new document"""
        document = dict(document)
        now = datetime.now(timezone.utc)
        document.setdefault("created_at", now)
        document["updated_at"] = now
        try:
            result = await self.collection(collection_name).insert_one(document, session=self.session)
        except PyMongoError as e:
            raise StoreFailure(f"Write to '{collection_name}' failed: {e}", collection=collection_name)
        document["_id"] = str(result.inserted_id)
        return document

    async def update(
        self,
        collection_name: str,
        doc_id: str,
        update_data: Dict,
        extra_filter: Optional[Dict] = None,
    ) -> Optional[Dict]:
        """Update a document by ID; ``extra_filter`` turns it into a compare-and-set"""
        oid = _object_id(doc_id)
        if oid is None:
            return None
        update_data = dict(update_data)
        update_data["updated_at"] = datetime.now(timezone.utc)
        query = {"_id": oid, **(extra_filter or {})}
        try:
            result = await self.collection(collection_name).find_one_and_update(
                query,
                {"$set": update_data},
                return_document=ReturnDocument.AFTER,
                session=self.session,
            )
        except PyMongoError as e:
            raise StoreFailure(f"Write to '{collection_name}' failed: {e}", collection=collection_name)
        return _stringify(result)

    async def delete(self, collection_name: str, doc_id: str) -> bool:
        """Delete a document by ID"""
        oid = _object_id(doc_id)
        if oid is None:
            return False
        try:
            result = await self.collection(collection_name).delete_one({"_id": oid}, session=self.session)
        except PyMongoError as e:
            raise StoreFailure(f"Delete from '{collection_name}' failed: {e}", collection=collection_name)
        return result.deleted_count > 0


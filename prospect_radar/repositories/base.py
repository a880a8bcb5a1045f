"""
Generic Repository Base Class
Shared async read/write helpers over a MongoDB collection.
"""
from typing import Generic, TypeVar, Type, Optional, List, Dict, Any
from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from bson import ObjectId
from bson.errors import InvalidId
import datetime as dt

from ..models.base import MongoBaseModel
from ..utils.observability import logger

T = TypeVar("T", bound=MongoBaseModel)


class BaseRepository(Generic[T]):
    """
    Generic async repository for MongoDB collections.
    Every query the engine's collaborators issue is scoped by organization.

    Usage:
        class ContactRepository(BaseRepository[Contact]):
            def __init__(self, database: AsyncIOMotorDatabase):
                super().__init__(database, "contacts", Contact)
    """

    def __init__(
        self,
        database: AsyncIOMotorDatabase,
        collection_name: str,
        model_class: Type[T]
    ):
        """
        Initialize repository with database connection and model type.

        Args:
            database: Motor database instance
            collection_name: MongoDB collection name
            model_class: Pydantic model class for type safety
        """
        self.database = database
        self.collection: AsyncIOMotorCollection = database[collection_name]
        self.model_class = model_class
        self.collection_name = collection_name

    async def find_one(self, filter_dict: Dict[str, Any]) -> Optional[T]:
        """
        Retrieve the first document matching the filter.

        Returns:
            Domain model instance or None if not found
        """
        doc = await self.collection.find_one(filter_dict)

        if doc is None:
            return None

        return self._to_model(doc)

    async def find_by_id(self, document_id: str, organization_id: str) -> Optional[T]:
        """
        Retrieve a document by ObjectId inside one organization.
        Malformed ids are treated as not found.
        """
        try:
            object_id = ObjectId(document_id)
        except (InvalidId, TypeError):
            logger.debug(f"Invalid id for {self.collection_name}: {document_id}")
            return None

        return await self.find_one({"_id": object_id, "organization_id": organization_id})

    async def find_many(
        self,
        filter_dict: Dict[str, Any],
        limit: Optional[int] = 100,
        skip: int = 0,
        sort: Optional[List[tuple]] = None
    ) -> List[T]:
        """
        Retrieve multiple documents matching the filter.

        Args:
            filter_dict: MongoDB query filter
            limit: Maximum number of documents to return (None for all)
            skip: Number of documents to skip (pagination)
            sort: List of (field, direction) tuples for sorting

        Returns:
            List of domain model instances
        """
        cursor = self.collection.find(filter_dict)

        if sort:
            cursor = cursor.sort(sort)
        if skip:
            cursor = cursor.skip(skip)
        if limit:
            cursor = cursor.limit(limit)

        docs = await cursor.to_list(length=limit)

        return [self._to_model(doc) for doc in docs]

    async def count(self, filter_dict: Optional[Dict[str, Any]] = None) -> int:
        """Count documents matching the filter."""
        return await self.collection.count_documents(filter_dict or {})

    async def bulk_create(self, documents: List[T]) -> List[T]:
        """
        Insert multiple documents in a single operation.

        Returns:
            List of created documents with `id` populated
        """
        if not documents:
            return []

        now = dt.datetime.now(dt.UTC)

        doc_dicts = []
        for doc in documents:
            doc.created_at = now
            doc.updated_at = now
            doc_dicts.append(doc.model_dump(by_alias=True, exclude={"id"}))

        result = await self.collection.insert_many(doc_dicts)

        for doc, inserted_id in zip(documents, result.inserted_ids):
            doc.id = str(inserted_id)

        logger.debug(
            f"Bulk created documents in {self.collection_name}",
            extra={"count": len(documents)}
        )

        return documents

    def _to_model(self, doc: Dict[str, Any]) -> T:
        """
        Convert a MongoDB document to a model instance,
        dropping fields the model does not declare.
        """
        if "_id" in doc:
            doc["_id"] = str(doc["_id"])

        model_fields = self.model_class.model_fields.keys()

        cleaned_doc = {
            k: v for k, v in doc.items()
            if k in model_fields or k == "_id"
        }

        return self.model_class.model_validate(cleaned_doc)

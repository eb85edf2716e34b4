"""
Parcel Delivery Server — Document Store Adapter
=================================================

What:  Async MongoDB client lifecycle, the DocumentStore adapter, and the
       FastAPI dependency that hands the store to route handlers.
How:   One AsyncMongoClient is created at startup, pinged, wrapped in a
       DocumentStore and kept on app.state for the life of the process.
       Handlers receive it through Depends(get_store).
Who:   Used by services; created and closed by the lifespan in main.py.

Adapter contract (per collection):
    insert_one(collection, document)            → InsertOneResult
    find(collection, filter, sort)              → list of documents
    find_by_id(collection, id)                  → document  (NotFoundError)
    update_by_id(collection, id, fields)        → UpdateResult (NotFoundError)
    delete_by_id(collection, id)                → DeleteResult (NotFoundError)
    upsert_one(collection, filter, fields)      → UpdateResult (upserted_id when created)

    Identifiers are ObjectId hex strings. A string that does not parse as an
    ObjectId is treated exactly like an id that matches nothing.
    Why: a malformed id can never name a stored document, so it is a 404
    for the caller, not a driver error.

Error translation:
    Every PyMongoError raised by the driver is wrapped in DatabaseError,
    so callers see only the application exception hierarchy.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence, Tuple

from bson import ObjectId
from bson.errors import InvalidId
from fastapi import Request
from pymongo import ASCENDING, DESCENDING, AsyncMongoClient
from pymongo.errors import PyMongoError
from pymongo.server_api import ServerApi

from parcel_server.config import settings
from parcel_server.exceptions import DatabaseError, NotFoundError

logger = logging.getLogger(__name__)


# ── Collection Names ──────────────────────────────────────────────────────
USERS = "users"
PARCELS = "parcels"
RIDERS = "riders"
TRANSACTIONS = "transactions"
TRACKINGS = "trackings"

# Indexes created by ensure_indexes(): (collection, keys, options)
INDEXES: List[Tuple[str, List[Tuple[str, int]], Dict[str, Any]]] = [
    (USERS, [("email", ASCENDING)], {"unique": True}),
    (PARCELS, [("created_by", ASCENDING), ("creation_date", DESCENDING)], {}),
    (RIDERS, [("status", ASCENDING)], {}),
    (TRANSACTIONS, [("email", ASCENDING), ("createdAt", DESCENDING)], {}),
    (TRACKINGS, [("trackingId", ASCENDING), ("timestamp", DESCENDING)], {}),
]

SortSpec = Sequence[Tuple[str, int]]


def parse_object_id(value: str) -> Optional[ObjectId]:
    """Returns the ObjectId for a hex string, or None when it is malformed."""
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


class DocumentStore:
    """
    Thin async adapter over one MongoDB database.

    The store owns no per-request state; a single instance is shared by all
    in-flight requests and relies on the driver's connection pool.
    """

    def __init__(self, client: Any, database_name: str, use_transactions: bool = False):
        self.client = client
        self.db = client[database_name]
        self.use_transactions = use_transactions

    # ── Lifecycle ─────────────────────────────────────────────────────────

    async def ping(self) -> None:
        """Round-trip to the server; raises DatabaseError if unreachable."""
        try:
            await self.client.admin.command("ping")
        except PyMongoError as e:
            raise DatabaseError(
                message="Could not connect to the database",
                context={"error_type": type(e).__name__, "detail": str(e)},
            ) from e

    async def supports_transactions(self) -> bool:
        """
        True when the server is a replica set member or a mongos router.

        Why: Standalone servers reject multi-document transactions, so a
             transaction-wrapped write there fails on every request.
        """
        try:
            hello = await self.client.admin.command("hello")
        except PyMongoError as e:
            raise DatabaseError(
                message="Could not read the server topology",
                context={"error_type": type(e).__name__, "detail": str(e)},
            ) from e
        return bool(hello.get("setName")) or hello.get("msg") == "isdbgrid"

    async def ensure_indexes(self) -> None:
        """Creates the lookup indexes used by the list endpoints."""
        try:
            for collection, keys, options in INDEXES:
                await self.db[collection].create_index(keys, **options)
        except PyMongoError as e:
            raise DatabaseError(
                message="Could not create database indexes",
                context={"error_type": type(e).__name__, "detail": str(e)},
            ) from e
        logger.info("Ensured %d collection indexes", len(INDEXES))

    async def close(self) -> None:
        await self.client.close()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[Any]:
        """
        Multi-document transaction scope.

        Yields a driver session to pass as `session=` to each write, or None
        when transactions are disabled (writes then commit individually).
        The transaction commits when the block exits cleanly and aborts if
        it raises.

        Why: Recording a payment is two writes (transaction insert, parcel
             update); inside one transaction a failure between them cannot
             leave a recorded payment on an unpaid parcel.
        """
        if not self.use_transactions:
            yield None
            return

        try:
            async with self.client.start_session() as session:
                async with await session.start_transaction():
                    yield session
        except PyMongoError as e:
            logger.error("Transaction failed: %s", str(e))
            raise DatabaseError(
                context={"error_type": type(e).__name__, "operation": "transaction"},
            ) from e

    # ── CRUD ──────────────────────────────────────────────────────────────

    async def insert_one(
        self, collection: str, document: Dict[str, Any], session: Any = None
    ) -> Any:
        try:
            return await self.db[collection].insert_one(document, session=session)
        except PyMongoError as e:
            raise self._wrap(e, collection, "insert_one")

    async def find(
        self,
        collection: str,
        filter: Optional[Dict[str, Any]] = None,
        sort: Optional[SortSpec] = None,
    ) -> List[Dict[str, Any]]:
        """
        Returns every document equal to `filter`, ordered by `sort`.

        Args:
            filter: Equality filter map; None or {} matches all documents
            sort:   (field, ASCENDING|DESCENDING) pairs, applied in order
        """
        try:
            cursor = self.db[collection].find(filter or {})
            if sort:
                cursor = cursor.sort(list(sort))
            return await cursor.to_list(length=None)
        except PyMongoError as e:
            raise self._wrap(e, collection, "find")

    async def find_by_id(self, collection: str, doc_id: str) -> Dict[str, Any]:
        oid = self._require_id(collection, doc_id)
        try:
            document = await self.db[collection].find_one({"_id": oid})
        except PyMongoError as e:
            raise self._wrap(e, collection, "find_one")

        if document is None:
            raise NotFoundError(resource=self._resource(collection), resource_id=doc_id)
        return document

    async def update_by_id(
        self,
        collection: str,
        doc_id: str,
        fields: Dict[str, Any],
        session: Any = None,
    ) -> Any:
        """Applies a $set patch of `fields` to one document."""
        oid = self._require_id(collection, doc_id)
        try:
            result = await self.db[collection].update_one(
                {"_id": oid}, {"$set": fields}, session=session
            )
        except PyMongoError as e:
            raise self._wrap(e, collection, "update_one")

        if result.matched_count == 0:
            raise NotFoundError(resource=self._resource(collection), resource_id=doc_id)
        return result

    async def delete_by_id(self, collection: str, doc_id: str) -> Any:
        oid = self._require_id(collection, doc_id)
        try:
            result = await self.db[collection].delete_one({"_id": oid})
        except PyMongoError as e:
            raise self._wrap(e, collection, "delete_one")

        if result.deleted_count == 0:
            raise NotFoundError(resource=self._resource(collection), resource_id=doc_id)
        return result

    async def upsert_one(
        self,
        collection: str,
        filter: Dict[str, Any],
        fields: Dict[str, Any],
        on_insert: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """
        Single-round-trip upsert: `fields` are $set on every call, `on_insert`
        only when the document is created.

        Returns:
            UpdateResult; `upserted_id` is set only when a document was created.

        Why: A find-then-insert pair lets two concurrent callers both miss and
             both insert, and the second insert fails on the unique index.
        """
        update: Dict[str, Any] = {"$set": fields}
        if on_insert:
            update["$setOnInsert"] = on_insert
        try:
            return await self.db[collection].update_one(filter, update, upsert=True)
        except PyMongoError as e:
            raise self._wrap(e, collection, "upsert_one")

    # ── Helpers ───────────────────────────────────────────────────────────

    def _require_id(self, collection: str, doc_id: str) -> ObjectId:
        oid = parse_object_id(doc_id)
        if oid is None:
            raise NotFoundError(resource=self._resource(collection), resource_id=doc_id)
        return oid

    @staticmethod
    def _resource(collection: str) -> str:
        # "parcels" → "parcel"
        return collection[:-1] if collection.endswith("s") else collection

    @staticmethod
    def _wrap(error: PyMongoError, collection: str, operation: str) -> DatabaseError:
        logger.error(
            "Database error during %s on %s: %s", operation, collection, str(error)
        )
        return DatabaseError(
            context={
                "collection": collection,
                "operation": operation,
                "error_type": type(error).__name__,
            },
        )


# ── Client Factory ────────────────────────────────────────────────────────

def create_client(url: Optional[str] = None) -> AsyncMongoClient:
    """
    Builds the process-wide client with the Stable API v1 in strict mode.

    The client connects lazily; DocumentStore.ping() forces the first
    round-trip so that a bad URL or unreachable cluster fails at startup.
    """
    return AsyncMongoClient(
        url or settings.mongodb_url,
        server_api=ServerApi("1", strict=True, deprecation_errors=True),
        serverSelectionTimeoutMS=settings.db_server_selection_timeout_ms,
        appname=settings.db_app_name,
        tz_aware=True,
    )


async def connect_store() -> DocumentStore:
    """Creates the client, verifies connectivity and prepares indexes."""
    client = create_client()
    store = DocumentStore(
        client, settings.db_name, use_transactions=settings.db_use_transactions
    )
    try:
        await store.ping()
        if settings.db_create_indexes:
            await store.ensure_indexes()
        if store.use_transactions and not await store.supports_transactions():
            logger.warning(
                "DB_USE_TRANSACTIONS is set but the server is a standalone mongod; "
                "payment writes will commit individually"
            )
            store.use_transactions = False
    except DatabaseError:
        await client.close()
        raise
    logger.info("Connected to MongoDB database '%s'", settings.db_name)
    return store


# ── Store Dependency ──────────────────────────────────────────────────────

def get_store(request: Request) -> DocumentStore:
    """
    FastAPI dependency returning the store opened by the lifespan.

    Example usage in a route:
        @router.get("/parcels")
        async def list_parcels(store: DocumentStore = Depends(get_store)):
            return await parcel_service.list_parcels(store, email=None)
    """
    return request.app.state.store

"""Mongo Tabular Store - tables as one collection each plus a metadata collection"""
from typing import Any, Callable, List, Tuple
from pymongo import ASCENDING, ReturnDocument
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from .mongo_client import get_collection
from .tabular_store import TabularStore, from_cell_value
from ..utils.logger import get_logger

logger = get_logger(__name__)

META_COLLECTION = "tabular_tables"
ROW_COLLECTION_PREFIX = "table_"


class MongoTabularStore(TabularStore):
    """
    Tabular store backed by MongoDB.

    Metadata document per table: {_id: <table>, header: [...], next_position: n}.
    Row documents: {position: n, values: [...]}, unique on position.
    Append reserves a position with an atomic $inc on the metadata document,
    so concurrent appends never collide.
    """

    def __init__(self, collection_factory: Callable[[str], Collection] = get_collection):
        self._collection_factory = collection_factory
        self._meta: Collection = collection_factory(META_COLLECTION)

    def _rows(self, table: str) -> Collection:
        return self._collection_factory(f"{ROW_COLLECTION_PREFIX}{table}")

    def table_exists(self, table: str) -> bool:
        return self._meta.count_documents({"_id": table}, limit=1) > 0

    def create_table(self, table: str) -> None:
        self._meta.update_one(
            {"_id": table},
            {"$setOnInsert": {"header": [], "next_position": 0}},
            upsert=True
        )
        try:
            self._rows(table).create_index([("position", ASCENDING)], unique=True)
        except PyMongoError as e:
            logger.warning(f"Failed to create row index for {table}: {e}", extra={"table": table})
        logger.info(f"Created table {table}", extra={"table": table})

    def get_header(self, table: str) -> List[str]:
        doc = self._meta.find_one({"_id": table}, {"header": 1})
        if doc is None:
            raise KeyError(f"Table not found: {table}")
        return [str(name) for name in doc.get("header") or []]

    def set_header(self, table: str, header: List[str]) -> None:
        self._meta.update_one({"_id": table}, {"$set": {"header": list(header)}})

    def get_rows(self, table: str) -> List[Tuple[int, List[Any]]]:
        cursor = self._rows(table).find({}, {"_id": 0, "position": 1, "values": 1}).sort("position", ASCENDING)
        return [
            (int(doc["position"]), [from_cell_value(v) for v in doc.get("values") or []])
            for doc in cursor
        ]

    def set_row(self, table: str, position: int, values: List[Any]) -> None:
        self._rows(table).update_one(
            {"position": position},
            {"$set": {"values": list(values)}},
            upsert=True
        )

    def append_row(self, table: str, values: List[Any]) -> int:
        meta = self._meta.find_one_and_update(
            {"_id": table},
            {"$inc": {"next_position": 1}},
            return_document=ReturnDocument.BEFORE
        )
        if meta is None:
            raise KeyError(f"Table not found: {table}")
        position = int(meta.get("next_position", 0))
        self._rows(table).insert_one({"position": position, "values": list(values)})
        return position

    def set_cell(self, table: str, position: int, column_index: int, value: Any) -> None:
        result = self._rows(table).update_one(
            {"position": position},
            {"$set": {f"values.{column_index}": value}}
        )
        if result.matched_count == 0:
            raise IndexError(f"No row at position {position} in {table}")

    def ping(self) -> bool:
        try:
            self._meta.database.client.admin.command("ping")
            return True
        except PyMongoError as e:
            logger.error(f"Tabular store ping failed: {e}")
            return False

"""MongoDB Client - shared connections for the tabular store and the cache"""
import threading
from typing import Callable, Dict, Optional
from pymongo import MongoClient as PyMongoClient
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import ConnectionFailure

from ..config.settings import Settings, settings as default_settings
from ..utils.logger import get_logger

logger = get_logger(__name__)

# One client per URI; pymongo clients are thread-safe and pool internally
_clients: Dict[str, PyMongoClient] = {}
_clients_lock = threading.Lock()


def get_client(settings: Optional[Settings] = None) -> PyMongoClient:
    """Get or create the client for the configured URI"""
    settings = settings or default_settings
    uri = settings.mongo_uri
    with _clients_lock:
        client = _clients.get(uri)
        if client is not None:
            return client

        logger.info(f"Connecting to MongoDB database {settings.mongo_db}")
        client = PyMongoClient(
            uri,
            serverSelectionTimeoutMS=5000,
            connectTimeoutMS=5000,
            socketTimeoutMS=30000,
            tz_aware=True,
        )
        try:
            client.admin.command("ping")
        except ConnectionFailure as e:
            client.close()
            logger.error(f"MongoDB connection failed: {e}")
            raise
        _clients[uri] = client
        return client


def get_database(settings: Optional[Settings] = None) -> Database:
    settings = settings or default_settings
    return get_client(settings)[settings.mongo_db]


def get_collection(name: str, settings: Optional[Settings] = None) -> Collection:
    """Get a collection from the configured database"""
    return get_database(settings)[name]


def collection_factory(settings: Optional[Settings] = None) -> Callable[[str], Collection]:
    """Collection lookup bound to one settings object, for the Mongo-backed stores"""
    def factory(name: str) -> Collection:
        return get_collection(name, settings)
    return factory


def close_connection() -> None:
    """Close every open MongoDB client"""
    with _clients_lock:
        for client in _clients.values():
            client.close()
        closed = len(_clients)
        _clients.clear()
    if closed:
        logger.info("MongoDB connection closed")

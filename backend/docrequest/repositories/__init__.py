"""Repository modules - Data access layer"""
from .tabular_store import TabularStore, InMemoryTabularStore
from .mongo_store import MongoTabularStore
from .table_adapter import TableAdapter
from .schema import SchemaManager, REQUESTS, ADMINS, AUDIT_LOG
from .cache_store import CacheStore, InMemoryCacheStore, MongoCacheStore
from .request_repo import RequestRepository
from .admin_repo import AdminRepository
from .audit_repo import AuditRepository

__all__ = [
    "TabularStore",
    "InMemoryTabularStore",
    "MongoTabularStore",
    "TableAdapter",
    "SchemaManager",
    "REQUESTS",
    "ADMINS",
    "AUDIT_LOG",
    "CacheStore",
    "InMemoryCacheStore",
    "MongoCacheStore",
    "RequestRepository",
    "AdminRepository",
    "AuditRepository",
]

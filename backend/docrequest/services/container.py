"""Service Container - wires stores, repositories and services for one process"""
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from .admin_auth_service import AdminAuthService
from .admin_request_service import AdminRequestService
from .identity_client import IdentityClient, build_identity_client
from .notification_service import NotificationService, PushSender
from .push_client import LinePushClient
from .token_verifier import TokenVerifier
from ..config.settings import Settings, settings as default_settings
from ..domain.enums import StoreBackend
from ..engine.audit_writer import AuditWriter
from ..engine.draft_engine import DraftEngine
from ..engine.lock_registry import OwnerLockRegistry
from ..engine.rate_limiter import RateLimiter
from ..repositories.admin_repo import AdminRepository
from ..repositories.audit_repo import AuditRepository
from ..repositories.cache_store import CacheStore, InMemoryCacheStore, MongoCacheStore
from ..repositories.mongo_client import collection_factory
from ..repositories.mongo_store import MongoTabularStore
from ..repositories.request_repo import RequestRepository
from ..repositories.schema import SchemaManager
from ..repositories.table_adapter import TableAdapter
from ..repositories.tabular_store import InMemoryTabularStore, TabularStore
from ..utils.logger import get_logger

logger = get_logger(__name__)

Clock = Callable[[], float]


@dataclass
class ServiceContainer:
    settings: Settings
    store: TabularStore
    cache: CacheStore
    schema: SchemaManager
    audit: AuditWriter
    requests: RequestRepository
    admins: AdminRepository
    rate_limiter: RateLimiter
    locks: OwnerLockRegistry
    drafts: DraftEngine
    notifications: NotificationService
    verifier: TokenVerifier
    admin_auth: AdminAuthService
    admin_requests: AdminRequestService
    push_client: Any = None
    identity_client: Any = None

    def close(self) -> None:
        """Release HTTP clients owned by this container"""
        for client in (self.push_client, self.identity_client):
            close = getattr(client, "close", None)
            if callable(close):
                close()


def _build_store(settings: Settings) -> TabularStore:
    backend = settings.store_backend.strip().lower()
    if backend == StoreBackend.MEMORY.value:
        return InMemoryTabularStore()
    return MongoTabularStore(collection_factory(settings))


def _build_cache(settings: Settings, clock: Clock) -> CacheStore:
    if settings.cache_backend.strip().lower() == StoreBackend.MONGO.value:
        return MongoCacheStore(collection_factory(settings), clock=clock)
    return InMemoryCacheStore(clock=clock)


def build_container(
    settings: Optional[Settings] = None,
    store: Optional[TabularStore] = None,
    cache: Optional[CacheStore] = None,
    identity_client: Optional[IdentityClient] = None,
    push_client: Optional[PushSender] = None,
    clock: Optional[Clock] = None
) -> ServiceContainer:
    """
    Build every service from settings.

    Stores and clients may be injected; anything left out is created from
    the configured backends. The clock drives the cache, the rate limiter,
    token expiry checks and draft timestamps alike.
    """
    settings = settings or default_settings
    clock = clock or time.time

    def now() -> datetime:
        return datetime.fromtimestamp(clock(), tz=timezone.utc)

    store = store if store is not None else _build_store(settings)
    cache = cache if cache is not None else _build_cache(settings, clock)
    identity_client = identity_client if identity_client is not None else build_identity_client(settings)
    push_client = push_client if push_client is not None else LinePushClient(settings)

    adapter = TableAdapter(store)
    audit = AuditWriter(AuditRepository(adapter), settings)
    adapter.set_drift_listener(audit.write_schema_mismatch)
    schema = SchemaManager(adapter)

    requests = RequestRepository(adapter)
    admins = AdminRepository(adapter)
    rate_limiter = RateLimiter(cache, clock=clock)
    locks = OwnerLockRegistry(settings.draft_lock_timeout_seconds)
    notifications = NotificationService(push_client, audit, settings)

    drafts = DraftEngine(
        requests, schema, rate_limiter, locks, notifications, audit, settings, now=now
    )
    verifier = TokenVerifier(identity_client, cache, settings, clock=clock)
    admin_auth = AdminAuthService(verifier, admins, rate_limiter, schema, audit, settings)
    admin_requests = AdminRequestService(admin_auth, requests, audit, settings)

    logger.info(
        f"Services ready (store={type(store).__name__}, cache={type(cache).__name__})"
    )
    return ServiceContainer(
        settings=settings,
        store=store,
        cache=cache,
        schema=schema,
        audit=audit,
        requests=requests,
        admins=admins,
        rate_limiter=rate_limiter,
        locks=locks,
        drafts=drafts,
        notifications=notifications,
        verifier=verifier,
        admin_auth=admin_auth,
        admin_requests=admin_requests,
        push_client=push_client,
        identity_client=identity_client,
    )

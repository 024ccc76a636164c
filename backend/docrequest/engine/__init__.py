"""Draft Engine - section saves, progress and their guards"""
from .draft_engine import DraftEngine
from .rate_limiter import RateLimiter
from .lock_registry import OwnerLockRegistry
from .audit_writer import AuditWriter

__all__ = [
    "DraftEngine",
    "RateLimiter",
    "OwnerLockRegistry",
    "AuditWriter",
]

"""Utility modules"""
from .logger import get_logger, setup_logging
from .idgen import generate_correlation_id, stable_request_id, token_fingerprint, token_ref
from .time import utc_now, format_iso

__all__ = [
    "get_logger",
    "setup_logging",
    "generate_correlation_id",
    "stable_request_id",
    "token_fingerprint",
    "token_ref",
    "utc_now",
    "format_iso",
]

"""ID Generation Utilities"""
import hashlib
import uuid
from datetime import datetime, timezone


REQUEST_ID_PREFIX = "req_"


def stable_request_id(owner_id: str) -> str:
    """
    Deterministic request ID for an owner's single draft

    Examples:
        >>> stable_request_id('U123')
        'req_U123'
    """
    return f"{REQUEST_ID_PREFIX}{owner_id}"


def sha256_hex(value: str) -> str:
    """Hex SHA-256 digest of a UTF-8 string"""
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def token_fingerprint(raw_token: str) -> str:
    """Stable, non-reversible fingerprint of a bearer token (40 hex chars)"""
    return sha256_hex(raw_token)[:40]


def token_ref(raw_token: str) -> str:
    """Short reference to a token for logs: its last 6 characters"""
    return raw_token[-6:] if raw_token else ""


def generate_correlation_id() -> str:
    """
    Generate a correlation ID for request tracing

    Returns:
        Correlation ID string with timestamp prefix
    """
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
    unique_part = uuid.uuid4().hex[:8]
    return f"COR-{timestamp}-{unique_part}"

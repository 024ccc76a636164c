"""
Admin Auth Service - the single authorization chokepoint for admin operations

Order of checks: input presence, rate limit, schema readiness, token
verification, email policy, allow-list. A failed verification stops before
the allow-list is consulted.
"""
from typing import Any, Dict, Optional

from .token_verifier import TokenVerifier
from ..config.settings import Settings, settings as default_settings
from ..domain.enums import AdminRole, AuditAction
from ..domain.errors import (
    DomainError,
    NotAuthorizedError,
    NotFoundError,
    PolicyNotConfiguredError,
    RateLimitError,
)
from ..domain.models import AdminAuthContext
from ..engine.audit_writer import AuditWriter
from ..engine.rate_limiter import RateLimiter
from ..repositories.admin_repo import AdminRepository
from ..repositories.schema import SchemaManager
from ..utils.logger import get_logger
from ..utils.text import truncate

logger = get_logger(__name__)

CUSTOMER_ROLE = "customer"
UNKNOWN_ROLE = "unknown"


def normalize_admin_error(exc: Exception) -> DomainError:
    """
    Collapse any failure on an admin path into what callers may see.

    Rate limiting, a missing email policy and not-found pass through;
    everything else becomes NOT_AUTHORIZED with the original code kept as
    the reason.
    """
    if isinstance(exc, NotAuthorizedError):
        return exc
    if isinstance(exc, NotFoundError):
        return NotFoundError("Request not found")
    if isinstance(exc, (RateLimitError, PolicyNotConfiguredError)):
        return exc
    if isinstance(exc, DomainError):
        return NotAuthorizedError(
            exc.error_code,
            details={"original_status": exc.http_status, "original_code": exc.error_code},
        )
    return NotAuthorizedError("INTERNAL_ERROR", details={"original_code": "INTERNAL_ERROR"})


def failure_code(exc: DomainError) -> str:
    """Reason code for audits: the precise cause where one is known"""
    return getattr(exc, "reason_code", "") or exc.error_code


class AdminAuthService:
    """Authorizes admin callers against a verified token and the allow-list"""

    def __init__(
        self,
        verifier: TokenVerifier,
        admin_repo: AdminRepository,
        rate_limiter: RateLimiter,
        schema: SchemaManager,
        audit_writer: AuditWriter,
        settings: Optional[Settings] = None
    ):
        self.verifier = verifier
        self.admin_repo = admin_repo
        self.rate_limiter = rate_limiter
        self.schema = schema
        self.audit = audit_writer
        self.settings = settings or default_settings

    def verify_admin_context(self, actor_id: Any, raw_token: Any, action_name: str) -> AdminAuthContext:
        """Authorize one admin call; raises on any denial"""
        owner_id = truncate(str(actor_id or "").strip(), 120)
        token = str(raw_token or "").strip()
        if not owner_id or not token:
            raise NotAuthorizedError("MISSING_ADMIN_AUTH")

        self.rate_limiter.enforce(
            f"admin:{(action_name or 'auth').strip().lower()}",
            owner_id,
            self.settings.admin_auth_rate_limit_count,
            self.settings.admin_auth_rate_limit_window_seconds,
        )

        self.schema.ensure_ready()

        claims = self.verifier.verify(token)
        self.verifier.enforce_email_policy(claims.email)

        fingerprint = {
            "verified_email": claims.email,
            "token_hash": claims.token_hash,
            "token_ref": claims.token_ref,
        }
        entry = self.admin_repo.get_entry(owner_id)
        if entry is None or not entry.is_active:
            raise NotAuthorizedError("ALLOWLIST_DENIED", details=fingerprint)
        if entry.email and entry.email != claims.email:
            raise NotAuthorizedError("ALLOWLIST_EMAIL_MISMATCH", details=fingerprint)

        return AdminAuthContext(
            email=claims.email,
            name=claims.name,
            picture=claims.picture,
            role=entry.role or AdminRole.ADMIN.value,
            token_hash=claims.token_hash,
            token_ref=claims.token_ref,
            from_cache=claims.from_cache,
        )

    def login(self, actor_id: Any, raw_token: Any, client_ts: Any = "") -> Dict[str, Any]:
        """Admin sign-in; audited on success and failure"""
        owner_id = truncate(str(actor_id or "").strip(), 120)
        client_ts = truncate(client_ts, 80)
        verify_mode = self.settings.google_idtoken_verify_mode
        try:
            context = self.verify_admin_context(owner_id, raw_token, "admin_login")
        except Exception as e:
            error = normalize_admin_error(e)
            meta: Dict[str, Any] = {
                "code": failure_code(error),
                "message": error.message,
                "verify_mode": verify_mode,
            }
            if client_ts:
                meta["client_ts"] = client_ts
            self.audit.write(AuditAction.ADMIN_LOGIN_FAIL, owner_id, "", meta)
            logger.warning(
                f"Admin login denied: {failure_code(error)}",
                extra={"actor_id": owner_id, "reason_code": failure_code(error)}
            )
            raise error from e

        meta = {
            "code": "ADMIN_LOGIN_SUCCESS",
            "email": context.email,
            "role": context.role,
            "verify_mode": verify_mode,
            "token_ref": context.token_ref,
            "token_hash": context.token_hash,
            "token_from_cache": context.from_cache,
        }
        if client_ts:
            meta["client_ts"] = client_ts
        self.audit.write(AuditAction.ADMIN_LOGIN_SUCCESS, owner_id, "", meta)
        return {
            "is_admin": True,
            "email": context.email,
            "name": context.name,
            "picture": context.picture,
            "role": context.role,
        }

    def me(self, actor_id: Any, raw_token: Any) -> Dict[str, Any]:
        """Who the verified admin caller is"""
        try:
            context = self.verify_admin_context(actor_id, raw_token, "admin_me")
        except Exception as e:
            raise normalize_admin_error(e) from e
        return {
            "actor_id": truncate(str(actor_id or "").strip(), 120),
            "is_admin": True,
            "role": context.role,
            "email": context.email,
        }

    def role_of(self, actor_id: Any) -> Dict[str, Any]:
        """Unauthenticated role lookup used by the client to pick a screen"""
        owner_id = str(actor_id or "").strip()
        if not owner_id:
            return {"role": UNKNOWN_ROLE, "is_admin": False}
        role = self.admin_repo.get_active_role(owner_id)
        if role:
            return {"role": role, "is_admin": True}
        return {"role": CUSTOMER_ROLE, "is_admin": False}

"""Token Verifier - verified, cached identity-token claims and the admin email policy"""
import time
from typing import Any, Callable, Optional

from .identity_client import IdentityClient
from ..config.settings import Settings, settings as default_settings
from ..domain.errors import NotAuthorizedError, PolicyNotConfiguredError
from ..domain.models import VerifiedTokenClaims
from ..repositories.cache_store import CacheStore
from ..utils.idgen import token_fingerprint, token_ref
from ..utils.logger import get_logger
from ..utils.text import truncate

logger = get_logger(__name__)


def token_cache_key(token_hash: str) -> str:
    return f"gtok_{token_hash}"


def _as_epoch(value: Any) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return 0


class TokenVerifier:
    """
    Verifies Google ID tokens and caches the claims of good ones.

    The cache key is a hash of the token; the raw token is never stored.
    Cached claims are reused only while they are more than the expiry guard
    away from expiring. Failures are never cached.
    """

    def __init__(
        self,
        identity_client: IdentityClient,
        cache: CacheStore,
        settings: Optional[Settings] = None,
        clock: Callable[[], float] = time.time
    ):
        self.identity_client = identity_client
        self.cache = cache
        self.settings = settings or default_settings
        self._clock = clock

    def verify(self, raw_token: str) -> VerifiedTokenClaims:
        """Verify a token and return its claims"""
        token_hash = token_fingerprint(raw_token)
        reference = token_ref(raw_token)
        cache_key = token_cache_key(token_hash)
        now = int(self._clock())

        cached = self.cache.get(cache_key)
        if cached:
            cached_exp = _as_epoch(cached.get("exp"))
            if cached_exp > now + self.settings.token_cache_expiry_guard_seconds:
                return VerifiedTokenClaims(
                    email=str(cached.get("email") or "").strip().lower(),
                    name=truncate(cached.get("name"), 200),
                    picture=truncate(cached.get("picture"), 500),
                    sub=truncate(cached.get("sub"), 80),
                    exp=cached_exp,
                    token_hash=token_hash,
                    token_ref=reference,
                    from_cache=True,
                )

        claims = self.identity_client.fetch_claims(raw_token)
        fingerprint = {"token_hash": token_hash, "token_ref": reference}

        email = str(claims.get("email") or "").strip().lower()
        if not email:
            raise NotAuthorizedError("EMAIL_MISSING", details=fingerprint)
        if str(claims.get("email_verified", "")).strip().lower() != "true":
            raise NotAuthorizedError("EMAIL_NOT_VERIFIED", details=fingerprint)
        exp = _as_epoch(claims.get("exp"))
        if exp <= now:
            raise NotAuthorizedError("TOKEN_EXPIRED", details=fingerprint)

        verified = VerifiedTokenClaims(
            email=email,
            name=truncate(claims.get("name"), 200),
            picture=truncate(claims.get("picture"), 500),
            sub=truncate(claims.get("sub"), 80),
            exp=exp,
            token_hash=token_hash,
            token_ref=reference,
            from_cache=False,
        )

        ttl = min(self.settings.token_cache_ttl_seconds, exp - now)
        self.cache.put(
            cache_key,
            {
                "email": verified.email,
                "name": verified.name,
                "picture": verified.picture,
                "sub": verified.sub,
                "exp": verified.exp,
            },
            ttl,
        )
        return verified

    def enforce_email_policy(self, email: str) -> None:
        """
        Fail closed unless the email matches the allowed domain or list.

        With neither configured every admin call fails with a configuration
        error rather than an authorization denial.
        """
        normalized = str(email or "").strip().lower()
        if not normalized:
            raise NotAuthorizedError("EMAIL_MISSING")

        allowed_domain = self.settings.google_allowed_domain_normalized
        allowed_emails = self.settings.google_allowed_emails_list
        if not allowed_domain and not allowed_emails:
            raise PolicyNotConfiguredError("Google email policy is not configured.")

        domain_allowed = bool(allowed_domain) and normalized.endswith(f"@{allowed_domain}")
        if not domain_allowed and normalized not in allowed_emails:
            logger.warning("Email outside admin policy", extra={"reason_code": "EMAIL_NOT_ALLOWED"})
            raise NotAuthorizedError("EMAIL_NOT_ALLOWED", details={"verified_email": normalized})

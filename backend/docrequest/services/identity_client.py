"""Identity Clients - fetch the claims of a Google ID token"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Protocol
import httpx
import jwt
from jwt import PyJWKClient

from ..config.settings import Settings, settings as default_settings
from ..domain.enums import VerifyMode
from ..domain.errors import (
    ConfigurationError,
    IdentityServiceResponseError,
    IdentityServiceUnavailableError,
    NotAuthorizedError,
)
from ..utils.logger import get_logger
from ..utils.text import truncate

logger = get_logger(__name__)

GOOGLE_ISSUERS = ["accounts.google.com", "https://accounts.google.com"]


class IdentityClient(Protocol):
    def fetch_claims(self, raw_token: str) -> Dict[str, Any]:
        ...


class GoogleTokenInfoClient:
    """Asks Google's tokeninfo endpoint to validate a token and return its claims"""

    def __init__(self, settings: Optional[Settings] = None, client: Optional[httpx.Client] = None):
        self.settings = settings or default_settings
        self._client = client or httpx.Client()

    def fetch_claims(self, raw_token: str) -> Dict[str, Any]:
        try:
            response = self._client.get(
                self.settings.google_tokeninfo_endpoint,
                params={"id_token": raw_token}
            )
        except httpx.HTTPError as e:
            logger.error(f"Token verification service unreachable: {e}")
            raise IdentityServiceUnavailableError(
                "Google token verification service is unavailable."
            ) from e

        if not 200 <= response.status_code < 300:
            raise NotAuthorizedError(
                "TOKEN_INVALID",
                details={
                    "google_status_code": response.status_code,
                    "google_body": truncate(response.text, 500),
                }
            )

        try:
            claims = response.json()
        except ValueError as e:
            raise IdentityServiceResponseError(
                "Invalid response from Google token verification."
            ) from e
        return claims if isinstance(claims, dict) else {}

    def close(self) -> None:
        self._client.close()


class GoogleJwksClient:
    """
    Verifies the token signature locally against Google's published keys.

    Signature, audience, issuer and expiry are checked by PyJWT.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or default_settings
        self._jwks_client: Optional[PyJWKClient] = None
        self._jwks_cache_time: Optional[datetime] = None
        self._cache_duration = timedelta(hours=24)

    @property
    def jwks_client(self) -> PyJWKClient:
        """Get or create JWKS client with caching"""
        now = datetime.now(timezone.utc)
        if (self._jwks_client is None or
                self._jwks_cache_time is None or
                now - self._jwks_cache_time > self._cache_duration):
            self._jwks_client = PyJWKClient(self.settings.google_jwks_uri)
            self._jwks_cache_time = now
            logger.info(f"Refreshed JWKS client cache from {self.settings.google_jwks_uri}")
        return self._jwks_client

    def fetch_claims(self, raw_token: str) -> Dict[str, Any]:
        audience = self.settings.google_client_id.strip()
        if not audience:
            raise ConfigurationError(
                "GOOGLE_CLIENT_ID is required for jwks verification",
                error_code="UNSUPPORTED_VERIFY_MODE",
            )
        try:
            signing_key = self.jwks_client.get_signing_key_from_jwt(raw_token)
            return jwt.decode(
                raw_token,
                signing_key.key,
                algorithms=["RS256"],
                audience=audience,
                issuer=GOOGLE_ISSUERS,
                options={"verify_exp": True, "verify_aud": True, "verify_iss": True},
            )
        except jwt.PyJWKClientConnectionError as e:
            logger.error(f"Google signing keys unreachable: {e}")
            raise IdentityServiceUnavailableError(
                "Google token verification service is unavailable."
            ) from e
        except jwt.ExpiredSignatureError:
            raise NotAuthorizedError("TOKEN_EXPIRED")
        except jwt.PyJWTError as e:
            logger.warning(f"JWT validation error: {e}")
            raise NotAuthorizedError("TOKEN_INVALID", details={"reason": str(e)})


class UnsupportedVerifyModeClient:
    """Stands in for a misconfigured verify mode so every admin call fails closed"""

    def __init__(self, mode: str):
        self.mode = mode

    def fetch_claims(self, raw_token: str) -> Dict[str, Any]:
        raise ConfigurationError(
            f"Unsupported verify mode: {self.mode}",
            error_code="UNSUPPORTED_VERIFY_MODE",
        )


def build_identity_client(settings: Optional[Settings] = None) -> IdentityClient:
    """Identity client for the configured verify mode"""
    settings = settings or default_settings
    mode = settings.google_idtoken_verify_mode.strip().lower() or VerifyMode.TOKENINFO.value
    if mode == VerifyMode.TOKENINFO.value:
        return GoogleTokenInfoClient(settings)
    if mode == VerifyMode.JWKS.value:
        return GoogleJwksClient(settings)
    logger.error(f"Unsupported verify mode configured: {mode}")
    return UnsupportedVerifyModeClient(mode)

"""Service modules - Business logic layer"""
from .admin_auth_service import AdminAuthService
from .admin_request_service import AdminRequestService
from .container import ServiceContainer, build_container
from .identity_client import GoogleJwksClient, GoogleTokenInfoClient, build_identity_client
from .notification_service import NotificationService
from .push_client import LinePushClient
from .token_verifier import TokenVerifier

__all__ = [
    "AdminAuthService",
    "AdminRequestService",
    "ServiceContainer",
    "build_container",
    "GoogleJwksClient",
    "GoogleTokenInfoClient",
    "build_identity_client",
    "NotificationService",
    "LinePushClient",
    "TokenVerifier",
]

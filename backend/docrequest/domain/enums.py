"""Domain Enumerations - All status and type definitions"""
from enum import Enum


class DraftStatus(str, Enum):
    """Lifecycle status of a request draft"""
    DRAFT = "draft"
    READY = "ready"  # every section complete


class Section(int, Enum):
    """Form sections that can be saved (there is no section 4)"""
    OFFICE = 1
    DOCUMENTS = 2
    PAYMENT = 3
    CONTACT = 5


class AdminRole(str, Enum):
    """Roles in the admin allow-list"""
    ADMIN = "admin"


class VerifyMode(str, Enum):
    """How identity tokens are verified"""
    TOKENINFO = "tokeninfo"
    JWKS = "jwks"


class StoreBackend(str, Enum):
    """Backing implementation for tables and the short-lived cache"""
    MONGO = "mongo"
    MEMORY = "memory"


class AuditAction(str, Enum):
    """Audit actions"""
    # Draft engine
    SAVE_SECTION = "save_section"
    MAINTENANCE_BLOCKED = "maintenance_blocked"
    INPUT_TRUNCATED = "input_truncated"

    # Schema
    SCHEMA_MISMATCH = "schema_mismatch"
    STORE_INIT_FAILED = "store_init_failed"

    # Notifications
    LINE_PUSH_SENT = "line_push_sent"
    LINE_PUSH_DRY_RUN = "line_push_dry_run"
    LINE_PUSH_FAILED = "line_push_failed"
    LINE_PUSH_SKIPPED_DISABLED = "line_push_skipped_disabled"
    LINE_PUSH_SKIPPED_NO_INCREASE = "line_push_skipped_no_increase"

    # Admin
    ADMIN_LOGIN_SUCCESS = "admin_login_success"
    ADMIN_LOGIN_FAIL = "admin_login_fail"
    ADMIN_LIST_REQUESTS = "admin_list_requests"
    ADMIN_GET_REQUEST = "admin_get_request"

    # Boundary
    REQUEST_FAILED = "request_failed"

"""Domain Models - Pydantic schemas for all entities"""
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, ConfigDict

from .enums import DraftStatus


# ============================================================================
# Store
# ============================================================================

class RowRef(BaseModel):
    """A data row together with its physical position in its table"""
    position: int = Field(..., ge=0, description="Zero-based data row position")
    row: Dict[str, Any] = Field(default_factory=dict)


class SchemaReport(BaseModel):
    """Outcome of ensuring one table's header"""
    table: str
    created: bool = False
    added_columns: List[str] = Field(default_factory=list)
    missing_critical: List[str] = Field(default_factory=list)
    moved_critical: List[str] = Field(default_factory=list, description="name:1-based index")

    @property
    def has_drift(self) -> bool:
        return bool(self.missing_critical or self.moved_critical)


# ============================================================================
# Identity & Authorization
# ============================================================================

class VerifiedTokenClaims(BaseModel):
    """Claims of a verified identity token; never persisted beyond the cache"""
    email: str
    name: str = ""
    picture: str = ""
    sub: str = ""
    exp: int = Field(..., description="Expiry, epoch seconds")
    token_hash: str = Field(..., description="First 40 hex chars of sha256(token)")
    token_ref: str = Field("", description="Last 6 chars of the token")
    from_cache: bool = False


class AdminAllowlistEntry(BaseModel):
    """One row of the admin allow-list"""
    owner_id: str
    email: str = ""
    role: str = "admin"
    is_active: bool = False
    position: Optional[int] = None


class AdminAuthContext(BaseModel):
    """Result of a successful admin authorization"""
    is_admin: bool = True
    email: str
    name: str = ""
    picture: str = ""
    role: str = "admin"
    token_hash: str
    token_ref: str = ""
    from_cache: bool = False


class RateLimitResult(BaseModel):
    """Counter state after one consume"""
    allowed: bool
    count: int
    limit: int
    window_seconds: int


# ============================================================================
# Drafts
# ============================================================================

class SectionProgress(BaseModel):
    """Derived completion flags of a draft"""
    sec1_done: bool = False
    sec2_done: bool = False
    sec3_done: bool = False
    sec5_done: bool = False
    progress_percent: int = 0

    @property
    def status(self) -> DraftStatus:
        return DraftStatus.READY if self.progress_percent == 100 else DraftStatus.DRAFT


class SaveSectionResult(BaseModel):
    """Response of a section save"""
    model_config = ConfigDict(use_enum_values=True)

    request_id: str
    actor_id: str
    updated_at: str
    status: DraftStatus
    progress: SectionProgress
    changed_fields: List[str] = Field(default_factory=list)


# ============================================================================
# Notifications
# ============================================================================

class NotifyResult(BaseModel):
    """Whether the stored milestone should move forward"""
    should_advance: bool = False
    new_milestone: Optional[int] = None


class PushResult(BaseModel):
    """Outcome of one push-message call"""
    ok: bool
    status_code: int = 0
    body: str = ""
    error: Optional[str] = None


# ============================================================================
# Admin listing
# ============================================================================

class AdminListPage(BaseModel):
    """One page of the admin request listing"""
    items: List[Dict[str, Any]] = Field(default_factory=list)
    next_cursor: Optional[str] = None
    limit: int
    cursor: int
    total: int

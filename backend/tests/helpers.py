"""Fakes and helpers shared by the test modules"""
import json
from typing import Any, Dict, List

from docrequest.domain.errors import NotAuthorizedError
from docrequest.domain.models import PushResult

ADMIN_ACTOR = "U_ADMIN"
ADMIN_EMAIL = "admin@example.com"
ADMIN_TOKEN = "admin-id-token-abcdef"
VALID_TAX_ID = "1234567890121"


class FakeClock:
    """Epoch-seconds clock that only moves when told to"""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeIdentityClient:
    """Returns registered claims per token and counts verification round-trips"""

    def __init__(self):
        self.tokens: Dict[str, Dict[str, Any]] = {}
        self.calls: List[str] = []

    def register(self, token: str, **claims) -> None:
        self.tokens[token] = claims

    def fetch_claims(self, raw_token: str) -> Dict[str, Any]:
        self.calls.append(raw_token)
        if raw_token not in self.tokens:
            raise NotAuthorizedError("TOKEN_INVALID")
        return dict(self.tokens[raw_token])


class FakePushClient:
    """Records pushes instead of calling LINE"""

    def __init__(self):
        self.sent: List[Dict[str, Any]] = []
        self.ok = True
        self.status_code = 200
        self.body = "{}"

    def push(self, to: str, messages: List[Dict[str, Any]], access_token: str) -> PushResult:
        self.sent.append({"to": to, "messages": messages, "access_token": access_token})
        return PushResult(ok=self.ok, status_code=self.status_code, body=self.body)


def audit_actions(container) -> List[str]:
    """Actions of every audit record in write order"""
    return [record["action"] for record in container.audit.repo.list_all()]


def audit_records(container, action: str) -> List[Dict[str, Any]]:
    """Audit records of one action with meta_json decoded"""
    records = []
    for record in container.audit.repo.list_all():
        if record["action"] == action:
            records.append({**record, "meta": json.loads(record["meta_json"])})
    return records


def full_office_section() -> Dict[str, Any]:
    return {
        "office_name": "Siam Trading Co., Ltd.",
        "tax_invoice_address": "99 Rama IV Rd, Bangkok 10500",
        "tax_id13": VALID_TAX_ID,
        "office_phone": "021234567",
    }

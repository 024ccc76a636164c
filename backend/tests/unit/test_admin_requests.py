"""Tests for the admin listing and detail read paths"""
import pytest

from docrequest.domain.errors import MissingFieldError, NotAuthorizedError, NotFoundError
from docrequest.services.admin_request_service import (
    build_doc_summary,
    format_total_amount,
    map_admin_row,
    normalize_cursor,
    normalize_limit,
)

from tests.helpers import ADMIN_ACTOR, ADMIN_TOKEN, audit_records, full_office_section


@pytest.fixture
def seeded(admin_container, clock):
    """Three drafts saved one minute apart: U_A oldest, U_C newest"""
    for owner in ("U_A", "U_B", "U_C"):
        admin_container.drafts.save_section(owner, 5, {"contact_phone": f"08{owner}"})
        clock.advance(60)
    return admin_container


class TestHelpers:
    @pytest.mark.parametrize("raw,expected", [
        (None, 50), ("", 50), ("abc", 50), (0, 50), (-3, 50), ("10", 10), (7.9, 7), (500, 200),
    ])
    def test_normalize_limit(self, raw, expected):
        assert normalize_limit(raw, 50, 200) == expected

    @pytest.mark.parametrize("raw,expected", [
        (None, 0), ("", 0), ("x", 0), (-1, 0), ("3", 3), (2.7, 2),
    ])
    def test_normalize_cursor(self, raw, expected):
        assert normalize_cursor(raw) == expected

    def test_doc_summary(self):
        assert build_doc_summary({}) == "-"
        assert build_doc_summary({"doc_quotation": True, "doc_receipt_tax": "true"}) == (
            "ใบเสนอราคา, ใบเสร็จ/ใบกำกับภาษี"
        )

    def test_identifiers_stay_text(self):
        mapped = map_admin_row({"office_phone": 21234567, "tax_id13": "0105555000000", "doc_store": "TRUE"})
        assert mapped["office_phone"] == "21234567"
        assert mapped["tax_id13"] == "0105555000000"
        assert mapped["doc_store"] is True

    def test_total_amount_format(self):
        assert format_total_amount("") == ""
        assert format_total_amount(1500) == "1500"
        assert format_total_amount("1,250.5") == "1250.5"
        assert format_total_amount("call me") == "call me"


class TestListRequests:
    def test_pages_newest_first(self, seeded):
        service = seeded.admin_requests

        first = service.list_requests(ADMIN_ACTOR, ADMIN_TOKEN, limit=1)
        second = service.list_requests(ADMIN_ACTOR, ADMIN_TOKEN, limit=1, cursor=first.next_cursor)
        third = service.list_requests(ADMIN_ACTOR, ADMIN_TOKEN, limit=1, cursor=second.next_cursor)

        assert [page.items[0]["owner_id"] for page in (first, second, third)] == ["U_C", "U_B", "U_A"]
        assert (first.next_cursor, second.next_cursor, third.next_cursor) == ("1", "2", None)
        assert first.total == 3

    def test_list_item_projection(self, seeded):
        item = seeded.admin_requests.list_requests(ADMIN_ACTOR, ADMIN_TOKEN).items[0]
        assert item["request_id"] == "req_U_C"
        assert item["contact_phone"] == "08U_C"
        assert item["progress_percent"] == 25
        assert item["status"] == "draft"
        assert item["doc_summary"] == "-"
        assert item["updated_at"].endswith("Z")

    def test_cursor_past_the_end(self, seeded):
        page = seeded.admin_requests.list_requests(ADMIN_ACTOR, ADMIN_TOKEN, limit=10, cursor=99)
        assert page.items == []
        assert page.next_cursor is None

    def test_success_is_audited(self, seeded):
        seeded.admin_requests.list_requests(ADMIN_ACTOR, ADMIN_TOKEN, limit=2)
        extra = audit_records(seeded, "admin_list_requests")[0]["meta"]["extra"]
        assert extra["result"] == "success"
        assert extra["item_count"] == 2
        assert extra["limit"] == 2
        assert extra["next_cursor"] == "2"
        assert extra["token_from_cache"] is False

    def test_denial_is_audited_and_normalized(self, seeded):
        with pytest.raises(NotAuthorizedError):
            seeded.admin_requests.list_requests("U_A", ADMIN_TOKEN)
        record = audit_records(seeded, "admin_list_requests")[0]
        assert record["meta"]["error_code"] == "ALLOWLIST_DENIED"
        assert record["meta"]["extra"]["result"] == "fail"


class TestGetRequest:
    def test_returns_full_record(self, seeded):
        seeded.drafts.save_section("U_B", 1, full_office_section())
        seeded.drafts.save_section("U_B", 2, {"doc_quotation": True, "doc_invoice": True})

        item = seeded.admin_requests.get_request(ADMIN_ACTOR, ADMIN_TOKEN, "req_U_B")["item"]

        assert item["owner_id"] == "U_B"
        assert item["tax_id13"] == "1234567890121"
        assert item["doc_summary"] == "ใบเสนอราคา, ใบแจ้งหนี้/ใบส่งสินค้า"
        assert item["progress_percent"] == 75
        assert item["created_at"].endswith("Z")

    def test_unknown_request(self, seeded):
        with pytest.raises(NotFoundError) as exc_info:
            seeded.admin_requests.get_request(ADMIN_ACTOR, ADMIN_TOKEN, "req_nobody")
        assert exc_info.value.message == "Request not found"
        record = audit_records(seeded, "admin_get_request")[0]
        assert record["target_request_id"] == "req_nobody"
        assert record["meta"]["error_code"] == "NOT_FOUND"

    def test_missing_request_id(self, seeded):
        with pytest.raises(MissingFieldError) as exc_info:
            seeded.admin_requests.get_request(ADMIN_ACTOR, ADMIN_TOKEN, "  ")
        assert exc_info.value.error_code == "MISSING_REQUEST_ID"

    def test_requires_admin(self, seeded):
        with pytest.raises(NotAuthorizedError) as exc_info:
            seeded.admin_requests.get_request(ADMIN_ACTOR, "", "req_U_A")
        assert exc_info.value.reason_code == "MISSING_ADMIN_AUTH"

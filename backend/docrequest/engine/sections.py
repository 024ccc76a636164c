"""Section Rules - which fields each section owns, how they coerce, and what "complete" means"""
import json
from datetime import datetime
from typing import Any, Dict, List, Mapping, Tuple

from ..domain.enums import DraftStatus, Section
from ..domain.models import SectionProgress
from ..utils.tax_id import is_tax_id_checksum_ok, is_tax_id_format_ok
from ..utils.text import clamp_text, is_present, is_same_cell_value, to_bool_strict, to_number_or_blank
from ..utils.time import format_iso

# ============================================================================
# Field catalogue
# ============================================================================

SECTION_FIELDS: Dict[int, Tuple[str, ...]] = {
    Section.OFFICE.value: (
        "office_name",
        "tax_invoice_address",
        "tax_id13",
        "office_phone",
        "tax_id_format_ok",
        "tax_id_checksum_ok",
        "tax_id_verify_status",
        "tax_id_verify_note",
    ),
    Section.DOCUMENTS.value: (
        "doc_quotation",
        "doc_quotation_date",
        "doc_invoice",
        "doc_invoice_date",
        "doc_store",
        "doc_store_text",
        "doc_receipt_tax",
        "doc_receipt_tax_date",
    ),
    Section.PAYMENT.value: (
        "total_amount",
        "payment_method",
        "payment_notes",
    ),
    Section.CONTACT.value: (
        "contact_line_id",
        "contact_phone",
    ),
}

VALID_SECTIONS = tuple(SECTION_FIELDS)

BOOLEAN_FIELDS = frozenset({
    "sec1_done",
    "sec2_done",
    "sec3_done",
    "sec5_done",
    "tax_id_format_ok",
    "tax_id_checksum_ok",
    "doc_quotation",
    "doc_invoice",
    "doc_store",
    "doc_receipt_tax",
})

NUMBER_FIELDS = frozenset({
    "progress_percent",
    "last_notified_progress",
    "total_amount",
})

TEXT_MAX_LENGTHS: Dict[str, int] = {
    "office_name": 200,
    "tax_invoice_address": 200,
    "tax_id13": 13,
    "office_phone": 50,
    "tax_id_verify_status": 30,
    "tax_id_verify_note": 500,
    "doc_quotation_date": 30,
    "doc_invoice_date": 30,
    "doc_store_text": 500,
    "doc_receipt_tax_date": 30,
    "payment_method": 30,
    "payment_notes": 500,
    "contact_line_id": 50,
    "contact_phone": 50,
}
DEFAULT_TEXT_MAX_LENGTH = 500

DOC_FLAGS = ("doc_quotation", "doc_invoice", "doc_store", "doc_receipt_tax")

TAX_ID_NOT_CHECKED = "not_checked"


def parse_section(value: Any) -> int:
    """Integer section number, or -1 when the input is not a whole number"""
    if isinstance(value, bool):
        return -1
    try:
        number = float(str(value).strip())
    except (TypeError, ValueError):
        return -1
    return int(number) if number.is_integer() else -1


def is_valid_section(section: int) -> bool:
    return section in SECTION_FIELDS


# ============================================================================
# Coercion
# ============================================================================

def normalize_field_value(field: str, value: Any) -> Tuple[Any, bool]:
    """
    Coerce a client value to the field's storage type.

    Returns:
        (value, truncated) where truncated marks free text that was cut
    """
    if field in BOOLEAN_FIELDS:
        return to_bool_strict(value), False
    if field in NUMBER_FIELDS:
        return to_number_or_blank(value), False
    if value is None:
        return "", False
    if isinstance(value, (str, int, float, bool)):
        raw = str(value).lower() if isinstance(value, bool) else str(value)
    else:
        raw = json.dumps(value, ensure_ascii=False, default=str)
    return clamp_text(raw, TEXT_MAX_LENGTHS.get(field, DEFAULT_TEXT_MAX_LENGTH))


def apply_partial_update(
    target: Dict[str, Any],
    section: int,
    data: Mapping[str, Any]
) -> Tuple[List[str], List[str]]:
    """
    Copy the section's allowed fields from data into target, in place.

    Fields outside the section are ignored.

    Returns:
        (changed field names, truncated field names)
    """
    changed: List[str] = []
    truncated: List[str] = []
    for field in SECTION_FIELDS.get(section, ()):
        if field not in data:
            continue
        normalized, was_truncated = normalize_field_value(field, data[field])
        if was_truncated:
            truncated.append(field)
        if not is_same_cell_value(target.get(field), normalized):
            changed.append(field)
        target[field] = normalized
    return changed, truncated


def refresh_tax_id_checks(row: Dict[str, Any]) -> None:
    """Derive the tax ID format and checksum flags from the stored tax ID"""
    tax_id = row.get("tax_id13")
    row["tax_id_format_ok"] = is_tax_id_format_ok(tax_id)
    row["tax_id_checksum_ok"] = is_tax_id_checksum_ok(tax_id)


# ============================================================================
# Progress
# ============================================================================

def compute_progress(row: Mapping[str, Any]) -> SectionProgress:
    """Completion flags and percentage; a pure function of the row"""
    sec1_done = (
        is_present(row.get("office_name"))
        and is_present(row.get("tax_invoice_address"))
        and is_present(row.get("tax_id13"))
        and is_present(row.get("office_phone"))
        and to_bool_strict(row.get("tax_id_format_ok"))
        and to_bool_strict(row.get("tax_id_checksum_ok"))
    )
    sec2_done = any(to_bool_strict(row.get(flag)) for flag in DOC_FLAGS)
    sec3_done = is_present(row.get("total_amount")) and is_present(row.get("payment_method"))
    sec5_done = is_present(row.get("contact_phone")) or is_present(row.get("contact_line_id"))

    completed = sum(1 for done in (sec1_done, sec2_done, sec3_done, sec5_done) if done)
    return SectionProgress(
        sec1_done=sec1_done,
        sec2_done=sec2_done,
        sec3_done=sec3_done,
        sec5_done=sec5_done,
        progress_percent=round(100 * completed / 4),
    )


def apply_progress(row: Dict[str, Any], progress: SectionProgress) -> None:
    row["sec1_done"] = progress.sec1_done
    row["sec2_done"] = progress.sec2_done
    row["sec3_done"] = progress.sec3_done
    row["sec5_done"] = progress.sec5_done
    row["progress_percent"] = progress.progress_percent
    row["status"] = progress.status.value


# ============================================================================
# Rows
# ============================================================================

def default_row(owner_id: str, request_id: str, now: datetime) -> Dict[str, Any]:
    """A fresh draft with every field at its empty value"""
    row: Dict[str, Any] = {
        "request_id": request_id,
        "owner_id": owner_id,
        "status": DraftStatus.DRAFT.value,
        "progress_percent": 0,
        "last_notified_progress": 0,
        "total_amount": "",
        "created_at": now,
        "updated_at": now,
    }
    for fields in SECTION_FIELDS.values():
        for field in fields:
            row.setdefault(field, False if field in BOOLEAN_FIELDS else "")
    for flag in ("sec1_done", "sec2_done", "sec3_done", "sec5_done"):
        row[flag] = False
    row["tax_id_verify_status"] = TAX_ID_NOT_CHECKED
    return row


def normalize_draft_value(field: str, value: Any) -> Any:
    """Client-facing form of a stored value"""
    if field in BOOLEAN_FIELDS:
        return to_bool_strict(value)
    if value is None:
        return ""
    if isinstance(value, datetime):
        return format_iso(value)
    if isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


def normalize_draft_record(headers: List[str], row: Mapping[str, Any]) -> Dict[str, Any]:
    """Every header present, booleans coerced, timestamps as ISO-8601"""
    return {
        header: normalize_draft_value(header, row.get(header))
        for header in headers
        if header
    }

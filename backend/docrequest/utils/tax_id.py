"""Thai 13-digit taxpayer ID checks"""
import re

_THIRTEEN_DIGITS = re.compile(r"^\d{13}$")


def normalize_tax_id(value: object) -> str:
    """Strip everything but digits (dashes and spaces are common in input)"""
    return re.sub(r"\D", "", "" if value is None else str(value))


def is_tax_id_format_ok(value: object) -> bool:
    """Exactly 13 digits once separators are removed"""
    return bool(_THIRTEEN_DIGITS.match(normalize_tax_id(value)))


def is_tax_id_checksum_ok(value: object) -> bool:
    """
    Mod-11 check digit used by Thai citizen and taxpayer IDs.

    The first 12 digits are weighted 13 down to 2; the check digit is
    (11 - sum % 11) % 10 and must equal the 13th digit.
    """
    digits = normalize_tax_id(value)
    if not _THIRTEEN_DIGITS.match(digits):
        return False
    total = sum(int(digits[i]) * (13 - i) for i in range(12))
    check = (11 - total % 11) % 10
    return check == int(digits[12])

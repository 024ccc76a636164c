"""Text and value coercion helpers shared by the engine, audit and store layers"""
import math
from datetime import datetime
from typing import Any, Iterable, List, Tuple, Union

from .time import format_iso

TRUTHY_STRINGS = frozenset({"true", "1", "yes", "y", "on"})

Number = Union[int, float]


def truncate(value: Any, max_length: int) -> str:
    """Stringify and cut to max_length characters (None becomes empty text)"""
    text = "" if value is None else str(value)
    if max_length < 1 or len(text) <= max_length:
        return text
    return text[:max_length]


def truncate_with_marker(value: Any, max_length: int, marker: str = "...(truncated)") -> str:
    """Like truncate, but appends a marker when anything was cut"""
    text = "" if value is None else str(value)
    if max_length < 1 or len(text) <= max_length:
        return text
    return f"{text[:max_length]}{marker}"


def clamp_text(value: Any, max_length: int) -> Tuple[str, bool]:
    """
    Trim and bound a free-text value.

    Returns:
        (clamped value, whether anything beyond whitespace was cut)
    """
    trimmed = ("" if value is None else str(value)).strip()
    capped = truncate(trimmed, max_length)
    return capped, len(capped) < len(trimmed)


def to_bool_strict(value: Any) -> bool:
    """Only explicit truthy markers count as true"""
    if value is True:
        return True
    if value is None or value is False:
        return False
    if isinstance(value, (int, float)):
        return value == 1
    return str(value).strip().lower() in TRUTHY_STRINGS


def _tidy_number(number: float) -> Number:
    if number.is_integer() and abs(number) < 2 ** 53:
        return int(number)
    return number


def to_number_or_blank(value: Any) -> Union[Number, str]:
    """
    Coerce to a finite number, stripping thousands separators.

    Empty or non-numeric input becomes empty text.
    """
    if value is None or value == "" or isinstance(value, bool):
        return ""
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return ""
        return _tidy_number(number) if math.isfinite(number) else ""
    normalized = str(value).strip().replace(",", "")
    if not normalized:
        return ""
    try:
        number = float(normalized)
    except ValueError:
        return ""
    return _tidy_number(number) if math.isfinite(number) else ""


def is_present(value: Any) -> bool:
    """A value counts as filled in when it is non-blank text, a finite number or True"""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip() != ""
    if isinstance(value, (int, float)):
        return math.isfinite(value)
    return str(value).strip() != ""


def comparable(value: Any) -> str:
    """Normalize a cell value so equal content compares equal regardless of type"""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return ""
        return str(_tidy_number(float(value)))
    if isinstance(value, datetime):
        return format_iso(value)
    return str(value)


def is_same_cell_value(left: Any, right: Any) -> bool:
    if left is right:
        return True
    return comparable(left) == comparable(right)


def unique_list(items: Iterable[Any]) -> List[Any]:
    """Drop blanks and duplicates, keeping first-seen order"""
    result: List[Any] = []
    seen = set()
    for item in items:
        key = "" if item is None else str(item)
        if not key or key in seen:
            continue
        seen.add(key)
        result.append(item)
    return result

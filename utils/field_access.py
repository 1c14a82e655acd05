"""
Ordered accessors for heterogeneous supplier JSON.

ScanSource payloads spell the same field several ways (UnitPrice, unitPrice,
unit_price) and differ between search, detail and pricing endpoints. Readers
here take an ordered list of keys and return the first usable value, so the
precedence lives in one declarative tuple per field.
"""

import math
import re
from datetime import datetime
from typing import Any, Callable, Iterable, Optional


_CAMEL_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")

TRUE_STRINGS = {"y", "yes", "true", "1"}
FALSE_STRINGS = {"n", "no", "false", "0"}


def read_field(source: Any, key: str) -> Any:
    """
    Read key from a dict, also trying lowerCamel and snake_case spellings.

    read_field({"itemStatus": "Active"}, "ItemStatus") -> "Active"
    """
    if not isinstance(source, dict):
        return None
    if key in source:
        return source[key]

    lower_camel = key[:1].lower() + key[1:]
    if lower_camel in source:
        return source[lower_camel]

    snake = _CAMEL_BOUNDARY.sub(r"\1_\2", key).lower()
    if snake in source:
        return source[snake]

    return None


def pick_field(detail: Any, summary: Any, key: str) -> Any:
    """Prefer the detail payload, fall back to the search summary."""
    value = read_field(detail, key)
    if value is not None:
        return value
    return read_field(summary, key)


def first_present(source: Any, keys: Iterable[str]) -> Any:
    """Return the first value under keys that is not None (exact key match)."""
    if not isinstance(source, dict):
        return None
    for key in keys:
        value = source.get(key)
        if value is not None:
            return value
    return None


def first_match(accessors: Iterable[Callable[[], Any]], accept: Callable[[Any], bool]) -> Any:
    """
    Evaluate accessors in order, returning the first accepted result.

    Used where the fallback chain spans several sources rather than one dict.
    """
    for accessor in accessors:
        value = accessor()
        if accept(value):
            return value
    return None


def first_text(*values: Any) -> Optional[str]:
    """First non-blank string, stripped."""
    for value in values:
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


# ===================
# COERCION
# ===================

def to_number(value: Any) -> Optional[float]:
    """Finite float or None. Booleans and blanks are not numbers."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str) and not value.strip():
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def to_integer(value: Any) -> Optional[int]:
    """Leading integer of value ("12 EA" -> 12), or None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value) if math.isfinite(value) else None
    match = re.match(r"\s*([+-]?\d+)", str(value))
    return int(match.group(1)) if match else None


def to_boolean(value: Any) -> Optional[bool]:
    """Y/N style flags to bool; unknown spellings give None."""
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in TRUE_STRINGS:
            return True
        if normalized in FALSE_STRINGS:
            return False
    return None


def to_timestamp(value: Any) -> Optional[str]:
    """ISO-8601 string for a parseable date, else None."""
    if not value:
        return None
    if isinstance(value, datetime):
        return value.isoformat()
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00")).isoformat()
    except ValueError:
        return None


def first_number(source: Any, keys: Iterable[str]) -> Optional[float]:
    """First key whose value coerces to a finite number."""
    if not isinstance(source, dict):
        return None
    for key in keys:
        number = to_number(source.get(key))
        if number is not None:
            return number
    return None

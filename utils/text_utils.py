"""
Text utilities for matching supplier identifiers and names.

Used for staging normalization (manufacturer_norm, category_norm) and for
comparing part numbers typed by admins against supplier search results.
"""

import re
from typing import Iterable, Optional


_NON_ALNUM = re.compile(r"[^a-z0-9]")
_ILIKE_SPECIAL = re.compile(r"([%_])")


def normalize(value: Optional[str]) -> str:
    """
    Normalize a name for matching.

    - "  Zebra Technologies " -> "zebra technologies"
    - None -> ""
    """
    return (value or "").lower().strip()


def normalize_part_key(value: Optional[str]) -> str:
    """
    Reduce a part number to lowercase alphanumerics.

    Lets "AXC-0149 0001" match "axc01490001".

    Args:
        value: Raw part number (supplier, manufacturer, or SAP)

    Returns:
        Comparable key, or "" if input is empty
    """
    if not value:
        return ""
    return _NON_ALNUM.sub("", str(value).lower())


def escape_ilike(value: str) -> str:
    """Escape % and _ so user input is matched literally in ILIKE patterns."""
    return _ILIKE_SPECIAL.sub(r"\\\1", value)


def uniq_strings(values: Iterable) -> list[str]:
    """
    Keep the first occurrence of each non-empty string, in order.

    Non-string and blank values are dropped.
    """
    seen = set()
    result = []
    for value in values:
        if not isinstance(value, str):
            continue
        value = value.strip()
        if not value or value in seen:
            continue
        seen.add(value)
        result.append(value)
    return result


def truncate(text: Optional[str], limit: int = 200) -> str:
    """Cut a response body down for log lines and error details."""
    if not text:
        return ""
    return text[:limit]

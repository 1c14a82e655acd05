"""
Resolve arbitrary part numbers to canonical ScanSource items.

Admins paste whatever identifier they have: a ScanSource item number, the
manufacturer's part number, or the distributor's SAP material number. The
detail endpoint is asked under each part number type in a fixed order until
one returns a canonical item number.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Optional
import structlog

from exceptions import AppError, ResolutionError
from integrations.scansource import ScanSourceClient
from utils.field_access import first_present

logger = structlog.get_logger(__name__)


class PartNumberType(IntEnum):
    """ScanSource partNumberType codes."""
    SCANSOURCE = 1
    MANUFACTURER = 2
    SAP = 3


RESOLUTION_ORDER = (PartNumberType.SCANSOURCE, PartNumberType.MANUFACTURER, PartNumberType.SAP)

CANONICAL_KEYS = ("ScanSourceItemNumber", "ItemNumber", "itemNumber")


@dataclass
class ResolvedItem:
    canonical_item: str
    via_part_type: PartNumberType
    detail: dict


def detail_record(detail: Any) -> dict:
    """Detail payloads are sometimes wrapped in {"ProductDetail": {...}}."""
    if isinstance(detail, dict):
        inner = detail.get("ProductDetail")
        return inner if isinstance(inner, dict) else detail
    return {}


def canonical_item_number(detail: Any) -> Optional[str]:
    value = first_present(detail_record(detail), CANONICAL_KEYS)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


class ItemResolver:
    """Tries part number types 1 -> 2 -> 3 and keeps the first hit."""

    def __init__(self, client: ScanSourceClient):
        self.client = client

    def resolve(self, value: str) -> ResolvedItem:
        """
        Resolve one input identifier.

        Args:
            value: Any supplier, manufacturer or SAP part number

        Returns:
            ResolvedItem with the canonical item number, the part number
            type that matched, and the detail payload

        Raises:
            ResolutionError: No part number type yielded an item number
        """
        attempts = []
        for part_type in RESOLUTION_ORDER:
            try:
                detail = self.client.detail(value, int(part_type))
            except AppError as e:
                logger.debug(
                    "resolve_attempt_failed",
                    input=value,
                    part_type=int(part_type),
                    error=e.message
                )
                attempts.append({"part_type": int(part_type), "error": e.message})
                continue

            canonical = canonical_item_number(detail)
            logger.debug(
                "resolve_attempt",
                input=value,
                part_type=int(part_type),
                found=bool(canonical)
            )
            if canonical:
                return ResolvedItem(
                    canonical_item=canonical,
                    via_part_type=part_type,
                    detail=detail_record(detail),
                )
            attempts.append({"part_type": int(part_type), "error": "no item number"})

        logger.info("resolve_failed", input=value)
        raise ResolutionError(value, attempts)


def build_lines(detail: dict, quantity: int = 1, deal_id: Optional[str] = None) -> list[dict]:
    """
    Pricing lines for every identifier the detail payload carries.

    Order is ScanSource (1), SAP (3), manufacturer (2); a line per identifier
    gives the pricing endpoint several chances to match the item.
    """
    identifiers = (
        (canonical_item_number(detail), PartNumberType.SCANSOURCE),
        (detail.get("SAPMaterialNumber"), PartNumberType.SAP),
        (detail.get("ManufacturerItemNumber"), PartNumberType.MANUFACTURER),
    )

    lines = []
    for item_number, part_type in identifiers:
        if not item_number:
            continue
        line = {"ItemNumber": item_number, "PartNumberType": int(part_type), "Quantity": quantity}
        if deal_id:
            line["DealIDs"] = [deal_id]
        lines.append(line)
    return lines


def minimum_order_quantity(detail: dict) -> Optional[int]:
    """MOQ from the detail payload, if positive."""
    raw = first_present(detail, ("MinimumOrderQuantity", "minimumOrderQuantity", "MOQ", "moq"))
    try:
        moq = int(float(raw))
    except (TypeError, ValueError):
        return None
    return moq if moq > 0 else None

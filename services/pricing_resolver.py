"""
Price quotes under fallback business unit / warehouse contexts.

ScanSource only returns a usable price when the request carries a context the
account is authorized for, and which one works differs per item. Candidates
are tried in a fixed priority order and the first one that yields at least
one valid row wins:

    BU x WH pairs  ->  each BU  ->  each WH  ->  no context
"""

import math
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional, TypeVar
import structlog

from exceptions import AppError
from integrations.scansource import ScanSourceClient
from utils.field_access import first_present, to_number

logger = structlog.get_logger(__name__)

T = TypeVar("T")
R = TypeVar("R")


NO_CONTEXT_TAG = "NONE"
UNRESOLVED_TAG = "none"

UNIT_PRICE_KEYS = ("UnitPrice", "NetPrice", "CustomerPrice", "Price")
ROW_ITEM_KEYS = ("ItemNumber", "itemNumber", "MaterialNumber")
DEAL_INFO_KEYS = ("DealInfos", "dealInfos")

AVAILABILITY_KEYS = (
    "AvailableQty",
    "AvailableQuantity",
    "QtyAvailable",
    "QuantityAvailable",
    "Available",
    "Qty",
    "Quantity",
)
AVAILABILITY_NESTS = ("Warehouses", "warehouses", "Availability", "availability")


@dataclass
class PriceContext:
    """One candidate request context."""
    tag: str
    business_unit: Optional[str] = None
    warehouse: Optional[str] = None

    def request_body(self, customer_number: str, lines: list[dict], deal_id: Optional[str] = None) -> dict:
        body: dict[str, Any] = {"CustomerNumber": customer_number}
        if self.business_unit:
            body["BusinessUnit"] = self.business_unit
        if self.warehouse:
            body["Warehouse"] = self.warehouse
        body["Lines"] = lines
        if deal_id:
            body["DealID1"] = deal_id
        return body


@dataclass
class PricingResult:
    context_tag: str
    rows: list[dict] = field(default_factory=list)

    @property
    def resolved(self) -> bool:
        return self.context_tag != UNRESOLVED_TAG

    @property
    def valid_rows(self) -> list[dict]:
        return [row for row in self.rows if valid_price_row(row)]


# ===================
# PURE HELPERS
# ===================

def first_success(candidates: Iterable[T], attempt: Callable[[T], Optional[R]]) -> Optional[R]:
    """
    Run attempt over candidates in order and stop at the first non-None result.

    Candidates after the winner are never evaluated.
    """
    for candidate in candidates:
        result = attempt(candidate)
        if result is not None:
            return result
    return None


def build_contexts(business_units: list[str], warehouses: list[str]) -> list[PriceContext]:
    """Candidate contexts in priority order."""
    contexts = [
        PriceContext(tag=f"BU:{bu}+WH:{wh}", business_unit=bu, warehouse=wh)
        for bu in business_units
        for wh in warehouses
    ]
    contexts += [PriceContext(tag=f"BU:{bu}", business_unit=bu) for bu in business_units]
    contexts += [PriceContext(tag=f"WH:{wh}", warehouse=wh) for wh in warehouses]
    contexts.append(PriceContext(tag=NO_CONTEXT_TAG))
    return contexts


def normalize_pricing(data: Any) -> list[dict]:
    """
    Flatten the pricing response shapes into a list of rows.

    Accepts [row, ...], [{"Lines": [...]}, ...], {"items": [...]} and
    {"Lines": [...]}.
    """
    if not data:
        return []
    if isinstance(data, list):
        if data and isinstance(data[0], dict) and "Lines" in data[0]:
            return [row for entry in data for row in (entry.get("Lines") or [])]
        return data
    if isinstance(data, dict):
        if isinstance(data.get("items"), list):
            return data["items"]
        if isinstance(data.get("Lines"), list):
            return data["Lines"]
    return []


def unit_price(row: Any) -> Optional[float]:
    """Unit price from the first present price field, or None."""
    return to_number(first_present(row, UNIT_PRICE_KEYS))


def valid_price_row(row: Any) -> bool:
    """A row is priced if its unit price is finite and positive and no error is flagged."""
    if not isinstance(row, dict):
        return False
    price = unit_price(row)
    return price is not None and math.isfinite(price) and price > 0 and row.get("PricingError") is not True


def row_item_number(row: dict) -> Optional[str]:
    value = first_present(row, ROW_ITEM_KEYS)
    return str(value) if value else None


def extract_availability(payload: Any) -> Optional[float]:
    """
    Sum available quantity across a pricing row (or list of rows).

    Quantity fields on the row itself and on nested warehouse entries are
    all added. Returns None when no quantity field is present anywhere.
    """
    if not payload:
        return None

    def from_row(row: Any) -> Optional[float]:
        if not isinstance(row, dict):
            return None
        total = 0.0
        hit = False
        entries = [row]
        for nest in AVAILABILITY_NESTS:
            nested = row.get(nest)
            if isinstance(nested, list):
                entries.extend(nested)
                break
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            for key in AVAILABILITY_KEYS:
                number = to_number(entry.get(key))
                if number is not None:
                    total += number
                    hit = True
        return total if hit else None

    if isinstance(payload, dict) and "items" not in payload and "Lines" not in payload:
        return from_row(payload)

    found = [value for value in (from_row(row) for row in normalize_pricing(payload)) if value is not None]
    return sum(found) if found else None


# ===================
# RESOLVER
# ===================

class PricingResolver:
    """
    Requests price quotes, falling back across contexts.

    Usage:
        resolver = PricingResolver(client, ["1700"], ["1710", "1720"])
        result = resolver.price_with_contexts(lines)
        if result.resolved: ...
    """

    def __init__(
        self,
        client: ScanSourceClient,
        business_units: Optional[list[str]] = None,
        warehouses: Optional[list[str]] = None,
        deal_id: Optional[str] = None,
    ):
        self.client = client
        self.business_units = business_units or []
        self.warehouses = warehouses or []
        self.deal_id = deal_id

    def price_with_contexts(
        self,
        lines: list[dict],
        business_units: Optional[list[str]] = None,
        warehouses: Optional[list[str]] = None,
        deal_id: Optional[str] = None,
    ) -> PricingResult:
        """
        Price lines under the first context that yields a valid row.

        Args:
            lines: Pricing lines ({ItemNumber, PartNumberType, Quantity})
            business_units: Overrides the configured business units
            warehouses: Overrides the configured warehouses
            deal_id: Overrides the configured deal id

        Returns:
            PricingResult with the winning context tag and every row of
            that response (valid and invalid), or tag "none" and no rows
        """
        if not lines:
            return PricingResult(context_tag=UNRESOLVED_TAG)

        contexts = build_contexts(
            business_units if business_units is not None else self.business_units,
            warehouses if warehouses is not None else self.warehouses,
        )
        deal = deal_id or self.deal_id

        def attempt(context: PriceContext) -> Optional[PricingResult]:
            body = context.request_body(self.client.customer_number, lines, deal)
            try:
                data = self.client.pricing(body)
            except AppError as e:
                logger.warning("pricing_attempt_failed", context=context.tag, error=e.message)
                return None

            rows = normalize_pricing(data)
            valid = [row for row in rows if valid_price_row(row)]
            logger.info(
                "pricing_attempt",
                context=context.tag,
                lines=len(lines),
                rows=len(rows),
                valid=len(valid)
            )
            if not valid:
                for row in rows[:5]:
                    logger.debug(
                        "pricing_row_rejected",
                        context=context.tag,
                        item=row_item_number(row) if isinstance(row, dict) else None,
                        unit=unit_price(row),
                        error=row.get("PricingError") if isinstance(row, dict) else None,
                        message=first_present(row, ("PricingErrorDesc", "ErrorMessage"))
                    )
                return None
            return PricingResult(context_tag=context.tag, rows=rows)

        result = first_success(contexts, attempt)
        if result is None:
            logger.info("pricing_unresolved", lines=len(lines), contexts=len(contexts))
            return PricingResult(context_tag=UNRESOLVED_TAG)
        return result

    def price_batch(self, item_numbers: list[str]) -> dict[str, dict]:
        """
        Price a page of ScanSource item numbers for staging.

        Returns:
            {item_number: pricing row} for valid rows only, deal info removed
        """
        unique = list(dict.fromkeys(n for n in item_numbers if n))
        if not unique:
            return {}

        lines = [{"ItemNumber": n, "PartNumberType": 1, "Quantity": 1} for n in unique]
        result = self.price_with_contexts(lines)

        priced = {}
        for row in result.valid_rows:
            key = row_item_number(row)
            if not key:
                continue
            priced[key] = {k: v for k, v in row.items() if k not in DEAL_INFO_KEYS}

        logger.info(
            "pricing_batch_complete",
            requested=len(unique),
            priced=len(priced),
            context=result.context_tag
        )
        return priced

"""
Pricing diagnostics.

Resolves one SKU (or the items of a small search) and prices each one under
the fallback contexts, reporting which part number type and which context
worked. Nothing is written to the database.
"""

from typing import Any, Optional
import structlog

from config import settings as app_settings
from config.settings import Settings
from exceptions import ResolutionError
from integrations.scansource import ScanSourceClient
from services.import_runner import summary_item_number
from services.item_resolver import ItemResolver, build_lines, minimum_order_quantity
from services.pricing_resolver import (
    UNRESOLVED_TAG,
    PricingResolver,
    row_item_number,
    unit_price,
    valid_price_row,
)
from utils.field_access import first_present

logger = structlog.get_logger(__name__)


def pick_price_row(rows: list[dict], item_number: str) -> Optional[dict]:
    """Valid row for the item itself, else any valid row, else the first row."""
    for row in rows:
        if row_item_number(row) == item_number and valid_price_row(row):
            return row
    for row in rows:
        if valid_price_row(row):
            return row
    return rows[0] if rows else None


def summarize_price_row(row: Optional[dict]) -> Optional[dict]:
    if row is None:
        return None
    return {
        "UnitPrice": unit_price(row),
        "MSRP": first_present(row, ("MSRP", "ListPrice")),
        "Currency": first_present(row, ("Currency", "UnitPriceCurrencyCode")),
        "DealerAuthorized": row.get("DealerAuthorized"),
        "PricingError": row.get("PricingError"),
        "PricingErrorDesc": first_present(row, ("PricingErrorDesc", "ErrorMessage")),
        "Raw": row,
    }


class PricingCheckService:
    """Resolve + price without staging anything."""

    def __init__(
        self,
        client: ScanSourceClient,
        resolver: Optional[ItemResolver] = None,
        pricing: Optional[PricingResolver] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or app_settings
        self.client = client
        self.resolver = resolver or ItemResolver(client)
        self.pricing = pricing or PricingResolver(client)

    def collect_inputs(self, pages: int, filters: dict[str, str]) -> list[str]:
        """Item numbers from up to `pages` search pages, capped at 3 x max_batch."""
        page_size = self.settings.default_page_size
        found = []
        for page in range(1, max(1, pages) + 1):
            items = self.client.search(page=page, page_size=page_size, filters=filters)
            found.extend(items)
            if len(items) < page_size:
                break
        inputs = [n for n in (summary_item_number(item) for item in found) if n]
        return inputs[: 3 * self.settings.max_batch]

    def check(
        self,
        sku: Optional[str] = None,
        quantity: int = 1,
        business_units: Optional[list[str]] = None,
        warehouses: Optional[list[str]] = None,
        deal_id: Optional[str] = None,
        pages: int = 1,
        filters: Optional[dict[str, str]] = None,
    ) -> dict[str, Any]:
        """
        Args:
            sku: Single identifier to check; when absent, search results are used
            quantity: Line quantity (raised to the MOQ for a single SKU)
            business_units: Business units to try (defaults from settings)
            warehouses: Warehouses to try (defaults from settings)
            deal_id: Deal id (defaults from settings)
            pages: Search pages when no sku is given
            filters: Search filters when no sku is given

        Returns:
            {"meta": {...}, "result": [...]} diagnostics document
        """
        bu_list = business_units or self.settings.business_units
        wh_list = warehouses or self.settings.warehouses
        deal = deal_id or self.settings.default_deal_id

        inputs = [sku] if sku else self.collect_inputs(pages, filters or {})
        last_context = UNRESOLVED_TAG
        results = []

        for value in inputs:
            try:
                resolved = self.resolver.resolve(value)
            except ResolutionError as e:
                results.append({"input": value, "error": e.message})
                continue

            qty = quantity
            moq = minimum_order_quantity(resolved.detail) if sku else None
            if moq and moq > qty:
                qty = moq

            lines = build_lines(resolved.detail, qty, deal)
            priced = self.pricing.price_with_contexts(lines, bu_list, wh_list, deal)
            if priced.resolved:
                last_context = priced.context_tag

            row = pick_price_row(priced.rows, resolved.canonical_item)
            logger.info(
                "pricing_check",
                input=value,
                item=resolved.canonical_item,
                via=int(resolved.via_part_type),
                context=priced.context_tag,
                unit=unit_price(row) if row else None
            )

            results.append({
                "input": value,
                "skuResolved": resolved.canonical_item,
                "resolvedViaPartType": int(resolved.via_part_type),
                "moq": moq,
                "detail": resolved.detail,
                "pricing": summarize_price_row(row),
            })

        return {
            "meta": {
                "customerNumber": self.client.customer_number,
                "businessUnitsTried": bu_list,
                "warehousesTried": wh_list,
                "dealUsed": deal,
                "pricingAttempt": last_context,
            },
            "result": results,
        }

"""
Publish staged supplier items as storefront products.

For each item number: load the staged row, skip it if a product_sources link
already exists, derive product columns, resolve the brand, insert the
product and then the link. A failure on one item is recorded in its result
and the next item is processed.
"""

import json
from typing import Any, Optional
import structlog

from config import get_supabase_client, settings
from exceptions import DatabaseError
from models.publish import (
    MAX_PUBLISH_ITEMS,
    PublishMapping,
    PublishResult,
    PublishStatus,
)
from services.pricing_resolver import extract_availability
from services.staging_service import MSRP_KEYS, StagingService
from utils.field_access import first_match, first_number, first_present, first_text, to_number
from utils.text_utils import escape_ilike, uniq_strings

logger = structlog.get_logger(__name__)


UNIT_PRICE_KEYS = ("UnitPrice", "unitPrice", "Unitprice")
WEIGHT_KEYS = ("GrossWeight", "Weight")
UPC_KEYS = ("UPC", "Upc", "upc")
IMAGE_KEYS = ("ImageURL", "ImageUrl", "imageUrl")
DATASHEET_KEYS = ("DataSheetURL", "DatasheetUrl", "DatasheetURL", "SpecSheetURL")
LONG_DESC_KEYS = ("LongDescription", "DescriptionLong", "LongDesc")
COUNTRY_KEYS = ("CountryofOrigin", "CountryOfOrigin", "Country")
DIMENSION_KEYS = {
    "length": "PackagedLength",
    "width": "PackagedWidth",
    "height": "PackagedHeight",
}

# Staged supplier columns carried onto the product as-is
COPIED_TEXT_COLUMNS = (
    "item_status",
    "item_description",
    "product_family",
    "product_family_description",
    "product_family_image_url",
    "item_image_url",
    "catalog_name",
    "business_unit",
    "plant_material_status_valid_from",
    "base_unit_of_measure",
    "general_item_category_group",
    "material_group",
    "material_type",
    "battery_indicator",
    "rohs_compliance_indicator",
    "manufacturer_division",
    "commodity_import_code_number",
    "unspsc",
    "delivering_plant",
    "material_freight_group",
    "sell_via_web",
    "serial_number_profile",
    "date_added",
)
COPIED_NUMBER_COLUMNS = (
    "gross_weight",
    "minimum_order_quantity",
    "packaged_length",
    "packaged_width",
    "packaged_height",
)
COPIED_FLAG_COLUMNS = (
    "rebox_item",
    "b_stock_item",
    "salesperson_intervention_required",
    "sell_via_edi",
)

# Always written, regardless of mapping.fields_to_copy
REQUIRED_FIELDS = ("sku", "title", "published")


def derive_prices(pricing: dict) -> dict:
    """
    Price columns from a staged pricing row.

    msrp: MSRP / msrp / Msrp
    map_price, reseller_price: UnitPrice / unitPrice / Unitprice, else msrp
    sale_price: the higher of msrp and reseller price
    """
    msrp = first_number(pricing, MSRP_KEYS)
    unit = first_number(pricing, UNIT_PRICE_KEYS)
    reseller = unit if unit is not None else msrp

    known = [p for p in (msrp, reseller) if p is not None]
    return {
        "msrp": msrp,
        "map_price": reseller,
        "reseller_price": reseller,
        "sale_price": max(known) if known else None,
    }


def price_adjustment(prices: dict) -> dict:
    """Fixed markup of sale price over reseller price."""
    sale = prices["sale_price"]
    reseller = prices["reseller_price"]
    return {
        "price_adjustment_type": "fixed",
        "price_adjustment_value": sale - reseller if sale is not None and reseller is not None else None,
    }


def copy_staged_columns(staged: dict) -> dict:
    """
    Supplier columns copied from staging.

    Blank text becomes None; flags must already be booleans.
    """
    columns = {column: staged.get(column) or None for column in COPIED_TEXT_COLUMNS}
    for column in COPIED_NUMBER_COLUMNS:
        columns[column] = staged.get(column)
    for column in COPIED_FLAG_COLUMNS:
        value = staged.get(column)
        columns[column] = value if isinstance(value, bool) else None
    columns["product_family_headline"] = first_text(
        staged.get("product_family_headline"),
        staged.get("product_family_description"),
        staged.get("item_description"),
    )
    return columns


def derive_dimensions(detail: dict, staged: dict) -> Optional[dict]:
    """{length, width, height} if at least one packaged dimension is present."""
    dims = {}
    for name, key in DIMENSION_KEYS.items():
        dims[name] = first_match(
            (lambda: to_number(detail.get(key)), lambda: to_number(staged.get(f"packaged_{name}"))),
            lambda value: value is not None,
        )
    if all(value is None for value in dims.values()):
        return None
    return dims


def derive_weight(detail: dict, staged: dict) -> Optional[float]:
    weight = first_number(detail, WEIGHT_KEYS)
    if weight is not None:
        return weight
    return to_number(staged.get("gross_weight"))


def derive_tags(detail: dict, staged: dict) -> list[str]:
    """Supplier tags when provided, else product family + manufacturer."""
    tags = detail.get("Tags")
    if isinstance(tags, list):
        return tags
    return uniq_strings([staged.get("product_family"), staged.get("manufacturer")])


def parse_json_field(value: Any) -> Any:
    """Structured specs may arrive as JSON text."""
    if value is None:
        return None
    if isinstance(value, str):
        try:
            return json.loads(value)
        except ValueError:
            return None
    return value


def build_product(staged: dict) -> dict:
    """
    Map a supplier_items row to a products row (without brand_id).

    Args:
        staged: supplier_items row

    Returns:
        Product column dict
    """
    pricing = staged.get("pricing_json") or {}
    detail = staged.get("detail_json") if isinstance(staged.get("detail_json"), dict) else {}
    item_number = staged["item_number"]

    stock = staged.get("stock_available")
    if not isinstance(stock, (int, float)) or isinstance(stock, bool):
        availability = extract_availability(pricing)
        stock = int(availability) if availability is not None else 0

    category_path = staged.get("category_path")
    categories = [s.strip() for s in category_path.split("//") if s.strip()] if category_path else []

    specs = parse_json_field(detail.get("Specs"))
    if specs is None:
        specs = parse_json_field(detail.get("Attributes"))

    prices = derive_prices(pricing)

    product = {
        **copy_staged_columns(staged),
        "sku": item_number,
        "title": first_text(staged.get("description"), staged.get("title")) or item_number,
        "manufacturer": staged.get("manufacturer"),
        "manufacturer_item_number": staged.get("mfr_item_number"),
        "model": staged.get("mfr_item_number"),
        "upc": first_present(detail, UPC_KEYS),
        "short_desc": first_text(
            staged.get("product_family_headline"),
            staged.get("product_family_description"),
            staged.get("item_description"),
        ),
        "long_desc": first_text(
            *(detail.get(key) for key in LONG_DESC_KEYS),
            staged.get("item_description"),
            staged.get("description"),
            staged.get("product_family_headline"),
        ),
        "images": uniq_strings([
            staged.get("item_image_url"),
            staged.get("product_family_image_url"),
            first_present(detail, IMAGE_KEYS),
        ]),
        "datasheet_url": first_present(detail, DATASHEET_KEYS),
        "categories": categories,
        "category_path": category_path,
        "tags": derive_tags(detail, staged),
        "specs": specs or {},
        **prices,
        **price_adjustment(prices),
        "stock_status": staged.get("item_status") or "Unknown",
        "stock_available": stock,
        "lead_time_days": to_number(first_present(detail, ("LeadTimeDays",)) or pricing.get("LeadTimeDays")),
        "weight": derive_weight(detail, staged),
        "dimensions": derive_dimensions(detail, staged),
        "warranty": detail.get("Warranty"),
        "country_of_origin": first_present(detail, COUNTRY_KEYS) or staged.get("country_of_origin"),
        "product_media": staged.get("product_media") or [],
        "detail_json": detail,
        "published": True,
    }
    return product


def apply_mapping(product: dict, mapping: Optional[PublishMapping]) -> dict:
    """Keep only the mapped columns (plus the required ones)."""
    if not mapping or not mapping.fields_to_copy:
        return product
    allowed = set(mapping.fields_to_copy) | set(REQUIRED_FIELDS) | {"brand_id"}
    return {key: value for key, value in product.items() if key in allowed}


class PublishService:
    """
    Staged item -> product publishing.

    Usage:
        results = PublishService().publish(["ZEB123", "AXC-0149"])
    """

    def __init__(self, db=None, staging: Optional[StagingService] = None, supplier: Optional[str] = None):
        self.db = db or get_supabase_client()
        self.supplier = supplier or settings.supplier_name
        self.staging = staging or StagingService(self.db, supplier=self.supplier)

    def publish(
        self,
        item_numbers: list[str],
        mapping: Optional[PublishMapping] = None,
        upsert: bool = False,
    ) -> list[PublishResult]:
        """
        Publish up to MAX_PUBLISH_ITEMS staged items.

        Args:
            item_numbers: Staged item numbers; extras beyond the cap are ignored
            mapping: Optional column restriction
            upsert: Update already-linked products instead of skipping them

        Returns:
            One PublishResult per processed item number
        """
        batch = item_numbers[:MAX_PUBLISH_ITEMS]
        logger.info("publishing_items", requested=len(item_numbers), processing=len(batch), upsert=upsert)

        results = []
        for item_number in batch:
            try:
                results.append(self._publish_one(item_number, mapping, upsert))
            except Exception as e:
                message = getattr(e, "message", None) or str(e)
                logger.warning("publish_item_failed", item_number=item_number, error=message)
                results.append(PublishResult(
                    item_number=item_number,
                    status=PublishStatus.ERROR,
                    error=message,
                ))

        logger.info(
            "publish_complete",
            created=sum(1 for r in results if r.status is PublishStatus.CREATED),
            errors=sum(1 for r in results if r.status is PublishStatus.ERROR)
        )
        return results

    def _publish_one(self, item_number: str, mapping: Optional[PublishMapping], upsert: bool) -> PublishResult:
        staged = self.staging.get(item_number)
        if not staged:
            return PublishResult(item_number=item_number, status=PublishStatus.NOT_FOUND)

        existing_product_id = self.linked_product_id(item_number)
        if existing_product_id and not upsert:
            return PublishResult(
                item_number=item_number,
                status=PublishStatus.ALREADY_PUBLISHED,
                product_id=existing_product_id,
            )

        product = build_product(staged)
        product["brand_id"] = self.resolve_brand_id(staged.get("manufacturer"))
        product = apply_mapping(product, mapping)

        if existing_product_id:
            self.db.table("products").update(product).eq("id", existing_product_id).execute()
            return PublishResult(
                item_number=item_number,
                status=PublishStatus.UPDATED,
                product_id=existing_product_id,
            )

        inserted = self.db.table("products").insert(product).execute()
        if not inserted.data:
            raise DatabaseError("insert", "insert_failed")
        product_id = inserted.data[0]["id"]

        self.db.table("product_sources").insert({
            "product_id": product_id,
            "supplier": self.supplier,
            "item_number": item_number,
        }).execute()

        logger.info("product_published", item_number=item_number, product_id=product_id)
        return PublishResult(item_number=item_number, status=PublishStatus.CREATED, product_id=product_id)

    def linked_product_id(self, item_number: str) -> Optional[str]:
        result = (
            self.db.table("product_sources")
            .select("product_id")
            .eq("supplier", self.supplier)
            .eq("item_number", item_number)
            .limit(1)
            .execute()
        )
        return result.data[0]["product_id"] if result.data else None

    def resolve_brand_id(self, manufacturer: Optional[str]) -> Optional[str]:
        """
        Brand id for a manufacturer name, creating the brand if needed.

        Matching is case-insensitive on brands.name.
        """
        name = (manufacturer or "").strip()
        if not name:
            return None

        found = (
            self.db.table("brands")
            .select("id")
            .ilike("name", escape_ilike(name))
            .limit(1)
            .execute()
        )
        if found.data:
            return found.data[0]["id"]

        created = self.db.table("brands").insert({"name": name}).execute()
        if not created.data:
            return None

        logger.info("brand_created", name=name, brand_id=created.data[0]["id"])
        return created.data[0]["id"]


# Singleton instance for convenience
_publish_service: Optional[PublishService] = None

def get_publish_service() -> PublishService:
    """Get or create PublishService instance."""
    global _publish_service
    if _publish_service is None:
        _publish_service = PublishService()
    return _publish_service

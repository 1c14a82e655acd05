"""
ScanSource import pipeline.

One run pages through supplier search results (or resolves an explicit list
of part numbers), enriches each item with detail and batched pricing, and
upserts the result into supplier_items. Work is strictly sequential: one
page, then one pricing batch, then one item at a time.

Error policy:
    - detail lookup failures: item continues with an empty detail payload
    - pricing with no valid context: item is staged without pricing
    - record-building failures: counted per item, page continues
    - staging write or search failures: the job fails
"""

from datetime import datetime, timezone
from typing import Any, Optional
import structlog

from config import settings as app_settings
from config.settings import Settings
from exceptions import AppError, ResolutionError
from integrations.scansource import ScanSourceClient
from models.import_job import ImportProgress, ImportRunRequest
from services.import_job_service import ImportJobService
from services.item_resolver import ItemResolver, detail_record
from services.pricing_resolver import PricingResolver, extract_availability
from services.staging_service import StagingService, UpsertOutcome
from utils.field_access import (
    first_text,
    pick_field,
    read_field,
    to_boolean,
    to_integer,
    to_number,
    to_timestamp,
)
from utils.text_utils import normalize, normalize_part_key

logger = structlog.get_logger(__name__)


SUMMARY_ITEM_KEYS = ("ScanSourceItemNumber", "itemNumber", "ItemNumber")

NAME_KEYS = ("ItemName", "Name", "ProductName")
DESCRIPTION_KEYS = ("LongDescription", "Description", "MarketingDescription", "ProductDescription")
ATTRIBUTE_KEYS = ("ItemAttributes", "Attributes")

# staging column -> supplier field, copied as-is
TEXT_FIELDS = {
    "mfr_item_number": "ManufacturerItemNumber",
    "manufacturer": "Manufacturer",
    "title": "Description",
    "description": "Description",
    "catalog_name": "CatalogName",
    "category_path": "CategoryPath",
    "product_family": "ProductFamily",
    "product_family_description": "ProductFamilyDescription",
    "product_family_headline": "ProductFamilyHeadline",
    "item_status": "ItemStatus",
    "item_image_url": "ItemImage",
    "product_family_image_url": "ProductFamilyImage",
    "business_unit": "BusinessUnit",
    "base_unit_of_measure": "BaseUnitofMeasure",
    "general_item_category_group": "GeneralItemCategoryGroup",
    "material_group": "MaterialGroup",
    "material_type": "MaterialType",
    "battery_indicator": "BatteryIndicator",
    "rohs_compliance_indicator": "RoHSComplianceIndicator",
    "manufacturer_division": "ManufacturerDivision",
    "commodity_import_code_number": "CommodityImportCodeNumber",
    "country_of_origin": "CountryofOrigin",
    "unspsc": "UNSPSC",
    "delivering_plant": "DeliveringPlant",
    "material_freight_group": "MaterialFreightGroup",
    "sell_via_web": "SellviaWeb",
    "serial_number_profile": "SerialNumberProfile",
}
NUMBER_FIELDS = {
    "gross_weight": "GrossWeight",
    "packaged_length": "PackagedLength",
    "packaged_width": "PackagedWidth",
    "packaged_height": "PackagedHeight",
}
BOOLEAN_FIELDS = {
    "rebox_item": "ReboxItem",
    "b_stock_item": "BStockItem",
    "salesperson_intervention_required": "SalespersonInterventionRequired",
    "sell_via_edi": "SellviaEDI",
}
TIMESTAMP_FIELDS = {
    "plant_material_status_valid_from": "PlantMaterialStatusValidfrom",
    "date_added": "DateAdded",
}


def summary_item_number(item: dict) -> Optional[str]:
    for key in SUMMARY_ITEM_KEYS:
        value = item.get(key)
        if value:
            return str(value)
    return None


def pick_description(summary: dict, detail: dict) -> Optional[str]:
    """
    Best human-readable description.

    Item names win over long descriptions, which win over the first
    attribute description.
    """
    for keys in (NAME_KEYS, DESCRIPTION_KEYS):
        text = first_text(*(
            read_field(source, key)
            for source in (detail, summary)
            for key in keys
        ))
        if text:
            return text

    for key in ATTRIBUTE_KEYS:
        attributes = read_field(detail, key)
        if not attributes:
            continue
        entries = attributes if isinstance(attributes, list) else [attributes]
        for entry in entries:
            text = first_text(read_field(entry, "Description"))
            if text:
                return text
    return None


def product_media(detail: dict, summary: dict) -> list[dict]:
    raw = pick_field(detail, summary, "ProductMedia")
    if not isinstance(raw, list):
        return []
    return [
        {"MediaType": read_field(media, "MediaType"), "URL": read_field(media, "URL")}
        for media in raw
        if isinstance(media, dict)
    ]


def build_staging_record(
    item_number: str,
    summary: dict,
    detail_payload: Any,
    pricing: dict,
    now: Optional[datetime] = None,
) -> dict:
    """
    Map one search summary + detail + pricing row to a supplier_items row.

    Args:
        item_number: Canonical ScanSource item number
        summary: Search result entry
        detail_payload: Raw detail response ({} when lookup failed)
        pricing: Valid pricing row for this item ({} when unpriced)
        now: Sync timestamp

    Returns:
        Row dict keyed by staging column
    """
    timestamp = (now or datetime.now(timezone.utc)).isoformat()
    detail = detail_record(detail_payload)

    record: dict[str, Any] = {"item_number": item_number}
    for column, key in TEXT_FIELDS.items():
        record[column] = pick_field(detail, summary, key)
    for column, key in NUMBER_FIELDS.items():
        record[column] = to_number(pick_field(detail, summary, key))
    for column, key in BOOLEAN_FIELDS.items():
        record[column] = to_boolean(pick_field(detail, summary, key))
    for column, key in TIMESTAMP_FIELDS.items():
        record[column] = to_timestamp(pick_field(detail, summary, key))

    availability = extract_availability(pricing)
    stock = int(availability) if availability is not None else None
    status = str(record["item_status"] or "")

    record.update({
        "item_description": pick_description(summary, detail),
        "minimum_order_quantity": to_integer(pick_field(detail, summary, "MinimumOrderQuantity")),
        "product_media": product_media(detail, summary),
        "detail_json": detail_payload if detail_payload else {},
        "pricing_json": pricing,
        "stock_available": stock,
        "stock_updated_at": timestamp if stock is not None else None,
        "discontinued": "discontinued" in status.lower(),
        "last_synced_at": timestamp,
        "manufacturer_norm": normalize(record["manufacturer"]),
        "category_norm": normalize(record["category_path"]),
    })
    return record


def search_filters(request: ImportRunRequest) -> dict[str, str]:
    """Search query filters for a run config."""
    filters = {}
    if request.manufacturers:
        joined = ",".join(request.manufacturers)
        # Deployments disagree on the key; send both.
        filters["manufacturer"] = joined
        filters["manufacturerName"] = joined
    if request.categories:
        filters["categoryPath"] = ",".join(request.categories)
    if request.search_text:
        filters["searchText"] = request.search_text
    return filters


class ImportRunner:
    """
    Executes one import job to completion or failure.

    Usage:
        runner = ImportRunner(client, jobs, staging)
        runner.run(job_id, ImportRunRequest(manufacturers=["Zebra"]))
    """

    def __init__(
        self,
        client: ScanSourceClient,
        jobs: ImportJobService,
        staging: StagingService,
        pricing: Optional[PricingResolver] = None,
        resolver: Optional[ItemResolver] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or app_settings
        self.client = client
        self.jobs = jobs
        self.staging = staging
        self.pricing = pricing or PricingResolver(
            client,
            business_units=self.settings.business_units,
            warehouses=self.settings.warehouses,
            deal_id=self.settings.default_deal_id,
        )
        self.resolver = resolver or ItemResolver(client)
        self.page_size = self.settings.default_page_size

    def run(self, job_id: str, request: ImportRunRequest) -> ImportProgress:
        """
        Drive a job from running to completed/failed.

        Never raises: the outcome is written to the job row.
        """
        progress = ImportProgress()
        log = logger.bind(job_id=job_id)

        try:
            self.jobs.mark_running(job_id)

            if request.mfr_item_numbers:
                self._run_direct(job_id, request.mfr_item_numbers, progress)
            else:
                self._run_search(job_id, request, progress)

            self.jobs.mark_completed(job_id, progress)

        except Exception as e:
            message = e.message if isinstance(e, AppError) else str(e)
            log.error("import_run_aborted", error=message, error_type=type(e).__name__)
            try:
                self.jobs.mark_failed(job_id, progress, message)
            except AppError as mark_error:
                log.error("import_job_mark_failed_error", error=mark_error.message)

        return progress

    # ===================
    # MODES
    # ===================

    def _run_search(self, job_id: str, request: ImportRunRequest, progress: ImportProgress) -> None:
        filters = search_filters(request)
        max_pages = request.page_limit

        for page in range(1, max_pages + 1):
            items = self.client.search(page=page, page_size=self.page_size, filters=filters)
            if not items:
                break

            self._process_page(items, progress)
            self.jobs.save_progress(job_id, progress)

            if len(items) < self.page_size:
                break

    def _run_direct(self, job_id: str, inputs: list[str], progress: ImportProgress) -> None:
        """Resolve each part number through the detail endpoint, then stage the hits as one page."""
        matched: dict[str, dict] = {}
        details: dict[str, Any] = {}

        for value in dict.fromkeys(inputs):
            try:
                resolved = self.resolver.resolve(value)
            except ResolutionError:
                progress.record_error(f"{value}: not found")
                continue

            key = normalize_part_key(resolved.canonical_item)
            if key in matched:
                continue
            matched[key] = {"ScanSourceItemNumber": resolved.canonical_item}
            details[resolved.canonical_item] = resolved.detail

        self._process_page(list(matched.values()), progress, known_details=details)
        self.jobs.save_progress(job_id, progress)

    # ===================
    # PAGE PROCESSING
    # ===================

    def _process_page(
        self,
        items: list[dict],
        progress: ImportProgress,
        known_details: Optional[dict[str, Any]] = None,
    ) -> None:
        if not items:
            return

        progress.scanned += len(items)
        priced = self.pricing.price_batch([summary_item_number(item) for item in items])

        for item in items:
            item_number = summary_item_number(item)
            if not item_number:
                progress.skipped += 1
                continue

            try:
                detail = (known_details or {}).get(item_number)
                if detail is None:
                    detail = self._fetch_detail(item_number)
                record = build_staging_record(item_number, item, detail, priced.get(item_number, {}))
            except Exception as e:
                message = e.message if isinstance(e, AppError) else str(e)
                logger.warning("import_item_failed", item_number=item_number, error=message)
                progress.record_error(f"{item_number}: {message}")
                progress.skipped += 1
                continue

            outcome = self.staging.upsert(record)
            if outcome is UpsertOutcome.ADDED:
                progress.added += 1
            else:
                progress.updated += 1

    def _fetch_detail(self, item_number: str) -> Any:
        """Best-effort detail lookup; failures give an empty payload."""
        try:
            return self.client.detail(item_number, 1)
        except AppError as e:
            logger.info("detail_lookup_skipped", item_number=item_number, error=e.message)
            return {}

"""
Staging table operations (supplier_items).

Raw supplier records land here before being published as products.
"""

from enum import Enum
from typing import Optional
import structlog

from config import get_supabase_client, settings
from exceptions import DatabaseError
from models.base import PaginationParams
from models.staging import DiffItem, DiffResponse
from services.pricing_resolver import extract_availability
from utils.field_access import first_number
from utils.text_utils import escape_ilike

logger = structlog.get_logger(__name__)


MSRP_KEYS = ("MSRP", "msrp", "Msrp")
SEARCH_COLUMNS = ("item_number", "title", "description", "mfr_item_number", "item_description")


class UpsertOutcome(str, Enum):
    ADDED = "added"
    UPDATED = "updated"


class StagingService:
    """
    supplier_items access.

    Writes are keyed on item_number: existing rows are updated in place,
    new ones inserted, so re-importing a search result never duplicates it.
    """

    def __init__(self, db=None, supplier: Optional[str] = None):
        self.db = db or get_supabase_client()
        self.table = "supplier_items"
        self.supplier = supplier or settings.supplier_name

    # ===================
    # WRITE OPERATIONS
    # ===================

    def upsert(self, record: dict) -> UpsertOutcome:
        """
        Insert or update one staged record by item_number.

        Raises:
            DatabaseError: Lookup or write failed
        """
        item_number = record["item_number"]

        try:
            existing = (
                self.db.table(self.table)
                .select("item_number")
                .eq("item_number", item_number)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error("staging_lookup_failed", item_number=item_number, error=str(e))
            raise DatabaseError("select", f"{item_number}: lookup error {e}")

        try:
            if existing.data:
                self.db.table(self.table).update(record).eq("item_number", item_number).execute()
                return UpsertOutcome.UPDATED

            self.db.table(self.table).insert(record).execute()
            return UpsertOutcome.ADDED

        except Exception as e:
            logger.error("staging_write_failed", item_number=item_number, error=str(e))
            raise DatabaseError("upsert", f"{item_number}: {e}")

    def clear(self) -> int:
        """Delete every staged row. Returns the number removed."""
        try:
            result = (
                self.db.table(self.table)
                .delete(count="exact")
                .neq("item_number", "")
                .execute()
            )
            count = result.count or 0
            logger.info("staging_cleared", count=count)
            return count

        except Exception as e:
            logger.error("staging_clear_failed", error=str(e))
            raise DatabaseError("delete", str(e))

    # ===================
    # READ OPERATIONS
    # ===================

    def get(self, item_number: str) -> Optional[dict]:
        """Staged row or None."""
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("item_number", item_number)
                .limit(1)
                .execute()
            )
            return result.data[0] if result.data else None

        except Exception as e:
            logger.error("staging_get_failed", item_number=item_number, error=str(e))
            raise DatabaseError("select", str(e))

    def list_items(
        self,
        page: int = 1,
        page_size: int = 50,
        manufacturer: Optional[str] = None,
        category: Optional[str] = None,
        search: Optional[str] = None
    ) -> tuple[list[dict], int]:
        """
        Page through staged rows, newest sync first.

        Args:
            page: Page number (1-indexed)
            page_size: Rows per page
            manufacturer: Substring match on manufacturer
            category: Substring match on category_path
            search: Substring match across item numbers, title and descriptions

        Returns:
            Tuple of (rows, total count)
        """
        logger.info(
            "listing_staging_items",
            page=page,
            page_size=page_size,
            manufacturer=manufacturer,
            category=category,
            search=search
        )

        try:
            query = self.db.table(self.table).select("*", count="exact")

            if manufacturer:
                query = query.ilike("manufacturer", f"%{escape_ilike(manufacturer)}%")
            if category:
                query = query.ilike("category_path", f"%{escape_ilike(category)}%")
            if search:
                escaped = escape_ilike(search)
                query = query.or_(",".join(f"{col}.ilike.%{escaped}%" for col in SEARCH_COLUMNS))

            paging = PaginationParams(page=page, page_size=page_size)
            result = (
                query.order("last_synced_at", desc=True)
                .range(paging.offset, paging.offset + paging.limit - 1)
                .execute()
            )
            return result.data or [], result.count or 0

        except Exception as e:
            logger.error("list_staging_items_failed", error=str(e))
            raise DatabaseError("select", str(e))

    def linked_item_numbers(self) -> set[str]:
        """Item numbers already linked to a product for this supplier."""
        try:
            result = (
                self.db.table("product_sources")
                .select("item_number")
                .eq("supplier", self.supplier)
                .execute()
            )
            return {row["item_number"] for row in result.data or []}

        except Exception as e:
            logger.error("linked_items_failed", error=str(e))
            raise DatabaseError("select", str(e))

    def diff(self) -> DiffResponse:
        """
        Split staged items into unpublished ("new") and linked ("unchanged").

        Changed-item detection is not done; "changed" is always empty.
        """
        try:
            staged = (
                self.db.table(self.table)
                .select("item_number, title, description, pricing_json, manufacturer, category_path")
                .order("last_synced_at", desc=True)
                .execute()
            ).data or []
        except Exception as e:
            logger.error("diff_staging_failed", error=str(e))
            raise DatabaseError("select", str(e))

        linked = self.linked_item_numbers()

        new_items = []
        for row in staged:
            if row["item_number"] in linked:
                continue
            pricing = row.get("pricing_json") or {}
            new_items.append(DiffItem(
                item_number=row["item_number"],
                title=row.get("description") or row.get("title"),
                msrp=first_number(pricing, MSRP_KEYS),
                manufacturer=row.get("manufacturer"),
                category=row.get("category_path"),
                availability=extract_availability(pricing),
            ))

        logger.info("staging_diff", new=len(new_items), linked=len(linked))
        return DiffResponse(new=new_items, changed=[], unchanged=sorted(linked))


# Singleton instance for convenience
_staging_service: Optional[StagingService] = None

def get_staging_service() -> StagingService:
    """Get or create StagingService instance."""
    global _staging_service
    if _staging_service is None:
        _staging_service = StagingService()
    return _staging_service
